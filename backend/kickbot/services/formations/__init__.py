"""Formation domain services: the coordinator, its expiry timers and errors.

HTTP handlers import from here; transport concerns stay in ``kickbot.api``.
"""

from .coordinator import CANCELLED, COMPLETED, FORMING, FormationCoordinator, FormationResult
from .errors import (
    AlreadyFormingError,
    AlreadyJoinedError,
    AnnouncementFailedError,
    FormationError,
    FormationFullError,
    NoActiveFormationError,
    NotInFormationError,
    ShuttingDownError,
)
