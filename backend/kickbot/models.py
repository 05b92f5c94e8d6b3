import threading
from enum import Enum
from typing import List, Optional


class GameVariant(Enum):
    TWO_VS_TWO = 'two_vs_two'  # 2 vs 2 at the table
    ONE_VS_ONE = 'one_vs_one'  # duel

    @property
    def quorum(self) -> int:
        return QUORUMS[self]


QUORUMS = {
    GameVariant.TWO_VS_TWO: 4,
    GameVariant.ONE_VS_ONE: 2,
}


class FormationRecord:
    """A pending game in one channel, waiting for enough players.

    The record owns its lock. ``participants``, ``external_handle``,
    ``expiry``, ``deadline`` and ``closed`` are only touched while holding it.
    Once ``closed`` is set the record has left the registry and must not be
    mutated again.
    """

    def __init__(self, channel: str, variant: GameVariant, participant: str):
        self.channel = channel
        self.variant = variant
        self.quorum = variant.quorum
        self.participants: List[str] = [participant]
        self.external_handle: Optional[str] = None
        self.expiry: Optional[threading.Timer] = None
        self.deadline: Optional[float] = None
        self.closed = False
        self.lock = threading.Lock()

    @property
    def announced(self) -> bool:
        return self.external_handle is not None

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= self.quorum

    def cancel_expiry(self) -> None:
        # caller holds self.lock
        if self.expiry is not None:
            self.expiry.cancel()
            self.expiry = None

    def to_dict(self):
        with self.lock:
            return {
                'channel': self.channel,
                'variant': self.variant.value,
                'participants': list(self.participants),
                'quorum': self.quorum,
                'missing': self.quorum - len(self.participants),
                'deadline': self.deadline,
                'announced': self.announced,
            }
