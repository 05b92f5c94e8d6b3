import threading
import time
from typing import Callable

from kickbot.models import FormationRecord

# Longer waits overflow the platform timeout of threading.Timer
MAX_EXPIRY_SEC = min(threading.TIMEOUT_MAX, 366 * 24 * 3600.0)


def schedule_expiry(record: FormationRecord, delay: float, on_expire: Callable, logger) -> None:
    """Arm the expiry timer of a freshly announced formation.

    - Caller holds ``record.lock``
    - Exactly one timer per record; the timer is bound to this record object,
      so a later formation in the same channel is never expired by it
    - Delays beyond ``MAX_EXPIRY_SEC`` are capped
    - Sets ``record.deadline`` so listings can show the remaining time
    """
    delay = min(delay, MAX_EXPIRY_SEC)
    timer = threading.Timer(delay, on_expire, args=(record.channel, record))
    timer.daemon = True
    timer.name = f"expiry-{record.channel}"
    record.expiry = timer
    record.deadline = time.time() + delay
    timer.start()
    logger.info(
        f"[timer-set] channel={record.channel} duration={delay}s deadline={record.deadline}"
    )
