import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, List, Optional

from kickbot import messages
from kickbot.announcer import Announcer, AnnouncerError
from kickbot.models import FormationRecord, GameVariant
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
from .scheduler import schedule_expiry

FORMING = 'forming'
COMPLETED = 'completed'
CANCELLED = 'cancelled'


@dataclass
class FormationResult:
    """Outcome of a committed create/join/leave.

    ``notification_error`` is set when the state change went through but
    Slack could not be updated. The change is not rolled back.
    """
    status: str
    participants: List[str]
    quorum: int
    notification_error: Optional[Exception] = None


class FormationCoordinator:
    """Owns the pending formation of every channel.

    Two locks are involved. ``_mu`` guards only the channel -> record dict.
    Each record's own lock guards its participants, handle and timer. A
    terminal transition takes the record lock first and then ``_mu`` to drop
    the dict entry; nothing takes a record lock while holding ``_mu``.
    Announcer calls are always made with no lock held.
    """

    def __init__(self, announcer: Announcer, timeout: float = 1800.0, logger=None, max_workers: int = 8):
        self.announcer = announcer
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self.max_workers = max_workers
        self._records: Dict[str, FormationRecord] = {}
        self._mu = threading.Lock()
        # signalled whenever a create that reserved a channel has finished
        self._idle = threading.Condition(self._mu)
        self._creating = 0
        self._closed = False

    # ---- registry ----

    def get(self, channel: str) -> Optional[FormationRecord]:
        with self._mu:
            return self._records.get(channel)

    def _discard(self, channel: str, record: FormationRecord) -> bool:
        with self._mu:
            if self._records.get(channel) is record:
                del self._records[channel]
                return True
            return False

    def _close(self, record: FormationRecord) -> None:
        # caller holds record.lock
        record.closed = True
        record.cancel_expiry()
        self._discard(record.channel, record)

    def active_formations(self) -> List[dict]:
        with self._mu:
            records = list(self._records.values())
        return [r.to_dict() for r in records]

    # ---- notices ----

    def _notify(self, channel: str, participant: str, text: str) -> Optional[AnnouncerError]:
        try:
            self.announcer.notify_participant(channel, participant, text)
        except AnnouncerError as e:
            self.logger.error(f"[notify-failed] channel={channel} participant={participant} error={e}")
            return e
        return None

    def _reject(self, error: FormationError):
        self.logger.info(f"[formation-reject] {error}")
        self._notify(error.channel, error.participant, error.notice)
        raise error

    # ---- operations ----

    def create(self, channel: str, participant: str, variant: GameVariant = GameVariant.TWO_VS_TWO,
               timeout: Optional[float] = None) -> FormationResult:
        """Open a formation in ``channel`` with ``participant`` as its first player.

        The record is reserved in the registry before Slack is called, so a
        concurrent creator in the same channel is rejected right away.
        """
        record = FormationRecord(channel, variant, participant)
        with self._mu:
            shutting_down = self._closed
            taken = channel in self._records
            if not (shutting_down or taken):
                self._records[channel] = record
                self._creating += 1
        if shutting_down:
            self._reject(ShuttingDownError(channel, participant))
        if taken:
            self._reject(AlreadyFormingError(channel, participant))

        try:
            return self._announce_reserved(record, participant, timeout)
        finally:
            with self._idle:
                self._creating -= 1
                self._idle.notify_all()

    def _announce_reserved(self, record: FormationRecord, participant: str,
                           timeout: Optional[float]) -> FormationResult:
        channel, variant = record.channel, record.variant
        try:
            handle = self.announcer.announce(channel, participant, variant)
        except Exception as e:
            with record.lock:
                record.closed = True
                self._discard(channel, record)
            if not isinstance(e, AnnouncerError):
                raise
            self.logger.error(f"[formation-announce-failed] channel={channel} participant={participant} error={e}")
            self._reject(AnnouncementFailedError(channel, participant))

        delay = self.timeout if timeout is None else timeout
        with record.lock:
            record.external_handle = handle
            drained = record.closed
            if not drained:
                schedule_expiry(record, delay, self._expire, self.logger)

        if drained:
            # shutdown emptied the registry while the announcement was in flight
            self._cleanup(channel, handle)
            self._reject(ShuttingDownError(channel, participant))

        self.logger.info(
            f"[formation-create] channel={channel} participant={participant} variant={variant.value} handle={handle}"
        )
        return FormationResult(FORMING, [participant], record.quorum)

    def join(self, channel: str, participant: str) -> FormationResult:
        record = self.get(channel)
        if record is None:
            self._reject(NoActiveFormationError(channel, participant))

        error = None
        with record.lock:
            if (record.closed and not record.is_full) or not record.announced:
                error = NoActiveFormationError(channel, participant)
            elif participant in record.participants:
                error = AlreadyJoinedError(channel, participant)
            elif record.is_full:
                error = FormationFullError(channel, participant)
            else:
                record.participants.append(participant)
                participants = list(record.participants)
                handle = record.external_handle
                completed = record.is_full
                if completed:
                    self._close(record)
        if error is not None:
            self._reject(error)

        self.logger.info(
            f"[formation-join] channel={channel} participant={participant} players={len(participants)}/{record.quorum}"
        )
        if completed:
            self.logger.info(f"[formation-complete] channel={channel} players={','.join(participants)}")
            failure = self._announce_completion(channel, handle, participants)
            status = COMPLETED
        else:
            failure = None
            try:
                self.announcer.update_announcement(channel, handle, participants, record.quorum)
            except AnnouncerError as e:
                failure = e
            status = FORMING

        if failure is not None:
            # TODO: retry queue for transient Slack errors; the announcement stays stale until the next change
            self.logger.error(f"[formation-update-failed] channel={channel} error={failure}")
            self._notify(channel, participant, messages.JOIN_FAILED_NOTICE)
        return FormationResult(status, participants, record.quorum, failure)

    def _announce_completion(self, channel: str, handle: str, participants: List[str]) -> Optional[AnnouncerError]:
        notice = messages.completion_notice(participants)
        failure = None
        with ThreadPoolExecutor(max_workers=min(len(participants), self.max_workers),
                                thread_name_prefix='kickbot-notify') as pool:
            futures = [pool.submit(self._notify, channel, p, notice) for p in participants]
            try:
                self.announcer.complete_announcement(channel, handle, participants)
            except AnnouncerError as e:
                failure = e
            for future in futures:
                future.result()
        return failure

    def leave(self, channel: str, participant: str) -> FormationResult:
        record = self.get(channel)
        if record is None:
            self._reject(NoActiveFormationError(channel, participant))

        error = None
        with record.lock:
            if record.closed or not record.announced:
                error = NoActiveFormationError(channel, participant)
            elif participant not in record.participants:
                error = NotInFormationError(channel, participant)
            else:
                record.participants.remove(participant)
                participants = list(record.participants)
                handle = record.external_handle
                cancelled = not participants
                if cancelled:
                    self._close(record)
        if error is not None:
            self._reject(error)

        if cancelled:
            self.logger.info(f"[formation-cancel] channel={channel} participant={participant}")
            status, notice = CANCELLED, messages.CANCEL_FAILED_NOTICE
        else:
            self.logger.info(
                f"[formation-leave] channel={channel} participant={participant} players={len(participants)}/{record.quorum}"
            )
            status, notice = FORMING, messages.LEAVE_FAILED_NOTICE

        failure = None
        try:
            if cancelled:
                self.announcer.delete_announcement(channel, handle)
            else:
                self.announcer.update_announcement(channel, handle, participants, record.quorum)
        except AnnouncerError as e:
            failure = e
            self.logger.error(f"[formation-update-failed] channel={channel} error={e}")
            self._notify(channel, participant, notice)
        return FormationResult(status, participants, record.quorum, failure)

    def _expire(self, channel: str, record: FormationRecord) -> None:
        """Timer callback. A no-op when the record already reached another terminal state."""
        with record.lock:
            if record.closed:
                self.logger.info(f"[timer-abort] channel={channel} formation already closed")
                return
            # a record shutdown has already taken is closed and deleted by shutdown
            if not self._discard(channel, record):
                self.logger.info(f"[timer-abort] channel={channel} formation no longer registered")
                return
            record.closed = True
            record.expiry = None
            handle = record.external_handle

        self.logger.info(f"[timer-fire] channel={channel} expired players={len(record.participants)}/{record.quorum}")
        try:
            self.announcer.expire_announcement(channel, handle)
        except AnnouncerError as e:
            self.logger.error(f"[formation-expire-failed] channel={channel} error={e}")

    def _cleanup(self, channel: str, handle: str) -> bool:
        try:
            self.announcer.delete_announcement(channel, handle)
        except AnnouncerError as e:
            self.logger.warning(f"[shutdown] failed to delete announcement channel={channel} error={e}")
            return False
        return True

    def shutdown(self, timeout: Optional[float] = None) -> int:
        """Drop every pending formation and delete its announcement.

        Timers are cancelled synchronously; the deletions run concurrently.
        Together with creates whose announcement is still in flight, they are
        awaited for at most ``timeout`` seconds in total. Returns how many
        deletions of registered formations finished in time.
        """
        with self._mu:
            self._closed = True
            records = list(self._records.values())
            self._records.clear()

        pending = []
        for record in records:
            with record.lock:
                if record.closed:
                    continue
                record.closed = True
                record.cancel_expiry()
                if record.announced:
                    pending.append((record.channel, record.external_handle))

        self.logger.info(f"[shutdown] draining formations={len(pending)}")
        deadline = None if timeout is None else time.monotonic() + timeout

        done = set()
        if pending:
            pool = ThreadPoolExecutor(max_workers=min(len(pending), self.max_workers),
                                      thread_name_prefix='kickbot-shutdown')
            futures = [pool.submit(self._cleanup, channel, handle) for channel, handle in pending]
            done, not_done = wait(futures, timeout=timeout)
            pool.shutdown(wait=False, cancel_futures=True)
            if not_done:
                self.logger.warning(f"[shutdown] deadline reached with {len(not_done)} announcement(s) still pending")

        # creates still waiting on Slack delete their own announcement once it arrives
        remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
        with self._idle:
            if not self._idle.wait_for(lambda: self._creating == 0, timeout=remaining):
                self.logger.warning(f"[shutdown] deadline reached with {self._creating} create(s) in flight")
        return len(done)
