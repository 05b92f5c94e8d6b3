"""Rejections raised by the formation coordinator.

Each error carries the private notice shown to the participant whose request
was rejected. The coordinator sends that notice before raising, so callers
only need to decide what to answer on their own transport.
"""


class FormationError(Exception):
    notice = 'Ein Fehler ist aufgetreten.'

    def __init__(self, channel: str, participant: str, message: str = None):
        self.channel = channel
        self.participant = participant
        super().__init__(message or f"{type(self).__name__}: channel={channel} participant={participant}")


class AlreadyFormingError(FormationError):
    notice = 'Eine Runde wird bereits vorbereitet!'


class AnnouncementFailedError(FormationError):
    notice = 'Ein Fehler ist aufgetreten! Die Runde konnte nicht angekündigt werden.'


class NoActiveFormationError(FormationError):
    notice = 'Aktuell wird keine Runde vorbereitet. Starte gerne ein neues Spiel.'


class AlreadyJoinedError(FormationError):
    notice = 'Du bist bereits im Spiel.'


class FormationFullError(FormationError):
    notice = 'Das Spiel ist bereits voll.'


class NotInFormationError(FormationError):
    notice = 'Du bist nicht in der aktuellen Runde.'


class ShuttingDownError(FormationError):
    notice = 'Der Kickbot wird gerade neu gestartet. Versuch es gleich nochmal.'
