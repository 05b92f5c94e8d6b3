"""Slack Block Kit payloads for formation announcements and notices."""

from typing import Dict, List

from kickbot.models import GameVariant

ACTION_JOIN = 'GAME_JOIN'
ACTION_LEAVE = 'GAME_LEAVE'
ACTION_BLOCK_ID = 'GAME_ACTIONS'

EXPIRED_TEXT = 'Die Runde ist abgelaufen, es haben sich nicht genug Leute gefunden. :hourglass:'
JOIN_FAILED_NOTICE = 'Es gab ein technisches Problem beim Beitritt zum Spiel.'
LEAVE_FAILED_NOTICE = 'Es gab ein technisches Problem beim Verlassen des Spiels.'
CANCEL_FAILED_NOTICE = 'Es gab ein technisches Problem beim Abbrechen des Spiels.'


def _plain(text: str) -> Dict:
    return {'type': 'plain_text', 'text': text}


def _section(text: str) -> Dict:
    return {'type': 'section', 'text': {'type': 'mrkdwn', 'text': text}}


def _actions() -> Dict:
    join_btn = {
        'type': 'button',
        'text': _plain('Bin dabei!'),
        'action_id': ACTION_JOIN,
        'value': ACTION_JOIN,
        'style': 'primary',
    }
    leave_btn = {
        'type': 'button',
        'text': _plain('Bin raus!'),
        'action_id': ACTION_LEAVE,
        'value': ACTION_LEAVE,
        'style': 'danger',
        'confirm': {
            'title': _plain('Bist du sicher?'),
            'text': _plain('Möchtest du wirklich das Spiel verlassen?'),
            'confirm': _plain('Nu'),
            'deny': _plain('Nä'),
        },
    }
    return {'type': 'actions', 'block_id': ACTION_BLOCK_ID, 'elements': [join_btn, leave_btn]}


def mentions(participants: List[str]) -> str:
    return ' '.join(f"<@{p}>" for p in participants)


def announcement_message(participant: str, variant: GameVariant) -> Dict:
    if variant is GameVariant.ONE_VS_ONE:
        text = f"<!here>, <@{participant}> sucht einen Herausforderer für ein 1v1 Kicker-Duell. Wer traut sich?"
    else:
        missing = variant.quorum - 1
        text = f"<!here>, <@{participant}> hat Bock auf Kicker! Wer macht mit? Noch {missing} Leute gesucht!"
    return {'text': text, 'blocks': [_section(text), {'type': 'divider'}, _actions()]}


def update_message(participants: List[str], quorum: int) -> Dict:
    missing = quorum - len(participants)
    text = f"{mentions(participants)} sind dabei. Noch {missing} Spieler gesucht!"
    return {'text': text, 'blocks': [_section(text), _actions()]}


def complete_message(participants: List[str]) -> Dict:
    text = f"{mentions(participants)} sind bereit. Los geht's!"
    return {'text': text, 'blocks': [_section(text)]}


def expired_message() -> Dict:
    return {'text': EXPIRED_TEXT, 'blocks': [_section(EXPIRED_TEXT)]}


def completion_notice(participants: List[str]) -> str:
    players = ', '.join(f"<@{p}>" for p in participants)
    return f"Die Runde ist voll, {players} zum Kickertisch! :kicker:"
