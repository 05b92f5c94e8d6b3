"""Announcers publish and maintain the public formation message.

``Announcer`` is the seam the coordinator talks to; ``SlackAnnouncer`` is the
Slack Web API implementation used in production.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

import requests

from kickbot import messages
from kickbot.models import GameVariant


class AnnouncerError(Exception):
    """An announcement call did not reach Slack or Slack refused it."""

    def __init__(self, method: str, reason: str):
        self.method = method
        self.reason = reason
        super().__init__(f"{method} failed: {reason}")


class Announcer(ABC):

    @abstractmethod
    def announce(self, channel: str, participant: str, variant: GameVariant) -> str:
        """Post the initial announcement and return its handle."""

    @abstractmethod
    def update_announcement(self, channel: str, handle: str, participants: List[str], quorum: int) -> None:
        pass

    @abstractmethod
    def complete_announcement(self, channel: str, handle: str, participants: List[str]) -> None:
        pass

    @abstractmethod
    def delete_announcement(self, channel: str, handle: str) -> None:
        pass

    @abstractmethod
    def expire_announcement(self, channel: str, handle: str) -> None:
        pass

    @abstractmethod
    def notify_participant(self, channel: str, participant: str, text: str) -> None:
        """Send a private message only ``participant`` can see."""


class SlackAnnouncer(Announcer):
    """Announcer backed by the Slack Web API (chat.* methods)."""

    def __init__(self, token: str, api_url: str = 'https://slack.com/api', timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f"Bearer {token}",
            'Content-Type': 'application/json; charset=utf-8',
        })

    def _call(self, method: str, payload: dict) -> dict:
        try:
            response = self.session.post(f"{self.api_url}/{method}", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AnnouncerError(method, str(e)) from e
        if response.status_code != 200:
            raise AnnouncerError(method, f"http status {response.status_code}")
        try:
            body = response.json()
        except ValueError as e:
            raise AnnouncerError(method, 'invalid json response') from e
        if not isinstance(body, dict):
            raise AnnouncerError(method, 'unexpected response body')
        if not body.get('ok'):
            raise AnnouncerError(method, body.get('error', 'unknown_error'))
        return body

    def announce(self, channel, participant, variant):
        body = self._call('chat.postMessage', {'channel': channel, **messages.announcement_message(participant, variant)})
        ts = body.get('ts')
        if not ts:
            raise AnnouncerError('chat.postMessage', 'response without ts')
        return ts

    def update_announcement(self, channel, handle, participants, quorum):
        self._call('chat.update', {'channel': channel, 'ts': handle, **messages.update_message(participants, quorum)})

    def complete_announcement(self, channel, handle, participants):
        self._call('chat.update', {'channel': channel, 'ts': handle, **messages.complete_message(participants)})

    def delete_announcement(self, channel, handle):
        self._call('chat.delete', {'channel': channel, 'ts': handle})

    def expire_announcement(self, channel, handle):
        self._call('chat.update', {'channel': channel, 'ts': handle, **messages.expired_message()})

    def notify_participant(self, channel, participant, text):
        self._call('chat.postEphemeral', {'channel': channel, 'user': participant, 'text': text})
