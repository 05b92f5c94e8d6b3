import itertools
import os
import sys
import threading
import time

import pytest

# Ensure the backend root (containing the `kickbot` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from kickbot import create_app
from kickbot.announcer import Announcer, AnnouncerError
from kickbot.services.formations import FormationCoordinator


class TestConfig:
    TESTING = True
    SLACK_BOT_TOKEN = 'xoxb-test'
    SLACK_SIGNING_SECRET = os.environ.get('KICKBOT_SIGNING_SECRET', 'test-secret')
    SLACK_API_URL = 'https://slack.invalid/api'
    SLACK_HTTP_TIMEOUT_SEC = 1.0
    FORMATION_TIMEOUT_SEC = 30
    SHUTDOWN_GRACE_SEC = 1
    SLACK_REQUEST_MAX_AGE_SEC = 300
    VERIFY_SLACK_SIGNATURES = False


class FakeAnnouncer(Announcer):
    """Records every call; methods listed in ``failures`` raise AnnouncerError."""

    def __init__(self):
        self.calls = []
        self.failures = set()
        self.delays = {}
        self._lock = threading.Lock()
        self._ts = itertools.count(1)

    def _record(self, method, *args):
        delay = self.delays.get(method)
        if delay:
            time.sleep(delay)
        with self._lock:
            self.calls.append((method,) + args)
        if method in self.failures:
            raise AnnouncerError(method, 'simulated failure')

    def calls_for(self, method):
        with self._lock:
            return [c[1:] for c in self.calls if c[0] == method]

    def count(self, method):
        return len(self.calls_for(method))

    def announce(self, channel, participant, variant):
        self._record('announce', channel, participant, variant)
        with self._lock:
            return f"ts-{next(self._ts)}"

    def update_announcement(self, channel, handle, participants, quorum):
        self._record('update_announcement', channel, handle, list(participants), quorum)

    def complete_announcement(self, channel, handle, participants):
        self._record('complete_announcement', channel, handle, list(participants))

    def delete_announcement(self, channel, handle):
        self._record('delete_announcement', channel, handle)

    def expire_announcement(self, channel, handle):
        self._record('expire_announcement', channel, handle)

    def notify_participant(self, channel, participant, text):
        self._record('notify_participant', channel, participant, text)


def wait_until(predicate, timeout=2.0, interval=0.01):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture()
def announcer():
    return FakeAnnouncer()


@pytest.fixture()
def coordinator(announcer):
    coord = FormationCoordinator(announcer, timeout=30)
    yield coord
    coord.shutdown(1)


@pytest.fixture()
def flask_app(announcer):
    application = create_app(TestConfig, announcer=announcer)
    yield application
    application.extensions['coordinator'].shutdown(1)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()
