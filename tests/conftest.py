import socket

import pytest
import requests

from dpu_login.settings import Settings


class FakeResponse:
    def __init__(self, status_code=200, text="", headers=None, history=None):
        self.status_code = status_code
        self.text = text
        self.headers = headers or {}
        self.history = history or []


class FakeSession:
    """Stands in for requests.Session; replays a canned response or raises."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.headers = {}
        self.calls = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True
        return False

    def _request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, **kwargs):
        return self._request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._request("POST", url, **kwargs)


class SessionFactory:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.sessions = []

    def __call__(self):
        session = FakeSession(self.response, self.error)
        self.sessions.append(session)
        return session

    @property
    def calls(self):
        return [call for session in self.sessions for call in session.calls]


def host_not_found_error(host="giris.dpu.edu.tr"):
    """Build the exception chain requests raises when DNS has no such host."""
    gai = socket.gaierror(socket.EAI_NONAME, "Name or service not known")
    try:
        try:
            raise gai
        except socket.gaierror as exc:
            raise OSError(f"Failed to resolve '{host}'") from exc
    except OSError as exc:
        return requests.ConnectionError(exc)


@pytest.fixture
def settings():
    return Settings(interval_seconds=0.01)
