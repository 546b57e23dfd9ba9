import logging
import threading
from typing import Callable, Dict, Optional
from urllib.parse import urlparse

import requests

from dpu_login.errors import (
    ConfigurationError,
    HostUnresolvable,
    TransientNetworkError,
    is_host_not_found,
    raise_if_cancelled,
)
from dpu_login.logging_config import mask_value
from dpu_login.models import Credentials, LoginOutcome
from dpu_login.settings import Settings

logger = logging.getLogger(__name__)


def build_login_payload(credentials: Credentials) -> Dict[str, str]:
    # The gateway form rejects posts missing the empty placeholder fields.
    return {
        "inputStr": "",
        "escapeUser": "",
        "preauthid": "",
        "user": credentials.username,
        "passwd": credentials.password,
        "ok": "Login",
    }


def find_location(response: requests.Response) -> str:
    location = response.headers.get("Location", "")
    if location:
        return location
    for hop in reversed(response.history):
        location = hop.headers.get("Location", "")
        if location:
            return location
    return ""


class LoginExecutor:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self.settings = settings or Settings()
        self._session_factory = session_factory

    @property
    def gateway_host(self) -> str:
        return urlparse(self.settings.login_url).hostname or ""

    def login(
        self,
        credentials: Credentials,
        stop_event: Optional[threading.Event] = None,
    ) -> LoginOutcome:
        if not credentials.is_complete():
            raise ConfigurationError("Missing DPU credentials.")
        raise_if_cancelled(stop_event)

        data = build_login_payload(credentials)
        logger.debug(
            "Submitting login user=%s url=%s fields=%s",
            mask_value(credentials.username),
            self.settings.login_url,
            ",".join(sorted(data.keys())),
        )
        try:
            with self._session_factory() as session:
                session.headers.update({"User-Agent": self.settings.user_agent})
                response = session.post(
                    self.settings.login_url,
                    data=data,
                    allow_redirects=True,
                    timeout=self.settings.login_timeout_seconds,
                )
        except requests.RequestException as exc:
            if is_host_not_found(exc):
                raise HostUnresolvable(self.gateway_host) from exc
            raise TransientNetworkError(f"Login request failed: {exc}") from exc

        status = response.status_code
        return LoginOutcome(
            status_code=status,
            location=find_location(response),
            success=status < 400,
        )
