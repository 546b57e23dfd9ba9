"""Three-tier connectivity classification.

Tiers run cheapest first and stop at the first failure:

1. ICMP echo to a public IP. No reply means the link is down.
2. DNS resolution of a public hostname.
3. HTTP GET of an OS connectivity-test URL, which must answer 2xx with a
   known marker in the body. Anything else means a gateway is intercepting.
"""

import logging
import socket
import subprocess
import sys
import threading
import time
from typing import Callable, Optional

import requests

from dpu_login.errors import Cancelled, TransientNetworkError, is_host_not_found, raise_if_cancelled
from dpu_login.models import ConnectivityResult
from dpu_login.settings import Settings

POLL_INTERVAL_SECONDS = 0.1
PING_GRACE_SECONDS = 1.0

logger = logging.getLogger(__name__)


def build_ping_command(host: str, timeout_ms: int, platform: str = sys.platform) -> list[str]:
    if platform.startswith("win"):
        return ["ping", "-n", "1", "-w", str(timeout_ms), host]
    timeout_s = str(max(1, (timeout_ms + 999) // 1000))
    if platform == "darwin":
        return ["ping", "-c", "1", "-t", timeout_s, host]
    return ["ping", "-c", "1", "-W", timeout_s, host]


def reply_received(returncode: int, output: bytes, platform: str = sys.platform) -> bool:
    if returncode != 0:
        return False
    # Windows ping exits 0 on "Destination host unreachable"; only echo replies carry a TTL.
    if platform.startswith("win"):
        return b"TTL=" in output.upper()
    return True


def ping(
    host: str,
    timeout_ms: int,
    stop_event: Optional[threading.Event] = None,
    platform: str = sys.platform,
) -> bool:
    command = build_ping_command(host, timeout_ms, platform)
    deadline = time.monotonic() + timeout_ms / 1000 + PING_GRACE_SECONDS
    with subprocess.Popen(
        command, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL
    ) as proc:
        while True:
            try:
                returncode = proc.wait(timeout=POLL_INTERVAL_SECONDS)
            except subprocess.TimeoutExpired:
                pass
            else:
                return reply_received(returncode, proc.stdout.read(), platform)
            if stop_event is not None and stop_event.is_set():
                proc.kill()
                raise Cancelled()
            if time.monotonic() >= deadline:
                proc.kill()
                return False


def resolve_host(
    host: str,
    timeout: float,
    stop_event: Optional[threading.Event] = None,
    resolver: Callable = socket.getaddrinfo,
):
    """Run a blocking resolver call off-thread so it can be timed out and cancelled.

    The lookup runs on a daemon thread; an abandoned lookup never holds up
    interpreter exit.
    """
    outcome = {}
    done = threading.Event()

    def _lookup():
        try:
            outcome["result"] = resolver(host, None)
        except Exception as exc:
            outcome["error"] = exc
        finally:
            done.set()

    threading.Thread(target=_lookup, name=f"dns-{host}", daemon=True).start()
    deadline = time.monotonic() + timeout
    while True:
        raise_if_cancelled(stop_event)
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TransientNetworkError(f"DNS lookup for {host} timed out")
        if done.wait(min(POLL_INTERVAL_SECONDS, remaining)):
            break
    if "error" in outcome:
        raise outcome["error"]
    return outcome["result"]


class Prober:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        pinger: Callable[..., bool] = ping,
        resolver: Callable = socket.getaddrinfo,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self.settings = settings or Settings()
        self._pinger = pinger
        self._resolver = resolver
        self._session_factory = session_factory

    def classify(self, stop_event: Optional[threading.Event] = None) -> ConnectivityResult:
        settings = self.settings
        try:
            raise_if_cancelled(stop_event)
            if not self._pinger(settings.ping_host, settings.ping_timeout_ms, stop_event):
                logger.debug("Cannot ping %s. Offline.", settings.ping_host)
                return ConnectivityResult.OFFLINE

            raise_if_cancelled(stop_event)
            resolve_host(
                settings.dns_host,
                settings.dns_timeout_seconds,
                stop_event,
                self._resolver,
            )

            raise_if_cancelled(stop_event)
            return self.check_gate()
        except Cancelled:
            raise
        except Exception as exc:
            if is_host_not_found(exc):
                logger.debug("DNS cannot resolve %s. Offline.", settings.dns_host)
            else:
                logger.debug("Internet check failed: %s", exc)
            return ConnectivityResult.OFFLINE

    def check_gate(self) -> ConnectivityResult:
        settings = self.settings
        try:
            with self._session_factory() as session:
                session.headers.update({"User-Agent": settings.user_agent})
                response = session.get(
                    settings.check_url,
                    allow_redirects=False,
                    timeout=settings.check_timeout_seconds,
                )
                body = response.text
        except requests.RequestException as exc:
            logger.debug("Connectivity test request failed: %s", exc)
            return ConnectivityResult.RESTRICTED

        if 200 <= response.status_code < 300 and settings.check_marker in body:
            return ConnectivityResult.ONLINE
        logger.debug(
            "Connectivity test intercepted status=%s location=%s",
            response.status_code,
            response.headers.get("Location", ""),
        )
        return ConnectivityResult.RESTRICTED
