import socket
import threading
from typing import Iterator, Optional

import requests

from dpu_login.models import CycleError

# getaddrinfo codes meaning "no such host"; 11001/11004 are the Winsock equivalents.
HOST_NOT_FOUND_CODES = frozenset(
    code
    for code in (
        getattr(socket, "EAI_NONAME", None),
        getattr(socket, "EAI_NODATA", None),
        11001,
        11004,
    )
    if code is not None
)


class DpuLoginError(Exception):
    kind = CycleError.UNEXPECTED


class ConfigurationError(DpuLoginError):
    kind = CycleError.CONFIGURATION_MISSING


class HostUnresolvable(DpuLoginError):
    kind = CycleError.DNS_UNRESOLVED

    def __init__(self, host: str) -> None:
        super().__init__(f"Host '{host}' is not resolvable")
        self.host = host


class TransientNetworkError(DpuLoginError):
    kind = CycleError.TRANSIENT_NETWORK


class Cancelled(Exception):
    """Raised when the stop event is set while a cycle is in progress."""


def raise_if_cancelled(stop_event: Optional[threading.Event]) -> None:
    if stop_event is not None and stop_event.is_set():
        raise Cancelled()


def iter_error_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield exc and every error wrapped inside it.

    Follows ``__cause__``/``__context__``, exception arguments and the
    ``reason`` attribute urllib3 uses to carry the underlying socket error.
    """
    seen = set()
    pending = [exc]
    while pending:
        current = pending.pop()
        if not isinstance(current, BaseException) or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.append(current.__cause__)
        pending.append(current.__context__)
        pending.append(getattr(current, "reason", None))
        pending.extend(arg for arg in current.args if isinstance(arg, BaseException))


def resolution_error_code(exc: BaseException) -> Optional[int]:
    for item in iter_error_chain(exc):
        if isinstance(item, socket.gaierror):
            return item.errno
    return None


def is_host_not_found(exc: BaseException) -> bool:
    return resolution_error_code(exc) in HOST_NOT_FOUND_CODES


def classify_error(exc: BaseException) -> CycleError:
    kind = getattr(exc, "kind", None)
    if isinstance(kind, CycleError):
        return kind
    if is_host_not_found(exc):
        return CycleError.DNS_UNRESOLVED
    if isinstance(exc, (requests.RequestException, OSError)):
        return CycleError.TRANSIENT_NETWORK
    return CycleError.UNEXPECTED
