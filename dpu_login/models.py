import enum
import os
from dataclasses import dataclass
from typing import Mapping, Optional


class ConnectivityResult(enum.Enum):
    OFFLINE = "offline"
    RESTRICTED = "restricted"
    ONLINE = "online"


class CycleError(enum.Enum):
    TRANSIENT_NETWORK = "transient_network"
    DNS_UNRESOLVED = "dns_unresolved"
    CONFIGURATION_MISSING = "configuration_missing"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Credentials":
        env = os.environ if environ is None else environ
        return cls(
            username=env.get("DPU_USER", "") or "",
            password=env.get("DPU_PASS", "") or "",
        )

    def is_complete(self) -> bool:
        return bool(self.username.strip()) and bool(self.password.strip())


@dataclass(frozen=True)
class LoginOutcome:
    status_code: int
    location: str
    success: bool


@dataclass
class CycleReport:
    connectivity: Optional[ConnectivityResult] = None
    outcome: Optional[LoginOutcome] = None
    error: Optional[CycleError] = None
