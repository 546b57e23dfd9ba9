"""Keep a machine behind the DPU captive portal logged in."""

from dpu_login.login import LoginExecutor
from dpu_login.models import ConnectivityResult, Credentials, CycleError, LoginOutcome
from dpu_login.prober import Prober
from dpu_login.supervisor import Supervisor

__all__ = [
    "ConnectivityResult",
    "Credentials",
    "CycleError",
    "LoginExecutor",
    "LoginOutcome",
    "Prober",
    "Supervisor",
]

__version__ = "0.1.0"
