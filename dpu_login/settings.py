import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

CONFIG_RELATIVE_PATH = Path("config") / "settings.json"

DEFAULT_LOGIN_URL = (
    "https://giris.dpu.edu.tr:6082/php/uid.php"
    "?vsys=1&rule=1&url=http://www.msftconnecttest.com%2fredirect"
)
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    ping_host: str = "1.1.1.1"
    ping_timeout_ms: int = 2000
    dns_host: str = "www.google.com"
    dns_timeout_seconds: float = 5.0
    check_url: str = "http://www.msftconnecttest.com/connecttest.txt"
    check_marker: str = "Microsoft"
    check_timeout_seconds: float = 3.0
    login_url: str = DEFAULT_LOGIN_URL
    login_timeout_seconds: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    interval_seconds: float = 5.0
    log_level: str = "INFO"
    log_dir: str = "logs"

    @classmethod
    def from_config(cls, config: dict) -> "Settings":
        defaults = cls()
        probe = config.get("probe", {})
        http = config.get("http", {})
        login = config.get("login", {})
        loop = config.get("loop", {})
        return cls(
            ping_host=probe.get("ping_host", defaults.ping_host),
            ping_timeout_ms=int(probe.get("ping_timeout_ms", defaults.ping_timeout_ms)),
            dns_host=probe.get("dns_host", defaults.dns_host),
            dns_timeout_seconds=float(
                probe.get("dns_timeout_seconds", defaults.dns_timeout_seconds)
            ),
            check_url=probe.get("check_url", defaults.check_url),
            check_marker=probe.get("check_marker", defaults.check_marker),
            check_timeout_seconds=float(
                http.get("check_timeout_seconds", defaults.check_timeout_seconds)
            ),
            login_url=login.get("url", defaults.login_url),
            login_timeout_seconds=float(
                http.get("login_timeout_seconds", defaults.login_timeout_seconds)
            ),
            user_agent=http.get("user_agent") or defaults.user_agent,
            interval_seconds=float(loop.get("interval_seconds", defaults.interval_seconds)),
            log_level=str(config.get("log_level", defaults.log_level)).upper(),
            log_dir=config.get("log_dir", defaults.log_dir),
        )

    def resolved_log_dir(self, base_dir: Optional[Path] = None) -> Path:
        path = Path(self.log_dir).expanduser()
        if not path.is_absolute():
            path = (base_dir or home_dir()) / path
        return path


def home_dir() -> Path:
    """Directory relative config and log paths hang off: $DPU_HOME, else the cwd."""
    override = os.environ.get("DPU_HOME")
    if override:
        return Path(override).expanduser()
    return Path.cwd()


def resolve_config_path(path: Optional[Path] = None) -> Path:
    if path is not None:
        return Path(path).expanduser()
    override = os.environ.get("DPU_CONFIG")
    if override:
        return Path(override).expanduser()
    return home_dir() / CONFIG_RELATIVE_PATH


def load_config(path: Optional[Path] = None) -> dict:
    config_path = resolve_config_path(path)
    if not config_path.is_file():
        return {}
    with config_path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_settings(path: Optional[Path] = None) -> Settings:
    return Settings.from_config(load_config(path))
