import argparse
import logging
import signal
import threading
from pathlib import Path
from typing import Optional, Sequence

from dpu_login.logging_config import setup_logging
from dpu_login.login import LoginExecutor
from dpu_login.models import Credentials
from dpu_login.prober import Prober
from dpu_login.settings import load_settings
from dpu_login.supervisor import Supervisor

logger = logging.getLogger("dpu_auto_login")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Keep this machine logged in to the DPU captive portal."
    )
    parser.add_argument("--config", type=Path, help="path to settings.json")
    parser.add_argument("--log-level", help="override log_level from settings")
    parser.add_argument(
        "--interval", type=float, help="seconds between connectivity checks"
    )
    parser.add_argument(
        "--once", action="store_true", help="run a single cycle and exit"
    )
    return parser.parse_args(argv)


def install_signal_handlers(stop_event: threading.Event) -> None:
    def _handle_shutdown(signum, _frame):
        logger.info("Received signal %s, stopping.", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_shutdown)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handle_shutdown)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = load_settings(args.config)
    setup_logging(settings.resolved_log_dir(), log_level=args.log_level or settings.log_level)

    credentials = Credentials.from_env()
    if not credentials.is_complete():
        logger.warning("DPU_USER/DPU_PASS not set; login attempts will fail until they are.")

    stop_event = threading.Event()
    install_signal_handlers(stop_event)

    supervisor = Supervisor(
        Prober(settings),
        LoginExecutor(settings),
        credentials,
        interval_seconds=(
            args.interval if args.interval is not None else settings.interval_seconds
        ),
        stop_event=stop_event,
    )
    supervisor.run(max_cycles=1 if args.once else None)
    return 0
