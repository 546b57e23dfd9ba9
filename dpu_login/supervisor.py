import logging
import threading
from typing import Optional

from dpu_login.errors import Cancelled, classify_error
from dpu_login.models import ConnectivityResult, Credentials, CycleError, CycleReport

logger = logging.getLogger(__name__)


class Supervisor:
    """Classify, log in when needed, sleep, repeat until the stop event is set.

    ``prober`` needs ``classify(stop_event)`` and ``login_executor`` needs
    ``login(credentials, stop_event)``; swap them to target another portal.
    Each cycle is its own error boundary, so a failing probe or login never
    ends the loop.
    """

    def __init__(
        self,
        prober,
        login_executor,
        credentials: Credentials,
        interval_seconds: float = 5.0,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.prober = prober
        self.login_executor = login_executor
        self.credentials = credentials
        self.interval_seconds = interval_seconds
        self.stop_event = stop_event or threading.Event()

    def stop(self) -> None:
        self.stop_event.set()

    def run(self, max_cycles: Optional[int] = None) -> int:
        """Run cycles until stopped; returns the number of cycles completed."""
        logger.info("DPU auto login service started.")
        cycles = 0
        while not self.stop_event.is_set():
            try:
                self.run_cycle()
            except Cancelled:
                break
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            if self.stop_event.wait(self.interval_seconds):
                break
        logger.info("DPU auto login service stopped after %d cycle(s).", cycles)
        return cycles

    def run_cycle(self) -> CycleReport:
        report = CycleReport()
        try:
            report.connectivity = self.prober.classify(self.stop_event)
            if report.connectivity is ConnectivityResult.ONLINE:
                logger.info("Internet is available.")
                return report

            logger.warning(
                "Internet %s. Attempting login...", report.connectivity.value
            )
            outcome = self.login_executor.login(self.credentials, self.stop_event)
            report.outcome = outcome
            logger.info("Login HTTP status: %s", outcome.status_code)
            if outcome.location:
                logger.info("Redirected to: %s", outcome.location)
            if not outcome.success:
                logger.warning("Login rejected with status %s", outcome.status_code)
        except Cancelled:
            raise
        except Exception as exc:
            report.error = classify_error(exc)
            self._log_error(report.error, exc)
        return report

    def _log_error(self, kind: CycleError, exc: Exception) -> None:
        if kind is CycleError.DNS_UNRESOLVED:
            host = getattr(exc, "host", "") or "login server"
            logger.critical("Login server '%s' is not resolvable yet.", host)
        elif kind is CycleError.CONFIGURATION_MISSING:
            logger.error("Configuration error: %s", exc)
        elif kind is CycleError.TRANSIENT_NETWORK:
            logger.warning("Network error, retrying next cycle: %s", exc)
        else:
            logger.error("Unexpected error: %s", exc)
            logger.debug("Unexpected error details", exc_info=exc)
