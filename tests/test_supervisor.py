import logging
import threading
import time

from conftest import FakeResponse, SessionFactory, host_not_found_error
from dpu_login.errors import ConfigurationError
from dpu_login.login import LoginExecutor
from dpu_login.models import ConnectivityResult, Credentials, CycleError, LoginOutcome
from dpu_login.supervisor import Supervisor

CREDENTIALS = Credentials("student", "secret")


class ScriptedProber:
    """Returns (or raises) the scripted results in order, repeating the last one."""

    def __init__(self, *results, stop_after=None):
        self.results = list(results)
        self.stop_after = stop_after
        self.calls = 0

    def classify(self, stop_event=None):
        self.calls += 1
        if self.stop_after is not None and self.calls >= self.stop_after:
            stop_event.set()
        result = self.results[min(self.calls, len(self.results)) - 1]
        if isinstance(result, Exception):
            raise result
        return result


class RecordingLogin:
    def __init__(self, outcome=None, error=None):
        self.outcome = outcome or LoginOutcome(200, "", True)
        self.error = error
        self.calls = []

    def login(self, credentials, stop_event=None):
        self.calls.append(credentials)
        if self.error is not None:
            raise self.error
        return self.outcome


def test_online_does_not_log_in(caplog):
    login = RecordingLogin()
    supervisor = Supervisor(ScriptedProber(ConnectivityResult.ONLINE), login, CREDENTIALS)

    with caplog.at_level(logging.INFO):
        report = supervisor.run_cycle()

    assert report.connectivity is ConnectivityResult.ONLINE
    assert login.calls == []
    assert "Internet is available." in caplog.text


def test_offline_and_restricted_log_in(caplog):
    for result in (ConnectivityResult.OFFLINE, ConnectivityResult.RESTRICTED):
        login = RecordingLogin()
        supervisor = Supervisor(ScriptedProber(result), login, CREDENTIALS)

        with caplog.at_level(logging.WARNING):
            report = supervisor.run_cycle()

        assert login.calls == [CREDENTIALS]
        assert report.outcome.status_code == 200
        assert report.error is None
    assert "Attempting login" in caplog.text


def test_configuration_error_is_contained(caplog):
    supervisor = Supervisor(
        ScriptedProber(ConnectivityResult.RESTRICTED),
        RecordingLogin(error=ConfigurationError("Missing DPU credentials.")),
        Credentials("", ""),
    )

    with caplog.at_level(logging.ERROR):
        report = supervisor.run_cycle()

    assert report.error is CycleError.CONFIGURATION_MISSING
    assert "Missing DPU credentials." in caplog.text


def test_unresolvable_gateway_is_logged_critical(settings, caplog):
    executor = LoginExecutor(settings, session_factory=SessionFactory(error=host_not_found_error()))
    supervisor = Supervisor(ScriptedProber(ConnectivityResult.RESTRICTED), executor, CREDENTIALS)

    with caplog.at_level(logging.WARNING):
        report = supervisor.run_cycle()

    assert report.error is CycleError.DNS_UNRESOLVED
    critical = [r for r in caplog.records if r.levelno == logging.CRITICAL]
    assert len(critical) == 1
    assert "giris.dpu.edu.tr" in critical[0].getMessage()


def test_loop_survives_errors_in_every_cycle():
    stop_event = threading.Event()
    prober = ScriptedProber(
        RuntimeError("probe exploded"),
        ConnectivityResult.RESTRICTED,
        ConnectivityResult.RESTRICTED,
        stop_after=3,
    )
    login = RecordingLogin(error=OSError("connection reset"))
    supervisor = Supervisor(prober, login, CREDENTIALS, 0.01, stop_event)

    cycles = supervisor.run()

    assert cycles == 3
    assert prober.calls == 3
    assert len(login.calls) == 2


def test_cancellation_during_sleep_exits_promptly():
    stop_event = threading.Event()
    supervisor = Supervisor(
        ScriptedProber(ConnectivityResult.ONLINE),
        RecordingLogin(),
        CREDENTIALS,
        interval_seconds=30,
        stop_event=stop_event,
    )
    timer = threading.Timer(0.1, stop_event.set)

    started = time.monotonic()
    timer.start()
    try:
        cycles = supervisor.run()
    finally:
        timer.cancel()

    assert cycles == 1
    assert time.monotonic() - started < 5


def test_max_cycles_runs_once():
    prober = ScriptedProber(ConnectivityResult.ONLINE)
    supervisor = Supervisor(prober, RecordingLogin(), CREDENTIALS, interval_seconds=30)

    assert supervisor.run(max_cycles=1) == 1
    assert prober.calls == 1


def test_restricted_then_online_end_to_end(settings, caplog):
    redirect = "http://www.msftconnecttest.com/redirect"
    sessions = SessionFactory(response=FakeResponse(200, "", {"Location": redirect}))
    executor = LoginExecutor(settings, session_factory=sessions)
    prober = ScriptedProber(
        ConnectivityResult.RESTRICTED, ConnectivityResult.ONLINE, stop_after=2
    )
    supervisor = Supervisor(prober, executor, CREDENTIALS, interval_seconds=0.01)

    with caplog.at_level(logging.INFO):
        cycles = supervisor.run()

    assert cycles == 2
    assert len(sessions.sessions) == 1
    assert "Login HTTP status: 200" in caplog.text
    assert f"Redirected to: {redirect}" in caplog.text
    assert "Internet is available." in caplog.text
