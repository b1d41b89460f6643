import pytest

from codearena.core.constants import Verdict
from codearena.core.exceptions import ExecutionBackendError
from codearena.services.execution_client import ExecutionClient, ExecutionResult
from codearena.services.test_runner import TIMEOUT_DIAGNOSTIC, TestCase, TestRunner


def _runner(client, max_rounds=5, sleeps=None):
    return TestRunner(
        client=client,
        poll_interval=1.5,
        max_rounds=max_rounds,
        max_parallel=4,
        sleep=(sleeps.append if sleeps is not None else (lambda seconds: None)),
    )


def _cases(pairs, hidden=False):
    return [TestCase(input=inp, expected_output=out, is_hidden=hidden) for inp, out in pairs]


def test_all_cases_accepted_in_input_order(fake_client_cls, answering):
    table = {"1\n": "2\n", "2\n": "4\n", "3\n": "6\n"}
    client = fake_client_cls(answering(table), pending_polls=1)
    sleeps = []

    results = _runner(client, sleeps=sleeps).run_all(
        "print(int(input()) * 2)", "python3", _cases(table.items()), 2000, 256
    )

    assert [r.index for r in results] == [0, 1, 2]
    assert [r.input for r in results] == ["1\n", "2\n", "3\n"]
    assert all(r.verdict == Verdict.ACCEPTED for r in results)
    assert [r.expected_output for r in results] == ["2", "4", "6"]
    assert [r.actual_output for r in results] == ["2", "4", "6"]
    assert results[0].runtime_ms == 12.0
    assert results[0].memory_kb == 3200
    # one round stays Processing, the second resolves everything
    assert sleeps == [1.5, 1.5]
    assert {s["time_limit_ms"] for s in client.submitted} == {2000}


def test_wrong_output_is_wrong_answer(fake_client_cls, answering):
    client = fake_client_cls(answering({"1\n": "2\n", "2\n": "5\n"}))
    results = _runner(client).run_all(
        "code", "python3", _cases([("1\n", "2"), ("2\n", "4")]), 1000, 128
    )
    assert [r.verdict for r in results] == [Verdict.ACCEPTED, Verdict.WRONG_ANSWER]
    assert results[1].actual_output == "5"


def test_missing_expected_output_is_executed(fake_client_cls, answering):
    client = fake_client_cls(answering({"5\n": "10\n"}))
    results = _runner(client).run_all("code", "python3", [TestCase(input="5\n", expected_output=None)], 1000, 128)
    assert results[0].verdict == Verdict.EXECUTED
    assert results[0].expected_output is None
    assert results[0].actual_output == "10"


def test_unresolved_cases_time_out(fake_client_cls, answering):
    client = fake_client_cls(answering({"1\n": "2\n"}), pending_polls=100)
    sleeps = []
    results = _runner(client, max_rounds=3, sleeps=sleeps).run_all(
        "code", "python3", _cases([("1\n", "2")]), 1000, 128
    )
    assert len(sleeps) == 3
    assert results[0].verdict == Verdict.TIME_LIMIT_EXCEEDED
    assert results[0].stderr == TIMEOUT_DIAGNOSTIC
    assert results[0].actual_output == ""


def test_failed_poll_is_retried_next_round(fake_client_cls, answering):
    client = fake_client_cls(answering({"1\n": "2\n"}), failing_polls=2)
    results = _runner(client).run_all("code", "python3", _cases([("1\n", "2")]), 1000, 128)
    assert results[0].verdict == Verdict.ACCEPTED
    assert client.poll_counts["token-0"] == 3


def test_failed_submit_propagates(fake_client_cls, answering):
    client = fake_client_cls(answering({}), fail_submit=True)
    with pytest.raises(ExecutionBackendError):
        _runner(client).run_all("code", "python3", _cases([("1\n", "2")]), 1000, 128)


def test_compile_error_carries_compiler_output(fake_client_cls):
    def program(stdin):
        return ExecutionResult(verdict=Verdict.COMPILATION_ERROR, compile_output="error: expected ';'\n")

    results = _runner(fake_client_cls(program)).run_all(
        "int main( {", "cpp", _cases([("1\n", "2"), ("2\n", "4")]), 1000, 128
    )
    assert all(r.verdict == Verdict.COMPILATION_ERROR for r in results)
    assert results[0].stderr == "error: expected ';'"


def test_hidden_flag_is_carried(fake_client_cls, answering):
    client = fake_client_cls(answering({"1\n": "2\n"}))
    results = _runner(client).run_all("code", "python3", _cases([("1\n", "2")], hidden=True), 1000, 128)
    assert results[0].is_hidden is True
    assert results[0].to_dict()["verdict"] == "Accepted"


def test_no_cases_runs_nothing(fake_client_cls, answering):
    client = fake_client_cls(answering({}))
    assert _runner(client).run_all("code", "python3", [], 1000, 128) == []
    assert client.submitted == []


class _JsonResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


class _ScriptedBackend:
    """requests-like session: hands out one token, then replays poll bodies in order."""

    def __init__(self, poll_bodies):
        self.poll_bodies = list(poll_bodies)
        self.polls = 0

    def request(self, method, url, **kwargs):
        if method == "POST":
            return _JsonResponse({"token": "tok"})
        self.polls += 1
        body = self.poll_bodies.pop(0) if self.poll_bodies else {"status": {"id": 2}}
        return _JsonResponse(body)


def _backend_runner(backend, max_rounds=5):
    client = ExecutionClient(base_url="http://judge0.local", session=backend)
    return TestRunner(client=client, poll_interval=0, max_rounds=max_rounds, max_parallel=2, sleep=lambda s: None)


@pytest.mark.parametrize("malformed", [{"stdout": None}, {"status": "weird"}])
def test_malformed_poll_recovers_on_later_round(malformed):
    backend = _ScriptedBackend([malformed, {"status": {"id": 3}, "stdout": "MQ=="}])

    results = _backend_runner(backend).run_all("print(1)", "python3", _cases([("", "1")]), 1000, 128)

    assert results[0].verdict == Verdict.ACCEPTED
    assert results[0].actual_output == "1"
    assert backend.polls == 2


def test_persistently_malformed_poll_times_out():
    backend = _ScriptedBackend([{"status": "weird"}] * 3)

    results = _backend_runner(backend, max_rounds=3).run_all("print(1)", "python3", _cases([("", "1")]), 1000, 128)

    assert results[0].verdict == Verdict.TIME_LIMIT_EXCEEDED
    assert results[0].stderr == TIMEOUT_DIAGNOSTIC
    assert backend.polls == 3
