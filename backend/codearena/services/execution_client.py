"""Client for the external compile-and-run backend (Judge0 compatible API)"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from codearena.config import settings
from codearena.core.constants import JUDGE0_STATUS, LANGUAGES, Verdict
from codearena.core.exceptions import ExecutionBackendError, UnsupportedLanguageError

logger = logging.getLogger(__name__)

_RESULT_FIELDS = "stdout,stderr,compile_output,status,time,memory"


@dataclass
class ExecutionResult:
    """Decoded state of one backend run.

    ``verdict`` is one of Pending, Running, Accepted (ran to completion),
    Time Limit Exceeded, Memory Limit Exceeded, Runtime Error or
    Compilation Error. Output comparison is not the backend's job.
    """

    verdict: Verdict
    stdout: str = ""
    stderr: str = ""
    compile_output: str = ""
    time_ms: float = 0.0
    memory_kb: int = 0

    @property
    def is_finished(self) -> bool:
        return self.verdict not in (Verdict.PENDING, Verdict.RUNNING)


def _encode(text: Optional[str]) -> str:
    if not text:
        return ""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def _decode(value: Optional[str]) -> str:
    if not value:
        return ""
    try:
        raw = base64.b64decode(value)
    except (binascii.Error, ValueError) as exc:
        raise ExecutionBackendError(f"Malformed base64 payload from execution backend: {exc}") from exc
    return raw.decode("utf-8", errors="replace")


def map_status(status_id: Optional[int]) -> Verdict:
    """Map a backend status id into the closed verdict set."""
    return JUDGE0_STATUS.get(status_id, Verdict.RUNTIME_ERROR)


class ExecutionClient:
    """Submit one unit of work and poll it by token."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        submit_timeout: Optional[float] = None,
        poll_timeout: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url or settings.JUDGE0_API_URL).rstrip("/")
        self.session = session or requests.Session()
        self.submit_timeout = submit_timeout or settings.JUDGE0_SUBMIT_TIMEOUT_SECONDS
        self.poll_timeout = poll_timeout or settings.JUDGE0_POLL_TIMEOUT_SECONDS
        self.headers = {"Content-Type": "application/json"}
        if settings.JUDGE0_API_KEY and settings.JUDGE0_API_HOST:
            self.headers.update({
                "X-RapidAPI-Key": settings.JUDGE0_API_KEY,
                "X-RapidAPI-Host": settings.JUDGE0_API_HOST,
            })

    def _request(self, method: str, path: str, timeout: float, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, headers=self.headers, timeout=timeout, **kwargs)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            raise ExecutionBackendError(f"Execution backend request failed: {exc}") from exc
        except ValueError as exc:
            raise ExecutionBackendError("Execution backend returned a non-JSON body") from exc
        if not isinstance(body, dict):
            raise ExecutionBackendError("Execution backend returned an unexpected body")
        return body

    def submit(
        self,
        code: str,
        language: str,
        stdin: Optional[str],
        time_limit_ms: int,
        memory_limit_mb: int,
    ) -> str:
        """
        Queue one run and return its handle

        Args:
            code: Source code
            language: Key into LANGUAGES
            stdin: Program input
            time_limit_ms: CPU time limit in milliseconds
            memory_limit_mb: Memory limit in megabytes

        Returns:
            str: Opaque backend token
        """
        lang = LANGUAGES.get(language)
        if lang is None:
            raise UnsupportedLanguageError(language)

        payload = {
            "source_code": _encode(code),
            "language_id": lang["id"],
            "stdin": _encode(stdin),
            "cpu_time_limit": f"{time_limit_ms / 1000:.1f}",
            "memory_limit": int(memory_limit_mb) * 1024,
            "base64_encoded": True,
        }
        body = self._request(
            "POST",
            "/submissions",
            self.submit_timeout,
            params={"base64_encoded": "true", "wait": "false", "fields": "token"},
            json=payload,
        )
        token = body.get("token")
        if not token:
            raise ExecutionBackendError("Execution backend did not return a token")
        return token

    def poll(self, token: str) -> ExecutionResult:
        """Fetch and decode the current state of a run."""
        body = self._request(
            "GET",
            f"/submissions/{token}",
            self.poll_timeout,
            params={"base64_encoded": "true", "fields": _RESULT_FIELDS},
        )
        status = body.get("status")
        status_id = status.get("id") if isinstance(status, dict) else None
        if not isinstance(status_id, int) or isinstance(status_id, bool):
            raise ExecutionBackendError(f"Execution backend returned no usable status for token {token}")
        verdict = map_status(status_id)
        if status_id not in JUDGE0_STATUS:
            logger.warning("Unknown execution status %r for token %s", status, token)

        try:
            time_ms = float(body.get("time") or 0) * 1000
        except (TypeError, ValueError):
            time_ms = 0.0
        try:
            memory_kb = int(body.get("memory") or 0)
        except (TypeError, ValueError):
            memory_kb = 0

        return ExecutionResult(
            verdict=verdict,
            stdout=_decode(body.get("stdout")),
            stderr=_decode(body.get("stderr")),
            compile_output=_decode(body.get("compile_output")),
            time_ms=time_ms,
            memory_kb=memory_kb,
        )


execution_client = ExecutionClient()
