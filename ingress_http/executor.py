"""Executor - Sends the probe request and captures timed responses.

The Executor turns a RequestSpec into a lazy sequence of ExecutionReport
objects: one report for a single-shot request, or an endless sequence with
a fixed pause between calls when the RequestSpec asks for repetition.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Iterator

import httpx

from ingress_http.models import ExecutionReport, RequestSpec

DEFAULT_TIMEOUT = 10.0
REPEAT_INTERVAL = 1.0


class ExecutorError(Exception):
    """Base class for executor errors."""


class TransportError(ExecutorError):
    """Raised when a request fails at the network level (DNS, connect, TLS, timeout)."""


class Executor:
    """Executes a RequestSpec and yields one report per HTTP call.

    Usage:
        executor = Executor()
        for report in executor.reports(spec):
            show(report)

    A repeating spec never ends on its own. Stop it by setting stop_event,
    by closing the generator, or by interrupting the process.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        repeat_interval: float = REPEAT_INTERVAL,
        stop_event: threading.Event | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            timeout: Per-request timeout in seconds.
            repeat_interval: Pause in seconds between repeated calls.
            stop_event: Checked before every repeated call; setting it
                        ends the sequence after the current call.
            transport: Optional httpx transport, used by tests.
        """
        self._timeout = timeout
        self._repeat_interval = repeat_interval
        self._stop_event = stop_event or threading.Event()
        self._transport = transport

    def _build_client_kwargs(self, spec: RequestSpec) -> dict[str, Any]:
        """Build kwargs for httpx.Client.

        Keep-alive is disabled so every call opens a fresh connection.
        Proxy settings come from the environment (httpx default).
        """
        kwargs: dict[str, Any] = {
            "timeout": self._timeout,
            "verify": not spec.skip_tls_verify,
            "limits": httpx.Limits(max_keepalive_connections=0),
            "headers": {"Connection": "close"},
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return kwargs

    def reports(self, spec: RequestSpec) -> Iterator[ExecutionReport]:
        """Execute the RequestSpec, yielding a report after each call.

        Yields exactly one report when spec.repeat is False. Otherwise keeps
        calling, pausing repeat_interval seconds after each yielded report,
        until stop_event is set.

        Raises:
            TransportError: On the first failed call. Nothing is retried and
                            no further calls are made.
        """
        with httpx.Client(**self._build_client_kwargs(spec)) as client:
            while not self._stop_event.is_set():
                yield self._execute_single(client, spec)
                if not spec.repeat:
                    return
                if self._stop_event.wait(self._repeat_interval):
                    return

    def _execute_single(self, client: httpx.Client, spec: RequestSpec) -> ExecutionReport:
        """Send one request and read the whole response.

        Elapsed time covers sending the request and receiving the response
        headers; reading the body is not included.

        Raises:
            ExecutorError: If the request cannot be built from the RequestSpec.
            TransportError: If the request fails.
        """
        headers: dict[str, str] = {}
        if spec.content_type:
            headers["Content-Type"] = spec.content_type

        try:
            request = client.build_request(
                method=spec.method,
                url=spec.url,
                content=spec.body,
                headers=headers if headers else None,
            )
        except httpx.InvalidURL as e:
            raise ExecutorError(f"Invalid URL '{spec.url}': {e}") from e

        try:
            start_time = time.perf_counter()
            response = client.send(request, stream=True)
            elapsed_ms = int((time.perf_counter() - start_time) * 1000)
            try:
                content = response.read()
            finally:
                response.close()
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout: {e}") from e
        except httpx.ConnectError as e:
            raise TransportError(f"Connection error: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"Request error: {e}") from e

        return self._convert_response(response, elapsed_ms, content)

    def _convert_response(
        self,
        response: httpx.Response,
        elapsed_ms: int,
        content: bytes,
    ) -> ExecutionReport:
        """Convert an httpx Response to an ExecutionReport."""
        # Headers - lowercase keys, list values
        headers: dict[str, list[str]] = {}
        for key, value in response.headers.multi_items():
            headers.setdefault(key.lower(), []).append(value)

        return ExecutionReport(
            elapsed_ms=elapsed_ms,
            status_code=response.status_code,
            headers=headers,
            body=content,
        )
