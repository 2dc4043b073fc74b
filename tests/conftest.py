"""Pytest configuration and fixtures for ingress-http tests.

This file provides:
- ScriptedPrompt: InteractivePrompt that replays pre-programmed answers
- make_resource: Compact builder for RoutingResource test data
- PortReservation: Race-free port allocation for test servers
- MockServer: Subprocess management for the echo server
- Fixtures: Shared test infrastructure (servers, resource files)
"""

from __future__ import annotations

import socket
import subprocess
import sys
import time
from pathlib import Path
from typing import Any, Generator

import pytest

from ingress_http.models import RoutingPath, RoutingResource, RoutingRule
from ingress_http.prompt import InputExhaustedError

# Project root for fixture paths
PROJECT_ROOT = Path(__file__).parent.parent
FIXTURES_DIR = PROJECT_ROOT / "tests" / "fixtures"
MOCK_SERVER_MODULE = "tests.integration.mock_server"


class ScriptedPrompt:
    """InteractivePrompt that answers from fixed lists.

    Raises InputExhaustedError once a list runs out, like a closed stdin.
    Every call is recorded so tests can assert on prompting behavior.
    """

    def __init__(self, indices: list[int] | None = None, lines: list[str] | None = None) -> None:
        self._indices = list(indices or [])
        self._lines = list(lines or [])
        self.select_calls: list[int] = []
        self.line_calls: list[str] = []

    def select_index(self, max_exclusive: int) -> int:
        self.select_calls.append(max_exclusive)
        if not self._indices:
            raise InputExhaustedError("No scripted index left")
        return self._indices.pop(0)

    def read_line(self, label: str) -> str:
        self.line_calls.append(label)
        if not self._lines:
            raise InputExhaustedError("No scripted line left")
        return self._lines.pop(0)


def make_resource(
    name: str,
    rules: list[tuple[str, list[str]]],
    namespace: str | None = None,
) -> RoutingResource:
    """Create a RoutingResource from (host, [path, ...]) pairs.

    Backends are named after the resource and path index, e.g. "web-0:80".
    """
    return RoutingResource(
        name=name,
        namespace=namespace,
        rules=[
            RoutingRule(
                host=host,
                paths=[
                    RoutingPath(path_prefix=p, backend_description=f"{name}-{i}:80")
                    for i, p in enumerate(paths)
                ],
            )
            for host, paths in rules
        ],
    )


class PortReservation:
    """Holds a reserved port with socket kept open to prevent races.

    Usage:
        reservation = PortReservation()
        server = MockServer(reservation)
        server.start()  # calls release() internally, then binds
    """

    def __init__(self) -> None:
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))  # Port 0 = OS assigns ephemeral port
        self._port = self._socket.getsockname()[1]
        self._released = False

    @property
    def port(self) -> int:
        return self._port

    def release(self) -> int:
        """Release the socket and return the port for server use.

        Safe to call multiple times - subsequent calls are no-ops.
        """
        if not self._released:
            self._socket.close()
            self._released = True
        return self._port

    def __enter__(self) -> PortReservation:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()


def find_free_port() -> int:
    """Find a port nothing is listening on (used for connection-refused tests)."""
    with PortReservation() as reservation:
        return reservation.port


def wait_for_server_ready(host: str, port: int, timeout: float = 10.0) -> bool:
    """Block until server accepts TCP connections, or timeout expires."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            with socket.create_connection((host, port), timeout=1.0):
                return True
        except (ConnectionRefusedError, socket.timeout, OSError):
            time.sleep(0.1)
    return False


class MockServer:
    """Runs the echo server subprocess on a reserved port."""

    def __init__(self, reservation: PortReservation) -> None:
        self._reservation = reservation
        self.host = "127.0.0.1"
        self.port = reservation.port
        self.address = f"{self.host}:{self.port}"
        self.base_url = f"http://{self.address}"
        self._process: subprocess.Popen | None = None

    def start(self) -> None:
        """Start the echo server; RuntimeError if it never accepts connections."""
        self._reservation.release()
        self._process = subprocess.Popen(
            [sys.executable, "-m", MOCK_SERVER_MODULE, "--host", self.host, "--port", str(self.port)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            cwd=PROJECT_ROOT,
        )

        if not wait_for_server_ready(self.host, self.port):
            self._process.kill()
            _, stderr = self._process.communicate()
            self._process = None
            raise RuntimeError(
                f"Echo server did not start on port {self.port}: "
                f"{stderr.decode(errors='replace') or '(no stderr)'}"
            )

    def stop(self) -> None:
        if self._process:
            self._process.terminate()
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._process.kill()
                self._process.wait()
            self._process = None

    def __enter__(self) -> MockServer:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()


# =============================================================================
# Pytest Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def echo_server() -> Generator[MockServer, None, None]:
    """Start the echo server once per test session."""
    with MockServer(PortReservation()) as server:
        yield server


@pytest.fixture(scope="session")
def ingress_list_path() -> Path:
    """Path to a saved ingress listing (tests/fixtures/ingress_list.yaml)."""
    return FIXTURES_DIR / "ingress_list.yaml"
