"""Translate raw operation errors into user-facing messages."""

import re
from collections.abc import Callable

_BIND_PORT_RE = re.compile(r"Bind for [\d.:]+:(\d+) failed")


def _port_in_use(error: str) -> str:
    match = _BIND_PORT_RE.search(error)
    port = match.group(1) if match else "unknown"
    return (
        f"Port {port} is already in use. "
        "Please stop any other applications using this port."
    )


# Ordered (predicate, message) pairs; the first matching predicate wins.
_RULES: tuple[tuple[Callable[[str], bool], Callable[[str], str]], ...] = (
    (
        lambda e: "port is already allocated" in e or bool(_BIND_PORT_RE.search(e)),
        _port_in_use,
    ),
    (
        lambda e: "Dockerfile: no such file" in e,
        lambda _: (
            "No Dockerfile found. Please ensure your project has a valid Dockerfile."
        ),
    ),
    (
        lambda e: "docker-compose" in e and "not found" in e,
        lambda _: "Docker Compose is not installed. Please install Docker Desktop.",
    ),
    (
        lambda e: "connection refused" in e,
        lambda _: "Docker daemon is not running. Please start Docker Desktop.",
    ),
    (
        lambda e: "permission denied" in e,
        lambda _: "Permission denied. Docker may require elevated privileges.",
    ),
    (
        lambda e: "out of memory" in e or "OOM" in e,
        lambda _: "Container ran out of memory. Consider increasing memory limits.",
    ),
    (
        lambda e: "network" in e and "not found" in e,
        lambda _: (
            "Docker network not found. "
            "Try running 'docker network create' or restart Docker."
        ),
    ),
)


def translate(raw_error: str | None) -> str:
    """Return a human-readable message for a raw error.

    Never raises. A port conflict is recognised either by Docker's
    "port is already allocated" text or by its "Bind for ADDR:PORT failed"
    prefix. Errors that match no known pattern are returned unchanged.

    Args:
        raw_error: Raw error or log text. None is treated as empty.

    Returns:
        The translated message, or the raw text when nothing matches.
    """
    error = raw_error or ""
    for predicate, message in _RULES:
        if predicate(error):
            return message(error)
    return error
