"""Lightweight metrics helpers."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from time import perf_counter
from typing import Any, Dict, Iterator, Optional

from app.observability import tracing

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric as a short-lived Opik trace when tracing is enabled."""
    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)

    try:
        with tracing.trace(f"metric:{name}", metadata=payload):
            pass
    except Exception as exc:  # pragma: no cover - remote failure
        logger.debug("Unable to record metric %s: %s", name, exc)


@contextmanager
def timed(name: str, metadata: Optional[Dict[str, Any]] = None) -> Iterator[None]:
    """Emit ``<name>.latency_ms`` for the enclosed block, also on failure."""
    start = perf_counter()
    try:
        yield
    finally:
        log_metric(f"{name}.latency_ms", (perf_counter() - start) * 1000, metadata=metadata)
