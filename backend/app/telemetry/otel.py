from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger("app.telemetry.spans")


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    span: dict[str, Any] = {"name": name, "attributes": dict(attributes or {})}
    started = time.perf_counter()
    try:
        yield span
    except Exception as exc:
        span["status"] = "error"
        span["error"] = str(exc)
        raise
    else:
        span["status"] = "ok"
    finally:
        span["durationMs"] = round((time.perf_counter() - started) * 1000, 3)
        logger.debug(
            "span name=%s status=%s duration_ms=%s attributes=%s",
            name,
            span.get("status"),
            span["durationMs"],
            span["attributes"],
        )
