from __future__ import annotations

import json
import logging

from app.orderit.core.context import current_trace_id


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(message)s")


def log_json(logger: logging.Logger, payload: dict, level: int = logging.INFO) -> None:
    """Emit one JSON line; the active trace id is added when the payload has none."""
    if not payload.get("trace_id"):
        trace_id = current_trace_id()
        if trace_id:
            payload = {**payload, "trace_id": trace_id}
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))
