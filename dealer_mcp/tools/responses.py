"""Shared response helpers for tool implementations."""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def build_response(
    tool_name: str,
    data: Any,
    *,
    reference: date | None = None,
    filters: dict[str, Any] | None = None,
) -> str:
    meta: dict[str, Any] = {"schema_version": SCHEMA_VERSION}
    if reference is not None:
        meta["reference_date"] = reference.isoformat()
    if filters is not None:
        meta["filters"] = filters
    payload = {
        "_tool": tool_name,
        "_meta": meta,
        "data": data,
    }
    return json.dumps(payload, indent=2, default=str)


def log_and_return_tool_error(*, tool_name: str, exc: BaseException, user_message: str) -> str:
    """Log an unexpected tool failure with traceback and return a safe message."""
    logger.exception("Tool %s failed: %s", tool_name, exc)
    return user_message
