"""Upload, remote sync and store inspection tool implementations."""

from __future__ import annotations

import logging

from dealer_mcp.clients.supabase import SupabaseClient
from dealer_mcp.config import get_settings
from dealer_mcp.constants import RECORD_KINDS
from dealer_mcp.data.repository import get_store
from dealer_mcp.ingestion.pipeline import import_spreadsheet, push_to_remote, sync_from_remote
from dealer_mcp.tools.responses import build_response

logger = logging.getLogger(__name__)


def _parse_kinds(kinds: str) -> tuple[str, ...]:
    requested = tuple(k.strip().lower() for k in (kinds or "").split(",") if k.strip())
    if not requested:
        return RECORD_KINDS
    unknown = [k for k in requested if k not in RECORD_KINDS]
    if unknown:
        raise ValueError(
            f"Unknown record kind(s): {', '.join(unknown)}. "
            f"Expected any of: {', '.join(RECORD_KINDS)}."
        )
    return requested


async def import_spreadsheet_impl(file_path: str, kind: str = "", push_remote: bool = False) -> str:
    """Import one export file, replacing the stored records of its kind.

    With ``push_remote`` the validated rows also replace the remote table.
    """
    file_path = (file_path or "").strip()
    if not file_path:
        return "file_path is required."
    kind = (kind or "").strip().lower()
    if kind and kind not in RECORD_KINDS:
        return f"Unknown record kind {kind!r}. Expected one of: {', '.join(RECORD_KINDS)}."

    summary = import_spreadsheet(file_path, kind=kind or None)
    data = summary.as_dict()
    data["imported"] = summary.valid
    if summary.valid == 0:
        data["message"] = "No valid rows; existing records were left unchanged."
    elif push_remote:
        settings = get_settings()
        async with SupabaseClient(settings.supabase_url, settings.supabase_key) as client:
            data["pushed"] = await push_to_remote(client, summary)
    data["store"] = get_store().get_stats()
    return build_response("import_spreadsheet", data)


async def sync_remote_records_impl(kinds: str = "", max_rows: int = 0) -> str:
    """Replace local records with the remote tables' contents."""
    if max_rows < 0:
        return "max_rows must be 0 (no limit) or greater."
    selected = _parse_kinds(kinds)
    settings = get_settings()
    async with SupabaseClient(settings.supabase_url, settings.supabase_key) as client:
        synced = await sync_from_remote(client, kinds=selected, max_rows=max_rows or None)
    logger.info("Remote sync finished: %s", synced)
    return build_response(
        "sync_remote_records",
        {"synced": synced, "store": get_store().get_stats()},
    )


def get_store_stats_impl() -> str:
    return build_response("get_store_stats", get_store().get_stats())
