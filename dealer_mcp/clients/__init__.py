"""Shared external API clients."""

from dealer_mcp.clients.supabase import SupabaseClient, SupabaseClientError

__all__ = [
    "SupabaseClient",
    "SupabaseClientError",
]
