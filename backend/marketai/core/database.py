"""
Supabase connection.

Credentials come from SUPABASE_URL and SUPABASE_SERVICE_KEY (or SUPABASE_KEY).
Missing or malformed credentials are not an error: callers get None and run
without persistence.
"""
import os
from typing import Optional

from supabase import Client, create_client

from marketai.core.logging import get_logger

logger = get_logger(__name__)

_client: Optional[Client] = None
_client_initialized = False


def create_supabase_client() -> Optional[Client]:
    """Create a Supabase client from the environment, or None when unavailable."""
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_SERVICE_KEY") or os.getenv("SUPABASE_KEY")

    if not supabase_url or not supabase_key:
        logger.warning(
            "supabase_credentials_missing",
            message="Set SUPABASE_URL and SUPABASE_SERVICE_KEY to enable activity logging",
        )
        return None

    if not supabase_url.startswith("http"):
        logger.error(
            "supabase_url_invalid",
            url=supabase_url,
            message="Should start with http:// or https://",
        )
        return None

    try:
        client = create_client(supabase_url, supabase_key)
    except Exception as e:
        logger.error(
            "supabase_client_creation_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return None

    logger.info("supabase_client_created", url_prefix=supabase_url[:30])
    return client


def get_supabase_client() -> Optional[Client]:
    """Get the process-wide Supabase client (created on first use)."""
    global _client, _client_initialized
    if not _client_initialized:
        _client = create_supabase_client()
        _client_initialized = True
    return _client


def reset_supabase_client() -> None:
    global _client, _client_initialized
    _client = None
    _client_initialized = False
