"""Supabase client for the analysis tables."""

from functools import lru_cache

from supabase import Client, create_client

from decision_engine.core.config import get_settings
from decision_engine.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Process-wide Supabase client using the service role key.

    Created lazily so that modules importing the store stay importable
    without database credentials; tests pass their own client instead.

    Raises:
        RuntimeError: If the client cannot be created
    """
    settings = get_settings()
    try:
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e

    logger.info("Supabase client initialized", extra={"extra_data": {"url": settings.SUPABASE_URL}})
    return client
