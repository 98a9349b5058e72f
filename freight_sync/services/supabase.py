"""
Supabase client for the business datastore.
"""
from functools import lru_cache
import logging

from supabase import create_client, Client

from freight_sync.core.config import settings
from freight_sync.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client:
    """
    Returns the cached Supabase client.
    Uses the service key for full access.
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required")

    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_KEY
    )
