from supabase import create_client, Client

from printsync.config import logger
from printsync.errors import StoreError


def supabase_create_client(url: str | None, key: str | None) -> Client:
    """
    Creates and returns a Supabase client using the given URL and service key.

    Returns:
        Client: Supabase client instance

    Raises:
        StoreError: If the URL or key is missing or the client cannot be created
    """
    if not url or not key:
        logger.error("SUPABASE_URL or SUPABASE_SERVICE_KEY is not set")
        raise StoreError("SUPABASE_URL or SUPABASE_SERVICE_KEY is not set")
    try:
        supabase: Client = create_client(url, key)
        logger.info("Supabase client connected successfully!")
        return supabase
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        raise StoreError(f"Failed to create Supabase client: {e}") from e
