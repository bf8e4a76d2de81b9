"""Supabase client construction.

Clients are created per call and handed explicitly to every data-access and
service function; the HTTP layer injects one per request with
``Depends(get_supabase)``.
"""

from supabase import Client, create_client

from context_engine.core.config import get_settings


def get_supabase() -> Client:
    """
    Create a Supabase client configured with the service role key.

    Returns:
        Supabase client

    Raises:
        RuntimeError: If client initialization fails
    """
    try:
        settings = get_settings()
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e
