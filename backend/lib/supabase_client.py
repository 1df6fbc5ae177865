"""
Supabase client for backend persistence
"""
from typing import Optional

from supabase import create_client, Client

from adaptive_career_assessment.config import get_config

_supabase_client: Optional[Client] = None


def get_supabase_client() -> Optional[Client]:
    """
    Get or create the Supabase client singleton.

    Returns None when SUPABASE_URL / SUPABASE_SERVICE_KEY are not set; the
    stores then keep their data in memory.
    """
    global _supabase_client

    if _supabase_client is None:
        config = get_config()
        if not config.supabase_configured():
            return None
        # Service role key: the backend writes on behalf of anonymous sessions
        _supabase_client = create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_KEY)

    return _supabase_client
