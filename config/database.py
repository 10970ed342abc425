"""Database configuration and lazy Supabase client initialization"""
import os
from typing import Optional
from dotenv import load_dotenv
from supabase import create_client, Client

from utils.logger import log_error, log_info

load_dotenv()

_supabase: Optional[Client] = None

def get_supabase() -> Optional[Client]:
    """
    Get the Supabase client instance, creating it on first use.

    Raises ValueError when SUPABASE_URL / SUPABASE_ANON_KEY are not set.
    Returns None if the client could not be constructed.
    """
    global _supabase
    if _supabase is not None:
        return _supabase

    # These must be set as environment variables - no defaults for security
    supabase_url = os.environ.get('SUPABASE_URL')
    supabase_key = os.environ.get('SUPABASE_ANON_KEY')

    if not supabase_url or not supabase_key:
        raise ValueError(
            "Missing required environment variables: SUPABASE_URL and SUPABASE_ANON_KEY must be set. "
            "Please configure these in your environment or .env file."
        )

    try:
        _supabase = create_client(supabase_url, supabase_key)
        log_info("Supabase client initialized")
    except Exception as e:
        log_error("Error initializing Supabase client", error=e)
        _supabase = None

    return _supabase

def reset_supabase():
    """Drop the cached client so the next call rebuilds it from the environment"""
    global _supabase
    _supabase = None
