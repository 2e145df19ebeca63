"""
Supabase client initialization and environment configuration.

This module contains *only* the database connection setup and the settings
read from the environment. The `get_supabase()` accessor creates a single
shared client on first use.

Environment variables:
- SUPABASE_URL: Your Supabase project URL (required)
- SUPABASE_KEY: Your Supabase API key (required; use a server-side key only)
- DISPATCH_FUNCTION_NAME: Edge Function that runs campaign dispatch
  (default: campaign-engine)
- DISPATCH_MAX_ATTEMPTS: Attempts for a stop request before giving up (default: 3)
- DISPATCH_RETRY_DELAY_SECONDS: Base delay between attempts (default: 0.5)
- CORS_ALLOW_ORIGINS: Comma-separated browser origins allowed to call the API
  (default: none; the API is called server-to-server)
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from supabase import Client, create_client

# Load environment variables from the .env file at the project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DISPATCH_FUNCTION_NAME: str = os.getenv("DISPATCH_FUNCTION_NAME", "campaign-engine")
DISPATCH_MAX_ATTEMPTS: int = int(os.getenv("DISPATCH_MAX_ATTEMPTS", "3"))
DISPATCH_RETRY_DELAY_SECONDS: float = float(os.getenv("DISPATCH_RETRY_DELAY_SECONDS", "0.5"))
CORS_ALLOW_ORIGINS: list[str] = [
    origin.strip() for origin in os.getenv("CORS_ALLOW_ORIGINS", "").split(",") if origin.strip()
]


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Return the shared Supabase client, creating it on first call.

    Raises:
        RuntimeError: If SUPABASE_URL or SUPABASE_KEY is not set.
    """
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")

    if not supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    return create_client(supabase_url, supabase_key)


__all__ = [
    "get_supabase",
    "DISPATCH_FUNCTION_NAME",
    "DISPATCH_MAX_ATTEMPTS",
    "DISPATCH_RETRY_DELAY_SECONDS",
    "CORS_ALLOW_ORIGINS",
]
