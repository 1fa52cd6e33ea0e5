"""
Core application modules.
Contains configuration, logging, metrics and the Supabase connection.
"""
from .database import get_supabase_client

__all__ = ["get_supabase_client"]
