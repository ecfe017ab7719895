"""Remote database layer"""

from .supabase import SupabaseRemoteStore, create_remote_store

__all__ = [
    "SupabaseRemoteStore",
    "create_remote_store",
]
