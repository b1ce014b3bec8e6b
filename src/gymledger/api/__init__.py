"""
API package: the primary store interface and its PostgREST client.
"""

from .interfaces import PrimaryStore
from .supabase_store import SupabaseStore

__all__ = ['PrimaryStore', 'SupabaseStore']
