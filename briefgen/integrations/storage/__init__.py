"""
Supabase-backed persistence, account and artifact storage.
"""

from .supabase_store import (
    get_supabase_client,
    SupabaseBriefStore,
    SupabaseAccountGateway,
    SupabaseArtifactPublisher
)

__all__ = [
    'get_supabase_client',
    'SupabaseBriefStore',
    'SupabaseAccountGateway',
    'SupabaseArtifactPublisher'
]
