"""
Supabase storage collaborators.

This module provides the Supabase-backed brief store, account gateway
and artifact publisher. The Supabase SDK is synchronous, so every call
runs in a worker thread to keep the pipeline's event loop free.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from supabase import create_client, Client

from ...core.interfaces import BriefStore, AccountGateway, ArtifactPublisher, BriefRenderer
from ...core.models.errors import ConfigurationError, PersistenceError
from ...core.models.pipeline import Account


logger = logging.getLogger(__name__)

# Cache for Supabase client
_supabase_client: Optional[Client] = None


def get_supabase_client(url: Optional[str], key: Optional[str]) -> Client:
    """
    Get or create the Supabase client instance.

    Args:
        url: Supabase project URL
        key: Service role key

    Returns:
        Supabase client instance

    Raises:
        ConfigurationError: If credentials are not configured
    """
    global _supabase_client

    if _supabase_client is not None:
        return _supabase_client

    if not url or not key:
        raise ConfigurationError(
            "Supabase credentials not found (SUPABASE_URL and SUPABASE_KEY required)",
            config_key="SUPABASE_URL"
        )

    _supabase_client = create_client(url, key)
    logger.info("Supabase client initialized successfully")
    return _supabase_client


class SupabaseBriefStore(BriefStore):
    """Persists briefs to the ``briefs`` table."""

    def __init__(self, client: Client, table: str = "briefs"):
        self.client = client
        self.table = table

    async def save_brief(self, record: Dict[str, Any]) -> str:
        response = await asyncio.to_thread(
            lambda: self.client.table(self.table).insert(record).execute()
        )
        if not response.data:
            raise PersistenceError("Failed to save brief: no row returned")

        brief_id = str(response.data[0]["id"])
        logger.info(f"Saved brief {brief_id} for topic '{record.get('topic')}'")
        return brief_id

    async def update_artifact_url(self, brief_id: str, artifact_url: str) -> None:
        await asyncio.to_thread(
            lambda: self.client.table(self.table)
            .update({"pdf_url": artifact_url})
            .eq("id", brief_id)
            .execute()
        )


class SupabaseAccountGateway(AccountGateway):
    """Reads subscription state and deducts credits from the ``users`` table."""

    def __init__(self, client: Client, table: str = "users"):
        self.client = client
        self.table = table

    async def get_account(self, user_id: str) -> Optional[Account]:
        response = await asyncio.to_thread(
            lambda: self.client.table(self.table)
            .select("id, email, name, subscription_status, credits_remaining, plan_type")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            logger.warning(f"No account found for user {user_id}")
            return None

        row = response.data[0]
        return Account(
            user_id=str(row["id"]),
            email=row.get("email"),
            name=row.get("name"),
            subscription_status=row.get("subscription_status") or "inactive",
            credits_remaining=row.get("credits_remaining") or 0,
            plan_type=row.get("plan_type")
        )

    async def deduct_credit(self, account: Account) -> int:
        new_balance = max(0, account.credits_remaining - 1)
        await asyncio.to_thread(
            lambda: self.client.table(self.table)
            .update({
                "credits_remaining": new_balance,
                "updated_at": datetime.now(timezone.utc).isoformat()
            })
            .eq("id", account.user_id)
            .execute()
        )
        logger.info(f"Deducted credit for user {account.user_id}: {new_balance} remaining")
        return new_balance


class SupabaseArtifactPublisher(ArtifactPublisher):
    """
    Renders a brief and uploads it to a Supabase storage bucket.

    Objects are stored at ``briefs/{user_id}/{brief_id}.{extension}``.
    """

    def __init__(self, client: Client, renderer: BriefRenderer, bucket: str = "brief-pdfs"):
        self.client = client
        self.renderer = renderer
        self.bucket = bucket

    async def publish(self, user_id: str, brief_id: str, record: Dict[str, Any]) -> Optional[str]:
        document = await self.renderer.render(record)
        if not document:
            logger.warning(f"Renderer produced no document for brief {brief_id}")
            return None

        path = f"briefs/{user_id}/{brief_id}.{self.renderer.extension}"
        storage = self.client.storage.from_(self.bucket)

        await asyncio.to_thread(
            storage.upload,
            path,
            document,
            {"content-type": self.renderer.content_type, "upsert": "true"}
        )
        url = await asyncio.to_thread(storage.get_public_url, path)

        logger.info(f"Published brief {brief_id} to {self.bucket}/{path}")
        return url
