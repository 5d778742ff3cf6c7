"""
Collaborator interfaces for the brief pipeline.

The pipeline depends only on these abstract capabilities. Concrete
implementations live under ``briefgen.integrations``; tests supply
in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .models.pipeline import Account
from .models.source import SourceCandidate


class SearchProvider(ABC):
    """Web search provider."""

    @abstractmethod
    async def search(self, query: str, count: int = 10) -> List[SourceCandidate]:
        """Return organic results for ``query``. May raise on transport or quota errors."""


class ExtractionProvider(ABC):
    """Readable-text extraction provider."""

    @abstractmethod
    async def extract(self, url: str) -> str:
        """Return normalized text for ``url``. Raises on transport or paywall errors."""


class BriefStore(ABC):
    """Persistence collaborator for finished briefs."""

    @abstractmethod
    async def save_brief(self, record: Dict[str, Any]) -> str:
        """Persist ``record`` and return its id."""

    @abstractmethod
    async def update_artifact_url(self, brief_id: str, artifact_url: str) -> None:
        """Attach a rendered artifact URL to a saved brief."""


class AccountGateway(ABC):
    """Subscription and credit collaborator."""

    @abstractmethod
    async def get_account(self, user_id: str) -> Optional[Account]:
        """Return the account for ``user_id`` or None if unknown."""

    @abstractmethod
    async def deduct_credit(self, account: Account) -> int:
        """Deduct one credit and return the new balance."""


class BriefRenderer(ABC):
    """Renders a saved brief record to a downloadable document."""

    content_type = "application/pdf"
    extension = "pdf"

    @abstractmethod
    async def render(self, record: Dict[str, Any]) -> bytes:
        """Return the rendered document bytes."""


class ArtifactPublisher(ABC):
    """Publishes a rendered brief and returns a public URL."""

    @abstractmethod
    async def publish(self, user_id: str, brief_id: str, record: Dict[str, Any]) -> Optional[str]:
        """Render and upload the brief; return its public URL or None."""


class Notifier(ABC):
    """Outbound notification once a brief is ready."""

    @abstractmethod
    async def notify(self, account: Account, brief_id: str, topic: str, artifact_url: str) -> bool:
        """Send the notification; return True on success."""
