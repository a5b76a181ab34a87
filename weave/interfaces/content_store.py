"""Abstract base class for the per-user content store.

Holds documents, insights, identity seeds and topics.  Every method takes
the owning ``user_id`` and never returns rows belonging to anyone else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from weave.models.records import Document, IdentitySeed, Insight, Topic


# Concrete implementation: SQLiteContentStore (weave/providers/store/)
class IContentStore(ABC):
    """Contract for persisting a user's captured content."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables if needed.  Safe to call repeatedly."""

    # -- documents ---------------------------------------------------------

    @abstractmethod
    async def create_document(self, document: Document) -> Document:
        """Insert *document* and return it."""

    @abstractmethod
    async def get_document(self, user_id: str, document_id: str) -> Document | None:
        """Return the document, or ``None`` if missing or not owned by *user_id*."""

    @abstractmethod
    async def list_documents(self, user_id: str, limit: int = 50) -> list[Document]:
        """Return the user's documents, newest first."""

    @abstractmethod
    async def update_document(
        self, user_id: str, document_id: str, **fields: Any
    ) -> Document | None:
        """Update the given columns and ``updated_at``; return the new row or ``None``."""

    @abstractmethod
    async def delete_document(self, user_id: str, document_id: str) -> bool:
        """Delete the row; return ``True`` if something was deleted."""

    # -- insights ----------------------------------------------------------

    @abstractmethod
    async def create_insights(self, insights: list[Insight]) -> list[Insight]:
        """Insert a batch of insights in one transaction."""

    @abstractmethod
    async def list_insights(self, user_id: str, limit: int = 100) -> list[Insight]:
        """Return the user's insights, newest first."""

    @abstractmethod
    async def delete_insight(self, user_id: str, insight_id: str) -> bool:
        """Delete the row; return ``True`` if something was deleted."""

    # -- identity seed / topics ---------------------------------------------

    @abstractmethod
    async def get_identity_seed(self, user_id: str) -> IdentitySeed | None:
        """Return the user's identity seed, if one was written."""

    @abstractmethod
    async def upsert_identity_seed(self, user_id: str, content: str) -> IdentitySeed:
        """Create or replace the user's single identity seed."""

    @abstractmethod
    async def create_topic(self, topic: Topic) -> Topic:
        """Insert *topic* and return it."""

    @abstractmethod
    async def list_topics(self, user_id: str, limit: int = 50) -> list[Topic]:
        """Return the user's topics, newest first."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"sqlite"``."""
