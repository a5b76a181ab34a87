"""Builds the personal context used by document analysis prompts."""

from __future__ import annotations

from weave.interfaces.content_store import IContentStore
from weave.models.intelligence import TopicSummary, UserContext

MAX_CONTEXT_TOPICS = 10


async def load_document_context(store: IContentStore, user_id: str) -> UserContext:
    """Identity seed plus the user's ten most recent topics."""
    seed = await store.get_identity_seed(user_id)
    topics = await store.list_topics(user_id, limit=MAX_CONTEXT_TOPICS)
    return UserContext(
        identity_seed=seed.content if seed else None,
        topics=[TopicSummary(name=t.name, description=t.description) for t in topics],
    )
