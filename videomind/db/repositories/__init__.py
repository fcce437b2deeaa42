"""Database repositories for VideoMind."""

from videomind.db.repositories.base_repository import BaseRepository
from videomind.db.repositories.knowledge_item_repository import (
    KnowledgeItemRepository,
    KnowledgeStore,
)

__all__ = [
    "BaseRepository",
    "KnowledgeItemRepository",
    "KnowledgeStore",
]
