"""Database models for VideoMind."""

from videomind.db.models.knowledge_item import ItemType, KnowledgeItem, generate_item_id

__all__ = [
    "ItemType",
    "KnowledgeItem",
    "generate_item_id",
]
