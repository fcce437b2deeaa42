"""Knowledge item repository - the persistence collaborator for the pipeline."""

from typing import Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from videomind.db.models.knowledge_item import KnowledgeItem
from videomind.db.repositories.base_repository import BaseRepository
from videomind.utils.exceptions import PersistenceError

logger = structlog.get_logger(__name__)


class KnowledgeStore(Protocol):
    """Persistence contract consumed by the ingestion pipeline."""

    async def save(self, item: KnowledgeItem) -> None: ...

    async def get(self, item_id: str) -> KnowledgeItem | None: ...

    async def get_all(self, user_id: str) -> list[KnowledgeItem]: ...

    async def delete(self, item_id: str) -> bool: ...


class KnowledgeItemRepository(BaseRepository[KnowledgeItem]):
    """Repository for KnowledgeItem model operations."""

    def __init__(self, session: AsyncSession):
        """Initialize knowledge item repository."""
        super().__init__(KnowledgeItem, session)

    async def save(self, item: KnowledgeItem) -> None:
        """
        Persist a new knowledge item and commit.

        Args:
            item: Fully-formed item keyed by its id

        Raises:
            PersistenceError: If the write fails
        """
        try:
            await self.create(item)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("knowledge_item_save_failed", item_id=item.id, error=str(e))
            raise PersistenceError(f"Failed to save item {item.id}: {e}") from e

        logger.info("knowledge_item_saved", item_id=item.id, type=item.type)

    async def get(self, item_id: str) -> KnowledgeItem | None:
        """
        Get an item by id.

        Args:
            item_id: Item id

        Returns:
            KnowledgeItem or None
        """
        return await self.get_by_id(item_id)

    async def get_all(self, user_id: str) -> list[KnowledgeItem]:
        """
        Get every item owned by a user, newest first.

        Args:
            user_id: Owner id

        Returns:
            List of KnowledgeItem instances
        """
        result = await self.session.execute(
            select(KnowledgeItem)
            .where(KnowledgeItem.user_id == user_id)  # type: ignore[arg-type]
            .order_by(KnowledgeItem.upload_date.desc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def delete(self, item_id: str) -> bool:  # type: ignore[override]
        """
        Delete an item by id.

        Args:
            item_id: Item id

        Returns:
            True if an item was deleted, False if it did not exist
        """
        item = await self.get_by_id(item_id)
        if item is None:
            return False

        await super().delete(item)
        await self.session.commit()
        logger.info("knowledge_item_deleted", item_id=item_id)
        return True
