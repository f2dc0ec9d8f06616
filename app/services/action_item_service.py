"""
Action Item Service
"""

from typing import List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.action_item import ActionItem, ActionItemPriority, ActionItemStatus
from app.models.meeting import Meeting
from app.schemas.action_item import ActionItemCreate, ActionItemUpdate
from app.schemas.summary import ExtractedActionItem


class ActionItemService:
    def __init__(self, session: AsyncSession):
        self.session = session

    def _owned(self, stmt, user_id: Optional[str]):
        stmt = stmt.join(Meeting, Meeting.id == ActionItem.meeting_id).where(
            Meeting.deleted_at.is_(None)
        )
        if user_id:
            stmt = stmt.where(Meeting.user_id == user_id)
        return stmt

    async def list_action_items(
        self,
        user_id: str,
        meeting_id: Optional[str] = None,
        status: Optional[ActionItemStatus] = None,
        priority: Optional[ActionItemPriority] = None,
        speaker: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[ActionItem], int]:
        conditions = []
        if meeting_id:
            conditions.append(ActionItem.meeting_id == meeting_id)
        if status:
            conditions.append(ActionItem.status == ActionItemStatus(status).value)
        if priority:
            conditions.append(ActionItem.priority == ActionItemPriority(priority).value)
        if speaker:
            conditions.append(ActionItem.speaker == speaker)

        count_stmt = self._owned(
            select(func.count(ActionItem.id)).select_from(ActionItem), user_id
        ).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            self._owned(select(ActionItem), user_id)
            .where(*conditions)
            .order_by(ActionItem.created_at.desc(), ActionItem.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_action_item(self, action_item_id: str, user_id: Optional[str] = None) -> Optional[ActionItem]:
        stmt = self._owned(select(ActionItem), user_id).where(ActionItem.id == action_item_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def create_action_item(self, item_in: ActionItemCreate, created_by: str) -> ActionItem:
        action_item = ActionItem(
            meeting_id=item_in.meeting_id,
            description=item_in.description,
            priority=ActionItemPriority(item_in.priority).value,
            status=ActionItemStatus.PENDING.value,
            speaker=item_in.speaker,
            assignee=item_in.assignee,
            due_date=item_in.due_date,
            created_by=created_by,
        )
        self.session.add(action_item)
        await self.session.commit()
        await self.session.refresh(action_item)
        return action_item

    async def bulk_create_extracted(
        self,
        meeting_id: str,
        items: Sequence[ExtractedActionItem],
        created_by: str,
    ) -> List[ActionItem]:
        """Insert pipeline-extracted items for one meeting in a single transaction"""
        action_items = [
            ActionItem(
                meeting_id=meeting_id,
                description=item.description.strip(),
                priority=ActionItemPriority(item.priority).value,
                status=ActionItemStatus.PENDING.value,
                speaker=item.speaker,
                assignee=item.assignee,
                created_by=created_by,
            )
            for item in items
            if item.description and item.description.strip()
        ]
        if not action_items:
            return []
        self.session.add_all(action_items)
        await self.session.commit()
        return action_items

    async def update_action_item(
        self, action_item_id: str, user_id: str, item_in: ActionItemUpdate
    ) -> Optional[ActionItem]:
        action_item = await self.get_action_item(action_item_id, user_id)
        if not action_item:
            return None

        for field, value in item_in.model_dump(exclude_unset=True).items():
            if field in ("priority", "status"):
                if value is None:
                    continue
                value = value.value
            if field == "description":
                if value is None or not value.strip():
                    continue
                value = value.strip()
            setattr(action_item, field, value)

        await self.session.commit()
        await self.session.refresh(action_item)
        return action_item

    async def delete_action_item(self, action_item_id: str, user_id: str) -> bool:
        action_item = await self.get_action_item(action_item_id, user_id)
        if not action_item:
            return False
        await self.session.execute(delete(ActionItem).where(ActionItem.id == action_item_id))
        await self.session.commit()
        return True
