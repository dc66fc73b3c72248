"""用户分组服务"""
from typing import List, Optional
from datetime import datetime, timezone
import logging

from app.core.exceptions import ResourceNotFound, ValidationError
from app.db.entity_store import EntityStore
from app.models.user_group import UserGroup
from app.schemas.permission import EntityType
from app.schemas.user_group import (
    GroupMembership,
    UserGroupCreate,
    UserGroupResponse,
    UserGroupUpdate,
)

logger = logging.getLogger(__name__)


class UserGroupService:
    """用户分组服务类"""

    async def get_row(self, store: EntityStore, *, group_id: int) -> UserGroup:
        rows = await store.select("user_groups", {"id": group_id})
        if not rows:
            raise ResourceNotFound("User group", group_id)
        return rows[0]

    async def _to_response(self, store: EntityStore, group: UserGroup) -> UserGroupResponse:
        members = await store.select("user_group_members", {"group_id": group.id})
        return UserGroupResponse(
            id=group.id,
            name=group.name,
            description=group.description,
            member_count=len(members),
            created_at=group.created_at,
            updated_at=group.updated_at,
        )

    async def _ensure_unique_name(self, store: EntityStore, *, name: str, exclude_id: Optional[int] = None) -> None:
        existing = await store.select("user_groups", {"name": name})
        if any(group.id != exclude_id for group in existing):
            raise ValidationError(f"User group '{name}' already exists")

    async def list_groups(self, store: EntityStore) -> List[UserGroupResponse]:
        groups = await store.select("user_groups", order_by="name")
        return [await self._to_response(store, group) for group in groups]

    async def get_group(self, store: EntityStore, *, group_id: int) -> UserGroupResponse:
        return await self._to_response(store, await self.get_row(store, group_id=group_id))

    async def create_group(self, store: EntityStore, *, obj_in: UserGroupCreate) -> UserGroupResponse:
        name = (obj_in.name or "").strip()
        if not name:
            raise ValidationError("Group name is required")
        await self._ensure_unique_name(store, name=name)

        rows = await store.insert("user_groups", [{"name": name, "description": obj_in.description}])
        logger.info(f"创建用户分组: id={rows[0].id}, name={name}")
        return await self._to_response(store, rows[0])

    async def update_group(
        self,
        store: EntityStore,
        *,
        group_id: int,
        obj_in: UserGroupUpdate,
    ) -> UserGroupResponse:
        await self.get_row(store, group_id=group_id)
        patch = obj_in.model_dump(exclude_unset=True)
        if "name" in patch:
            patch["name"] = (patch["name"] or "").strip()
            if not patch["name"]:
                raise ValidationError("Group name is required")
            await self._ensure_unique_name(store, name=patch["name"], exclude_id=group_id)
        patch["updated_at"] = datetime.now(timezone.utc)

        rows = await store.update("user_groups", patch, {"id": group_id})
        return await self._to_response(store, rows[0])

    async def delete_group(self, store: EntityStore, *, group_id: int) -> None:
        """删除分组, 连同成员关系与授予该分组的全部授权"""
        await self.get_row(store, group_id=group_id)
        grant_filter = {"entity_type": EntityType.GROUP.value, "entity_id": str(group_id)}
        async with store.transaction():
            await store.delete("dashboard_permissions", grant_filter)
            await store.delete("database_permissions", grant_filter)
            await store.delete("user_group_members", {"group_id": group_id})
            await store.delete("user_groups", {"id": group_id})
        logger.info(f"删除用户分组: id={group_id}")

    # ===== 成员管理 =====

    async def list_members(self, store: EntityStore, *, group_id: int) -> List[GroupMembership]:
        await self.get_row(store, group_id=group_id)
        rows = await store.select("user_group_members", {"group_id": group_id})
        return [GroupMembership.model_validate(row) for row in rows]

    async def add_member(self, store: EntityStore, *, group_id: int, user_id: str) -> GroupMembership:
        """添加成员; 已经是成员时返回已有的成员关系"""
        await self.get_row(store, group_id=group_id)
        if not await store.select("users", {"id": user_id}):
            raise ResourceNotFound("User", user_id)

        existing = await store.select("user_group_members", {"group_id": group_id, "user_id": user_id})
        if existing:
            return GroupMembership.model_validate(existing[0])

        rows = await store.insert("user_group_members", [{"group_id": group_id, "user_id": user_id}])
        logger.info(f"添加分组成员: group={group_id}, user={user_id}")
        return GroupMembership.model_validate(rows[0])

    async def remove_member(self, store: EntityStore, *, group_id: int, user_id: str) -> None:
        await self.get_row(store, group_id=group_id)
        removed = await store.delete("user_group_members", {"group_id": group_id, "user_id": user_id})
        if not removed:
            raise ResourceNotFound("Group membership", f"{group_id}/{user_id}")
        logger.info(f"移除分组成员: group={group_id}, user={user_id}")


# 创建全局实例
user_group_service = UserGroupService()
