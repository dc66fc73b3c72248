"""授权整体替换

保存 Dashboard / 数据库连接时，授权集合按“先全部删除、再重新插入”的方式整体替换。
创建者的隐式授权在这里补齐：Dashboard 创建者获得 edit，连接创建者获得 read 与 write。
调用方负责把资源行的写入与授权替换放进同一个 EntityStore.transaction()。
"""
from typing import Iterable, List, Optional, Tuple, Union
import logging

from app.core.exceptions import ValidationError
from app.db.entity_store import EntityStore
from app.schemas.permission import (
    RESOURCE_PERMISSIONS,
    EntityType,
    Permission,
    PermissionGrantIn,
    PermissionGrantResponse,
    ResourceKind,
)
from app.services.permission_resolver import GRANT_COLLECTIONS

logger = logging.getLogger(__name__)

# 创建者隐式持有的权限
CREATOR_PERMISSIONS = {
    ResourceKind.DASHBOARD: (Permission.EDIT,),
    ResourceKind.DATABASE: (Permission.READ, Permission.WRITE),
}

GrantKey = Tuple[str, str, str]


def normalize_grants(
    resource_kind: Union[ResourceKind, str],
    grants: Iterable[PermissionGrantIn],
    *,
    creator_id: Optional[str] = None,
) -> List[PermissionGrantIn]:
    """校验并去重授权列表, 补齐创建者的隐式授权

    Raises:
        ValidationError: 权限值不适用于该资源类型
    """
    resource_kind = ResourceKind(resource_kind)
    allowed = RESOURCE_PERMISSIONS[resource_kind]

    result: List[PermissionGrantIn] = []
    seen = set()

    def add(grant: PermissionGrantIn) -> None:
        key: GrantKey = (grant.entity_type.value, grant.entity_id, grant.permission.value)
        if key not in seen:
            seen.add(key)
            result.append(grant)

    for grant in grants:
        if grant.permission not in allowed:
            raise ValidationError(
                f"Permission '{grant.permission.value}' is not valid for a {resource_kind.value}",
                details={"entity_id": grant.entity_id},
            )
        add(grant)

    if creator_id:
        for permission in CREATOR_PERMISSIONS[resource_kind]:
            add(PermissionGrantIn(entity_type=EntityType.USER, entity_id=creator_id, permission=permission))
    return result


async def replace_grants(
    store: EntityStore,
    *,
    resource_kind: Union[ResourceKind, str],
    resource_id: int,
    grants: Iterable[PermissionGrantIn],
    creator_id: Optional[str] = None,
) -> List[PermissionGrantResponse]:
    """整体替换资源的授权集合

    Returns:
        替换后的授权列表
    """
    resource_kind = ResourceKind(resource_kind)
    normalized = normalize_grants(resource_kind, grants, creator_id=creator_id)
    collection, resource_field = GRANT_COLLECTIONS[resource_kind]

    async with store.transaction():
        removed = await store.delete(collection, {resource_field: resource_id})
        rows = await store.insert(collection, [
            {
                resource_field: resource_id,
                "entity_type": grant.entity_type.value,
                "entity_id": grant.entity_id,
                "permission": grant.permission.value,
            }
            for grant in normalized
        ])

    logger.info(
        f"替换授权: {resource_kind.value}={resource_id}, 删除 {removed} 条, 写入 {len(rows)} 条"
    )
    return [to_grant_response(resource_kind, row) for row in rows]


async def list_grants(
    store: EntityStore,
    *,
    resource_kind: Union[ResourceKind, str],
    resource_id: int,
) -> List[PermissionGrantResponse]:
    resource_kind = ResourceKind(resource_kind)
    collection, resource_field = GRANT_COLLECTIONS[resource_kind]
    rows = await store.select(collection, {resource_field: resource_id})
    return [to_grant_response(resource_kind, row) for row in rows]


def to_grant_response(resource_kind: ResourceKind, row) -> PermissionGrantResponse:
    _, resource_field = GRANT_COLLECTIONS[resource_kind]
    return PermissionGrantResponse(
        id=row.id,
        resource_id=getattr(row, resource_field),
        entity_type=row.entity_type,
        entity_id=row.entity_id,
        permission=row.permission,
        created_at=row.created_at,
    )
