"""权限解析服务

判断用户（直接授权或通过所属分组）是否持有某资源的所需权限，并枚举用户可访问的 Dashboard。

权限满足规则:
- Dashboard: 请求 view 时 view/edit 均满足（edit 隐含 view），请求 edit 时只有 edit 满足
- 数据库连接: read/write 之间没有隐含关系，必须精确匹配

注意: 创建者的隐式访问权不由授权表决定，而是由调用方（DashboardService 等）
在调用解析器之前检查；此外保存 Dashboard 时会为创建者写入一条 edit 授权，
因此对解析器而言创建者与普通被授权用户走同一条路径。

存储层故障以 AccessCheckError 抛出，不会被当作“无权限”静默返回 False。
"""
from typing import Iterable, List, Set, Union
import logging

from app.core.exceptions import AccessCheckError, EntityStoreError
from app.db.entity_store import EntityStore
from app.models.user_group import UserGroupMember
from app.schemas.permission import EntityType, Permission, ResourceKind

logger = logging.getLogger(__name__)

# 资源类型 -> (授权集合, 资源ID字段)
GRANT_COLLECTIONS = {
    ResourceKind.DASHBOARD: ("dashboard_permissions", "dashboard_id"),
    ResourceKind.DATABASE: ("database_permissions", "database_id"),
}


def permission_satisfies(
    resource_kind: Union[ResourceKind, str],
    granted: Union[Permission, str],
    required: Union[Permission, str],
) -> bool:
    """判断一条授权的权限值是否满足所需权限"""
    resource_kind = ResourceKind(resource_kind)
    granted = Permission(granted)
    required = Permission(required)

    if resource_kind == ResourceKind.DASHBOARD and required == Permission.VIEW:
        return granted in (Permission.VIEW, Permission.EDIT)
    return granted == required


def _any_satisfies(resource_kind: ResourceKind, grants: Iterable, required: Permission) -> bool:
    for grant in grants:
        try:
            if permission_satisfies(resource_kind, grant.permission, required):
                return True
        except ValueError:
            # 非法的权限值不满足任何请求
            logger.warning(f"忽略非法权限值: {grant.permission!r} (grant id={grant.id})")
    return False


class PermissionResolver:
    """权限解析器"""

    async def get_user_groups(self, store: EntityStore, *, user_id: str) -> List[UserGroupMember]:
        """获取用户的分组成员关系

        没有任何成员关系时返回空列表，不会因为“查不到”而抛异常

        Raises:
            AccessCheckError: 存储层查询失败
        """
        try:
            return await store.select("user_group_members", {"user_id": user_id})
        except EntityStoreError as e:
            raise AccessCheckError(f"Could not resolve groups of user {user_id}") from e

    async def check_access(
        self,
        store: EntityStore,
        *,
        user_id: str,
        resource_id: int,
        resource_kind: Union[ResourceKind, str],
        required_permission: Union[Permission, str],
    ) -> bool:
        """检查用户对资源是否持有所需权限

        依次检查: 用户直接授权 -> 用户所属分组的授权。
        不包含创建者判断（由调用方负责）。

        Args:
            user_id: 用户ID
            resource_id: Dashboard ID 或数据库连接 ID
            resource_kind: dashboard / database
            required_permission: 所需权限

        Returns:
            是否有权限

        Raises:
            AccessCheckError: 存储层故障导致无法判断
        """
        resource_kind = ResourceKind(resource_kind)
        required_permission = Permission(required_permission)
        collection, resource_field = GRANT_COLLECTIONS[resource_kind]

        try:
            # 1. 用户直接授权
            user_grants = await store.select(collection, {
                resource_field: resource_id,
                "entity_type": EntityType.USER.value,
                "entity_id": user_id,
            })
            if _any_satisfies(resource_kind, user_grants, required_permission):
                return True

            # 2. 分组授权
            memberships = await self.get_user_groups(store, user_id=user_id)
            if not memberships:
                return False

            group_ids = [str(m.group_id) for m in memberships]
            group_grants = await store.select(collection, {
                resource_field: resource_id,
                "entity_type": EntityType.GROUP.value,
                "entity_id": group_ids,
            })
            return _any_satisfies(resource_kind, group_grants, required_permission)
        except EntityStoreError as e:
            logger.error(
                f"权限检查失败: user={user_id}, {resource_kind.value}={resource_id}, "
                f"permission={required_permission.value}"
            )
            raise AccessCheckError(
                f"Could not determine access to {resource_kind.value} {resource_id}"
            ) from e

    async def list_accessible_dashboards(self, store: EntityStore, *, user_id: str) -> Set[int]:
        """获取用户可访问的 Dashboard ID 集合

        = 用户创建的 ∪ 直接授权(任意权限)的 ∪ 所属分组授权(任意权限)的，已去重

        Raises:
            AccessCheckError: 存储层故障
        """
        try:
            owned = await store.select("dashboards", {"created_by": user_id})
            direct = await store.select("dashboard_permissions", {
                "entity_type": EntityType.USER.value,
                "entity_id": user_id,
            })

            group_grants = []
            memberships = await self.get_user_groups(store, user_id=user_id)
            if memberships:
                group_grants = await store.select("dashboard_permissions", {
                    "entity_type": EntityType.GROUP.value,
                    "entity_id": [str(m.group_id) for m in memberships],
                })
        except EntityStoreError as e:
            raise AccessCheckError(f"Could not list dashboards accessible to user {user_id}") from e

        dashboard_ids = {d.id for d in owned}
        dashboard_ids.update(p.dashboard_id for p in direct)
        dashboard_ids.update(p.dashboard_id for p in group_grants)
        return dashboard_ids


# 创建全局实例
permission_resolver = PermissionResolver()
