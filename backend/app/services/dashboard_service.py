"""Dashboard业务服务

Dashboard 的 layout 是 Widget 与变量的唯一数据来源，以 JSON 文本存储，
每次加载都重新解析并校验（Widget ID 唯一、变量名合法且唯一）。

访问规则:
- 创建者始终可以查看与编辑（调用解析器之前先判断 created_by）
- 其他用户通过直接授权或分组授权获得 view / edit
- 保存时授权整体替换，并为创建者写入一条 edit 授权
"""
from typing import Any, List, Mapping, Optional, Set
from datetime import datetime, timezone
import json
import logging

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import AccessDenied, ResourceNotFound, ValidationError
from app.db.entity_store import EntityStore
from app.models.dashboard import Dashboard
from app.schemas.dashboard import (
    VARIABLE_NAME_PATTERN,
    DashboardCreate,
    DashboardDetail,
    DashboardLayout,
    DashboardListItem,
    DashboardRenderResponse,
    DashboardUpdate,
)
from app.schemas.permission import Permission, PermissionGrantResponse, ResourceKind
from app.services.dashboard_render_service import dashboard_render_service
from app.services.favorite_service import favorite_service
from app.services.permission_grants import list_grants, replace_grants
from app.services.permission_resolver import permission_resolver

logger = logging.getLogger(__name__)

LIST_SCOPES = ("all", "mine", "shared")


def validate_layout(layout: DashboardLayout) -> DashboardLayout:
    """校验布局: Widget ID 唯一, 变量名合法且唯一

    Raises:
        ValidationError
    """
    seen_widgets: Set[str] = set()
    for widget in layout.widgets:
        if widget.id in seen_widgets:
            raise ValidationError(f"Duplicate widget id: {widget.id}", details={"widget_id": widget.id})
        seen_widgets.add(widget.id)

    seen_variables: Set[str] = set()
    for variable in layout.variables:
        if not VARIABLE_NAME_PATTERN.match(variable.name or ""):
            raise ValidationError(f"Invalid variable name: {variable.name!r}", details={"variable": variable.name})
        if variable.name in seen_variables:
            raise ValidationError(f"Duplicate variable name: {variable.name}", details={"variable": variable.name})
        seen_variables.add(variable.name)
    return layout


def parse_layout(raw: Optional[str]) -> DashboardLayout:
    """解析存储的 layout JSON 文本并校验

    Raises:
        ValidationError: JSON 格式错误或结构不合法
    """
    try:
        data = json.loads(raw) if raw else {}
    except ValueError as e:
        raise ValidationError(f"Dashboard layout is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ValidationError("Dashboard layout must be a JSON object")
    try:
        layout = DashboardLayout.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        raise ValidationError("Dashboard layout is malformed", details={"errors": errors})
    return validate_layout(layout)


def serialize_layout(layout: DashboardLayout) -> str:
    return layout.model_dump_json(by_alias=True)


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Dashboard name is required")
    return name


class DashboardService:
    """Dashboard业务服务类"""

    async def get_row(self, store: EntityStore, *, dashboard_id: int) -> Dashboard:
        rows = await store.select("dashboards", {"id": dashboard_id})
        if not rows:
            raise ResourceNotFound("Dashboard", dashboard_id)
        return rows[0]

    async def has_permission(
        self,
        store: EntityStore,
        *,
        dashboard: Dashboard,
        user_id: str,
        permission: Permission,
    ) -> bool:
        """创建者直接放行, 否则交给权限解析器"""
        if dashboard.created_by == user_id:
            return True
        return await permission_resolver.check_access(
            store,
            user_id=user_id,
            resource_id=dashboard.id,
            resource_kind=ResourceKind.DASHBOARD,
            required_permission=permission,
        )

    async def require_permission(
        self,
        store: EntityStore,
        *,
        dashboard_id: int,
        user_id: str,
        permission: Permission,
    ) -> Dashboard:
        """获取 Dashboard 并校验权限

        Raises:
            ResourceNotFound: Dashboard 不存在
            AccessDenied: 没有所需权限
            AccessCheckError: 无法确定权限
        """
        dashboard = await self.get_row(store, dashboard_id=dashboard_id)
        if not await self.has_permission(store, dashboard=dashboard, user_id=user_id, permission=permission):
            logger.info(f"拒绝访问: user={user_id}, dashboard={dashboard_id}, permission={permission.value}")
            raise AccessDenied(user_id=user_id, resource_id=dashboard_id, permission=permission.value)
        return dashboard

    def _to_detail(self, dashboard: Dashboard, *, can_edit: bool) -> DashboardDetail:
        return DashboardDetail(
            id=dashboard.id,
            name=dashboard.name,
            description=dashboard.description,
            created_by=dashboard.created_by,
            layout=parse_layout(dashboard.layout),
            can_edit=can_edit,
            created_at=dashboard.created_at,
            updated_at=dashboard.updated_at,
        )

    async def get_dashboard(self, store: EntityStore, *, dashboard_id: int, user_id: str) -> DashboardDetail:
        """获取Dashboard详情 (需要 view)"""
        dashboard = await self.require_permission(
            store, dashboard_id=dashboard_id, user_id=user_id, permission=Permission.VIEW
        )
        can_edit = await self.has_permission(store, dashboard=dashboard, user_id=user_id, permission=Permission.EDIT)
        return self._to_detail(dashboard, can_edit=can_edit)

    async def list_dashboards(
        self,
        store: EntityStore,
        *,
        user_id: str,
        scope: str = "all",
    ) -> List[DashboardListItem]:
        """获取用户可访问的Dashboard列表

        Args:
            scope: all 全部可访问的 / mine 自己创建的 / shared 他人共享的

        Returns:
            按更新时间倒序的列表
        """
        if scope not in LIST_SCOPES:
            raise ValidationError(f"Unknown scope: {scope}", details={"allowed": list(LIST_SCOPES)})

        dashboard_ids = await permission_resolver.list_accessible_dashboards(store, user_id=user_id)
        if not dashboard_ids:
            return []

        dashboards = await store.select("dashboards", {"id": sorted(dashboard_ids)}, order_by="-updated_at")
        if scope == "mine":
            dashboards = [d for d in dashboards if d.created_by == user_id]
        elif scope == "shared":
            dashboards = [d for d in dashboards if d.created_by != user_id]

        favorites = set(await favorite_service.get_stored_favorites(store, user_id=user_id))
        items = []
        for dashboard in dashboards:
            try:
                widget_count = len(parse_layout(dashboard.layout).widgets)
            except ValidationError:
                logger.warning(f"Dashboard {dashboard.id} 的布局无法解析")
                widget_count = 0
            can_edit = await self.has_permission(
                store, dashboard=dashboard, user_id=user_id, permission=Permission.EDIT
            )
            items.append(DashboardListItem(
                id=dashboard.id,
                name=dashboard.name,
                description=dashboard.description,
                created_by=dashboard.created_by,
                widget_count=widget_count,
                can_edit=can_edit,
                is_favorite=dashboard.id in favorites,
                created_at=dashboard.created_at,
                updated_at=dashboard.updated_at,
            ))
        return items

    async def create_dashboard(
        self,
        store: EntityStore,
        *,
        obj_in: DashboardCreate,
        user_id: str,
    ) -> DashboardDetail:
        """创建Dashboard, 创建者获得 edit 授权"""
        name = _clean_name(obj_in.name)
        layout = validate_layout(obj_in.layout)

        async with store.transaction():
            rows = await store.insert("dashboards", [{
                "name": name,
                "description": obj_in.description,
                "layout": serialize_layout(layout),
                "created_by": user_id,
            }])
            dashboard = rows[0]
            await replace_grants(
                store,
                resource_kind=ResourceKind.DASHBOARD,
                resource_id=dashboard.id,
                grants=obj_in.permissions,
                creator_id=user_id,
            )

        logger.info(f"创建Dashboard: id={dashboard.id}, name={name}, user={user_id}")
        return self._to_detail(dashboard, can_edit=True)

    async def update_dashboard(
        self,
        store: EntityStore,
        *,
        dashboard_id: int,
        obj_in: DashboardUpdate,
        user_id: str,
    ) -> DashboardDetail:
        """整体保存Dashboard (需要 edit), 授权整体替换"""
        dashboard = await self.require_permission(
            store, dashboard_id=dashboard_id, user_id=user_id, permission=Permission.EDIT
        )
        name = _clean_name(obj_in.name)
        layout = validate_layout(obj_in.layout)

        async with store.transaction():
            rows = await store.update("dashboards", {
                "name": name,
                "description": obj_in.description,
                "layout": serialize_layout(layout),
                "updated_at": datetime.now(timezone.utc).replace(tzinfo=None),
            }, {"id": dashboard_id})
            await replace_grants(
                store,
                resource_kind=ResourceKind.DASHBOARD,
                resource_id=dashboard_id,
                grants=obj_in.permissions,
                creator_id=dashboard.created_by,
            )

        logger.info(f"保存Dashboard: id={dashboard_id}, user={user_id}")
        return self._to_detail(rows[0], can_edit=True)

    async def delete_dashboard(self, store: EntityStore, *, dashboard_id: int, user_id: str) -> None:
        """删除Dashboard (需要 edit), 连同授权一起删除"""
        await self.require_permission(store, dashboard_id=dashboard_id, user_id=user_id, permission=Permission.EDIT)
        async with store.transaction():
            await store.delete("dashboard_permissions", {"dashboard_id": dashboard_id})
            await store.delete("dashboards", {"id": dashboard_id})
        await favorite_service.remove_dashboard(store, user_id=user_id, dashboard_id=dashboard_id)
        logger.info(f"删除Dashboard: id={dashboard_id}, user={user_id}")

    async def list_permissions(
        self,
        store: EntityStore,
        *,
        dashboard_id: int,
        user_id: str,
    ) -> List[PermissionGrantResponse]:
        """获取Dashboard的授权列表 (需要 edit)"""
        await self.require_permission(store, dashboard_id=dashboard_id, user_id=user_id, permission=Permission.EDIT)
        return await list_grants(store, resource_kind=ResourceKind.DASHBOARD, resource_id=dashboard_id)

    async def create_from_template(
        self,
        store: EntityStore,
        *,
        template_id: int,
        user_id: str,
        name: Optional[str] = None,
    ) -> DashboardDetail:
        """基于模板创建Dashboard, 默认名称为 "<模板名> Copy" """
        rows = await store.select("dashboard_templates", {"id": template_id})
        if not rows:
            raise ResourceNotFound("Dashboard template", template_id)
        template = rows[0]

        obj_in = DashboardCreate(
            name=name or f"{template.name} Copy",
            description=template.description,
            layout=parse_layout(template.layout),
            permissions=[],
        )
        logger.info(f"基于模板 {template_id} 创建Dashboard, user={user_id}")
        return await self.create_dashboard(store, obj_in=obj_in, user_id=user_id)

    async def render_dashboard(
        self,
        store: EntityStore,
        *,
        dashboard_id: int,
        user_id: str,
        variable_values: Optional[Mapping[str, Any]] = None,
        widget_ids: Optional[List[str]] = None,
    ) -> DashboardRenderResponse:
        """渲染Dashboard

        权限检查在任何 Widget 数据加载之前完成
        """
        dashboard = await self.require_permission(
            store, dashboard_id=dashboard_id, user_id=user_id, permission=Permission.VIEW
        )
        layout = parse_layout(dashboard.layout)
        return await dashboard_render_service.render(
            store,
            dashboard_id=dashboard_id,
            layout=layout,
            variable_values=variable_values,
            widget_ids=widget_ids,
        )


# 创建全局实例
dashboard_service = DashboardService()
