"""Dashboard API端点"""
from typing import Any, List
from fastapi import APIRouter, Depends, Query, Response, status
import logging

from app.api import deps
from app.db.entity_store import EntityStore
from app.models.user import User
from app.schemas.dashboard import (
    DashboardCreate, DashboardUpdate,
    DashboardListItem, DashboardDetail,
    DashboardRenderRequest, DashboardRenderResponse,
    FavoriteStatus,
)
from app.schemas.permission import PermissionListResponse
from app.services.dashboard_service import dashboard_service
from app.services.favorite_service import favorite_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[DashboardListItem])
async def get_dashboards(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    scope: str = Query("all", description="范围: all/mine/shared"),
) -> Any:
    """获取当前用户可访问的Dashboard列表"""
    return await dashboard_service.list_dashboards(store, user_id=current_user.id, scope=scope)


@router.get("/{dashboard_id}", response_model=DashboardDetail)
async def get_dashboard(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    dashboard_id: int,
) -> Any:
    """获取Dashboard详情 (需要 view)"""
    return await dashboard_service.get_dashboard(store, dashboard_id=dashboard_id, user_id=current_user.id)


@router.post("/", response_model=DashboardDetail, status_code=status.HTTP_201_CREATED)
async def create_dashboard(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    dashboard_in: DashboardCreate,
) -> Any:
    """创建Dashboard"""
    return await dashboard_service.create_dashboard(store, obj_in=dashboard_in, user_id=current_user.id)


@router.put("/{dashboard_id}", response_model=DashboardDetail)
async def update_dashboard(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    dashboard_id: int,
    dashboard_in: DashboardUpdate,
) -> Any:
    """整体保存Dashboard (需要 edit)"""
    return await dashboard_service.update_dashboard(
        store,
        dashboard_id=dashboard_id,
        obj_in=dashboard_in,
        user_id=current_user.id
    )


@router.delete("/{dashboard_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dashboard(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    dashboard_id: int,
) -> Response:
    """删除Dashboard (需要 edit)"""
    await dashboard_service.delete_dashboard(store, dashboard_id=dashboard_id, user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{dashboard_id}/render", response_model=DashboardRenderResponse)
async def render_dashboard(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    dashboard_id: int,
    render_in: DashboardRenderRequest,
) -> Any:
    """渲染Dashboard: 并发加载各Widget数据并返回可视化结果"""
    return await dashboard_service.render_dashboard(
        store,
        dashboard_id=dashboard_id,
        user_id=current_user.id,
        variable_values=render_in.variables,
        widget_ids=render_in.widget_ids,
    )


@router.get("/{dashboard_id}/permissions", response_model=PermissionListResponse)
async def get_dashboard_permissions(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    dashboard_id: int,
) -> Any:
    """获取Dashboard的授权列表 (需要 edit)"""
    permissions = await dashboard_service.list_permissions(
        store, dashboard_id=dashboard_id, user_id=current_user.id
    )
    return PermissionListResponse(permissions=permissions)


@router.post("/{dashboard_id}/favorite", response_model=FavoriteStatus)
async def toggle_favorite(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    dashboard_id: int,
) -> Any:
    """切换收藏状态 (需要 view)"""
    await dashboard_service.get_dashboard(store, dashboard_id=dashboard_id, user_id=current_user.id)
    is_favorite = await favorite_service.toggle_favorite(
        store, user_id=current_user.id, dashboard_id=dashboard_id
    )
    return FavoriteStatus(dashboard_id=dashboard_id, is_favorite=is_favorite)
