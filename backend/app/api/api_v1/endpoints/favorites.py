"""收藏 API端点"""
from typing import Any

from fastapi import APIRouter, Depends

from app.api import deps
from app.db.entity_store import EntityStore
from app.models.user import User
from app.schemas.dashboard import FavoriteListResponse
from app.services.favorite_service import favorite_service

router = APIRouter()


@router.get("/", response_model=FavoriteListResponse)
async def read_favorites(
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
) -> Any:
    """当前用户收藏的Dashboard ID (已过滤掉已删除或无权访问的)"""
    dashboard_ids = await favorite_service.list_favorites(store, user_id=current_user.id)
    return FavoriteListResponse(dashboard_ids=dashboard_ids)
