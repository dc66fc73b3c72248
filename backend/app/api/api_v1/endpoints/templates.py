"""Dashboard模板 API端点"""
from typing import Any, List, Optional
from fastapi import APIRouter, Body, Depends, status

from app.api import deps
from app.db.entity_store import EntityStore
from app.models.user import User
from app.schemas.dashboard import DashboardDetail, DashboardTemplateResponse, TemplateInstantiateRequest
from app.services.dashboard_service import dashboard_service
from app.services.template_service import template_service

router = APIRouter()


@router.get("/", response_model=List[DashboardTemplateResponse])
async def get_templates(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
) -> Any:
    """获取模板列表, 集合为空时先写入内置模板"""
    await template_service.seed_default_templates(store)
    return await template_service.list_templates(store)


@router.post("/{template_id}/instantiate", response_model=DashboardDetail, status_code=status.HTTP_201_CREATED)
async def instantiate_template(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    template_id: int,
    request: Optional[TemplateInstantiateRequest] = Body(None),
) -> Any:
    """基于模板创建Dashboard"""
    return await dashboard_service.create_from_template(
        store,
        template_id=template_id,
        user_id=current_user.id,
        name=request.name if request else None,
    )
