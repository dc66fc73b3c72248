"""用户分组 API端点"""
from typing import Any, List

from fastapi import APIRouter, Depends, Response, status

from app.api import deps
from app.db.entity_store import EntityStore
from app.models.user import User
from app.schemas.user_group import (
    GroupMemberCreate,
    GroupMemberListResponse,
    GroupMembership,
    UserGroupCreate,
    UserGroupResponse,
    UserGroupUpdate,
)
from app.services.user_group_service import user_group_service

router = APIRouter()


@router.get("/", response_model=List[UserGroupResponse])
async def read_groups(
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
) -> Any:
    return await user_group_service.list_groups(store)


@router.post("/", response_model=UserGroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    group_in: UserGroupCreate,
) -> Any:
    return await user_group_service.create_group(store, obj_in=group_in)


@router.get("/{group_id}", response_model=UserGroupResponse)
async def read_group(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    group_id: int,
) -> Any:
    return await user_group_service.get_group(store, group_id=group_id)


@router.put("/{group_id}", response_model=UserGroupResponse)
async def update_group(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    group_id: int,
    group_in: UserGroupUpdate,
) -> Any:
    return await user_group_service.update_group(store, group_id=group_id, obj_in=group_in)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    group_id: int,
) -> Response:
    """删除分组, 授予该分组的授权一并删除"""
    await user_group_service.delete_group(store, group_id=group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{group_id}/members", response_model=GroupMemberListResponse)
async def read_members(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    group_id: int,
) -> Any:
    members = await user_group_service.list_members(store, group_id=group_id)
    return GroupMemberListResponse(members=members)


@router.post("/{group_id}/members", response_model=GroupMembership, status_code=status.HTTP_201_CREATED)
async def add_member(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    group_id: int,
    member_in: GroupMemberCreate,
) -> Any:
    return await user_group_service.add_member(store, group_id=group_id, user_id=member_in.user_id)


@router.delete("/{group_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    group_id: int,
    user_id: str,
) -> Response:
    await user_group_service.remove_member(store, group_id=group_id, user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
