"""数据库连接 API端点"""
from typing import Any, List

from fastapi import APIRouter, Depends, Response, status

from app.api import deps
from app.db.entity_store import EntityStore
from app.models.user import User
from app.schemas.connection import (
    ConnectionCreate,
    ConnectionQueryRequest,
    ConnectionQueryResponse,
    ConnectionResponse,
    ConnectionUpdate,
    DatabaseSchema,
)
from app.schemas.permission import PermissionListResponse
from app.services.connection_service import connection_service
from app.services.query_executor import DEMO_SCHEMA

router = APIRouter()


@router.get("/", response_model=List[ConnectionResponse])
async def read_connections(
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Retrieve the connections the current user can read or write.
    """
    return await connection_service.list_connections(store, user_id=current_user.id)


@router.get("/dummy/schema", response_model=DatabaseSchema)
def read_demo_schema(
    current_user: User = Depends(deps.get_current_active_user),
) -> Any:
    """
    Schema of the built-in demo source.
    """
    return DEMO_SCHEMA


@router.post("/", response_model=ConnectionResponse, status_code=status.HTTP_201_CREATED)
async def create_connection(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    connection_in: ConnectionCreate,
) -> Any:
    """
    Create a connection; the creator is granted read and write.
    """
    return await connection_service.create_connection(store, obj_in=connection_in, user_id=current_user.id)


@router.get("/{connection_id}", response_model=ConnectionResponse)
async def read_connection(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    connection_id: int,
) -> Any:
    return await connection_service.get_connection(store, connection_id=connection_id, user_id=current_user.id)


@router.put("/{connection_id}", response_model=ConnectionResponse)
async def update_connection(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    connection_id: int,
    connection_in: ConnectionUpdate,
) -> Any:
    """
    Save a connection; its permission set is replaced wholesale.
    """
    return await connection_service.update_connection(
        store, connection_id=connection_id, obj_in=connection_in, user_id=current_user.id
    )


@router.delete("/{connection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_connection(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    connection_id: int,
) -> Response:
    await connection_service.delete_connection(store, connection_id=connection_id, user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{connection_id}/permissions", response_model=PermissionListResponse)
async def read_connection_permissions(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    connection_id: int,
) -> Any:
    permissions = await connection_service.list_permissions(
        store, connection_id=connection_id, user_id=current_user.id
    )
    return PermissionListResponse(permissions=permissions)


@router.get("/{connection_id}/schema", response_model=DatabaseSchema)
async def read_connection_schema(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    connection_id: int,
) -> Any:
    """
    Tables and columns of a connection (demo source only).
    """
    return await connection_service.get_schema(store, connection_id=connection_id, user_id=current_user.id)


@router.post("/{connection_id}/query", response_model=ConnectionQueryResponse)
async def execute_query(
    *,
    store: EntityStore = Depends(deps.get_store),
    current_user: User = Depends(deps.get_current_active_user),
    connection_id: int,
    query_in: ConnectionQueryRequest,
) -> Any:
    rows = await connection_service.execute(
        store,
        connection_id=connection_id,
        user_id=current_user.id,
        query=query_in.query,
        variables=query_in.variables,
    )
    return ConnectionQueryResponse(rows=rows, row_count=len(rows))
