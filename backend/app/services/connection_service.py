"""数据库连接业务服务

访问规则:
- 创建者始终拥有 read 与 write
- 其他用户通过直接授权或分组授权获得 read / write (精确匹配, 两者之间没有隐含关系)
- 持有 read 或 write 任一权限即可在列表中看到该连接
- 修改、删除、查看授权列表需要 write
"""
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import json
import logging

from app.core.exceptions import AccessDenied, ResourceNotFound, ValidationError
from app.db.entity_store import EntityStore
from app.models.db_connection import DatabaseConnection
from app.schemas.connection import (
    ConnectionCreate,
    ConnectionResponse,
    ConnectionType,
    ConnectionUpdate,
    DatabaseSchema,
)
from app.schemas.dashboard import Variable
from app.schemas.permission import Permission, PermissionGrantResponse, ResourceKind
from app.schemas.widget import DataSource
from app.services.permission_grants import list_grants, replace_grants
from app.services.permission_resolver import permission_resolver
from app.services.query_binder import bind_query
from app.services.query_executor import query_executor

logger = logging.getLogger(__name__)

MASKED_SECRET = "********"
SECRET_KEYS = ("password",)


def _decode_config(raw: Optional[str]) -> Dict[str, Any]:
    try:
        config = json.loads(raw or "{}")
    except ValueError:
        logger.warning("连接配置不是合法的 JSON, 按空配置处理")
        return {}
    return config if isinstance(config, dict) else {}


def mask_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """脱敏: 密码类字段替换为 ********"""
    return {
        key: MASKED_SECRET if key in SECRET_KEYS and value else value
        for key, value in config.items()
    }


class ConnectionService:
    """数据库连接业务服务类"""

    async def get_row(self, store: EntityStore, *, connection_id: int) -> DatabaseConnection:
        rows = await store.select("database_connections", {"id": connection_id})
        if not rows:
            raise ResourceNotFound("Database connection", connection_id)
        return rows[0]

    async def has_permission(
        self,
        store: EntityStore,
        *,
        connection: DatabaseConnection,
        user_id: str,
        permission: Permission,
    ) -> bool:
        if connection.created_by == user_id:
            return True
        return await permission_resolver.check_access(
            store,
            user_id=user_id,
            resource_id=connection.id,
            resource_kind=ResourceKind.DATABASE,
            required_permission=permission,
        )

    async def can_see(self, store: EntityStore, *, connection: DatabaseConnection, user_id: str) -> bool:
        """持有 read 或 write 之一"""
        for permission in (Permission.READ, Permission.WRITE):
            if await self.has_permission(store, connection=connection, user_id=user_id, permission=permission):
                return True
        return False

    async def require_permission(
        self,
        store: EntityStore,
        *,
        connection_id: int,
        user_id: str,
        permission: Optional[Permission] = None,
    ) -> DatabaseConnection:
        """获取连接并校验权限; permission 为 None 时 read/write 任一即可

        Raises:
            ResourceNotFound / AccessDenied / AccessCheckError
        """
        connection = await self.get_row(store, connection_id=connection_id)
        if permission is None:
            allowed = await self.can_see(store, connection=connection, user_id=user_id)
        else:
            allowed = await self.has_permission(
                store, connection=connection, user_id=user_id, permission=permission
            )
        if not allowed:
            required = permission.value if permission else "read"
            raise AccessDenied(user_id=user_id, resource_id=connection_id, permission=required)
        return connection

    async def _to_response(
        self,
        store: EntityStore,
        connection: DatabaseConnection,
        *,
        user_id: str,
    ) -> ConnectionResponse:
        can_write = await self.has_permission(
            store, connection=connection, user_id=user_id, permission=Permission.WRITE
        )
        return ConnectionResponse(
            id=connection.id,
            name=connection.name,
            type=connection.type,
            config=mask_config(_decode_config(connection.config)),
            created_by=connection.created_by,
            can_write=can_write,
            created_at=connection.created_at,
            updated_at=connection.updated_at,
        )

    async def list_connections(self, store: EntityStore, *, user_id: str) -> List[ConnectionResponse]:
        """获取用户可访问(read 或 write)的连接列表"""
        connections = await store.select("database_connections", order_by="name")
        result = []
        for connection in connections:
            if await self.can_see(store, connection=connection, user_id=user_id):
                result.append(await self._to_response(store, connection, user_id=user_id))
        return result

    async def get_connection(self, store: EntityStore, *, connection_id: int, user_id: str) -> ConnectionResponse:
        connection = await self.require_permission(store, connection_id=connection_id, user_id=user_id)
        return await self._to_response(store, connection, user_id=user_id)

    def _prepare_config(
        self,
        obj_in: ConnectionCreate,
        *,
        existing: Optional[Dict[str, Any]] = None,
    ) -> str:
        if obj_in.type == ConnectionType.DUMMY:
            return "{}"
        config = dict(obj_in.config)
        # 提交脱敏值表示沿用原密码
        for key in SECRET_KEYS:
            if config.get(key) == MASKED_SECRET:
                if existing and key in existing:
                    config[key] = existing[key]
                else:
                    config.pop(key)
        return json.dumps(config)

    async def create_connection(
        self,
        store: EntityStore,
        *,
        obj_in: ConnectionCreate,
        user_id: str,
    ) -> ConnectionResponse:
        """创建连接, 创建者获得 read/write 授权"""
        name = (obj_in.name or "").strip()
        if not name:
            raise ValidationError("Connection name is required")

        async with store.transaction():
            rows = await store.insert("database_connections", [{
                "name": name,
                "type": obj_in.type.value,
                "config": self._prepare_config(obj_in),
                "created_by": user_id,
            }])
            connection = rows[0]
            await replace_grants(
                store,
                resource_kind=ResourceKind.DATABASE,
                resource_id=connection.id,
                grants=obj_in.permissions,
                creator_id=user_id,
            )

        logger.info(f"创建数据库连接: id={connection.id}, type={obj_in.type.value}, user={user_id}")
        return await self._to_response(store, connection, user_id=user_id)

    async def update_connection(
        self,
        store: EntityStore,
        *,
        connection_id: int,
        obj_in: ConnectionUpdate,
        user_id: str,
    ) -> ConnectionResponse:
        """整体保存连接 (需要 write), 授权整体替换"""
        connection = await self.require_permission(
            store, connection_id=connection_id, user_id=user_id, permission=Permission.WRITE
        )
        name = (obj_in.name or "").strip()
        if not name:
            raise ValidationError("Connection name is required")

        config = self._prepare_config(obj_in, existing=_decode_config(connection.config))
        async with store.transaction():
            rows = await store.update("database_connections", {
                "name": name,
                "type": obj_in.type.value,
                "config": config,
                "updated_at": datetime.now(timezone.utc),
            }, {"id": connection_id})
            await replace_grants(
                store,
                resource_kind=ResourceKind.DATABASE,
                resource_id=connection_id,
                grants=obj_in.permissions,
                creator_id=connection.created_by,
            )

        logger.info(f"保存数据库连接: id={connection_id}, user={user_id}")
        return await self._to_response(store, rows[0], user_id=user_id)

    async def delete_connection(self, store: EntityStore, *, connection_id: int, user_id: str) -> None:
        await self.require_permission(
            store, connection_id=connection_id, user_id=user_id, permission=Permission.WRITE
        )
        async with store.transaction():
            await store.delete("database_permissions", {"database_id": connection_id})
            await store.delete("database_connections", {"id": connection_id})
        logger.info(f"删除数据库连接: id={connection_id}, user={user_id}")

    async def list_permissions(
        self,
        store: EntityStore,
        *,
        connection_id: int,
        user_id: str,
    ) -> List[PermissionGrantResponse]:
        await self.require_permission(
            store, connection_id=connection_id, user_id=user_id, permission=Permission.WRITE
        )
        return await list_grants(store, resource_kind=ResourceKind.DATABASE, resource_id=connection_id)

    async def get_schema(self, store: EntityStore, *, connection_id: int, user_id: str) -> DatabaseSchema:
        """获取连接的表结构 (需要 read 或 write)"""
        connection = await self.require_permission(store, connection_id=connection_id, user_id=user_id)
        return query_executor.get_schema(ConnectionType(connection.type))

    async def execute(
        self,
        store: EntityStore,
        *,
        connection_id: int,
        user_id: str,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """在连接上执行查询 (需要 read), 目前只支持演示数据源

        variables 中的值按同名 ${name} 绑定
        """
        await self.require_permission(
            store, connection_id=connection_id, user_id=user_id, permission=Permission.READ
        )
        declared = [Variable(name=name, default_value=value) for name, value in (variables or {}).items()]
        bound = bind_query(query, declared)
        return await query_executor.execute(
            store,
            data_source=DataSource(database_id=str(connection_id), query=query),
            query=bound,
        )


# 创建全局实例
connection_service = ConnectionService()
