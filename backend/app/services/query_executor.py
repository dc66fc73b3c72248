"""Widget查询执行

目前只支持内置演示数据源: dataSource.databaseId 为 "dummy"，或指向 type=dummy 的连接。
演示源忽略 SQL 内容，返回 dummy_data 集合的全部记录；查询模板仍然会先经过变量绑定，
因此引用未定义变量的查询同样会失败。

其他连接类型 (mysql / postgres / mssql) 抛 UnsupportedDataSource。
"""
from typing import Any, Dict, List, Optional
import logging

from app.core.exceptions import ResourceNotFound, UnsupportedDataSource
from app.db.entity_store import EntityStore
from app.schemas.connection import (
    ColumnSchema,
    ConnectionType,
    DatabaseSchema,
    TableSchema,
)
from app.schemas.widget import DataSource
from app.services.query_binder import BoundQuery

logger = logging.getLogger(__name__)

DEMO_DATABASE_ID = "dummy"

DEMO_SCHEMA = DatabaseSchema(tables=[
    TableSchema(
        name="dummyData",
        columns=[
            ColumnSchema(name="id", type="INTEGER"),
            ColumnSchema(name="category", type="TEXT"),
            ColumnSchema(name="value", type="REAL"),
            ColumnSchema(name="date", type="TEXT"),
            ColumnSchema(name="region", type="TEXT"),
        ],
    )
])

DEMO_COLUMNS = ("id", "category", "value", "date", "region")


def _demo_record(row: Any) -> Dict[str, Any]:
    return {column: getattr(row, column) for column in DEMO_COLUMNS}


class QueryExecutor:
    """Widget查询执行器"""

    async def resolve_connection_type(self, store: EntityStore, *, database_id: str) -> ConnectionType:
        """数据源ID -> 连接类型

        Raises:
            ResourceNotFound: 连接不存在
        """
        if database_id == DEMO_DATABASE_ID:
            return ConnectionType.DUMMY
        try:
            connection_id = int(database_id)
        except (TypeError, ValueError):
            raise ResourceNotFound("Database connection", database_id)

        rows = await store.select("database_connections", {"id": connection_id})
        if not rows:
            raise ResourceNotFound("Database connection", database_id)
        try:
            return ConnectionType(rows[0].type)
        except ValueError:
            raise UnsupportedDataSource(f"Unknown connection type: {rows[0].type}")

    async def fetch_demo_rows(self, store: EntityStore, *, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        rows = await store.select("dummy_data", order_by="id", limit=limit)
        return [_demo_record(row) for row in rows]

    async def execute(
        self,
        store: EntityStore,
        *,
        data_source: DataSource,
        query: BoundQuery,
    ) -> List[Dict[str, Any]]:
        """执行已绑定的查询, 返回记录列表

        Raises:
            ResourceNotFound: 连接不存在
            UnsupportedDataSource: 非演示数据源
            EntityStoreError: 存储层故障
        """
        connection_type = await self.resolve_connection_type(store, database_id=data_source.database_id)
        if connection_type != ConnectionType.DUMMY:
            raise UnsupportedDataSource(
                f"Querying {connection_type.value} connections is not supported",
                details={"database_id": data_source.database_id},
            )

        logger.debug(f"执行演示查询: sql={query.sql!r}, params={query.params}")
        return await self.fetch_demo_rows(store)

    def get_schema(self, connection_type: ConnectionType) -> DatabaseSchema:
        """获取连接的表结构, 只支持演示数据源"""
        if connection_type != ConnectionType.DUMMY:
            raise UnsupportedDataSource(
                f"Schema introspection of {connection_type.value} connections is not supported"
            )
        return DEMO_SCHEMA.model_copy(deep=True)


# 创建全局实例
query_executor = QueryExecutor()
