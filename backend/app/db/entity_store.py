"""Entity Store: 以命名集合暴露的持久层接口

所有业务服务都只通过这里访问数据库：
    select(collection, filters) / insert(collection, records)
    update(collection, patch, filters) / delete(collection, filters)

接口是异步的（调用方可能在此挂起），底层使用同步 SQLAlchemy Session。
SQLAlchemy 异常统一包装为 EntityStoreError，调用方可以区分
“查不到”（空列表）与“查询失败”（异常）。

需要原子性的写操作放在 transaction() 中执行：块内的写入只 flush，
块正常结束时统一 commit，出现异常则整体 rollback。
"""
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import crud
from app.crud.base import CRUDBase
from app.core.exceptions import EntityStoreError

logger = logging.getLogger(__name__)


COLLECTIONS: Dict[str, CRUDBase] = {
    "users": crud.user,
    "dashboards": crud.crud_dashboard,
    "dashboard_permissions": crud.crud_dashboard_permission,
    "dashboard_templates": crud.crud_dashboard_template,
    "database_connections": crud.crud_database_connection,
    "database_permissions": crud.crud_database_permission,
    "user_groups": crud.crud_user_group,
    "user_group_members": crud.crud_user_group_member,
    "user_preferences": crud.crud_user_preference,
    "dummy_data": crud.crud_dummy_data,
}


class EntityStore:
    """绑定到一个数据库会话的 Entity Store"""

    def __init__(self, db: Session):
        self.db = db
        self._transaction_depth = 0

    def _collection(self, name: str) -> CRUDBase:
        try:
            return COLLECTIONS[name]
        except KeyError:
            raise EntityStoreError(f"Unknown collection: {name}")

    @property
    def in_transaction(self) -> bool:
        return self._transaction_depth > 0

    def _fail(self, action: str, collection: str, exc: Exception) -> EntityStoreError:
        logger.error(f"EntityStore {action} 失败: collection={collection}, error={exc}")
        if not self.in_transaction:
            self.db.rollback()
        return EntityStoreError(f"Failed to {action} '{collection}'", details={"collection": collection})

    async def select(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        *,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Any]:
        """按条件查询, 没有匹配时返回空列表"""
        crud_obj = self._collection(collection)
        try:
            return crud_obj.select(self.db, filters=filters, order_by=order_by, limit=limit)
        except (SQLAlchemyError, AttributeError) as e:
            raise self._fail("select", collection, e) from e

    async def insert(self, collection: str, records: Iterable[Dict[str, Any]]) -> List[Any]:
        records = list(records)
        if not records:
            return []
        crud_obj = self._collection(collection)
        try:
            return crud_obj.insert(self.db, records=records, commit=not self.in_transaction)
        except (SQLAlchemyError, TypeError) as e:
            raise self._fail("insert", collection, e) from e

    async def update(
        self,
        collection: str,
        patch: Dict[str, Any],
        filters: Dict[str, Any],
    ) -> List[Any]:
        """按条件更新, 返回更新后的记录"""
        crud_obj = self._collection(collection)
        try:
            return crud_obj.update_where(
                self.db, patch=patch, filters=filters, commit=not self.in_transaction
            )
        except (SQLAlchemyError, AttributeError) as e:
            raise self._fail("update", collection, e) from e

    async def delete(self, collection: str, filters: Dict[str, Any]) -> int:
        """按条件删除, 返回删除的行数"""
        crud_obj = self._collection(collection)
        try:
            return crud_obj.delete_where(self.db, filters=filters, commit=not self.in_transaction)
        except (SQLAlchemyError, AttributeError, ValueError) as e:
            raise self._fail("delete", collection, e) from e

    @asynccontextmanager
    async def transaction(self):
        """原子写入块, 可嵌套; 最外层结束时提交"""
        self._transaction_depth += 1
        try:
            yield self
        except BaseException:
            self._transaction_depth -= 1
            if self._transaction_depth == 0:
                self.db.rollback()
            raise
        else:
            self._transaction_depth -= 1
            if self._transaction_depth == 0:
                try:
                    self.db.commit()
                except SQLAlchemyError as e:
                    self.db.rollback()
                    logger.error(f"EntityStore 提交事务失败: {e}")
                    raise EntityStoreError("Failed to commit transaction") from e
