from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.db.base_class import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

# filters 的取值为 list/tuple/set 时按 IN 处理
_MULTI_VALUE_TYPES = (list, tuple, set, frozenset)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    def __init__(self, model: Type[ModelType]):
        """
        CRUD object with default methods to Read and Update single rows,
        plus filter-based select / insert / update / delete used by the EntityStore.

        **Parameters**

        * `model`: A SQLAlchemy model class
        """
        self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return db.get(self.model, id)

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]]
    ) -> ModelType:
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    # ===== 按条件批量操作 (EntityStore 使用) =====

    def _filtered(self, db: Session, filters: Optional[Dict[str, Any]]):
        query = db.query(self.model)
        for field, value in (filters or {}).items():
            column = getattr(self.model, field, None)
            if column is None:
                raise AttributeError(f"{self.model.__name__} has no field '{field}'")
            if isinstance(value, _MULTI_VALUE_TYPES):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)
        return query

    def select(
        self,
        db: Session,
        *,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ModelType]:
        """按条件查询

        Args:
            filters: {字段: 值}, 值为列表时按 IN 匹配; 空列表匹配不到任何行
            order_by: 排序字段, "-" 前缀表示降序
            limit: 最大返回数量
        """
        query = self._filtered(db, filters)
        if order_by:
            descending = order_by.startswith("-")
            column = getattr(self.model, order_by.lstrip("-"))
            query = query.order_by(column.desc() if descending else column)
        else:
            query = query.order_by(*self.model.__mapper__.primary_key)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def insert(
        self,
        db: Session,
        *,
        records: Iterable[Dict[str, Any]],
        commit: bool = True,
    ) -> List[ModelType]:
        objs = [self.model(**record) for record in records]
        db.add_all(objs)
        db.flush()
        if commit:
            db.commit()
            for obj in objs:
                db.refresh(obj)
        return objs

    def update_where(
        self,
        db: Session,
        *,
        patch: Dict[str, Any],
        filters: Dict[str, Any],
        commit: bool = True,
    ) -> List[ModelType]:
        objs = self._filtered(db, filters).all()
        for obj in objs:
            for field, value in patch.items():
                setattr(obj, field, value)
        db.flush()
        if commit:
            db.commit()
            for obj in objs:
                db.refresh(obj)
        return objs

    def delete_where(
        self,
        db: Session,
        *,
        filters: Dict[str, Any],
        commit: bool = True,
    ) -> int:
        if not filters:
            raise ValueError("delete_where requires at least one filter")
        objs = self._filtered(db, filters).all()
        for obj in objs:
            db.delete(obj)
        db.flush()
        if commit:
            db.commit()
        return len(objs)
