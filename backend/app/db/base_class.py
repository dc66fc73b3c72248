from typing import Any

from sqlalchemy.orm import as_declarative, declared_attr


@as_declarative()
class Base:
    id: Any
    __name__: str

    # 默认表名取类名小写，模型可通过 __tablename__ 覆盖
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower()
