"""数据库连接权限模型"""
from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class DatabasePermission(Base):
    """数据库连接权限表 (permission: read / write)"""
    __tablename__ = "database_permissions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    database_id = Column(Integer, ForeignKey("database_connections.id", ondelete="CASCADE"), nullable=False, index=True)
    entity_type = Column(String(10), nullable=False)  # user, group
    entity_id = Column(String(36), nullable=False, index=True)
    permission = Column(String(10), nullable=False)
    created_at = Column(TIMESTAMP, nullable=False, server_default=func.now())

    # 关系
    connection = relationship("DatabaseConnection", back_populates="permissions")
