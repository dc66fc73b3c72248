"""用户模型"""
import uuid

from sqlalchemy import Column, String, Boolean, TIMESTAMP
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class User(Base):
    """用户表

    用户 ID 对其他模块是不透明字符串，权限表的 entity_id 直接存储该值
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, nullable=False, server_default=func.now())
    last_login_at = Column(TIMESTAMP, nullable=True)

    # 关系
    owned_dashboards = relationship("Dashboard", back_populates="owner", foreign_keys="Dashboard.created_by")
    group_memberships = relationship("UserGroupMember", back_populates="user", cascade="all, delete-orphan")
