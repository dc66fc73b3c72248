"""用户分组模型"""
from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class UserGroup(Base):
    """用户分组表"""
    __tablename__ = "user_groups"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP, nullable=False, server_default=func.now(), onupdate=func.now())

    # 关系
    members = relationship("UserGroupMember", back_populates="group", cascade="all, delete-orphan")


class UserGroupMember(Base):
    """分组成员表 (User <-> UserGroup 多对多)"""
    __tablename__ = "user_group_members"
    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="uq_user_group_member"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(Integer, ForeignKey("user_groups.id", ondelete="CASCADE"), nullable=False, index=True)

    # 关系
    user = relationship("User", back_populates="group_memberships")
    group = relationship("UserGroup", back_populates="members")
