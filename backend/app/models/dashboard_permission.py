"""Dashboard权限模型"""
from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class DashboardPermission(Base):
    """Dashboard权限表

    entity_type=user 时 entity_id 为用户ID，entity_type=group 时为分组ID的字符串形式
    """
    __tablename__ = "dashboard_permissions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    dashboard_id = Column(Integer, ForeignKey("dashboards.id", ondelete="CASCADE"), nullable=False, index=True)
    entity_type = Column(String(10), nullable=False)  # user, group
    entity_id = Column(String(36), nullable=False, index=True)
    permission = Column(String(10), nullable=False)  # view, edit
    created_at = Column(TIMESTAMP, nullable=False, server_default=func.now())

    # 关系
    dashboard = relationship("Dashboard", back_populates="permissions")
