"""Dashboard模型"""
from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class Dashboard(Base):
    """Dashboard仪表盘表

    layout 以 JSON 文本整体存储 {"widgets": [...], "variables": [...]}，
    每次加载时都要重新解析校验（见 DashboardLayout）
    """
    __tablename__ = "dashboards"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    layout = Column(Text, nullable=False, default='{"widgets": [], "variables": []}')
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(TIMESTAMP, nullable=False, server_default=func.now(), index=True)
    updated_at = Column(TIMESTAMP, nullable=False, server_default=func.now(), onupdate=func.now())

    # 关系
    owner = relationship("User", back_populates="owned_dashboards", foreign_keys=[created_by])
    permissions = relationship("DashboardPermission", back_populates="dashboard", cascade="all, delete-orphan")
