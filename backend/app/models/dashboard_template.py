"""Dashboard模板模型"""
from sqlalchemy import Column, Integer, String, Text, TIMESTAMP
from sqlalchemy.sql import func

from app.db.base_class import Base


class DashboardTemplate(Base):
    """Dashboard模板表，内置模板的 created_by 为 "system" """
    __tablename__ = "dashboard_templates"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    layout = Column(Text, nullable=False)
    created_by = Column(String(36), nullable=False)
    created_at = Column(TIMESTAMP, nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP, nullable=False, server_default=func.now(), onupdate=func.now())
