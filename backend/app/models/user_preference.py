"""用户偏好模型"""
from sqlalchemy import Column, String, Text, TIMESTAMP, ForeignKey
from sqlalchemy.sql import func

from app.db.base_class import Base


class UserPreference(Base):
    """用户偏好表，按用户ID存储收藏的 Dashboard 列表 (JSON 文本)"""
    __tablename__ = "user_preferences"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    favorites = Column(Text, nullable=False, default="[]")
    updated_at = Column(TIMESTAMP, nullable=False, server_default=func.now(), onupdate=func.now())
