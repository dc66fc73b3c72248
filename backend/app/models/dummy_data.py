from sqlalchemy import Column, Integer, String, Float

from app.db.base_class import Base


class DummyData(Base):
    """内置演示数据源 (databaseId="dummy")"""
    __tablename__ = "dummy_data"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    category = Column(String(100), nullable=False)
    value = Column(Float, nullable=False)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    region = Column(String(100), nullable=False)
