import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# 测试不连接真实数据库, 也不在导入 app 时写入演示数据
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_DEMO_DATA", "false")

from app.core.security import get_password_hash  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.entity_store import EntityStore  # noqa: E402
from app.db.init_db import build_demo_rows  # noqa: E402
from app.models.dummy_data import DummyData  # noqa: E402
from app.models.user import User  # noqa: E402
from app.models.user_group import UserGroup, UserGroupMember  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return EntityStore(db)


@pytest.fixture
def make_user(db):
    """创建用户的工厂"""
    def _make_user(user_id: str, email: str = None, password: str = "secret123", name: str = None) -> User:
        user = User(
            id=user_id,
            email=email or f"{user_id}@example.com",
            name=name or user_id,
            password_hash=get_password_hash(password),
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def users(make_user):
    """三个用户: alice / bob / carol"""
    return {name: make_user(name) for name in ("alice", "bob", "carol")}


@pytest.fixture
def make_group(db):
    """创建分组并添加成员的工厂"""
    def _make_group(name: str, member_ids=()) -> UserGroup:
        group = UserGroup(name=name)
        db.add(group)
        db.flush()
        for user_id in member_ids:
            db.add(UserGroupMember(user_id=user_id, group_id=group.id))
        db.commit()
        db.refresh(group)
        return group
    return _make_group


@pytest.fixture
def demo_data(db):
    """写入演示数据"""
    rows = build_demo_rows()
    db.add_all([DummyData(**row) for row in rows])
    db.commit()
    return rows
