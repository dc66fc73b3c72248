from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# SQLite 需要允许跨线程使用同一连接（FastAPI 在线程池中执行同步依赖）
connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    connect_args=connect_args,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session():
    """
    安全的数据库会话 Context Manager

    用于非 FastAPI 依赖注入场景（如启动时的初始化脚本）
    确保会话在使用后正确关闭，即使发生异常

    Usage:
        with get_db_session() as db:
            init_db(db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
