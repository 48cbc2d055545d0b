"""
数据库配置 - SQLAlchemy 持久化层
仅供 SQL 仓储实现使用，工作流核心不直接依赖数据库
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from housekeeping.config import settings


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """初始化数据库表"""
    from housekeeping.models import ontology  # noqa
    Base.metadata.create_all(bind=bind or engine)
