# snippetbox/models/database.py
"""
Relational storage for snippets and users.

SQLAlchemy 2.0 ORM, synchronous. Any SQLAlchemy URL works as the DSN;
SQLite is the development default.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint, create_engine, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Naive UTC timestamp, the form stored in every DateTime column"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class Snippet(Base):
    __tablename__ = "snippets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    expires: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Snippet(id={self.id!r}, title={self.title!r})>"


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="users_uc_email"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    created: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, email={self.email!r})>"


class Database:
    """Engine and session factory shared by the models"""

    def __init__(self, dsn: str, echo: bool = False):
        connect_args = {"check_same_thread": False} if dsn.startswith("sqlite") else {}
        self.dsn = dsn
        self.engine = create_engine(dsn, echo=echo, pool_pre_ping=True, connect_args=connect_args)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_all(self) -> None:
        Base.metadata.create_all(self.engine)
        logger.info(f"Database schema ready ({self.engine.url.get_backend_name()})")

    def health_check(self) -> Dict[str, Any]:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"healthy": True, "status": "connected"}
        except Exception as e:
            logger.warning(f"Database health check failed: {type(e).__name__}")
            return {"healthy": False, "status": "error"}

    def dispose(self) -> None:
        self.engine.dispose()
