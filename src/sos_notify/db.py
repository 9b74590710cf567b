from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    String,
    create_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from .config import get_settings


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


class Document(Base):
    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String, primary_key=True)
    id: Mapped[str] = mapped_column(String, primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.id}"


# --- Engine & Session factory ---

settings = get_settings()
database_url = settings.database_url or ""

engine = create_engine(
    database_url,
    connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db() -> None:
    """Create tables if they don't exist."""
    Base.metadata.create_all(bind=engine)


def create_document(
    db: Session, collection: str, data: dict[str, Any], doc_id: str | None = None
) -> Document:
    """Insert a new document; the id is generated when not given."""
    doc = Document(collection=collection, id=doc_id or uuid.uuid4().hex, data=data)
    db.add(doc)
    db.commit()
    db.refresh(doc)
    return doc


def get_document(db: Session, collection: str, doc_id: str) -> Document | None:
    return db.get(Document, (collection, doc_id))
