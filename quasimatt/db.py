"""
Database abstraction for Postgres and an in-memory test implementation.
"""

from __future__ import annotations

import itertools
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Protocol

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    create_engine,
    event,
    func,
    select,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoreError(Exception):
    """Raised when the underlying store rejects or fails a statement."""


class DbClient(Protocol):
    """Interface for database access."""

    def initialize(self) -> None:
        ...

    def close(self) -> None:
        ...

    def list_questions(self) -> List["QuestionRecord"]:
        ...

    def create_question(self, text: Optional[str]) -> "QuestionRecord":
        ...

    def list_responses(self, question_id: int) -> List["ResponseRecord"]:
        ...

    def create_response(
        self, question_id: int, text: Optional[str]
    ) -> "ResponseRecord":
        ...


@dataclass
class QuestionRecord:
    id: int
    text: str
    timestamp: datetime

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "timestamp": self.timestamp,
        }


@dataclass
class ResponseRecord:
    id: int
    question_id: int
    text: str
    timestamp: datetime

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "question_id": self.question_id,
            "text": self.text,
            "timestamp": self.timestamp,
        }


@dataclass
class InMemoryDbClient:
    """Simple in-memory store for development and tests.

    Mirrors the constraints the SQL schema enforces: text is NOT NULL and a
    response must reference an existing question.
    """

    questions: Dict[int, QuestionRecord] = field(default_factory=dict)
    responses: Dict[int, ResponseRecord] = field(default_factory=dict)

    def __post_init__(self):
        self._question_ids = itertools.count(1)
        self._response_ids = itertools.count(1)

    def initialize(self) -> None:
        pass

    def close(self) -> None:
        pass

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.questions.clear()
        self.responses.clear()
        self._question_ids = itertools.count(1)
        self._response_ids = itertools.count(1)

    def list_questions(self) -> List[QuestionRecord]:
        return sorted(
            self.questions.values(),
            key=lambda q: (q.timestamp, q.id),
            reverse=True,
        )

    def create_question(self, text: Optional[str]) -> QuestionRecord:
        if text is None:
            raise StoreError(
                'null value in column "text" of relation "questions" '
                "violates not-null constraint"
            )
        record = QuestionRecord(
            id=next(self._question_ids), text=text, timestamp=_utcnow()
        )
        self.questions[record.id] = record
        return record

    def list_responses(self, question_id: int) -> List[ResponseRecord]:
        return sorted(
            (r for r in self.responses.values() if r.question_id == question_id),
            key=lambda r: (r.timestamp, r.id),
        )

    def create_response(
        self, question_id: int, text: Optional[str]
    ) -> ResponseRecord:
        if text is None:
            raise StoreError(
                'null value in column "text" of relation "responses" '
                "violates not-null constraint"
            )
        if question_id not in self.questions:
            raise StoreError(
                'insert or update on table "responses" violates foreign key '
                'constraint "responses_question_id_fkey"'
            )
        record = ResponseRecord(
            id=next(self._response_ids),
            question_id=question_id,
            text=text,
            timestamp=_utcnow(),
        )
        self.responses[record.id] = record
        return record


def _describe(exc: SQLAlchemyError) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig).strip()
    return str(exc)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(
        self, database_url: str, *, pool_size: int = 5, max_overflow: int = 10
    ):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        if database_url.startswith("postgres://"):
            # Hosted Postgres providers hand out the legacy scheme.
            database_url = "postgresql://" + database_url[len("postgres://"):]
        url = make_url(database_url)
        if url.get_backend_name() == "sqlite":
            engine_kwargs: dict = {"connect_args": {"check_same_thread": False}}
            if url.database in (None, "", ":memory:"):
                # One shared connection, otherwise every checkout sees an empty DB.
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs = {
                "pool_size": pool_size,
                "max_overflow": max_overflow,
                "pool_pre_ping": True,
                "pool_recycle": 1800,
            }
        self.engine = create_engine(url, future=True, **engine_kwargs)
        if url.get_backend_name() == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )

    def initialize(self) -> None:
        """Create the tables if they do not exist yet."""
        Base.metadata.create_all(self.engine)
        logger.info("Schema ready on %s", self.engine.url.render_as_string())

    def close(self) -> None:
        self.engine.dispose()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self.Session()
        try:
            yield session
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(_describe(exc)) from exc
        finally:
            session.close()

    def _to_question_record(self, row: "QuestionRow") -> QuestionRecord:
        return QuestionRecord(id=row.id, text=row.text, timestamp=row.timestamp)

    def _to_response_record(self, row: "ResponseRow") -> ResponseRecord:
        return ResponseRecord(
            id=row.id,
            question_id=row.question_id,
            text=row.text,
            timestamp=row.timestamp,
        )

    def list_questions(self) -> List[QuestionRecord]:
        with self._session() as session:
            stmt = select(QuestionRow).order_by(
                QuestionRow.timestamp.desc(), QuestionRow.id.desc()
            )
            rows = session.execute(stmt).scalars().all()
            return [self._to_question_record(row) for row in rows]

    def create_question(self, text: Optional[str]) -> QuestionRecord:
        with self._session() as session:
            row = QuestionRow(text=text)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_question_record(row)

    def list_responses(self, question_id: int) -> List[ResponseRecord]:
        with self._session() as session:
            stmt = (
                select(ResponseRow)
                .where(ResponseRow.question_id == question_id)
                .order_by(ResponseRow.timestamp.asc(), ResponseRow.id.asc())
            )
            rows = session.execute(stmt).scalars().all()
            return [self._to_response_record(row) for row in rows]

    def create_response(
        self, question_id: int, text: Optional[str]
    ) -> ResponseRecord:
        with self._session() as session:
            row = ResponseRow(question_id=question_id, text=text)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_response_record(row)


Base = declarative_base()


class QuestionRow(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    timestamp = Column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )


class ResponseRow(Base):
    __tablename__ = "responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(
        Integer, ForeignKey("questions.id"), nullable=False, index=True
    )
    text = Column(Text, nullable=False)
    timestamp = Column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now()
    )
