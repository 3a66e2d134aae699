# chat_microservice/db_store.py
import logging
from typing import List

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from chat_microservice.models import Response, get_engine, get_session_factory, init_db

logger = logging.getLogger(__name__)


class ExchangeStore:
    """SQLAlchemy-backed store for exchange records"""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = get_engine(database_url)
        self.SessionFactory = get_session_factory(self.engine)

    def _get_db(self) -> DBSession:
        """Get database session (context manager pattern)"""
        return self.SessionFactory()

    def init_schema(self) -> None:
        init_db(self.engine)

    def save(self, record: dict) -> dict:
        """Insert one exchange record and return it as stored.

        Failures are logged and re-raised; the caller decides whether
        the HTTP response depends on them.
        """
        try:
            with self._get_db() as db:
                row = Response(
                    prompt=record["prompt"],
                    status=record["status"],
                    created=record["created"],
                    message=record["message"],
                    total_tokens=record["total_tokens"],
                )
                db.add(row)
                db.commit()
                return row.to_record()
        except SQLAlchemyError:
            logger.exception("Failed to save exchange record")
            raise

    def recent(self, limit: int = 20) -> List[dict]:
        """Newest records first"""
        with self._get_db() as db:
            rows = (
                db.query(Response)
                .order_by(desc(Response.id))
                .limit(limit)
                .all()
            )
            return [r.to_record() for r in rows]

    def dispose(self) -> None:
        self.engine.dispose()


def persist_in_background(store: ExchangeStore, record: dict) -> None:
    """Background-task wrapper around ``store.save``.

    Runs after the response has gone out, so a failure can only be
    reported here.
    """
    try:
        store.save(record)
    except SQLAlchemyError:
        logger.error("Exchange record was not persisted: prompt=%r", record.get("prompt"))
