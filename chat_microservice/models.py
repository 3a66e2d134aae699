from datetime import datetime, timezone

from sqlalchemy import create_engine, Column, String, Integer, DateTime, Text
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from chat_microservice.config import Settings


# Modern SQLAlchemy 2.0 syntax
class Base(DeclarativeBase):
    pass


class Response(Base):
    """One prompt/reply exchange"""
    __tablename__ = "responses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    prompt = Column(Text, nullable=False)
    status = Column(String(50), nullable=False)
    created = Column(Integer, nullable=False)
    message = Column(Text, nullable=False)
    total_tokens = Column(Integer, nullable=False, default=0)
    stored_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    def to_record(self) -> dict:
        return {
            "prompt": self.prompt,
            "status": self.status,
            "created": self.created,
            "message": self.message,
            "total_tokens": self.total_tokens,
        }


def get_engine(database_url: str):
    """Build an engine; SQLite needs check_same_thread=False under FastAPI"""
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise each session gets an empty db
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, echo=False, **kwargs)


def get_session_factory(engine):
    """Get SQLAlchemy session factory"""
    return sessionmaker(bind=engine)


def init_db(engine):
    """Initialize database tables"""
    Base.metadata.create_all(engine)


if __name__ == "__main__":
    settings = Settings.from_env()
    init_db(get_engine(settings.database_url))
    print(f"Database tables created for {settings.database_url}")
