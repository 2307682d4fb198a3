"""Database engine / session factory for the game archive"""

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.db.schema import Base


def build_session_factory(database_url: str, echo: bool = False) -> sessionmaker[Session]:
    """Engine + session factory. Ensures all tables are created."""
    connect_args = (
        {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    )
    engine = create_engine(database_url, echo=echo, connect_args=connect_args)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autoflush=False, bind=engine)
