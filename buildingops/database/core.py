from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from buildingops.settings import DATABASE_URL

engine = create_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@contextmanager
def get_session(session_factory=SessionLocal):
    db: Session = session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=engine):
    # Entities must be imported so their tables are registered on Base
    from buildingops.entities import (  # noqa: F401
        building_space, inspection, issue, photo, space_summary, work_completion
    )
    Base.metadata.create_all(bind=bind)
