"""Session factory and the write-transaction helper.

The app builds one factory in create_app() and keeps it on app.state;
request handlers and background persistence both open sessions from it.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from luvv.db.engine import get_engine


def create_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """Bind a sessionmaker to `engine`, or to the cached settings engine.

    Rows stay readable after commit, since results are handed to background
    tasks that outlive the request session.
    """
    return sessionmaker(
        bind=engine if engine is not None else get_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


@contextmanager
def transaction(db: Session) -> Iterator[None]:
    """Commit the block's writes, or roll back and re-raise."""
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise
