"""Transaction scope for public service operations.

Every public service function runs its reads and writes inside exactly one
`atomic()` block: the session commits when the block exits cleanly and
rolls back on any exception, which is then re-raised unchanged. Internal
helpers only flush; they never commit.
"""

from contextlib import contextmanager

from organizer.extensions import db


@contextmanager
def atomic():
    """Commit on success, roll back and re-raise on failure."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
