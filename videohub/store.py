"""
Store access for maintenance jobs.

Jobs never touch ``db.session`` directly: they receive a ``VideoStore`` bound
to a session and use the handful of bulk operations below. ``open_store``
builds the application, hands out a store and always releases the session and
the engine's connections, whether the job succeeded or not.
"""

import logging
from contextlib import contextmanager

import sqlalchemy as sa

logger = logging.getLogger(__name__)


class VideoStore:
    """Bulk ORM operations over a single SQLAlchemy session."""

    def __init__(self, session):
        self.session = session

    def delete_many(self, model, *criteria):
        """Delete every row of ``model`` matching ``criteria`` and return the row count"""
        stmt = sa.delete(model).where(*criteria).execution_options(synchronize_session=False)
        return self.session.execute(stmt).rowcount

    def update_many(self, model, values, *criteria):
        """Apply ``values`` to every row of ``model`` matching ``criteria``"""
        stmt = sa.update(model).where(*criteria).values(**values).execution_options(synchronize_session=False)
        return self.session.execute(stmt).rowcount

    def count(self, model, *criteria):
        stmt = sa.select(sa.func.count()).select_from(model).where(*criteria)
        return self.session.scalar(stmt)

    def find_many(self, model, *columns, criteria=(), order_by=None, limit=None):
        """
        Return matching rows.

        With ``columns`` the result is a list of row tuples holding only those
        columns, otherwise a list of ``model`` instances.
        """
        stmt = sa.select(*columns) if columns else sa.select(model)
        if columns:
            stmt = stmt.select_from(model)
        stmt = stmt.where(*criteria)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = self.session.execute(stmt)
        return list(result.all() if columns else result.scalars().all())

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    @contextmanager
    def transaction(self):
        """Commit everything done inside the block, or roll all of it back"""
        try:
            yield self
            self.session.commit()
        except Exception:
            logger.warning("↩️ Rolling back transaction")
            self.session.rollback()
            raise


@contextmanager
def open_store(config_name=None, **overrides):
    """Build the app, yield a ``VideoStore`` and release the connection on exit"""
    from videohub import create_app, db

    app = create_app(config_name, **overrides)
    ctx = app.app_context()
    ctx.push()
    try:
        logger.debug("🔌 Store opened")
        yield VideoStore(db.session)
    finally:
        db.session.remove()
        db.engine.dispose()
        ctx.pop()
        logger.debug("🔌 Store released")
