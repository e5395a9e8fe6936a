from contextlib import contextmanager
from typing import Any, Callable, Dict, Optional

from flask import g
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from trivia.errors import ConcurrentUpdate


class Store:
    """Transactional document access over the Flask-SQLAlchemy session.

    Each public game operation runs inside exactly one ``transaction()``.
    Nested ``transaction()`` calls join the outer one. Hooks registered with
    ``on_commit`` run after the outermost commit and are discarded on
    rollback, so side effects (timers, socket pushes) only follow committed
    state.
    """

    def __init__(self, db):
        self.db = db

    @property
    def session(self):
        return self.db.session

    @contextmanager
    def transaction(self):
        depth = g.get('_store_depth', 0)
        if depth:
            g._store_depth = depth + 1
            try:
                yield self
            finally:
                g._store_depth = depth
            return

        g._store_depth = 1
        g._store_hooks = []
        # Invariant checks must see committed rows, never cached ones
        self.session.expire_all()
        try:
            yield self
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            g._store_hooks = []
            raise ConcurrentUpdate('Another request changed this record at the same time; try again.') from exc
        except Exception:
            self.session.rollback()
            g._store_hooks = []
            raise
        finally:
            g._store_depth = 0

        hooks, g._store_hooks = g._store_hooks, []
        for hook in hooks:
            hook()

    def on_commit(self, hook: Callable[[], Any]) -> None:
        if not g.get('_store_depth', 0):
            hook()
            return
        g._store_hooks.append(hook)

    def get(self, model, ident, for_update: bool = False):
        if ident is None:
            return None
        if not for_update:
            return self.session.get(model, ident)
        stmt = (
            select(model)
            .where(model.id == ident)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def first(self, model, **filters):
        stmt = select(model).filter_by(**filters).order_by(model.id)
        return self.session.execute(stmt).scalars().first()

    def query_by_index(self, model, field: str, value):
        stmt = select(model).where(getattr(model, field) == value).order_by(model.id)
        return list(self.session.execute(stmt).scalars().all())

    def insert(self, model, **fields):
        obj = model(**fields)
        self.session.add(obj)
        self.session.flush()
        return obj

    def patch(self, model, ident, fields: Dict[str, Any], expect: Optional[Dict[str, Any]] = None) -> bool:
        """Single UPDATE; with ``expect`` it only applies while those columns still match."""
        stmt = update(model).where(model.id == ident)
        for name, value in (expect or {}).items():
            stmt = stmt.where(getattr(model, name) == value)
        result = self.session.execute(stmt.values(**fields))
        return result.rowcount > 0

    def increment(self, model, ident, field: str, amount: int) -> bool:
        column = getattr(model, field)
        result = self.session.execute(
            update(model).where(model.id == ident).values({field: column + amount})
        )
        return result.rowcount > 0

    def delete(self, obj) -> None:
        self.session.delete(obj)
        self.session.flush()

    def upsert(self, model, keys: Dict[str, Any], create: Dict[str, Any], changes: Dict[str, Any]):
        """Insert ``keys + create`` or patch ``changes`` onto the existing row.

        Returns ``(row, created)``. A racing insert of the same keys fails the
        unique constraint and surfaces as ``ConcurrentUpdate`` at commit.
        """
        existing = self.first(model, **keys)
        if existing is None:
            return self.insert(model, **keys, **create), True
        self.patch(model, existing.id, changes)
        return existing, False
