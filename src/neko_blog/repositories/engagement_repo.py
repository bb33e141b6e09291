"""Data access helpers for engagement records and their denormalized counters."""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import String, cast, delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from neko_blog.db.time import utcnow
from neko_blog.models.engagement import Engagement, EngagementKind, TargetKind
from neko_blog.models.user import User

from .targets import COUNTER_COLUMNS, TARGET_MODELS, TargetRef

__all__ = ["EngagementRepository"]

_UNIQUE_COLUMNS = ["actor_id", "target_kind", "target_key", "kind"]


class EngagementRepository:
    """Reads and writes engagement records through a SQLAlchemy session.

    Writes are issued as single statements so the store evaluates each
    predicate and write atomically; committing is left to the caller.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(Engagement)
        if dialect == "sqlite":
            return sqlite.insert(Engagement)
        raise NotImplementedError(f"engagement upserts are not supported on {dialect}")

    def _filter(self, actor_id: int, target: TargetRef, kind: EngagementKind) -> tuple:
        return (
            Engagement.actor_id == actor_id,
            Engagement.target_kind == target.kind.value,
            Engagement.target_key == target.key,
            Engagement.kind == kind.value,
        )

    def add(self, actor_id: int, target: TargetRef, kind: EngagementKind) -> bool:
        """Insert the record unless it already exists.

        Returns:
            True if a record was inserted, False if one was already present.
        """
        stmt = (
            self._insert()
            .values(
                actor_id=actor_id,
                target_kind=target.kind.value,
                target_key=target.key,
                kind=kind.value,
                created_at=utcnow(),
            )
            .on_conflict_do_nothing()
        )
        result = self.session.execute(stmt)
        return result.rowcount == 1

    def upsert(
        self,
        actor_id: int,
        target: TargetRef,
        kind: EngagementKind,
        timestamp: datetime | None = None,
    ) -> None:
        """Create the record or overwrite its timestamp (last write wins)."""
        stamp = timestamp or utcnow()
        stmt = self._insert().values(
            actor_id=actor_id,
            target_kind=target.kind.value,
            target_key=target.key,
            kind=kind.value,
            created_at=stamp,
        )
        stmt = stmt.on_conflict_do_update(index_elements=_UNIQUE_COLUMNS, set_={"created_at": stamp})
        self.session.execute(stmt)

    def remove(self, actor_id: int, target: TargetRef, kind: EngagementKind) -> bool:
        """Delete the record; False means there was nothing to delete."""
        result = self.session.execute(
            delete(Engagement).where(*self._filter(actor_id, target, kind))
        )
        return result.rowcount > 0

    def contains(self, actor_id: int, target: TargetRef, kind: EngagementKind) -> bool:
        row = self.session.execute(
            select(Engagement.id).where(*self._filter(actor_id, target, kind))
        ).first()
        return row is not None

    def count_by_target(self, target: TargetRef, kind: EngagementKind) -> int:
        return self.session.execute(
            select(func.count())
            .select_from(Engagement)
            .where(
                Engagement.target_kind == target.kind.value,
                Engagement.target_key == target.key,
                Engagement.kind == kind.value,
            )
        ).scalar_one()

    def bump_counter(self, target: TargetRef, kind: EngagementKind, delta: int) -> None:
        """Atomically add ``delta`` to the target's counter for ``kind``."""
        model = target.model
        column = getattr(model, COUNTER_COLUMNS[kind])
        self.session.execute(
            update(model).where(model.id == target.id).values({column: column + delta})
        )

    def bump_following(self, actor_id: int, delta: int) -> None:
        self.session.execute(
            update(User)
            .where(User.id == actor_id)
            .values(following_count=User.following_count + delta)
        )

    def list_target_keys(
        self, actor_id: int, target_kind: TargetKind, kind: EngagementKind
    ) -> list[str]:
        """Return keys of targets the actor engaged with, oldest first."""
        rows = self.session.execute(
            select(Engagement.target_key)
            .where(
                Engagement.actor_id == actor_id,
                Engagement.target_kind == target_kind.value,
                Engagement.kind == kind.value,
            )
            .order_by(Engagement.id.asc())
        )
        return list(rows.scalars())

    def list_actor_ids(self, target: TargetRef, kind: EngagementKind) -> list[int]:
        """Return actors holding ``kind`` on the target, oldest first."""
        rows = self.session.execute(
            select(Engagement.actor_id)
            .where(
                Engagement.target_kind == target.kind.value,
                Engagement.target_key == target.key,
                Engagement.kind == kind.value,
            )
            .order_by(Engagement.id.asc())
        )
        return list(rows.scalars())

    def purge_targets(self, target_kind: TargetKind, keys: Iterable[str]) -> int:
        """Delete every record pointing at the given targets."""
        keys = list(keys)
        if not keys:
            return 0
        result = self.session.execute(
            delete(Engagement).where(
                Engagement.target_kind == target_kind.value,
                Engagement.target_key.in_(keys),
            )
        )
        return result.rowcount

    def purge_target(self, target: TargetRef) -> int:
        return self.purge_targets(target.kind, [target.key])

    # --- Reconciliation helpers -----------------------------------------------------
    def _existing_keys(self, target_kind: TargetKind) -> set[str]:
        model = TARGET_MODELS[target_kind]
        ids = self.session.execute(select(model.id)).scalars()
        return {TargetRef(target_kind, value).key for value in ids}

    def orphaned_keys(self, target_kind: TargetKind) -> set[str]:
        """Return target keys referenced by records whose target is gone."""
        referenced = set(
            self.session.execute(
                select(Engagement.target_key)
                .where(Engagement.target_kind == target_kind.value)
                .distinct()
            ).scalars()
        )
        return referenced - self._existing_keys(target_kind)

    def _key_expression(self, target_kind: TargetKind):
        """SQL expression rendering a target row's id as its record key."""
        model = TARGET_MODELS[target_kind]
        if target_kind is not TargetKind.TOPIC:
            return cast(model.id, String)
        if self.session.get_bind().dialect.name == "postgresql":
            return func.encode(model.id, "hex")
        return func.lower(func.hex(model.id))

    def recount(self, target_kind: TargetKind, kind: EngagementKind) -> int:
        """Rewrite counters that disagree with the records; return rows fixed.

        Each counter is recomputed by a correlated subquery inside one UPDATE,
        so a toggle committing during the sweep is never overwritten by a
        stale count.
        """
        model = TARGET_MODELS[target_kind]
        column = getattr(model, COUNTER_COLUMNS[kind])
        expected = (
            select(func.count())
            .select_from(Engagement)
            .where(
                Engagement.target_kind == target_kind.value,
                Engagement.target_key == self._key_expression(target_kind),
                Engagement.kind == kind.value,
            )
            .scalar_subquery()
        )
        result = self.session.execute(
            update(model)
            .where(column != expected)
            .values({column: expected})
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def recount_following(self) -> int:
        expected = (
            select(func.count())
            .select_from(Engagement)
            .where(
                Engagement.actor_id == User.id,
                Engagement.kind == EngagementKind.FOLLOW.value,
            )
            .scalar_subquery()
        )
        result = self.session.execute(
            update(User)
            .where(User.following_count != expected)
            .values(following_count=expected)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
