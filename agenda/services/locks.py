"""Per-(tenant, resource) locks held across the conflict check and the commit.

PostgreSQL uses transaction-scoped advisory locks, so the lock is released by
the commit or rollback that ends the unit of work. Other backends (SQLite in
tests and local runs) fall back to a process-local lock registry.
"""

import threading
import time
import zlib
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.orm import Session

from agenda.core.config import settings
from agenda.core.errors import ConcurrentWriteConflict
from agenda.core.metrics import RESOURCE_LOCK_WAIT
from agenda.services.conflicts import ResourceKey

PG_INT4_MAX = 2**31 - 1


def is_postgresql_session(db: Session) -> bool:
    bind = db.get_bind()
    return bind is not None and bind.dialect.name == "postgresql"


def advisory_lock_keys(tenant_id: int, resource: ResourceKey) -> tuple[int, int]:
    # Two-int variant of pg advisory locks; both halves must fit in int4.
    resource_hash = zlib.crc32(str(resource).encode()) & PG_INT4_MAX
    return tenant_id % PG_INT4_MAX, resource_hash


class _LocalLockRegistry:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[int, str], threading.Lock] = {}

    def lock_for(self, tenant_id: int, resource: ResourceKey) -> threading.Lock:
        key = (tenant_id, str(resource))
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


local_locks = _LocalLockRegistry()


@contextmanager
def resource_lock(db: Session, tenant_id: int, resource: ResourceKey | None) -> Iterator[None]:
    """Serialise writers on one resource of one tenant.

    The body must finish the unit of work (commit or rollback) before the
    block exits, otherwise the local lock would be released while the
    transaction is still open.
    """
    if resource is None:
        yield
        return

    if is_postgresql_session(db):
        key1, key2 = advisory_lock_keys(tenant_id, resource)
        started = time.perf_counter()
        acquired = db.scalar(
            text("SELECT pg_try_advisory_xact_lock(:key1, :key2)"),
            {"key1": key1, "key2": key2},
        )
        RESOURCE_LOCK_WAIT.labels(backend="advisory").observe(time.perf_counter() - started)
        if not acquired:
            db.rollback()
            raise ConcurrentWriteConflict()
        yield
        return

    lock = local_locks.lock_for(tenant_id, resource)
    started = time.perf_counter()
    acquired = lock.acquire(timeout=settings.booking_lock_timeout_seconds)
    RESOURCE_LOCK_WAIT.labels(backend="local").observe(time.perf_counter() - started)
    if not acquired:
        raise ConcurrentWriteConflict()
    try:
        yield
    finally:
        lock.release()
