"""Role permission lookup with a bounded, time-limited per-process cache.

Each API process keeps its own cache, so a permission change made through the
database reaches every instance within one TTL window at the latest.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from functools import lru_cache

from sqlalchemy import select
from sqlalchemy.orm import Session

from fuelwise.config import get_settings
from fuelwise.models.role import Permission, Role, RolePermission
from fuelwise.schema.permissions import PERMISSION_DESCRIPTIONS, ROLE_PERMISSIONS

logger = logging.getLogger(__name__)


class RolePermissionCache:
    """Permission sets keyed by role id, evicted by age and by size."""

    def __init__(
        self,
        *,
        ttl_seconds: float,
        max_entries: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[int, tuple[float, frozenset[str]]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, role_id: int) -> frozenset[str] | None:
        with self._lock:
            entry = self._entries.get(role_id)
            if entry is None:
                return None
            stored_at, permissions = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[role_id]
                return None
            return permissions

    def put(self, role_id: int, permissions: frozenset[str]) -> None:
        with self._lock:
            now = self._clock()
            self._entries.pop(role_id, None)
            self._entries[role_id] = (now, permissions)
            self._evict(now)

    def invalidate(self, role_id: int | None = None) -> None:
        """Drop one role, or every role when ``role_id`` is omitted."""

        with self._lock:
            if role_id is None:
                self._entries.clear()
            else:
                self._entries.pop(role_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict(self, now: float) -> None:
        expired = [key for key, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)


@lru_cache
def get_permission_cache() -> RolePermissionCache:
    """Process-wide cache configured from settings."""

    settings = get_settings()
    return RolePermissionCache(
        ttl_seconds=settings.permission_cache_ttl_seconds,
        max_entries=settings.permission_cache_max_entries,
    )


def get_permissions_for_role(
    db: Session,
    role_id: int,
    *,
    cache: RolePermissionCache | None = None,
) -> frozenset[str]:
    """Return the permission names granted to a role."""

    active_cache = cache if cache is not None else get_permission_cache()
    cached = active_cache.get(role_id)
    if cached is not None:
        return cached

    names = db.scalars(
        select(Permission.name)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .where(RolePermission.role_id == role_id)
    ).all()
    permissions = frozenset(names)
    active_cache.put(role_id, permissions)
    logger.debug("permissions.cache_fill role_id=%s count=%s", role_id, len(permissions))
    return permissions


def sync_role_permissions(db: Session, *, cache: RolePermissionCache | None = None) -> dict[str, Role]:
    """Create missing roles, permissions and grants from the built-in vocabulary."""

    permissions_by_name = {row.name: row for row in db.scalars(select(Permission)).all()}
    for name, description in PERMISSION_DESCRIPTIONS.items():
        if name not in permissions_by_name:
            permission = Permission(name=name, description=description)
            db.add(permission)
            permissions_by_name[name] = permission

    roles_by_name = {row.name: row for row in db.scalars(select(Role)).all()}
    for role_name in ROLE_PERMISSIONS:
        if role_name not in roles_by_name:
            role = Role(name=role_name)
            db.add(role)
            roles_by_name[role_name] = role
    db.flush()

    existing_grants = {
        (role_id, permission_id)
        for role_id, permission_id in db.execute(select(RolePermission.role_id, RolePermission.permission_id)).all()
    }
    for role_name, permission_names in ROLE_PERMISSIONS.items():
        role_id = roles_by_name[role_name].id
        for permission_name in permission_names:
            key = (role_id, permissions_by_name[permission_name].id)
            if key not in existing_grants:
                db.add(RolePermission(role_id=key[0], permission_id=key[1]))
                existing_grants.add(key)
    db.commit()

    (cache if cache is not None else get_permission_cache()).invalidate()
    return roles_by_name
