"""In-memory role system: permissions, roles, inheritance and assignments."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Callable, Iterator, Mapping, Optional

from .errors import RoleSystemError

Condition = Callable[[Mapping[str, str]], bool]

WILDCARD = "*"


@dataclass(frozen=True)
class Permission:
    """Allows an action on a resource type, optionally under a condition."""

    action: str
    resource_type: str
    condition: Optional[Condition] = field(default=None, compare=False, repr=False)

    @classmethod
    def super_admin(cls) -> Permission:
        """A permission that allows every action on every resource type."""
        return cls(WILDCARD, WILDCARD)

    def matches(
        self,
        action: str,
        resource_type: str,
        context: Optional[Mapping[str, str]] = None,
    ) -> bool:
        """Whether this permission allows ``action`` on ``resource_type``."""
        if self.action != WILDCARD and self.action != action:
            return False
        if self.resource_type != WILDCARD and self.resource_type != resource_type:
            return False
        if self.condition is not None:
            return bool(self.condition(context if context is not None else {}))
        return True


@dataclass(frozen=True)
class Role:
    """A named set of permissions."""

    name: str
    permissions: tuple[Permission, ...] = ()

    def add_permission(self, permission: Permission) -> Role:
        """Return a copy of this role with ``permission`` added."""
        return replace(self, permissions=self.permissions + (permission,))


class RoleSystem:
    """Stores roles, their inheritance and the roles assigned to subjects."""

    def __init__(self) -> None:
        self._roles: dict[str, Role] = {}
        self._parents: dict[str, list[str]] = {}
        self._assignments: dict[str, list[str]] = {}
        self._lock = threading.RLock()

    def register_role(self, role: Role) -> None:
        """Register ``role``, replacing any role of the same name."""
        if not role.name:
            raise RoleSystemError("role name must not be empty")
        with self._lock:
            self._roles[role.name] = role
            self._parents.setdefault(role.name, [])

    def get_role(self, name: str) -> Optional[Role]:
        """The role called ``name``, or ``None``."""
        with self._lock:
            return self._roles.get(name)

    def assign_role(self, subject_id: str, role_name: str) -> None:
        """Give ``subject_id`` the role ``role_name``."""
        with self._lock:
            if role_name not in self._roles:
                raise RoleSystemError(f"role '{role_name}' is not registered")
            roles = self._assignments.setdefault(subject_id, [])
            if role_name not in roles:
                roles.append(role_name)

    def add_role_inheritance(self, child: str, parent: str) -> None:
        """Make ``child`` inherit every permission of ``parent``."""
        with self._lock:
            for name in (child, parent):
                if name not in self._roles:
                    raise RoleSystemError(f"role '{name}' is not registered")
            if child == parent or child in set(self._closure([parent])):
                raise RoleSystemError(
                    f"inheritance from '{parent}' to '{child}' would create a cycle"
                )
            parents = self._parents.setdefault(child, [])
            if parent not in parents:
                parents.append(parent)

    def check_permission(
        self,
        subject_id: str,
        action: str,
        resource_type: str,
        context: Optional[Mapping[str, str]] = None,
    ) -> bool:
        """Whether any role of ``subject_id`` allows ``action`` on ``resource_type``."""
        with self._lock:
            assigned = list(self._assignments.get(subject_id, ()))
            roles = [self._roles[name] for name in self._closure(assigned)]
        return any(
            permission.matches(action, resource_type, context)
            for role in roles
            for permission in role.permissions
        )

    def _closure(self, start: list[str]) -> Iterator[str]:
        seen: set[str] = set()
        queue = deque(start)
        while queue:
            name = queue.popleft()
            if name in seen or name not in self._roles:
                continue
            seen.add(name)
            yield name
            queue.extend(self._parents.get(name, ()))