"""Configuration for roles, assignments and caching."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Union

from .errors import ConfigurationError

_DEFAULT_ROLES = frozenset({"guest", "user", "power_user", "admin"})

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class CacheConfig:
    """Permission cache settings."""

    enabled: bool = True
    ttl_seconds: int = 300
    max_entries: int = 10000


@dataclass
class ConditionalPermissionConfig:
    """A permission granted only when a condition holds."""

    permission: str
    condition: str
    description: Optional[str] = None


@dataclass
class RoleConfig:
    """A role definition."""

    name: str
    description: Optional[str] = None
    permissions: list[str] = field(default_factory=list)
    conditional_permissions: list[ConditionalPermissionConfig] = field(default_factory=list)
    inherits_from: list[str] = field(default_factory=list)


@dataclass
class ElevationConfig:
    """Temporary extra roles for a subject."""

    roles: list[str]
    duration_seconds: int
    justification: Optional[str] = None


@dataclass
class AssignmentConfig:
    """Roles assigned to a subject."""

    subject_id: str
    subject_type: str
    roles: list[str] = field(default_factory=list)
    elevation: Optional[ElevationConfig] = None


class _ParseError(Exception):
    pass


def _field(data: Any, key: str, kind: type, optional: bool = False) -> Any:
    if not isinstance(data, dict):
        raise _ParseError(f"expected an object containing `{key}`")
    if key not in data:
        if optional:
            return None
        raise _ParseError(f"missing field `{key}`")
    value = data[key]
    if value is None and optional:
        return None
    if kind is int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise _ParseError(f"invalid value for field `{key}`")
    elif not isinstance(value, kind):
        raise _ParseError(f"invalid type for field `{key}`")
    return value


def _str_list(data: Any, key: str) -> list[str]:
    items = _field(data, key, list)
    if not all(isinstance(item, str) for item in items):
        raise _ParseError(f"invalid type in field `{key}`")
    return list(items)


def _cache_from(data: Any) -> CacheConfig:
    return CacheConfig(
        enabled=_field(data, "enabled", bool),
        ttl_seconds=_field(data, "ttl_seconds", int),
        max_entries=_field(data, "max_entries", int),
    )


def _conditional_from(data: Any) -> ConditionalPermissionConfig:
    return ConditionalPermissionConfig(
        permission=_field(data, "permission", str),
        condition=_field(data, "condition", str),
        description=_field(data, "description", str, optional=True),
    )


def _role_from(data: Any) -> RoleConfig:
    return RoleConfig(
        name=_field(data, "name", str),
        description=_field(data, "description", str, optional=True),
        permissions=_str_list(data, "permissions"),
        conditional_permissions=[
            _conditional_from(item) for item in _field(data, "conditional_permissions", list)
        ],
        inherits_from=_str_list(data, "inherits_from"),
    )


def _elevation_from(data: Any) -> ElevationConfig:
    return ElevationConfig(
        roles=_str_list(data, "roles"),
        duration_seconds=_field(data, "duration_seconds", int),
        justification=_field(data, "justification", str, optional=True),
    )


def _assignment_from(data: Any) -> AssignmentConfig:
    elevation = _field(data, "elevation", dict, optional=True)
    return AssignmentConfig(
        subject_id=_field(data, "subject_id", str),
        subject_type=_field(data, "subject_type", str),
        roles=_str_list(data, "roles"),
        elevation=_elevation_from(elevation) if elevation is not None else None,
    )


@dataclass
class RbacConfig:
    """Complete RBAC configuration."""

    default_roles: bool = True
    audit_enabled: bool = True
    cache_config: CacheConfig = field(default_factory=CacheConfig)
    roles: list[RoleConfig] = field(default_factory=list)
    assignments: list[AssignmentConfig] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form, suitable for JSON."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> RbacConfig:
        """Build a configuration from plain data; every field is required."""
        try:
            return cls(
                default_roles=_field(data, "default_roles", bool),
                audit_enabled=_field(data, "audit_enabled", bool),
                cache_config=_cache_from(_field(data, "cache_config", dict)),
                roles=[_role_from(item) for item in _field(data, "roles", list)],
                assignments=[
                    _assignment_from(item) for item in _field(data, "assignments", list)
                ],
            )
        except _ParseError as exc:
            raise ConfigurationError(f"Failed to parse config: {exc}") from None

    @classmethod
    def from_file(cls, path: PathLike) -> RbacConfig:
        """Load a configuration from a JSON file."""
        try:
            with open(path, encoding="utf-8") as handle:
                content = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError(f"Failed to read config file: {exc}") from exc
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Failed to parse config: {exc}") from exc
        return cls.from_dict(data)

    def to_file(self, path: PathLike) -> None:
        """Write the configuration as pretty-printed JSON."""
        content = json.dumps(self.to_dict(), indent=2)
        try:
            with open(path, "w", encoding="utf-8") as handle:
                handle.write(content)
        except OSError as exc:
            raise ConfigurationError(f"Failed to write config file: {exc}") from exc

    @classmethod
    def development(cls) -> RbacConfig:
        """A permissive configuration for local development."""
        return cls(
            default_roles=True,
            audit_enabled=False,
            cache_config=CacheConfig(enabled=False, ttl_seconds=60, max_entries=100),
            roles=[
                RoleConfig(
                    name="dev",
                    description="Development role with elevated access",
                    permissions=[
                        "list:tools",
                        "call:tools",
                        "read:resources",
                        "list:prompts",
                    ],
                )
            ],
            assignments=[
                AssignmentConfig(subject_id="developer", subject_type="user", roles=["dev"])
            ],
        )

    @classmethod
    def production_template(cls) -> RbacConfig:
        """A starting point for production deployments."""
        return cls(
            default_roles=True,
            audit_enabled=True,
            cache_config=CacheConfig(),
            roles=[
                RoleConfig(
                    name="api_client",
                    description="Standard API client role",
                    permissions=[
                        "list:tools",
                        "call:tools:safe/*",
                        "read:resources:public/*",
                    ],
                    conditional_permissions=[
                        ConditionalPermissionConfig(
                            permission="call:tools:admin/*",
                            condition=(
                                "context.business_hours == 'true' "
                                "&& context.trust_level == 'high'"
                            ),
                            description=(
                                "Admin tools only during business hours from trusted clients"
                            ),
                        )
                    ],
                ),
                RoleConfig(
                    name="service_account",
                    description="Automated service account role",
                    permissions=[
                        "call:tools:automation/*",
                        "read:resources:data/*",
                    ],
                    inherits_from=["api_client"],
                ),
            ],
            assignments=[],
        )

    def validate(self) -> None:
        """Raise ConfigurationError if the configuration is inconsistent."""
        role_names: set[str] = set()
        for role in self.roles:
            if role.name in role_names:
                raise ConfigurationError(f"Duplicate role name: {role.name}")
            role_names.add(role.name)

        for role in self.roles:
            for inherited in role.inherits_from:
                if not self._role_known(inherited, role_names):
                    raise ConfigurationError(
                        f"Role '{role.name}' inherits from non-existent role '{inherited}'"
                    )

        for assignment in self.assignments:
            for role_name in assignment.roles:
                if not self._role_known(role_name, role_names):
                    raise ConfigurationError(
                        f"Assignment for '{assignment.subject_id}' references "
                        f"non-existent role '{role_name}'"
                    )

    def _role_known(self, name: str, defined: set[str]) -> bool:
        return name in defined or (self.default_roles and name in _DEFAULT_ROLES)