"""Access-control middleware that checks protocol requests against roles."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from .context import Condition, ContextExtractor, DefaultContextExtractor, JsonRpcRequest
from .errors import (
    InvalidPermissionFormatError,
    PermissionCheckError,
    PermissionDeniedError,
    RbacError,
    RoleRegistrationError,
    RoleSystemError,
)
from .permissions import Resource
from .roles import Permission, Role, RoleSystem
from .subjects import Subject, SubjectType

logger = logging.getLogger(__name__)

_ACTIONS = {
    "tools/list": "list",
    "resources/list": "list",
    "prompts/list": "list",
    "tools/call": "call",
    "resources/read": "read",
    "prompts/get": "get",
}


@dataclass(frozen=True)
class _PatternPermission:
    action: str
    resource_type: str
    pattern: str

    @classmethod
    def parse(cls, text: str) -> _PatternPermission:
        parts = text.split(":")
        if len(parts) == 2:
            return cls(parts[0], parts[1], "*")
        if len(parts) == 3:
            return cls(parts[0], parts[1], parts[2])
        raise InvalidPermissionFormatError(f"Invalid permission format: {text}")

    def allows(self, action: str, resource: Resource) -> bool:
        return (
            self.action == action
            and self.resource_type == resource.resource_type
            and _matches_pattern(self.pattern, resource.id)
        )


def _matches_pattern(pattern: str, resource_id: str) -> bool:
    if pattern == "*":
        return True
    if pattern.endswith("/*"):
        prefix = pattern[:-2]
        return resource_id.startswith(prefix + "/") or resource_id == prefix
    if pattern.endswith("*"):
        return resource_id.startswith(pattern[:-1])
    return pattern == resource_id


def _params(request: JsonRpcRequest) -> dict[str, Any]:
    return request.params if isinstance(request.params, dict) else {}


def _string_param(request: JsonRpcRequest, key: str) -> Optional[str]:
    value = _params(request).get(key)
    return value if isinstance(value, str) else None


def parse_permission_string(perm_str: str) -> tuple[str, str]:
    """Split ``action:type`` or ``action:type:pattern`` into action and resource."""
    if not perm_str:
        raise InvalidPermissionFormatError("empty permission string")

    parts = perm_str.split(":")
    if not 2 <= len(parts) <= 3 or any(not part for part in parts):
        raise InvalidPermissionFormatError(perm_str)

    action, resource_type = parts[0], parts[1]
    if any(bad in action for bad in ("/", "\\", "\0")):
        raise InvalidPermissionFormatError(
            f"Invalid action '{action}' contains forbidden characters"
        )
    if "\0" in resource_type:
        raise InvalidPermissionFormatError(
            f"Invalid resource type '{resource_type}' contains null characters"
        )

    if len(parts) == 2:
        return action, resource_type

    pattern = parts[2]
    if ".." in pattern:
        raise InvalidPermissionFormatError(
            f"Invalid pattern '{pattern}' contains path traversal sequences"
        )
    if "\0" in pattern:
        raise InvalidPermissionFormatError(
            f"Invalid pattern '{pattern}' contains null characters"
        )
    return action, f"{resource_type}:{pattern}"


class RbacMiddleware:
    """Checks each request's subject, action and resource against the roles."""

    def __init__(
        self,
        role_system: RoleSystem,
        context_extractor: Optional[ContextExtractor] = None,
        audit_enabled: bool = False,
        role_patterns: Optional[Mapping[str, list[_PatternPermission]]] = None,
    ) -> None:
        self._roles = role_system
        self._context_extractor = context_extractor or DefaultContextExtractor()
        self._audit_enabled = audit_enabled
        self._role_patterns = dict(role_patterns or {})

    @classmethod
    def builder(cls) -> RbacMiddlewareBuilder:
        return RbacMiddlewareBuilder()

    async def check_permission(
        self,
        subject: Subject,
        action: str,
        resource: Resource,
        context: Mapping[str, str],
    ) -> bool:
        """Whether ``subject`` may perform ``action`` on ``resource``."""
        if "/" in resource.id or "\\" in resource.id:
            exact = False
        else:
            try:
                exact = self._roles.check_permission(
                    subject.id, action, resource.resource_type, context
                )
            except RoleSystemError as exc:
                raise PermissionCheckError(str(exc)) from exc

        if exact:
            self._audit(subject, action, resource, "granted (exact)", True)
            return True

        by_pattern = any(
            permission.allows(action, resource)
            for patterns in self._role_patterns.values()
            for permission in patterns
        )
        self._audit(
            subject,
            action,
            resource,
            "granted (pattern)" if by_pattern else "denied",
            by_pattern,
        )
        return by_pattern

    def _audit(
        self, subject: Subject, action: str, resource: Resource, result: str, granted: bool
    ) -> None:
        if not self._audit_enabled:
            return
        level = logging.INFO if granted else logging.WARNING
        logger.log(
            level,
            "Permission check: subject=%s action=%s resource=%s result=%s",
            subject.id,
            action,
            resource.id,
            result,
        )

    def extract_subject(self, request: JsonRpcRequest) -> Subject:
        """The subject named in the request's auth data, or an anonymous user."""
        auth = _params(request).get("auth")
        if isinstance(auth, dict):
            subject_id = auth.get("subject_id")
            if isinstance(subject_id, str):
                subject_type = auth.get("subject_type")
                if isinstance(subject_type, str):
                    return Subject(subject_id, SubjectType.parse(subject_type))
                return Subject(subject_id, SubjectType.USER)
        return Subject("anonymous", SubjectType.USER)

    def extract_resource(self, request: JsonRpcRequest) -> Resource:
        """The resource a request targets, derived from its method and params."""
        method = request.method
        if method == "tools/list":
            return Resource.wildcard("tools")
        if method == "tools/call":
            name = _string_param(request, "name")
            return Resource(name if name is not None else "*", "tools")
        if method == "resources/list":
            return Resource.wildcard("resources")
        if method == "resources/read":
            uri = _string_param(request, "uri")
            if uri is None:
                return Resource.wildcard("resources")
            if ".." in uri:
                logger.warning("Blocked path traversal attempt in resource URI: %s", uri)
                raise PermissionCheckError(
                    f"Path traversal detected in resource URI: {uri}"
                )
            return Resource(uri, "resources")
        if method == "prompts/list":
            return Resource.wildcard("prompts")
        if method == "prompts/get":
            name = _string_param(request, "name")
            return Resource(name if name is not None else "*", "prompts")
        return Resource("unknown", "unknown")

    def extract_action(self, request: JsonRpcRequest) -> str:
        """The action a request method performs."""
        return _ACTIONS.get(request.method, "unknown")

    async def before_request(self, request: JsonRpcRequest) -> None:
        """Raise PermissionDeniedError unless the request is allowed."""
        logger.debug("RBAC middleware checking request: %s", request.method)
        try:
            subject = self.extract_subject(request)
            resource = self.extract_resource(request)
            action = self.extract_action(request)
            context = await self._context_extractor.extract_context(request)
            allowed = await self.check_permission(subject, action, resource, context)
        except RbacError as exc:
            raise PermissionDeniedError(str(exc)) from exc

        if not allowed:
            logger.error(
                "Access denied: subject=%s action=%s resource=%s",
                subject.id,
                action,
                resource.id,
            )
            raise PermissionDeniedError(
                f"subject '{subject.id}' may not {action} '{resource.id}'"
            )
        logger.debug(
            "Access granted: subject=%s action=%s resource=%s",
            subject.id,
            action,
            resource.id,
        )

    async def after_response(self, request: JsonRpcRequest, response: Any) -> None:
        """Nothing to check once a response exists."""

    async def on_error(self, request: JsonRpcRequest, error: BaseException) -> None:
        """Errors pass through unchanged."""


@dataclass
class _ConditionalGrant:
    role_name: str
    permission_pattern: str
    condition: Condition


def _register(system: RoleSystem, role: Role) -> None:
    try:
        system.register_role(role)
    except RoleSystemError as exc:
        raise RoleRegistrationError(str(exc)) from exc


def _assign_same_name(system: RoleSystem, role_name: str) -> None:
    try:
        system.assign_role(role_name, role_name)
    except RoleSystemError as exc:
        logger.warning("Failed to assign role %s to subject: %s", role_name, exc)


def _install_default_roles(system: RoleSystem) -> None:
    guest = Role("guest").add_permission(Permission("list", "tools")).add_permission(
        Permission("list", "resources")
    )
    user = (
        Role("user")
        .add_permission(Permission("list", "tools"))
        .add_permission(Permission("call", "tools"))
        .add_permission(Permission("list", "resources"))
        .add_permission(Permission("read", "resources"))
    )
    power_user = (
        Role("power_user")
        .add_permission(Permission("*", "tools"))
        .add_permission(Permission("*", "resources"))
        .add_permission(Permission("list", "prompts"))
        .add_permission(Permission("get", "prompts"))
    )
    admin = Role("admin").add_permission(Permission.super_admin())

    for role in (guest, user, power_user, admin):
        _register(system, role)
    for child, parent in (("user", "guest"), ("power_user", "user"), ("admin", "power_user")):
        try:
            system.add_role_inheritance(child, parent)
        except RoleSystemError as exc:
            raise RoleRegistrationError(str(exc)) from exc


class RbacMiddlewareBuilder:
    """Collects roles and settings, then builds an RbacMiddleware."""

    def __init__(self) -> None:
        self._roles: list[tuple[str, list[str]]] = []
        self._conditionals: list[_ConditionalGrant] = []
        self._context_extractor: Optional[ContextExtractor] = None
        self._audit_enabled = False
        self._default_roles = False

    def with_role(self, role_name: str, permissions: Iterable[str]) -> RbacMiddlewareBuilder:
        """Add a role holding the given permission strings."""
        self._roles.append((role_name, list(permissions)))
        return self

    def with_default_roles(self) -> RbacMiddlewareBuilder:
        """Add the guest, user, power_user and admin hierarchy."""
        self._default_roles = True
        return self

    def with_conditional_permission(
        self, role_name: str, permission_pattern: str, condition: Condition
    ) -> RbacMiddlewareBuilder:
        """Grant ``permission_pattern`` to ``role_name`` when ``condition`` holds."""
        self._conditionals.append(_ConditionalGrant(role_name, permission_pattern, condition))
        return self

    def with_audit_logging(self, enabled: bool) -> RbacMiddlewareBuilder:
        self._audit_enabled = enabled
        return self

    def with_context_extractor(self, extractor: ContextExtractor) -> RbacMiddlewareBuilder:
        self._context_extractor = extractor
        return self

    async def build(self) -> RbacMiddleware:
        """Register every role and return the middleware."""
        system = RoleSystem()
        role_patterns: dict[str, list[_PatternPermission]] = {}

        if self._default_roles:
            _install_default_roles(system)

        for role_name, permissions in self._roles:
            role = Role(role_name)
            patterns: list[str] = []
            for perm_str in permissions:
                if perm_str.count(":") >= 2:
                    patterns.append(perm_str)
                action, resource = parse_permission_string(perm_str)
                role = role.add_permission(Permission(action, resource))
            if patterns:
                role_patterns[role_name] = [_PatternPermission.parse(p) for p in patterns]
            _register(system, role)
            _assign_same_name(system, role_name)

        for grant in self._conditionals:
            action, resource = parse_permission_string(grant.permission_pattern)
            permission = Permission(action, resource, grant.condition)
            role = system.get_role(grant.role_name) or Role(grant.role_name)
            _register(system, role.add_permission(permission))
            _assign_same_name(system, grant.role_name)

        return RbacMiddleware(
            system,
            self._context_extractor or DefaultContextExtractor(),
            self._audit_enabled,
            role_patterns,
        )