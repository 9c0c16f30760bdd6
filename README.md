# mocopr_rbac

Role-based access control for Model Context Protocol (MCP) servers. It
checks JSON-RPC requests such as `tools/call`, `resources/read` and
`prompts/get` against roles and permissions. A server calls it before it
handles each request.

The package uses only the standard library.

## Modules

- `mocopr_rbac.middleware`: `RbacMiddleware`, `RbacMiddlewareBuilder` and
  `parse_permission_string`.
- `mocopr_rbac.roles`: the in-memory role system. It has `Permission`,
  `Role` and `RoleSystem`, and handles inheritance and assignments.
- `mocopr_rbac.context`: `JsonRpcRequest` and the context extractors
  (`DefaultContextExtractor`, `ExtendedContextExtractor`,
  `TrustLevelConfig`). It also has the condition helpers
  (`business_hours_only`, `high_trust_only`, `weekdays_only`, `user_only`,
  `all_of`, `any_of`).
- `mocopr_rbac.subjects`: `Subject` and `SubjectType`.
- `mocopr_rbac.permissions`: `Resource`, `McpPermissions` and the
  permission-string helpers.
- `mocopr_rbac.config`: `RbacConfig` and the dataclasses it contains. It
  handles JSON load and save, presets and validation.
- `mocopr_rbac.errors`: `RbacError` and its subclasses.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Permission strings

A permission string is either `action:resource_type` or
`action:resource_type:pattern`. `parse_permission_string` rejects a string
in these cases:

- it is empty;
- it has fewer than two parts or more than three;
- one of its parts is empty;
- the action contains `/`, `\` or a NUL character;
- the resource type or the pattern contains a NUL character;
- the pattern contains `..`.

In each case it raises `InvalidPermissionFormatError`.

A pattern matches a resource id in one of four ways:

- `*` matches any id.
- `prefix/*` matches `prefix` itself and anything under `prefix/`.
- `prefix*` matches any id that starts with `prefix`.
- Any other pattern must equal the id exactly.

## How a check is decided

`RbacMiddleware.check_permission(subject, action, resource, context)`
returns `True` if either of the following holds:

- **Exact check.** One of the subject's roles, or a role it inherits,
  holds a permission for the action on the resource type. A `*` action or
  resource type matches anything. If the permission has a condition, the
  condition must return true for `context`. This check is skipped when the
  resource id contains `/` or `\`.
- **Pattern check.** Some three-part permission string, passed to
  `with_role`, matches the action, the resource type and the resource id.
  These pattern permissions are checked for every subject, whatever roles
  the subject holds.

The builder assigns roles as follows:

- A role added with `with_role` or `with_conditional_permission` is
  assigned to the subject whose id equals the role name.
- `with_default_roles()` registers `guest`, `user`, `power_user` and
  `admin`, and sets up the inheritance `admin > power_user > user > guest`.
  It does not assign these roles to any subject.

With audit logging on, every decision is logged through the
`mocopr_rbac.middleware` logger. Grants are logged at INFO level and
denials at WARNING.

## Usage

```python
import asyncio

from mocopr_rbac.middleware import RbacMiddleware
from mocopr_rbac.permissions import Resource
from mocopr_rbac.subjects import Subject


async def main():
    rbac = await (
        RbacMiddleware.builder()
        .with_default_roles()
        .with_role("limited_user", ["read:resources:public/*"])
        .with_conditional_permission(
            "ops",
            "admin:system",
            lambda ctx: ctx.get("mfa_verified") == "true",
        )
        .with_audit_logging(True)
        .build()
    )

    allowed = await rbac.check_permission(
        Subject.user("alice"),
        "read",
        Resource.file_resource("public/data.txt"),
        {},
    )
    print(allowed)  # True: matched by the pattern read:resources:public/*

    ops_allowed = await rbac.check_permission(
        Subject.user("ops"),
        "admin",
        Resource("system", "system"),
        {"mfa_verified": "true"},
    )
    print(ops_allowed)  # True: the condition holds


asyncio.run(main())
```

### Checking a JSON-RPC request

`before_request` builds the check from the request itself:

- **Subject.** Taken from `params.auth.subject_id` and
  `params.auth.subject_type`. If there is no subject id, the subject is
  `anonymous`.
- **Action.** Taken from the method: `list`, `call`, `read`, `get`, or
  `unknown` for any other method.
- **Resource.** Taken from the tool name, resource URI or prompt name in
  the params.
- **Context.** Produced by the configured context extractor.

`before_request` raises `PermissionDeniedError` in three cases:

- access is refused;
- a resource URI contains `..`;
- any other RBAC error occurs while the check runs.

`after_response` and `on_error` do nothing.

```python
from mocopr_rbac.context import JsonRpcRequest
from mocopr_rbac.errors import PermissionDeniedError

request = JsonRpcRequest(
    method="tools/call",
    params={
        "name": "admin_tool",
        "auth": {"subject_id": "bob", "subject_type": "user"},
    },
    id=1,
)

try:
    await rbac.before_request(request)
except PermissionDeniedError:
    ...
```

### Context and conditions

`DefaultContextExtractor` adds the following keys, computed in UTC:

- `timestamp`, `date`, `time`, `day_of_week`;
- `business_hours`: `"true"` from 09:00 to 17:59;
- `is_weekend`;
- the request's `params.context` object, flattened to strings;
- `user_id`, `session_id` and `client_ip` from `params.auth`;
- `method`.

If `params.context` is not an object, it raises `ContextExtractionError`.

`ExtendedContextExtractor` adds custom keys on top of the default ones:

- **`trust_level`.** Found by matching the client IP against the IPv4 CIDR
  ranges in a `TrustLevelConfig`. The defaults are `192.168.0.0/16` and
  `10.0.0.0/8` as `high`, `172.16.0.0/12` as `medium`, and anything else
  as `low`.
- **`location`.** One of `local`, `public-dns`, `external` or `unknown`,
  decided by the client IP's prefix.

```python
from mocopr_rbac.context import (
    ExtendedContextExtractor,
    all_of,
    business_hours_only,
    high_trust_only,
)

extractor = (
    ExtendedContextExtractor()
    .with_trust_level_extractor()
    .with_location_extractor()
)
condition = all_of([business_hours_only(), high_trust_only()])
```

Pass the extractor to the builder with `.with_context_extractor(extractor)`.

### Configuration files

```python
from mocopr_rbac.config import RbacConfig

config = RbacConfig.production_template()
config.validate()
config.to_file("rbac.json")
loaded = RbacConfig.from_file("rbac.json")
```

`from_file` and `from_dict` require every field. They raise
`ConfigurationError` when a file cannot be read or parsed.

`validate()` raises `ConfigurationError` in three cases:

- a role name appears more than once;
- a role inherits from a role that does not exist;
- an assignment refers to a role that does not exist.

When `default_roles` is true, `guest`, `user`, `power_user` and `admin`
count as existing roles.

### Permission helpers

```python
from mocopr_rbac.permissions import McpPermissions, tool_permission, wildcard_permission

tool_permission("call", "calculator")       # "call:tools:calculator"
wildcard_permission("read", "resources")    # "read:resources:*"
McpPermissions.TOOLS_LIST                   # "list:tools"
```

## What it does not do

- **No server or transport.** The package only makes access decisions. The
  caller supplies `JsonRpcRequest` objects and calls `before_request`
  itself.
- **Configuration is not applied to the middleware.** `RbacConfig` can be
  loaded, saved and validated. The builder does not read it, and condition
  strings in `ConditionalPermissionConfig` are never evaluated.
- **Some settings are stored but unused.** Cache settings (`CacheConfig`),
  elevations and `TrustLevelConfig.strict_mode` have no effect.
- **No storage.** Roles and assignments are kept in memory only.
- **No IPv6 ranges.** Trust levels match IPv4 ranges only.