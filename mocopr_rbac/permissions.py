"""Resources and helpers for building permission strings."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Resource:
    """A protocol resource: a tool, resource URI, prompt or similar."""

    id: str
    resource_type: str

    @classmethod
    def tool(cls, name: str) -> Resource:
        return cls(name, "tools")

    @classmethod
    def file_resource(cls, uri: str) -> Resource:
        return cls(uri, "resources")

    @classmethod
    def prompt(cls, name: str) -> Resource:
        return cls(name, "prompts")

    @classmethod
    def wildcard(cls, resource_type: str) -> Resource:
        return cls("*", resource_type)

    def __str__(self) -> str:
        return f"{self.resource_type}:{self.id}"


class McpPermissions:
    """Common permission strings for protocol operations."""

    TOOLS_LIST = "list:tools"
    TOOLS_CALL = "call:tools"
    TOOLS_CALL_ALL = "call:tools:*"

    RESOURCES_LIST = "list:resources"
    RESOURCES_READ = "read:resources"
    RESOURCES_READ_ALL = "read:resources:*"

    PROMPTS_LIST = "list:prompts"
    PROMPTS_GET = "get:prompts"
    PROMPTS_GET_ALL = "get:prompts:*"

    SERVER_MANAGE = "manage:server"
    SERVER_MONITOR = "monitor:server"

    ADMIN_ALL = "*:*"


def tool_permission(action: str, tool_name: str) -> str:
    """Permission string for an action on a named tool."""
    return f"{action}:tools:{tool_name}"


def resource_permission(action: str, resource_uri: str) -> str:
    """Permission string for an action on a resource URI."""
    return f"{action}:resources:{resource_uri}"


def prompt_permission(action: str, prompt_name: str) -> str:
    """Permission string for an action on a named prompt."""
    return f"{action}:prompts:{prompt_name}"


def wildcard_permission(action: str, resource_type: str) -> str:
    """Permission string covering every resource of a type."""
    return f"{action}:{resource_type}:*"