"""Role-based access control for Model Context Protocol servers: roles, permissions, context extraction, configuration and request-checking middleware."""

__version__ = "0.1.0"

__all__ = ["config", "context", "errors", "middleware", "permissions", "roles", "subjects"]