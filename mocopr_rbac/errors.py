"""Exception types raised by the RBAC layer."""


class RbacError(Exception):
    """Base class for every RBAC failure."""

    prefix = "RBAC error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(f"{self.prefix}: {detail}")


class PermissionCheckError(RbacError):
    """A permission check could not be carried out or was refused."""

    prefix = "Permission check failed"


class RoleRegistrationError(RbacError):
    """A role could not be registered or linked into the hierarchy."""

    prefix = "Role registration failed"


class InvalidSubjectTypeError(RbacError):
    """A subject type could not be understood."""

    prefix = "Invalid subject type"


class InvalidPermissionFormatError(RbacError):
    """A permission string is malformed or unsafe."""

    prefix = "Invalid permission format"


class ContextExtractionError(RbacError):
    """Request context could not be extracted."""

    prefix = "Context extraction failed"


class ConfigurationError(RbacError):
    """Configuration could not be loaded, saved or validated."""

    prefix = "Configuration error"


class SerializationError(RbacError):
    """Data could not be serialized or deserialized."""

    prefix = "Serialization error"


class RoleSystemError(RbacError):
    """The underlying role system reported a failure."""

    prefix = "Role system error"


class PermissionDeniedError(RbacError):
    """A request was denied by the access-control layer."""

    prefix = "Permission denied"