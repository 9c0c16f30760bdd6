import pytest

from mocopr_rbac.errors import (
    ConfigurationError,
    ContextExtractionError,
    InvalidPermissionFormatError,
    InvalidSubjectTypeError,
    PermissionCheckError,
    PermissionDeniedError,
    RbacError,
    RoleRegistrationError,
    RoleSystemError,
    SerializationError,
)


@pytest.mark.parametrize(
    "cls, prefix",
    [
        (PermissionCheckError, "Permission check failed"),
        (RoleRegistrationError, "Role registration failed"),
        (InvalidSubjectTypeError, "Invalid subject type"),
        (InvalidPermissionFormatError, "Invalid permission format"),
        (ContextExtractionError, "Context extraction failed"),
        (ConfigurationError, "Configuration error"),
        (SerializationError, "Serialization error"),
        (RoleSystemError, "Role system error"),
    ],
)
def test_message_format(cls, prefix):
    err = cls("details here")
    assert str(err) == f"{prefix}: details here"
    assert err.detail == "details here"


def test_all_errors_are_rbac_errors():
    err = ConfigurationError("bad")
    assert isinstance(err, RbacError)
    assert err.detail == "bad"
    assert str(err) == "Configuration error: bad"


def test_permission_denied_caught_as_base():
    err = PermissionDeniedError("tools:admin_tool")
    assert isinstance(err, RbacError)
    assert "tools:admin_tool" in str(err)