import json

import pytest

from mocopr_rbac.config import (
    AssignmentConfig,
    CacheConfig,
    ElevationConfig,
    RbacConfig,
    RoleConfig,
)
from mocopr_rbac.errors import ConfigurationError


def test_config_serialization():
    config = RbacConfig.development()
    text = json.dumps(config.to_dict(), indent=2)
    parsed = RbacConfig.from_dict(json.loads(text))
    assert parsed.default_roles == config.default_roles
    assert len(parsed.roles) == len(config.roles)
    assert parsed == config


def test_config_file_operations(tmp_path):
    config = RbacConfig.production_template()
    path = tmp_path / "rbac.json"
    config.to_file(path)
    loaded = RbacConfig.from_file(str(path))
    assert loaded.default_roles == config.default_roles
    assert len(loaded.roles) == len(config.roles)
    assert loaded == config


def test_config_validation():
    config = RbacConfig()
    config.validate()
    config.roles.append(RoleConfig(name="duplicate"))
    config.roles.append(RoleConfig(name="duplicate"))
    with pytest.raises(ConfigurationError, match="Duplicate role name: duplicate"):
        config.validate()


def test_default_values():
    config = RbacConfig()
    assert config.cache_config == CacheConfig(enabled=True, ttl_seconds=300, max_entries=10000)
    assert config.audit_enabled is True
    assert config.roles == [] and config.assignments == []


def test_development_profile():
    config = RbacConfig.development()
    assert config.audit_enabled is False
    assert config.cache_config.enabled is False
    assert config.roles[0].name == "dev"
    assert config.assignments[0].subject_id == "developer"
    config.validate()


def test_production_template_validates():
    config = RbacConfig.production_template()
    config.validate()
    assert config.roles[1].inherits_from == ["api_client"]


def test_missing_inherited_role():
    config = RbacConfig(roles=[RoleConfig(name="child", inherits_from=["ghost"])])
    with pytest.raises(ConfigurationError, match="non-existent role 'ghost'"):
        config.validate()


def test_inherit_default_role_allowed_only_with_defaults():
    config = RbacConfig(roles=[RoleConfig(name="child", inherits_from=["admin"])])
    config.validate()
    config.default_roles = False
    with pytest.raises(ConfigurationError, match="non-existent role 'admin'"):
        config.validate()


def test_assignment_to_unknown_role():
    config = RbacConfig(
        assignments=[AssignmentConfig(subject_id="developer", subject_type="user", roles=["dev"])]
    )
    with pytest.raises(ConfigurationError, match="Assignment for 'developer'"):
        config.validate()


def test_elevation_round_trip():
    config = RbacConfig(
        assignments=[
            AssignmentConfig(
                subject_id="developer",
                subject_type="user",
                roles=["user"],
                elevation=ElevationConfig(roles=["admin"], duration_seconds=60),
            )
        ]
    )
    assert RbacConfig.from_dict(config.to_dict()) == config


def test_from_file_missing(tmp_path):
    with pytest.raises(ConfigurationError, match="Failed to read config file"):
        RbacConfig.from_file(tmp_path / "absent.json")


def test_from_file_invalid_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Failed to parse config"):
        RbacConfig.from_file(path)


def test_from_dict_missing_field():
    data = RbacConfig().to_dict()
    del data["roles"]
    with pytest.raises(ConfigurationError, match="roles"):
        RbacConfig.from_dict(data)


def test_from_dict_wrong_type():
    data = RbacConfig().to_dict()
    data["cache_config"]["ttl_seconds"] = "soon"
    with pytest.raises(ConfigurationError, match="ttl_seconds"):
        RbacConfig.from_dict(data)


def test_to_file_unwritable(tmp_path):
    with pytest.raises(ConfigurationError, match="Failed to write config file"):
        RbacConfig().to_file(tmp_path / "missing_dir" / "out.json")