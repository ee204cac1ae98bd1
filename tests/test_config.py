import pytest
from pydantic import ValidationError
from scimcore.config import Settings


def test_defaults():
    config = Settings(_env_file=None)
    assert config.api_prefix == "/scim/v2"
    assert config.repository_backend == "memory"
    assert config.tortoise_orm_config["apps"]["models"]["models"] == ["scimcore.models"]


def test_environment_variables(monkeypatch):
    monkeypatch.setenv("SCIM_REPOSITORY_BACKEND", "tortoise")
    monkeypatch.setenv("SCIM_LOG_LEVEL", "debug")
    config = Settings(_env_file=None)
    assert config.repository_backend == "tortoise"
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("overrides", [
    {"environment": "qa"},
    {"log_level": "chatty"},
    {"repository_backend": "redis"},
    {"repository_timeout": 0},
])
def test_invalid_settings(overrides):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)
