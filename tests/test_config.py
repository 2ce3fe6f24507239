import json

import pytest

from cognito_workflows import ConfigurationError, UserPoolConfig, load_config
from cognito_workflows.config import save_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("COGNITO_USER_POOL_ID", "COGNITO_CLIENT_ID", "AWS_REGION", "COGNITO_ENDPOINT_URL"):
        monkeypatch.delenv(var, raising=False)


def test_region_is_inferred_from_user_pool_id():
    config = UserPoolConfig(user_pool_id="ap-southeast-1_03PmCcqlF", client_id="client")
    assert config.region == "ap-southeast-1"


def test_explicit_region_wins():
    config = UserPoolConfig(user_pool_id="ap-southeast-1_03PmCcqlF", client_id="client", region="us-east-1")
    assert config.region == "us-east-1"


def test_unparseable_user_pool_id_without_region():
    with pytest.raises(ConfigurationError):
        UserPoolConfig(user_pool_id="not-a-pool", client_id="client")


def test_load_config_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("COGNITO_USER_POOL_ID", "eu-west-1_abcdef")
    monkeypatch.setenv("COGNITO_CLIENT_ID", "env-client")
    monkeypatch.setenv("COGNITO_ENDPOINT_URL", "http://localhost:9229")

    config = load_config(tmp_path / "missing.json")

    assert config == UserPoolConfig(
        user_pool_id="eu-west-1_abcdef",
        client_id="env-client",
        region="eu-west-1",
        endpoint_url="http://localhost:9229",
    )


def test_environment_overrides_config_file(monkeypatch, tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"user_pool_id": "eu-west-1_fromfile", "client_id": "file-client"}))
    monkeypatch.setenv("COGNITO_CLIENT_ID", "env-client")

    config = load_config(config_file)

    assert config.user_pool_id == "eu-west-1_fromfile"
    assert config.client_id == "env-client"


def test_missing_fields_raise(tmp_path):
    with pytest.raises(ConfigurationError) as excinfo:
        load_config(tmp_path / "missing.json")

    assert "user_pool_id" in str(excinfo.value)
    assert "client_id" in str(excinfo.value)


def test_unreadable_config_file_raises(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text("{not json")

    with pytest.raises(ConfigurationError):
        load_config(config_file)


def test_save_config_round_trips_and_drops_empty_values(tmp_path):
    config_file = tmp_path / "config.json"

    save_config({"user_pool_id": "eu-west-1_abcdef", "client_id": "client", "region": None}, config_file)

    assert json.loads(config_file.read_text()) == {"user_pool_id": "eu-west-1_abcdef", "client_id": "client"}
    assert load_config(config_file).region == "eu-west-1"


def test_config_file_must_hold_an_object(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text("[]")

    with pytest.raises(ConfigurationError) as excinfo:
        load_config(config_file)

    assert "JSON object" in str(excinfo.value)


def test_non_string_values_are_rejected(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"user_pool_id": 12345, "client_id": "abc"}))

    with pytest.raises(ConfigurationError) as excinfo:
        load_config(config_file)

    assert "user_pool_id" in str(excinfo.value)
