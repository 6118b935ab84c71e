import json
from pathlib import Path

import pytest

from explorespeak_deployer.core.config_loader import _load_json_file, load_deployment_config
from explorespeak_deployer.core.exceptions import ConfigurationError


def _write_config(tmp_path, data):
    path = tmp_path / "deployment.json"
    path.write_text(json.dumps(data))
    return path


class TestLoadJsonFile:
    """Tests for the JSON file helper."""

    def test_missing_required_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            _load_json_file(tmp_path / "missing.json")
        assert exc_info.value.config_file.endswith("missing.json")

    def test_missing_optional_file_returns_empty(self, tmp_path):
        assert _load_json_file(tmp_path / "missing.json", required=False) == {}

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "deployment.json"
        path.write_text("{ not json")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            _load_json_file(path)

    def test_non_object_raises(self, tmp_path):
        path = tmp_path / "deployment.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(ConfigurationError, match="JSON object"):
            _load_json_file(path)


class TestLoadDeploymentConfig:
    """Tests for configuration layering: defaults, env, file, overrides."""

    def test_defaults(self):
        config = load_deployment_config()

        assert config.region == "us-east-1"
        assert config.api_id is None
        assert config.role_name == "explorespeak-lambda-role"
        assert config.stage_name == "prod"
        assert config.billing_mode == "PAY_PER_REQUEST"
        assert config.debug is False

    def test_env_region(self, monkeypatch):
        monkeypatch.setenv("AWS_REGION", "eu-west-1")

        assert load_deployment_config().region == "eu-west-1"

    def test_file_overrides_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AWS_REGION", "eu-west-1")
        path = _write_config(tmp_path, {"region": "ap-southeast-2", "stage_name": "dev", "source_root": "app"})

        config = load_deployment_config(path)

        assert config.region == "ap-southeast-2"
        assert config.stage_name == "dev"
        assert config.source_root == Path("app")

    def test_cli_overrides_file(self, tmp_path):
        path = _write_config(tmp_path, {"region": "ap-southeast-2", "api_id": "from-file"})

        config = load_deployment_config(path, overrides={"api_id": "abc123", "region": None})

        assert config.api_id == "abc123"
        # None means "not given on the command line"
        assert config.region == "ap-southeast-2"

    def test_unknown_file_key_raises(self, tmp_path):
        path = _write_config(tmp_path, {"regoin": "eu-west-1"})

        with pytest.raises(ConfigurationError, match="regoin"):
            load_deployment_config(path)

    def test_unknown_override_raises(self):
        with pytest.raises(ConfigurationError):
            load_deployment_config(overrides={"colour": "blue"})

    def test_invalid_mode_raises(self, tmp_path):
        path = _write_config(tmp_path, {"mode": "VERBOSE"})

        with pytest.raises(ConfigurationError, match="Invalid mode"):
            load_deployment_config(path)

    def test_invalid_billing_mode_raises(self):
        with pytest.raises(ConfigurationError, match="billing_mode"):
            load_deployment_config(overrides={"billing_mode": "ON_DEMAND"})

    def test_non_positive_wait_raises(self):
        with pytest.raises(ConfigurationError):
            load_deployment_config(overrides={"table_wait_attempts": 0})

    def test_build_plan_uses_config(self, tmp_path):
        config = load_deployment_config(
            overrides={
                "source_root": str(tmp_path),
                "role_name": "custom-role",
                "billing_mode": "PROVISIONED",
                "read_units": 2,
                "write_units": 1,
            }
        )

        plan = config.build_plan()

        assert all(f.role_name == "custom-role" for f in plan.functions)
        assert plan.functions[0].source_dir.parent == tmp_path / "backend" / "lambdas"
        assert all(t.capacity.is_provisioned for t in plan.tables)
        assert plan.tables[0].capacity.read_units == 2

    def test_profile_name_from_file(self, tmp_path):
        path = _write_config(tmp_path, {"profile_name": "explorespeak-dev", "api_id": None})

        config = load_deployment_config(path)

        assert config.profile_name == "explorespeak-dev"
        assert config.api_id is None


class TestConfigValueTypes:
    """Wrongly typed values are configuration errors, not crashes."""

    @pytest.mark.parametrize("data, key", [
        ({"mode": 1}, "mode"),
        ({"table_wait_delay": "5"}, "table_wait_delay"),
        ({"invoke_functions": "yes"}, "invoke_functions"),
        ({"read_units": True}, "read_units"),
        ({"region": ["us-east-1"]}, "region"),
        ({"source_root": 42}, "source_root"),
    ])
    def test_wrong_type_in_file_raises(self, tmp_path, data, key):
        path = _write_config(tmp_path, data)

        with pytest.raises(ConfigurationError, match=key) as exc_info:
            load_deployment_config(path)
        assert exc_info.value.config_file == str(path)

    def test_wrong_type_in_override_raises(self):
        with pytest.raises(ConfigurationError, match="table_wait_attempts"):
            load_deployment_config(overrides={"table_wait_attempts": 2.5})

    @pytest.mark.parametrize("units", [{"read_units": 0}, {"write_units": 0}, {"read_units": -1}])
    def test_provisioned_requires_positive_units(self, units):
        with pytest.raises(ConfigurationError, match="PROVISIONED"):
            load_deployment_config(overrides={"billing_mode": "PROVISIONED", **units})

    def test_zero_units_ignored_for_on_demand(self):
        config = load_deployment_config(overrides={"read_units": 0, "write_units": 0})

        assert config.billing_mode == "PAY_PER_REQUEST"
