import os
import sys

import pytest

# Make the package importable without an editable install
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


@pytest.fixture(scope="function", autouse=True)
def mock_env_vars(monkeypatch):
    """Set mock environment variables to prevent accidental cloud calls."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_REGION", raising=False)
    monkeypatch.delenv("AWS_PROFILE", raising=False)


@pytest.fixture(autouse=True)
def mock_sleep(monkeypatch):
    """Skip time.sleep calls to speed up tests."""
    monkeypatch.setattr("time.sleep", lambda x: None)


@pytest.fixture(scope="function")
def source_root(tmp_path):
    """Project root with minimal sources for both Lambda services."""
    lambdas_dir = tmp_path / "backend" / "lambdas"
    for service in ["vocabulary-service", "adaptive-learning-service"]:
        service_dir = lambdas_dir / service
        service_dir.mkdir(parents=True)
        (service_dir / "index.js").write_text(
            "exports.handler = async (event) => ({ statusCode: 200, body: '{}' });\n"
        )
        (service_dir / "lib").mkdir()
        (service_dir / "lib" / "srs.js").write_text("module.exports = {};\n")
    return tmp_path
