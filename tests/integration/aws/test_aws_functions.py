import io
import json
import shutil
import tempfile
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from explorespeak_deployer.core.exceptions import RoleNotFoundError
from explorespeak_deployer.core.specs import default_functions
from explorespeak_deployer.providers.aws.layers.functions import (
    deploy_function,
    deploy_functions,
    invoke_function,
    resolve_role_arn,
)

ROLE_NAME = "explorespeak-lambda-role"


def _not_found(operation):
    return ClientError({"Error": {"Code": "ResourceNotFoundException", "Message": "not found"}}, operation)


class TestFunctionDeployment:
    """Verify Lambda create/update against moto."""

    def test_creates_functions(self, mock_provider, lambda_role, source_root, patch_lambda_waiters):
        report = deploy_functions(mock_provider, default_functions(source_root, ROLE_NAME))

        assert report.created == [
            "explorespeak-vocabulary-service",
            "explorespeak-adaptive-learning-service",
        ]
        assert report.role_arns == {ROLE_NAME: lambda_role}

        config = mock_provider.clients["lambda"].get_function(
            FunctionName="explorespeak-vocabulary-service"
        )["Configuration"]
        assert config["Runtime"] == "nodejs18.x"
        assert config["Handler"] == "index.handler"
        assert config["Environment"]["Variables"] == {
            "TABLE_NAME_CARDS": "ExploreSpeak-VocabularyCards",
            "TABLE_NAME_SESSIONS": "ExploreSpeak-ReviewSessions",
        }
        patch_lambda_waiters.assert_any_call("function_active_v2")

    def test_existing_function_is_updated_in_place(self, mock_provider, lambda_role, source_root, patch_lambda_waiters):
        """Redeploying keeps the function name and role binding."""
        functions = default_functions(source_root, ROLE_NAME)
        deploy_functions(mock_provider, functions)

        (source_root / "backend" / "lambdas" / "vocabulary-service" / "index.js").write_text(
            "exports.handler = async () => ({ statusCode: 204 });\n"
        )
        report = deploy_functions(mock_provider, functions)

        assert report.created == []
        assert sorted(report.updated) == sorted(f.name for f in functions)

        lambda_client = mock_provider.clients["lambda"]
        names = sorted(f["FunctionName"] for f in lambda_client.list_functions()["Functions"])
        assert names == sorted(f.name for f in functions)
        for function in functions:
            config = lambda_client.get_function(FunctionName=function.name)["Configuration"]
            assert config["Role"] == lambda_role
        patch_lambda_waiters.assert_any_call("function_updated")

    def test_missing_source_is_skipped(self, mock_provider, lambda_role, source_root, patch_lambda_waiters):
        shutil.rmtree(source_root / "backend" / "lambdas" / "adaptive-learning-service")

        report = deploy_functions(mock_provider, default_functions(source_root, ROLE_NAME))

        assert report.created == ["explorespeak-vocabulary-service"]
        assert report.skipped == ["explorespeak-adaptive-learning-service"]
        assert report.ok

    def test_missing_role_raises_before_any_function(self, mock_provider, source_root):
        with pytest.raises(RoleNotFoundError) as exc_info:
            deploy_functions(mock_provider, default_functions(source_root, ROLE_NAME))

        assert exc_info.value.role_name == ROLE_NAME
        assert mock_provider.clients["lambda"].list_functions()["Functions"] == []

    def test_resolve_role_arn(self, mock_provider, lambda_role):
        assert resolve_role_arn(mock_provider, ROLE_NAME) == lambda_role


class TestFunctionFailures:
    """Verify per-function failures with a mocked Lambda client."""

    def test_failed_upload_removes_archive(self, mock_provider, lambda_role, source_root, tmp_path, monkeypatch):
        temp_dir = tmp_path / "archives"
        temp_dir.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(temp_dir))

        lambda_client = MagicMock()
        mock_provider.clients["lambda"] = lambda_client
        lambda_client.get_function.side_effect = _not_found("GetFunction")
        lambda_client.create_function.side_effect = ClientError(
            {"Error": {"Code": "CodeStorageExceededException", "Message": "storage exceeded"}}, "CreateFunction"
        )

        report = deploy_functions(mock_provider, default_functions(source_root, ROLE_NAME))

        assert sorted(report.failed) == [
            "explorespeak-adaptive-learning-service",
            "explorespeak-vocabulary-service",
        ]
        assert lambda_client.create_function.call_count == 2
        assert list(temp_dir.iterdir()) == []

    def test_connection_error_is_recorded_and_loop_continues(self, mock_provider, lambda_role, source_root):
        lambda_client = MagicMock()
        mock_provider.clients["lambda"] = lambda_client
        lambda_client.get_function.side_effect = _not_found("GetFunction")
        lambda_client.create_function.side_effect = [
            EndpointConnectionError(endpoint_url="https://lambda.us-east-1.amazonaws.com"),
            {"FunctionArn": "arn:aws:lambda:us-east-1:123456789012:function:explorespeak-adaptive-learning-service"},
        ]

        report = deploy_functions(mock_provider, default_functions(source_root, ROLE_NAME))

        assert report.failed == ["explorespeak-vocabulary-service"]
        assert report.created == ["explorespeak-adaptive-learning-service"]

    def test_update_applies_code_then_configuration(self, mock_provider, source_root):
        lambda_client = MagicMock()
        mock_provider.clients["lambda"] = lambda_client
        spec = default_functions(source_root, ROLE_NAME)[0]
        role_arn = f"arn:aws:iam::123456789012:role/{ROLE_NAME}"

        action = deploy_function(mock_provider, spec, role_arn)

        assert action == "updated"
        assert lambda_client.method_calls[1][0] == "update_function_code"
        lambda_client.update_function_configuration.assert_called_once_with(**spec.to_configuration(role_arn))
        lambda_client.create_function.assert_not_called()


class TestInvokeFunction:

    def test_decodes_json_payload(self, mock_provider):
        lambda_client = MagicMock()
        mock_provider.clients["lambda"] = lambda_client
        lambda_client.invoke.return_value = {
            "StatusCode": 200,
            "Payload": io.BytesIO(json.dumps({"statusCode": 200}).encode("utf-8")),
        }

        result = invoke_function(mock_provider, "explorespeak-vocabulary-service")

        assert result == {"status_code": 200, "function_error": None, "payload": {"statusCode": 200}}
        lambda_client.invoke.assert_called_once_with(
            FunctionName="explorespeak-vocabulary-service",
            InvocationType="RequestResponse",
            Payload="{}",
        )
