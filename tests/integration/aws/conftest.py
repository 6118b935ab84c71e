import json

import boto3
import pytest
from moto import mock_aws

REGION = "us-east-1"
ACCOUNT_ID = "123456789012"

LAMBDA_TRUST_POLICY = {
    "Version": "2012-10-17",
    "Statement": [
        {
            "Effect": "Allow",
            "Principal": {"Service": "lambda.amazonaws.com"},
            "Action": "sts:AssumeRole",
        }
    ],
}


@pytest.fixture(scope="function")
def mock_provider():
    """
    Create an AWSProvider whose clients talk to moto instead of AWS.
    """
    from explorespeak_deployer.providers.aws.provider import AWSProvider

    with mock_aws():
        provider = AWSProvider()
        provider._region = REGION
        provider._initialized = True  # Mark as initialized to bypass property check

        provider._clients = {
            "dynamodb": boto3.client("dynamodb", region_name=REGION),
            "lambda": boto3.client("lambda", region_name=REGION),
            "iam": boto3.client("iam", region_name=REGION),
            "apigateway": boto3.client("apigateway", region_name=REGION),
            "sts": boto3.client("sts", region_name=REGION),
        }
        yield provider


@pytest.fixture(scope="function")
def lambda_role(mock_provider):
    """Create the Lambda execution role in moto and return its ARN."""
    response = mock_provider.clients["iam"].create_role(
        RoleName="explorespeak-lambda-role",
        AssumeRolePolicyDocument=json.dumps(LAMBDA_TRUST_POLICY),
    )
    return response["Role"]["Arn"]


@pytest.fixture(scope="function")
def patch_lambda_waiters(mock_provider):
    """moto reports functions as settled immediately; skip the waiter polling."""
    from unittest.mock import MagicMock

    waiter_factory = MagicMock()
    mock_provider.clients["lambda"].get_waiter = waiter_factory
    return waiter_factory
