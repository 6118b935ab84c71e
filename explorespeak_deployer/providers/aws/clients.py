"""
AWS SDK client initialization.

Design Decision:
    We return a dictionary of clients rather than individual module-level
    variables. This allows the provider to manage client lifecycle and
    enables easy testing via mocking.

Credentials are never passed in: boto3 resolves them from the ambient chain
(environment variables, ~/.aws/credentials, SSO, instance roles).

Usage:
    from explorespeak_deployer.providers.aws.clients import create_aws_clients

    clients = create_aws_clients(region="us-east-1")
    # clients["dynamodb"], clients["lambda"], etc.
"""

from typing import Any, Dict, Optional

import boto3


def create_aws_clients(region: str, profile_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Create and return all AWS boto3 clients needed for deployment.

    Args:
        region: AWS region (e.g., "us-east-1")
        profile_name: Optional named profile from the AWS config files

    Returns:
        Dictionary mapping service names to boto3 client instances.

    Client Keys:
        - dynamodb: DynamoDB tables
        - lambda: Lambda functions
        - iam: Execution role lookup
        - apigateway: API Gateway v1 (REST APIs)
        - sts: Caller identity / account id
    """
    session = boto3.Session(profile_name=profile_name, region_name=region)

    return {
        "dynamodb": session.client("dynamodb"),
        "lambda": session.client("lambda"),
        "iam": session.client("iam"),
        "apigateway": session.client("apigateway"),
        "sts": session.client("sts"),
    }
