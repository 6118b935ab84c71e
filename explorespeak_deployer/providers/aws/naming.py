"""
AWS ARN and URL conventions.

All resource names are declared in core.specs; this module only derives the
identifiers AWS expects from them (invocation URIs, execute-api source ARNs,
permission statement ids, stage URLs).

Usage:
    from explorespeak_deployer.providers.aws.naming import AWSNaming

    naming = AWSNaming(region="us-east-1", account_id="123456789012")
    naming.lambda_function_arn("explorespeak-vocabulary-service")
"""

import re

import explorespeak_deployer.constants as CONSTANTS


class AWSNaming:
    """
    Builds ARNs and URLs for one account/region pair.

    Attributes:
        region: AWS region
        account_id: 12 digit AWS account id
    """

    def __init__(self, region: str, account_id: str):
        self._region = region
        self._account_id = account_id

    @property
    def region(self) -> str:
        return self._region

    @property
    def account_id(self) -> str:
        return self._account_id

    # ==========================================
    # Lambda
    # ==========================================

    def lambda_function_arn(self, function_name: str) -> str:
        return f"arn:aws:lambda:{self._region}:{self._account_id}:function:{function_name}"

    def lambda_invocation_uri(self, function_name: str) -> str:
        """URI API Gateway calls for a Lambda proxy integration."""
        return (
            f"arn:aws:apigateway:{self._region}:lambda:path/"
            f"{CONSTANTS.LAMBDA_INVOKE_API_VERSION}/functions/"
            f"{self.lambda_function_arn(function_name)}/invocations"
        )

    # ==========================================
    # API Gateway
    # ==========================================

    def execute_api_source_arn(self, api_id: str, http_method: str, resource_path: str) -> str:
        """
        Source ARN scoping an invoke permission to one method on one path, any stage.

        Example:
            arn:aws:execute-api:us-east-1:123456789012:abc123/*/GET/vocabulary
        """
        return (
            f"arn:aws:execute-api:{self._region}:{self._account_id}:"
            f"{api_id}/*/{http_method.upper()}{resource_path}"
        )

    def invoke_permission_statement_id(self, api_id: str, http_method: str, resource_path: str) -> str:
        """
        Deterministic statement id, so re-runs hit the same statement.

        Lambda only accepts [a-zA-Z0-9-_] in statement ids.
        """
        raw = f"apigw-{api_id}-{http_method.lower()}{resource_path}"
        return re.sub(r"[^a-zA-Z0-9_-]", "-", raw).rstrip("-")

    def stage_url(self, api_id: str, stage_name: str) -> str:
        return f"https://{api_id}.execute-api.{self._region}.amazonaws.com/{stage_name}"
