"""
AWS Utility Functions.

This module provides console link generation for log output.
"""

from botocore.exceptions import ClientError


# ==========================================
# Console Link Functions
# ==========================================

def link_to_dynamodb_table(table_name, region: str):
    return f"https://console.aws.amazon.com/dynamodbv2/home?region={region}#table?name={table_name}"


def link_to_lambda_function(function_name, region: str):
    return f"https://console.aws.amazon.com/lambda/home?region={region}#/functions/{function_name}"


def link_to_iam_role(role_name, region: str):
    return f"https://console.aws.amazon.com/iam/home?region={region}#/roles/{role_name}"


def link_to_rest_api(api_id, region: str):
    return f"https://console.aws.amazon.com/apigateway/home?region={region}#/apis/{api_id}/resources"


def link_to_rest_api_stage(api_id, stage_name, region: str):
    return f"https://console.aws.amazon.com/apigateway/home?region={region}#/apis/{api_id}/stages/{stage_name}"


def error_code(error) -> str:
    """Error code of a botocore ClientError."""
    return error.response.get("Error", {}).get("Code", "")


def error_message(error) -> str:
    """Provider message of a botocore ClientError, falling back to str()."""
    return error.response.get("Error", {}).get("Message") or str(error)


def describe_error(error) -> str:
    """Log text for any botocore error; ClientError carries a provider message."""
    if isinstance(error, ClientError):
        return error_message(error)
    return str(error)
