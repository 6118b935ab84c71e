"""
Lambda function deployment.

The execution role is resolved first; if it is missing nothing is deployed
and RoleNotFoundError propagates to the caller. Each function is then
packaged from its source directory and either updated in place (code, then
configuration) or created with its full configuration. The temporary
archive is removed after every upload attempt.
"""

import json
import subprocess
from dataclasses import dataclass, field
from typing import Dict, List, Optional, TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

import explorespeak_deployer.providers.aws.util_aws as util_aws
from explorespeak_deployer.core.exceptions import RoleNotFoundError
from explorespeak_deployer.logger import logger
from explorespeak_deployer.util import deployment_package

if TYPE_CHECKING:
    from explorespeak_deployer.core.specs import FunctionSpec
    from explorespeak_deployer.providers.aws.provider import AWSProvider


@dataclass
class FunctionReport:
    role_arns: Dict[str, str] = field(default_factory=dict)
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def deployed(self) -> List[str]:
        return self.created + self.updated

    @property
    def ok(self) -> bool:
        return not self.failed


def resolve_role_arn(provider: 'AWSProvider', role_name: str) -> str:
    """
    Resolve an IAM role name to its ARN.

    Raises:
        RoleNotFoundError: If the role does not exist or cannot be read
    """
    try:
        response = provider.clients["iam"].get_role(RoleName=role_name)
    except (ClientError, BotoCoreError) as e:
        logger.error(f"❌ Lambda role not found: {role_name}")
        raise RoleNotFoundError(role_name, original_error=e) from e

    role_arn = response["Role"]["Arn"]
    logger.info(f"✅ Found Lambda role: {role_arn} ({util_aws.link_to_iam_role(role_name, region=provider.region)})")
    return role_arn


def function_exists(provider: 'AWSProvider', function_name: str) -> bool:
    try:
        provider.clients["lambda"].get_function(FunctionName=function_name)
        return True
    except ClientError as e:
        if util_aws.error_code(e) == "ResourceNotFoundException":
            return False
        raise


def _wait_until_updated(provider: 'AWSProvider', function_name: str) -> None:
    waiter = provider.clients["lambda"].get_waiter("function_updated")
    waiter.wait(FunctionName=function_name)


def deploy_function(
    provider: 'AWSProvider',
    spec: 'FunctionSpec',
    role_arn: str,
    install_dependencies: bool = False
) -> str:
    """
    Create or update one Lambda function from its source directory.

    Updating keeps the function name; the role is re-applied from the same
    resolved ARN, so the binding is unchanged.

    Returns:
        "created" or "updated"
    """
    lambda_client = provider.clients["lambda"]
    configuration = spec.to_configuration(role_arn)

    with deployment_package(spec.source_dir, install_dependencies=install_dependencies) as zip_code:
        if function_exists(provider, spec.name):
            logger.info(f"🔄 Updating existing function: {spec.name}")
            lambda_client.update_function_code(
                FunctionName=spec.name,
                ZipFile=zip_code,
                Publish=True
            )
            _wait_until_updated(provider, spec.name)

            lambda_client.update_function_configuration(**configuration)
            _wait_until_updated(provider, spec.name)
            action = "updated"
        else:
            logger.info(f"🆕 Creating new function: {spec.name}")
            lambda_client.create_function(
                **configuration,
                Code={"ZipFile": zip_code},
                Publish=True
            )
            waiter = lambda_client.get_waiter("function_active_v2")
            waiter.wait(FunctionName=spec.name)
            action = "created"

    logger.info(
        f"✅ {spec.name} {action}: "
        f"{util_aws.link_to_lambda_function(spec.name, region=provider.region)}"
    )
    return action


def deploy_functions(
    provider: 'AWSProvider',
    functions: List['FunctionSpec'],
    install_dependencies: bool = False
) -> FunctionReport:
    """
    Deploy every declared function.

    Raises:
        RoleNotFoundError: Before any function is touched, if a role is missing
    """
    report = FunctionReport()
    logger.info("⚡ Deploying Lambda functions...")

    for role_name in dict.fromkeys(spec.role_name for spec in functions):
        report.role_arns[role_name] = resolve_role_arn(provider, role_name)

    for spec in functions:
        if not spec.source_dir.is_dir():
            logger.warning(f"⚠️ Source directory not found for {spec.name}: {spec.source_dir}, skipping")
            report.skipped.append(spec.name)
            continue

        try:
            action = deploy_function(
                provider,
                spec,
                report.role_arns[spec.role_name],
                install_dependencies=install_dependencies
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"❌ Failed to deploy {spec.name}: {util_aws.describe_error(e)}")
            report.failed.append(spec.name)
            continue
        except (subprocess.CalledProcessError, OSError) as e:
            logger.error(f"❌ Failed to deploy {spec.name}: {e}")
            report.failed.append(spec.name)
            continue

        if action == "created":
            report.created.append(spec.name)
        else:
            report.updated.append(spec.name)

    logger.info(
        f"Lambda deployment complete: {len(report.created)} created, {len(report.updated)} updated, "
        f"{len(report.skipped)} skipped, {len(report.failed)} failed"
    )
    return report


def invoke_function(
    provider: 'AWSProvider',
    function_name: str,
    payload: Optional[dict] = None
) -> dict:
    """Invoke a Lambda function synchronously.

    Args:
        provider: AWSProvider instance
        function_name: Deployed function name
        payload: Event payload, empty dict if omitted

    Returns:
        Dict with "status_code", "function_error" (None on success) and the
        decoded "payload" (raw string if the response is not JSON)
    """
    if payload is None:
        payload = {}

    response = provider.clients["lambda"].invoke(
        FunctionName=function_name,
        InvocationType="RequestResponse",
        Payload=json.dumps(payload),
    )

    raw = response["Payload"].read() if "Payload" in response else b""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    try:
        result = json.loads(raw) if raw else None
    except json.JSONDecodeError:
        result = raw

    logger.debug(f"Lambda response from {function_name}: {result}")
    return {
        "status_code": response.get("StatusCode"),
        "function_error": response.get("FunctionError"),
        "payload": result,
    }
