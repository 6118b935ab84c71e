"""
API Gateway (REST API) configuration.

Flow:
    1. Resolve the REST API: verify a supplied id, else look it up by name,
       else create it. An unresolvable id is a hard stop.
    2. Read the existing resource tree once and keep a path -> id map.
    3. For each declared path, create the missing segments under their parent.
       Paths are always looked up before they are created, so re-runs never
       produce duplicates.
    4. For each declared method: method (open authorization), AWS_PROXY
       integration to the target function, method/integration responses for
       200/400/500, and an invoke permission scoped to method + path.
    5. Publish a deployment snapshot under the stage.

Per-path and per-method errors are logged and the loop continues.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

import explorespeak_deployer.constants as CONSTANTS
import explorespeak_deployer.providers.aws.util_aws as util_aws
from explorespeak_deployer.core.exceptions import ApiNotFoundError, ResourceCreationError
from explorespeak_deployer.core.specs import ancestor_paths
from explorespeak_deployer.logger import logger

if TYPE_CHECKING:
    from explorespeak_deployer.core.specs import MethodBinding, ResourceSpec
    from explorespeak_deployer.providers.aws.provider import AWSProvider


@dataclass
class GatewayReport:
    api_id: Optional[str] = None
    api_created: bool = False
    created_paths: List[str] = field(default_factory=list)
    existing_paths: List[str] = field(default_factory=list)
    methods: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    deployment_id: Optional[str] = None
    invoke_url: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.failed and self.deployment_id is not None


# ==========================================
# 1. REST API
# ==========================================

def find_rest_api_by_name(provider: 'AWSProvider', api_name: str) -> Optional[str]:
    paginator = provider.clients["apigateway"].get_paginator("get_rest_apis")

    for page in paginator.paginate():
        for api in page.get("items", []):
            if api["name"] == api_name:
                return api["id"]

    return None


def ensure_rest_api(
    provider: 'AWSProvider',
    api_id: Optional[str] = None,
    api_name: str = CONSTANTS.DEFAULT_API_NAME
) -> Tuple[str, bool]:
    """
    Resolve the REST API to configure.

    Returns:
        (api_id, created)

    Raises:
        ApiNotFoundError: If api_id was supplied but does not exist
        ResourceCreationError: If a new API could not be created
    """
    apigw = provider.clients["apigateway"]

    if api_id:
        try:
            apigw.get_rest_api(restApiId=api_id)
        except ClientError as e:
            logger.error(f"❌ API Gateway not found: {api_id}")
            raise ApiNotFoundError(api_id, original_error=e) from e
        logger.info(f"✅ Using API Gateway: {util_aws.link_to_rest_api(api_id, region=provider.region)}")
        return api_id, False

    existing_id = find_rest_api_by_name(provider, api_name)
    if existing_id:
        logger.info(f"✅ Found API Gateway '{api_name}': {existing_id}")
        return existing_id, False

    logger.info("Creating new API Gateway...")
    try:
        response = apigw.create_rest_api(
            name=api_name,
            description=CONSTANTS.DEFAULT_API_DESCRIPTION,
            endpointConfiguration={"types": ["REGIONAL"]}
        )
    except (ClientError, BotoCoreError) as e:
        raise ResourceCreationError("rest_api", api_name, phase=CONSTANTS.PHASE_GATEWAY, original_error=e) from e

    logger.info(f"✅ Created new API: {response['id']}")
    return response["id"], True


# ==========================================
# 2. Path Resources
# ==========================================

def list_resources(provider: 'AWSProvider', api_id: str) -> Dict[str, str]:
    """Map every existing resource path of the API to its resource id."""
    paginator = provider.clients["apigateway"].get_paginator("get_resources")
    resources = {}

    for page in paginator.paginate(restApiId=api_id):
        for item in page.get("items", []):
            resources[item["path"]] = item["id"]

    return resources


def get_root_resource_id(provider: 'AWSProvider', api_id: str, known: Optional[Dict[str, str]] = None) -> str:
    resources = known if known is not None else list_resources(provider, api_id)
    if "/" not in resources:
        raise ApiNotFoundError(api_id)
    return resources["/"]


def ensure_resource_path(
    provider: 'AWSProvider',
    api_id: str,
    path: str,
    known: Dict[str, str]
) -> Tuple[str, List[str]]:
    """
    Ensure every segment of path exists, creating missing ones top-down.

    Args:
        known: path -> resource id map; updated in place with new resources

    Returns:
        (resource id of path, list of paths that were created)
    """
    apigw = provider.clients["apigateway"]
    created = []

    for current in ancestor_paths(path):
        if current in known:
            continue

        parent = current.rsplit("/", 1)[0] or "/"
        try:
            response = apigw.create_resource(
                restApiId=api_id,
                parentId=known[parent],
                pathPart=current.rsplit("/", 1)[-1]
            )
        except ClientError as e:
            if util_aws.error_code(e) != "ConflictException":
                raise
            # Created concurrently since the tree was read
            known.update(list_resources(provider, api_id))
            if current not in known:
                raise
            continue

        known[current] = response["id"]
        created.append(current)
        logger.info(f"Created resource: {current}")

    return known[path], created


# ==========================================
# 3. Methods & Integrations
# ==========================================

def method_exists(provider: 'AWSProvider', api_id: str, resource_id: str, http_method: str) -> bool:
    try:
        provider.clients["apigateway"].get_method(
            restApiId=api_id,
            resourceId=resource_id,
            httpMethod=http_method
        )
        return True
    except ClientError as e:
        if util_aws.error_code(e) == "NotFoundException":
            return False
        raise


def _put_method_response(provider: 'AWSProvider', api_id: str, resource_id: str, http_method: str, status_code: str) -> None:
    try:
        provider.clients["apigateway"].put_method_response(
            restApiId=api_id,
            resourceId=resource_id,
            httpMethod=http_method,
            statusCode=status_code,
            responseModels={"application/json": "Empty"}
        )
    except ClientError as e:
        if util_aws.error_code(e) != "ConflictException":
            raise
        logger.debug(f"Method response {status_code} already exists for {http_method}")


def _put_integration_response(
    provider: 'AWSProvider',
    api_id: str,
    resource_id: str,
    http_method: str,
    status_code: str,
    selection_pattern: Optional[str]
) -> None:
    params = {
        "restApiId": api_id,
        "resourceId": resource_id,
        "httpMethod": http_method,
        "statusCode": status_code,
        "responseTemplates": {"application/json": ""},
    }
    if selection_pattern is not None:
        params["selectionPattern"] = selection_pattern

    provider.clients["apigateway"].put_integration_response(**params)


def grant_invoke_permission(
    provider: 'AWSProvider',
    api_id: str,
    function_name: str,
    http_method: str,
    resource_path: str
) -> bool:
    """
    Allow API Gateway to invoke the function for one method on one path.

    Returns:
        True if a new statement was added, False if it already existed.
    """
    naming = provider.naming
    try:
        provider.clients["lambda"].add_permission(
            FunctionName=function_name,
            StatementId=naming.invoke_permission_statement_id(api_id, http_method, resource_path),
            Action="lambda:InvokeFunction",
            Principal=CONSTANTS.APIGATEWAY_PRINCIPAL,
            SourceArn=naming.execute_api_source_arn(api_id, http_method, resource_path)
        )
    except ClientError as e:
        if util_aws.error_code(e) == "ResourceConflictException":
            logger.debug(f"Invoke permission already granted: {http_method} {resource_path} -> {function_name}")
            return False
        raise

    logger.info(f"Granted API Gateway invoke permission: {http_method} {resource_path} -> {function_name}")
    return True


def ensure_method(
    provider: 'AWSProvider',
    api_id: str,
    resource_id: str,
    resource_path: str,
    binding: 'MethodBinding'
) -> None:
    """Attach one HTTP method with a Lambda proxy integration to a resource."""
    apigw = provider.clients["apigateway"]
    http_method = binding.http_method

    if method_exists(provider, api_id, resource_id, http_method):
        logger.debug(f"Method already exists: {http_method} {resource_path}")
    else:
        apigw.put_method(
            restApiId=api_id,
            resourceId=resource_id,
            httpMethod=http_method,
            authorizationType="NONE"
        )

    # PUT semantics: repointing an existing integration is safe
    apigw.put_integration(
        restApiId=api_id,
        resourceId=resource_id,
        httpMethod=http_method,
        type="AWS_PROXY",
        integrationHttpMethod="POST",
        uri=provider.naming.lambda_invocation_uri(binding.function_name)
    )

    for status_code, selection_pattern in CONSTANTS.METHOD_RESPONSE_PATTERNS.items():
        _put_method_response(provider, api_id, resource_id, http_method, status_code)
        _put_integration_response(provider, api_id, resource_id, http_method, status_code, selection_pattern)

    grant_invoke_permission(provider, api_id, binding.function_name, http_method, resource_path)
    logger.info(f"✅ {http_method} {resource_path} -> {binding.function_name}")


# ==========================================
# 4. Deployment
# ==========================================

def create_deployment(provider: 'AWSProvider', api_id: str, stage_name: str = CONSTANTS.DEFAULT_STAGE_NAME) -> str:
    response = provider.clients["apigateway"].create_deployment(
        restApiId=api_id,
        stageName=stage_name,
        description="ExploreSpeak deployment"
    )
    logger.info(f"✅ API deployed to stage '{stage_name}': {util_aws.link_to_rest_api_stage(api_id, stage_name, region=provider.region)}")
    return response["id"]


def configure_gateway(
    provider: 'AWSProvider',
    resources: List['ResourceSpec'],
    api_id: Optional[str] = None,
    api_name: str = CONSTANTS.DEFAULT_API_NAME,
    stage_name: str = CONSTANTS.DEFAULT_STAGE_NAME
) -> GatewayReport:
    """
    Reconcile the declared path resources and methods, then deploy the stage.

    Raises:
        ApiNotFoundError / ResourceCreationError: If the API cannot be resolved;
            nothing is configured or deployed in that case
    """
    report = GatewayReport()
    logger.info("🌐 Setting up API Gateway...")

    report.api_id, report.api_created = ensure_rest_api(provider, api_id, api_name)
    known = list_resources(provider, report.api_id)
    get_root_resource_id(provider, report.api_id, known)

    for resource in resources:
        try:
            resource_id, created = ensure_resource_path(provider, report.api_id, resource.path, known)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"❌ Failed to create resource {resource.path}: {util_aws.describe_error(e)}")
            report.failed.append(resource.path)
            continue

        report.created_paths.extend(created)
        if resource.path not in created:
            report.existing_paths.append(resource.path)

        for binding in resource.methods:
            label = f"{binding.http_method} {resource.path}"
            try:
                ensure_method(provider, report.api_id, resource_id, resource.path, binding)
            except (ClientError, BotoCoreError) as e:
                logger.error(f"❌ Failed to configure {label}: {util_aws.describe_error(e)}")
                report.failed.append(label)
                continue
            report.methods.append(label)

    try:
        report.deployment_id = create_deployment(provider, report.api_id, stage_name)
    except (ClientError, BotoCoreError) as e:
        logger.error(f"❌ Failed to deploy API to stage '{stage_name}': {util_aws.describe_error(e)}")
        report.failed.append(f"deployment:{stage_name}")

    report.invoke_url = provider.naming.stage_url(report.api_id, stage_name)
    logger.info("API Gateway setup complete")
    logger.info(f"🌐 API URL: {report.invoke_url}")
    return report
