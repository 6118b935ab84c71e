"""
Post-deployment smoke checks.

Every check re-describes one resource and records pass/fail. Checks never
raise and never modify anything; a missing resource is simply a failed check.
"""

from dataclasses import dataclass, field
from typing import List, Optional, TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

import explorespeak_deployer.providers.aws.util_aws as util_aws
from explorespeak_deployer.logger import logger
from explorespeak_deployer.providers.aws.layers.functions import invoke_function

if TYPE_CHECKING:
    from explorespeak_deployer.core.specs import DeploymentPlan
    from explorespeak_deployer.providers.aws.provider import AWSProvider


@dataclass
class CheckResult:
    kind: str
    name: str
    passed: bool
    detail: str = ""


@dataclass
class SmokeReport:
    results: List[CheckResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for result in self.results if result.passed)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> List[CheckResult]:
        return [result for result in self.results if not result.passed]

    @property
    def ok(self) -> bool:
        return self.passed == self.total


def _record(kind: str, name: str, passed: bool, detail: str = "") -> CheckResult:
    if passed:
        logger.info(f"✅ {kind} {name}: {detail or 'OK'}")
    else:
        logger.error(f"❌ {kind} {name}: {detail}")
    return CheckResult(kind=kind, name=name, passed=passed, detail=detail)


def check_table(provider: 'AWSProvider', table_name: str) -> CheckResult:
    try:
        response = provider.clients["dynamodb"].describe_table(TableName=table_name)
    except ClientError as e:
        if util_aws.error_code(e) == "ResourceNotFoundException":
            return _record("Table", table_name, False, "missing")
        return _record("Table", table_name, False, util_aws.describe_error(e))
    except BotoCoreError as e:
        return _record("Table", table_name, False, util_aws.describe_error(e))

    status = response["Table"].get("TableStatus", "UNKNOWN")
    return _record("Table", table_name, status == "ACTIVE", status)


def check_function(provider: 'AWSProvider', function_name: str) -> CheckResult:
    try:
        response = provider.clients["lambda"].get_function(FunctionName=function_name)
    except ClientError as e:
        if util_aws.error_code(e) == "ResourceNotFoundException":
            return _record("Function", function_name, False, "missing")
        return _record("Function", function_name, False, util_aws.describe_error(e))
    except BotoCoreError as e:
        return _record("Function", function_name, False, util_aws.describe_error(e))

    state = response["Configuration"].get("State", "Active")
    return _record("Function", function_name, state == "Active", state)


def check_rest_api(provider: 'AWSProvider', api_id: Optional[str]) -> CheckResult:
    if not api_id:
        return _record("API", "<unset>", False, "no API id")

    try:
        provider.clients["apigateway"].get_rest_api(restApiId=api_id)
    except ClientError as e:
        if util_aws.error_code(e) == "NotFoundException":
            return _record("API", api_id, False, "missing")
        return _record("API", api_id, False, util_aws.describe_error(e))
    except BotoCoreError as e:
        return _record("API", api_id, False, util_aws.describe_error(e))

    return _record("API", api_id, True, util_aws.link_to_rest_api(api_id, region=provider.region))


def check_invoke(provider: 'AWSProvider', function_name: str) -> CheckResult:
    """Invoke the function once with an empty event."""
    try:
        result = invoke_function(provider, function_name, payload={})
    except (ClientError, BotoCoreError) as e:
        return _record("Invoke", function_name, False, util_aws.describe_error(e))

    if result["function_error"]:
        return _record("Invoke", function_name, False, f"{result['function_error']}: {result['payload']}")
    return _record("Invoke", function_name, True, f"status {result['status_code']}")


def run_smoke_tests(
    provider: 'AWSProvider',
    plan: 'DeploymentPlan',
    api_id: Optional[str],
    invoke: bool = False
) -> SmokeReport:
    """Check every declared table and function, plus the REST API."""
    report = SmokeReport()
    logger.info("🧪 Running smoke tests...")

    for table_name in plan.table_names():
        report.results.append(check_table(provider, table_name))

    for function_name in plan.function_names():
        report.results.append(check_function(provider, function_name))

    report.results.append(check_rest_api(provider, api_id))

    if invoke:
        for function_name in plan.function_names():
            report.results.append(check_invoke(provider, function_name))

    logger.info(f"Test Results: {report.passed}/{report.total} passed")
    return report
