"""
Deployer - ExploreSpeak provisioning orchestration.

Runs the phases in dependency order against one AWS account/region:

    credentials -> tables -> functions -> gateway -> smoke

Usage:
    context = create_deployment_context(config)
    summary = deploy_all(context)

Independent resources fail soft: their errors are logged, recorded in the
phase report and the run continues. Prerequisites fail fast: missing
credentials, a missing execution role or an unresolvable REST API stop
every later phase, and the summary records the error in `halted_by`.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

import explorespeak_deployer.constants as CONSTANTS
import explorespeak_deployer.providers.aws.util_aws as util_aws
from explorespeak_deployer.core.context import DeploymentContext
from explorespeak_deployer.core.exceptions import CredentialsError, DeploymentError
from explorespeak_deployer.logger import logger, print_stack_trace
from explorespeak_deployer.providers.aws.layers.functions import FunctionReport, deploy_functions
from explorespeak_deployer.providers.aws.layers.gateway import (
    GatewayReport,
    configure_gateway,
    find_rest_api_by_name,
)
from explorespeak_deployer.providers.aws.layers.smoke import SmokeReport, run_smoke_tests
from explorespeak_deployer.providers.aws.layers.tables import TableReport, deploy_tables
from explorespeak_deployer.providers.aws.provider import AWSProvider

if TYPE_CHECKING:
    from explorespeak_deployer.core.context import DeploymentConfig


@dataclass
class DeploymentSummary:
    """Outcome of one run, one report per phase that ran."""

    tables: Optional[TableReport] = None
    functions: Optional[FunctionReport] = None
    gateway: Optional[GatewayReport] = None
    smoke: Optional[SmokeReport] = None
    account_id: Optional[str] = None
    halted_by: Optional[DeploymentError] = None

    @property
    def api_id(self) -> Optional[str]:
        return self.gateway.api_id if self.gateway else None

    @property
    def invoke_url(self) -> Optional[str]:
        return self.gateway.invoke_url if self.gateway else None

    @property
    def ok(self) -> bool:
        if self.halted_by is not None:
            return False
        reports = (self.tables, self.functions, self.gateway, self.smoke)
        return all(report.ok for report in reports if report is not None)


def create_deployment_context(config: 'DeploymentConfig') -> DeploymentContext:
    """Initialize the AWS provider and build the plan for a configuration."""
    provider = AWSProvider()
    provider.initialize_clients(region=config.region, profile_name=config.profile_name)
    return DeploymentContext(config=config, plan=config.build_plan(), provider=provider)


def verify_credentials(provider: AWSProvider) -> dict:
    """
    Confirm that the ambient credential chain yields a usable identity.

    Returns:
        The sts.get_caller_identity response

    Raises:
        CredentialsError: If no credentials are configured or STS rejects them
    """
    try:
        identity = provider.clients["sts"].get_caller_identity()
    except NoCredentialsError as e:
        logger.error("❌ AWS credentials not configured. Run 'aws configure' first.")
        raise CredentialsError() from e
    except (ClientError, BotoCoreError) as e:
        logger.error(f"❌ AWS credentials rejected: {e}")
        raise CredentialsError(f"AWS credentials rejected: {e}") from e

    logger.info(f"✅ AWS credentials verified (account {identity['Account']}, region {provider.region})")
    return identity


def _resolve_api_id_for_checks(context: DeploymentContext, summary: DeploymentSummary) -> Optional[str]:
    if summary.api_id:
        return summary.api_id
    if context.config.api_id:
        return context.config.api_id
    try:
        return find_rest_api_by_name(context.provider, context.config.api_name)
    except (ClientError, BotoCoreError) as e:
        logger.warning(f"⚠️ Could not look up API '{context.config.api_name}': {e}")
        return None


def deploy_all(
    context: DeploymentContext,
    phases: Iterable[str] = CONSTANTS.ALL_PHASES
) -> DeploymentSummary:
    """
    Run the selected phases in dependency order.

    Args:
        context: Config, plan and initialized provider
        phases: Subset of "tables", "functions", "gateway", "smoke"; order is
            always the dependency order regardless of how they are passed

    Returns:
        DeploymentSummary; `halted_by` is set when a prerequisite failed
    """
    selected = set(phases)
    unknown = selected - set(CONSTANTS.ALL_PHASES)
    if unknown:
        raise ValueError(f"Unknown phases: {sorted(unknown)}")

    config = context.config
    provider = context.provider
    plan = context.plan
    summary = DeploymentSummary()

    logger.info("🚀 Starting ExploreSpeak deployment...")

    try:
        summary.account_id = verify_credentials(provider)["Account"]

        if CONSTANTS.PHASE_TABLES in selected:
            summary.tables = deploy_tables(
                provider,
                plan.tables,
                wait_delay=config.table_wait_delay,
                wait_attempts=config.table_wait_attempts,
            )

        if CONSTANTS.PHASE_FUNCTIONS in selected:
            summary.functions = deploy_functions(
                provider,
                plan.functions,
                install_dependencies=config.install_dependencies,
            )

        if CONSTANTS.PHASE_GATEWAY in selected:
            try:
                summary.gateway = configure_gateway(
                    provider,
                    plan.resources,
                    api_id=config.api_id,
                    api_name=config.api_name,
                    stage_name=config.stage_name,
                )
            except (ClientError, BotoCoreError) as e:
                raise DeploymentError(
                    f"Could not read API Gateway: {util_aws.describe_error(e)}",
                    phase=CONSTANTS.PHASE_GATEWAY
                ) from e

        if CONSTANTS.PHASE_SMOKE in selected:
            summary.smoke = run_smoke_tests(
                provider,
                plan,
                api_id=_resolve_api_id_for_checks(context, summary),
                invoke=config.invoke_functions,
            )
    except DeploymentError as e:
        logger.error(f"❌ Deployment halted: {e}")
        print_stack_trace()
        summary.halted_by = e

    _log_summary(summary, config.stage_name)
    return summary


def _log_summary(summary: DeploymentSummary, stage_name: str) -> None:
    logger.info("")
    logger.info("=" * 50)
    logger.info("Deployment Summary")
    logger.info("=" * 50)

    if summary.tables is not None:
        logger.info(
            f"Tables:    {len(summary.tables.active)} active, {len(summary.tables.failed)} failed"
        )
    if summary.functions is not None:
        logger.info(
            f"Functions: {len(summary.functions.deployed)} deployed, "
            f"{len(summary.functions.skipped)} skipped, {len(summary.functions.failed)} failed"
        )
    if summary.gateway is not None:
        logger.info(f"API ID:    {summary.gateway.api_id}")
        logger.info(f"API URL:   {summary.gateway.invoke_url}")
        logger.info(f"Stage:     {stage_name}")
        if summary.gateway.failed:
            logger.warning(f"Gateway failures: {', '.join(summary.gateway.failed)}")
    if summary.smoke is not None:
        logger.info(f"Smoke:     {summary.smoke.passed}/{summary.smoke.total} passed")

    if summary.halted_by is not None:
        logger.error(f"❌ Halted: {summary.halted_by}")
    elif summary.ok:
        logger.info("✅ Deployment complete")
    else:
        logger.warning("⚠️ Deployment finished with failures, see log above")
