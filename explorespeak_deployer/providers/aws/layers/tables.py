"""
DynamoDB table provisioning.

For every declared TableSpec:
    1. describe_table - present tables are left untouched
    2. create_table   - absent tables are created with keys, GSIs and billing mode
    3. wait           - once all creates are issued, poll until each table is ACTIVE

A failure on one table is logged and recorded; the remaining tables are still
provisioned.
"""

from dataclasses import dataclass, field
from typing import List, TYPE_CHECKING

from botocore.exceptions import BotoCoreError, ClientError

import explorespeak_deployer.constants as CONSTANTS
import explorespeak_deployer.providers.aws.util_aws as util_aws
from explorespeak_deployer.logger import logger

if TYPE_CHECKING:
    from explorespeak_deployer.core.specs import TableSpec
    from explorespeak_deployer.providers.aws.provider import AWSProvider


@dataclass
class TableReport:
    created: List[str] = field(default_factory=list)
    existing: List[str] = field(default_factory=list)
    active: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def table_exists(provider: 'AWSProvider', table_name: str) -> bool:
    """Check whether a DynamoDB table exists (in any status)."""
    try:
        provider.clients["dynamodb"].describe_table(TableName=table_name)
        return True
    except ClientError as e:
        if util_aws.error_code(e) == "ResourceNotFoundException":
            return False
        raise


def create_table(provider: 'AWSProvider', spec: 'TableSpec') -> bool:
    """
    Create a table unless it already exists.

    Returns:
        True if a create call was issued, False if the table was already there.
    """
    if table_exists(provider, spec.name):
        logger.info(f"✅ DynamoDB table already exists: {spec.name}")
        return False

    provider.clients["dynamodb"].create_table(**spec.to_create_kwargs())
    logger.info(f"Created DynamoDB table: {spec.name} ({spec.capacity.mode})")
    return True


def wait_for_table(
    provider: 'AWSProvider',
    table_name: str,
    delay: int = CONSTANTS.DEFAULT_TABLE_WAIT_DELAY,
    max_attempts: int = CONSTANTS.DEFAULT_TABLE_WAIT_ATTEMPTS
) -> bool:
    """
    Block until the table reports ACTIVE, at most delay * max_attempts seconds.

    Returns:
        True once active, False on timeout or a failed waiter.
    """
    waiter = provider.clients["dynamodb"].get_waiter("table_exists")
    try:
        waiter.wait(
            TableName=table_name,
            WaiterConfig={"Delay": delay, "MaxAttempts": max_attempts}
        )
    except (ClientError, BotoCoreError) as e:
        logger.error(f"❌ {table_name} failed to become active: {util_aws.describe_error(e)}")
        return False

    logger.info(f"✅ {table_name} is active: {util_aws.link_to_dynamodb_table(table_name, region=provider.region)}")
    return True


def deploy_tables(
    provider: 'AWSProvider',
    tables: List['TableSpec'],
    wait_delay: int = CONSTANTS.DEFAULT_TABLE_WAIT_DELAY,
    wait_attempts: int = CONSTANTS.DEFAULT_TABLE_WAIT_ATTEMPTS
) -> TableReport:
    """Ensure every declared table exists and is ACTIVE."""
    report = TableReport()
    logger.info("🗄️ Deploying DynamoDB tables...")

    for spec in tables:
        try:
            if create_table(provider, spec):
                report.created.append(spec.name)
            else:
                report.existing.append(spec.name)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"❌ Failed to create {spec.name}: {util_aws.describe_error(e)}")
            report.failed.append(spec.name)

    logger.info("⏳ Waiting for tables to become active...")
    for spec in tables:
        if spec.name in report.failed:
            continue
        if wait_for_table(provider, spec.name, delay=wait_delay, max_attempts=wait_attempts):
            report.active.append(spec.name)
        else:
            report.failed.append(spec.name)

    logger.info(
        f"DynamoDB setup complete: {len(report.created)} created, "
        f"{len(report.existing)} existing, {len(report.failed)} failed"
    )
    return report
