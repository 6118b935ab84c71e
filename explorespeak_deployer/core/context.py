"""
Deployment context and configuration classes.

Instead of module-level globals, every phase receives a DeploymentContext
holding the run configuration, the declared plan and the initialized
AWS provider.

Design Pattern: Dependency Injection
    - Settings are merged into DeploymentConfig at startup
    - DeploymentContext wraps config + plan + provider
    - Context is passed explicitly to the orchestrator
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TYPE_CHECKING

import explorespeak_deployer.constants as CONSTANTS
from .specs import CapacitySpec, DeploymentPlan, default_plan

if TYPE_CHECKING:
    from explorespeak_deployer.providers.aws.provider import AWSProvider


@dataclass
class DeploymentConfig:
    """
    Run configuration.

    Attributes:
        region: AWS region every client talks to
        profile_name: Named AWS profile; None uses the ambient credential chain
        api_id: Existing REST API id; None means look up by name or create
        api_name: Name used to look up or create the REST API
        role_name: IAM role assumed by the Lambda functions
        stage_name: Stage the API deployment snapshot is published under
        source_root: Directory containing backend/lambdas/<service>
        mode: "DEBUG" or "PRODUCTION"
        billing_mode: DynamoDB capacity mode for every table
        read_units / write_units: Only used with PROVISIONED billing
        invoke_functions: Smoke tester invokes each function once
        install_dependencies: Run npm install before zipping a function
        table_wait_delay / table_wait_attempts: Bounded poll for ACTIVE tables
    """

    region: str = CONSTANTS.DEFAULT_REGION
    profile_name: Optional[str] = None
    api_id: Optional[str] = None
    api_name: str = CONSTANTS.DEFAULT_API_NAME
    role_name: str = CONSTANTS.DEFAULT_LAMBDA_ROLE_NAME
    stage_name: str = CONSTANTS.DEFAULT_STAGE_NAME
    source_root: Path = field(default_factory=Path.cwd)
    mode: str = "PRODUCTION"
    billing_mode: str = CONSTANTS.BILLING_PAY_PER_REQUEST
    read_units: int = 5
    write_units: int = 5
    invoke_functions: bool = False
    install_dependencies: bool = False
    table_wait_delay: int = CONSTANTS.DEFAULT_TABLE_WAIT_DELAY
    table_wait_attempts: int = CONSTANTS.DEFAULT_TABLE_WAIT_ATTEMPTS

    @property
    def debug(self) -> bool:
        return self.mode.upper() == "DEBUG"

    def capacity(self) -> CapacitySpec:
        return CapacitySpec(
            mode=self.billing_mode,
            read_units=self.read_units,
            write_units=self.write_units,
        )

    def build_plan(self) -> DeploymentPlan:
        """Declared ExploreSpeak resources for this configuration."""
        return default_plan(
            source_root=Path(self.source_root),
            role_name=self.role_name,
            capacity=self.capacity(),
        )


@dataclass
class DeploymentContext:
    """
    Everything a deployment run needs.

    Attributes:
        config: Merged run configuration
        plan: Declared resources to reconcile
        provider: Initialized AWSProvider
    """

    config: DeploymentConfig
    plan: DeploymentPlan
    provider: 'AWSProvider'
