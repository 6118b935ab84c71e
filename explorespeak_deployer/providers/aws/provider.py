"""
AWS provider.

Manages the boto3 clients, the account/region pair and ARN naming for one
deployment run.

Usage:
    provider = AWSProvider()
    provider.initialize_clients(region="us-east-1")

    # Access clients
    dynamodb_client = provider.clients["dynamodb"]

    # Derive ARNs
    uri = provider.naming.lambda_invocation_uri("explorespeak-vocabulary-service")
"""

from typing import Optional

from explorespeak_deployer.logger import logger


class AWSProvider:
    """
    Holds AWS SDK clients and naming helpers.

    Attributes:
        name: Always "aws"
        clients: Dictionary of initialized boto3 clients
        region: Region all clients talk to
        account_id: Caller account id, resolved through STS on first use
        naming: AWSNaming for the account/region pair
    """

    name: str = "aws"

    def __init__(self):
        """Initialize AWS provider with empty state."""
        self._clients: dict = {}
        self._initialized: bool = False
        self._region: str = ""
        self._account_id: Optional[str] = None
        self._naming = None

    @property
    def clients(self) -> dict:
        """Return initialized SDK clients."""
        if not self._initialized:
            raise RuntimeError(
                "Provider not initialized. Call initialize_clients() first."
            )
        return self._clients

    @property
    def region(self) -> str:
        """Get the AWS region for this provider instance."""
        return self._region

    @property
    def account_id(self) -> str:
        """
        AWS account id of the caller.

        Raises:
            botocore.exceptions.NoCredentialsError / ClientError: If STS rejects the call
        """
        if self._account_id is None:
            identity = self.clients["sts"].get_caller_identity()
            self._account_id = identity["Account"]
            logger.debug(f"Resolved AWS account id: {self._account_id}")
        return self._account_id

    @property
    def naming(self):
        """
        Get the AWSNaming instance for this provider.

        Built lazily because it needs the account id.
        """
        if self._naming is None:
            from .naming import AWSNaming
            self._naming = AWSNaming(self.region, self.account_id)
        return self._naming

    def initialize_clients(self, region: str, profile_name: Optional[str] = None) -> None:
        """
        Initialize boto3 clients for AWS services.

        Args:
            region: AWS region (e.g., "us-east-1")
            profile_name: Optional named AWS profile; ambient credentials otherwise
        """
        from .clients import create_aws_clients

        self._region = region
        self._account_id = None
        self._naming = None
        self._clients = create_aws_clients(region=region, profile_name=profile_name)
        self._initialized = True
