"""
Custom exceptions for the ExploreSpeak deployer.

Exception Hierarchy:
    DeploymentError (base)
    ├── ConfigurationError - Invalid or missing configuration
    ├── CredentialsError - No usable AWS credentials in the environment
    ├── RoleNotFoundError - Lambda execution role cannot be resolved
    ├── ApiNotFoundError - Referenced REST API does not exist
    └── ResourceCreationError - Failed to create or update a cloud resource

The prerequisite errors (credentials, role, API) are hard stops: the
orchestrator aborts every dependent phase when one of them is raised.
Everything else is reported per resource and the run continues.
"""

from typing import Optional


class DeploymentError(Exception):
    """
    Base exception for all deployment-related errors.

    Attributes:
        message: Human-readable error description
        phase: Optional phase name ("tables", "functions", ...) where the error occurred
    """

    def __init__(self, message: str, phase: Optional[str] = None):
        self.message = message
        self.phase = phase

        if phase:
            full_message = f"{message} [phase={phase}]"
        else:
            full_message = message

        super().__init__(full_message)


class ConfigurationError(DeploymentError):
    """
    Raised when configuration is invalid or missing required fields.

    Example:
        >>> load_deployment_config(Path("broken.json"))
        ConfigurationError: Invalid JSON in configuration file: ... (file: broken.json)
    """

    def __init__(self, message: str, config_file: Optional[str] = None):
        self.config_file = config_file
        if config_file:
            message = f"{message} (file: {config_file})"
        super().__init__(message)


class CredentialsError(DeploymentError):
    """Raised when AWS credentials are missing or rejected by STS."""

    def __init__(self, message: str = "AWS credentials not configured. Run 'aws configure' first."):
        super().__init__(message)


class RoleNotFoundError(DeploymentError):
    """
    Raised when the Lambda execution role cannot be resolved.

    No function can be deployed without it, so the functions phase and
    everything after it is skipped.
    """

    def __init__(self, role_name: str, original_error: Optional[Exception] = None):
        self.role_name = role_name
        self.original_error = original_error
        message = f"Lambda role not found: {role_name}"
        if original_error:
            message += f": {original_error}"
        super().__init__(message, phase="functions")


class ApiNotFoundError(DeploymentError):
    """Raised when the supplied REST API id does not resolve to an API."""

    def __init__(self, api_id: str, original_error: Optional[Exception] = None):
        self.api_id = api_id
        self.original_error = original_error
        message = f"REST API not found: {api_id}"
        if original_error:
            message += f": {original_error}"
        super().__init__(message, phase="gateway")


class ResourceCreationError(DeploymentError):
    """
    Raised when a cloud resource fails to create or update.

    Attributes:
        resource_type: Type of resource (e.g., "lambda_function", "dynamodb_table")
        resource_name: Name of the resource that failed
        original_error: The underlying SDK exception
    """

    def __init__(
        self,
        resource_type: str,
        resource_name: str,
        phase: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.original_error = original_error

        message = f"Failed to create {resource_type} '{resource_name}'"
        if original_error:
            message += f": {str(original_error)}"

        super().__init__(message, phase=phase)
