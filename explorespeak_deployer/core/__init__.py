"""
Core abstractions for the ExploreSpeak deployer.

Modules:
    specs: Declarative resource specifications (tables, functions, API paths)
    context: DeploymentConfig and DeploymentContext
    config_loader: Configuration loading utilities
    exceptions: Custom exception types for deployment operations
"""

from .context import DeploymentConfig, DeploymentContext
from .exceptions import (
    ApiNotFoundError,
    ConfigurationError,
    CredentialsError,
    DeploymentError,
    ResourceCreationError,
    RoleNotFoundError,
)
from .specs import DeploymentPlan, FunctionSpec, ResourceSpec, TableSpec

__all__ = [
    # Context
    "DeploymentConfig",
    "DeploymentContext",
    # Specs
    "DeploymentPlan",
    "FunctionSpec",
    "ResourceSpec",
    "TableSpec",
    # Exceptions
    "ApiNotFoundError",
    "ConfigurationError",
    "CredentialsError",
    "DeploymentError",
    "ResourceCreationError",
    "RoleNotFoundError",
]
