"""
Declarative resource specifications.

Every resource the deployer manages is declared here as plain configuration.
Specs carry no runtime state: each run compares them against what AWS reports
and creates or updates accordingly. Nothing declared here is ever deleted.

Usage:
    from explorespeak_deployer.core.specs import default_plan

    plan = default_plan(source_root=Path("."), role_name="explorespeak-lambda-role")
    for table in plan.tables:
        dynamodb_client.create_table(**table.to_create_kwargs())
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import explorespeak_deployer.constants as CONSTANTS


VALID_ATTRIBUTE_TYPES = ("S", "N", "B")
VALID_PROJECTIONS = ("ALL", "KEYS_ONLY", "INCLUDE")
VALID_HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "ANY")


# ==========================================
# 1. DynamoDB
# ==========================================

@dataclass(frozen=True)
class AttributeSpec:
    """A key attribute and its DynamoDB scalar type."""

    name: str
    type: str = "S"

    def __post_init__(self):
        if self.type not in VALID_ATTRIBUTE_TYPES:
            raise ValueError(f"Invalid attribute type '{self.type}' for '{self.name}'")

    def to_definition(self) -> dict:
        return {"AttributeName": self.name, "AttributeType": self.type}


@dataclass(frozen=True)
class KeySchema:
    """Partition key plus optional sort key."""

    partition_key: AttributeSpec
    sort_key: Optional[AttributeSpec] = None

    @property
    def attributes(self) -> List[AttributeSpec]:
        if self.sort_key is None:
            return [self.partition_key]
        return [self.partition_key, self.sort_key]

    def to_key_schema(self) -> List[dict]:
        schema = [{"AttributeName": self.partition_key.name, "KeyType": "HASH"}]
        if self.sort_key is not None:
            schema.append({"AttributeName": self.sort_key.name, "KeyType": "RANGE"})
        return schema


@dataclass(frozen=True)
class CapacitySpec:
    """
    Billing configuration for a table and its indexes.

    PAY_PER_REQUEST ignores the unit counts. PROVISIONED applies the same
    read/write units to the table and to each global secondary index.
    """

    mode: str = CONSTANTS.BILLING_PAY_PER_REQUEST
    read_units: int = 5
    write_units: int = 5

    def __post_init__(self):
        if self.mode not in (CONSTANTS.BILLING_PAY_PER_REQUEST, CONSTANTS.BILLING_PROVISIONED):
            raise ValueError(f"Invalid capacity mode '{self.mode}'")

    @property
    def is_provisioned(self) -> bool:
        return self.mode == CONSTANTS.BILLING_PROVISIONED

    def to_throughput(self) -> dict:
        return {"ReadCapacityUnits": self.read_units, "WriteCapacityUnits": self.write_units}


@dataclass(frozen=True)
class IndexSpec:
    """Global secondary index declaration."""

    name: str
    key_schema: KeySchema
    projection: str = "ALL"
    non_key_attributes: tuple = ()

    def __post_init__(self):
        if self.projection not in VALID_PROJECTIONS:
            raise ValueError(f"Invalid projection '{self.projection}' for index '{self.name}'")
        if self.projection == "INCLUDE" and not self.non_key_attributes:
            raise ValueError(f"Index '{self.name}' uses INCLUDE projection without non-key attributes")

    def to_definition(self, capacity: CapacitySpec) -> dict:
        projection = {"ProjectionType": self.projection}
        if self.projection == "INCLUDE":
            projection["NonKeyAttributes"] = list(self.non_key_attributes)

        definition = {
            "IndexName": self.name,
            "KeySchema": self.key_schema.to_key_schema(),
            "Projection": projection,
        }
        if capacity.is_provisioned:
            definition["ProvisionedThroughput"] = capacity.to_throughput()
        return definition


@dataclass(frozen=True)
class TableSpec:
    """A DynamoDB table with its key schema, indexes and capacity mode."""

    name: str
    key_schema: KeySchema
    indexes: tuple = ()
    capacity: CapacitySpec = field(default_factory=CapacitySpec)

    def attribute_definitions(self) -> List[dict]:
        """
        Collect attribute definitions for the table key and every index key.

        DynamoDB rejects duplicate definitions, so each attribute appears once.
        Conflicting types for the same attribute name are a declaration error.
        """
        seen: Dict[str, str] = {}
        definitions = []
        key_schemas = [self.key_schema] + [index.key_schema for index in self.indexes]

        for schema in key_schemas:
            for attribute in schema.attributes:
                if attribute.name in seen:
                    if seen[attribute.name] != attribute.type:
                        raise ValueError(
                            f"Attribute '{attribute.name}' declared as both "
                            f"{seen[attribute.name]} and {attribute.type} in table '{self.name}'"
                        )
                    continue
                seen[attribute.name] = attribute.type
                definitions.append(attribute.to_definition())

        return definitions

    def to_create_kwargs(self) -> dict:
        """Build the keyword arguments for dynamodb.create_table."""
        kwargs = {
            "TableName": self.name,
            "KeySchema": self.key_schema.to_key_schema(),
            "AttributeDefinitions": self.attribute_definitions(),
            "BillingMode": self.capacity.mode,
        }
        if self.capacity.is_provisioned:
            kwargs["ProvisionedThroughput"] = self.capacity.to_throughput()
        if self.indexes:
            kwargs["GlobalSecondaryIndexes"] = [
                index.to_definition(self.capacity) for index in self.indexes
            ]
        return kwargs


# ==========================================
# 2. Lambda
# ==========================================

@dataclass
class FunctionSpec:
    """A Lambda function built from a local source directory."""

    name: str
    source_dir: Path
    role_name: str = CONSTANTS.DEFAULT_LAMBDA_ROLE_NAME
    runtime: str = CONSTANTS.LAMBDA_RUNTIME
    handler: str = CONSTANTS.LAMBDA_HANDLER
    environment: Dict[str, str] = field(default_factory=dict)
    memory_size: int = CONSTANTS.LAMBDA_MEMORY_SIZE
    timeout: int = CONSTANTS.LAMBDA_TIMEOUT
    description: str = ""

    def to_configuration(self, role_arn: str) -> dict:
        """Configuration shared by create_function and update_function_configuration."""
        return {
            "FunctionName": self.name,
            "Runtime": self.runtime,
            "Role": role_arn,
            "Handler": self.handler,
            "Description": self.description,
            "Timeout": self.timeout,
            "MemorySize": self.memory_size,
            "Environment": {"Variables": dict(self.environment)},
        }


# ==========================================
# 3. API Gateway
# ==========================================

@dataclass(frozen=True)
class MethodBinding:
    """An HTTP method routed to a Lambda function through a proxy integration."""

    http_method: str
    function_name: str

    def __post_init__(self):
        if self.http_method.upper() not in VALID_HTTP_METHODS:
            raise ValueError(f"Invalid HTTP method '{self.http_method}'")
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "http_method", self.http_method.upper())


@dataclass
class ResourceSpec:
    """A REST API path resource and the methods attached to it."""

    path: str
    methods: List[MethodBinding] = field(default_factory=list)

    def __post_init__(self):
        self.path = normalize_path(self.path)
        if self.path == "/":
            raise ValueError("The root resource is managed by API Gateway and cannot be declared")

    @property
    def path_part(self) -> str:
        """Last path segment, as passed to create_resource."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent_path(self) -> str:
        parent = self.path.rsplit("/", 1)[0]
        return parent or "/"


def normalize_path(path: str) -> str:
    """Return path with a single leading slash and no trailing slash."""
    segments = [segment for segment in path.strip().split("/") if segment]
    return "/" + "/".join(segments)


def ancestor_paths(path: str) -> List[str]:
    """
    All paths from the first segment down to path itself.

    Example:
        >>> ancestor_paths("/adaptive/profile")
        ['/adaptive', '/adaptive/profile']
    """
    segments = [segment for segment in normalize_path(path).split("/") if segment]
    return ["/" + "/".join(segments[:i + 1]) for i in range(len(segments))]


# ==========================================
# 4. Deployment Plan
# ==========================================

@dataclass
class DeploymentPlan:
    """Everything a run reconciles, in dependency order."""

    tables: List[TableSpec] = field(default_factory=list)
    functions: List[FunctionSpec] = field(default_factory=list)
    resources: List[ResourceSpec] = field(default_factory=list)

    def function_names(self) -> List[str]:
        return [function.name for function in self.functions]

    def table_names(self) -> List[str]:
        return [table.name for table in self.tables]


def default_tables(capacity: Optional[CapacitySpec] = None) -> List[TableSpec]:
    """The four ExploreSpeak tables."""
    capacity = capacity or CapacitySpec()
    user_id = AttributeSpec("userId")

    return [
        TableSpec(
            name=CONSTANTS.TABLE_VOCABULARY_CARDS,
            key_schema=KeySchema(AttributeSpec("cardId"), user_id),
            indexes=(
                IndexSpec("userId-nextReviewDate-index", KeySchema(user_id, AttributeSpec("nextReviewDate"))),
                IndexSpec("userId-language-index", KeySchema(user_id, AttributeSpec("language"))),
            ),
            capacity=capacity,
        ),
        TableSpec(
            name=CONSTANTS.TABLE_REVIEW_SESSIONS,
            key_schema=KeySchema(AttributeSpec("sessionId"), user_id),
            capacity=capacity,
        ),
        TableSpec(
            name=CONSTANTS.TABLE_LEARNER_PROFILES,
            key_schema=KeySchema(user_id, AttributeSpec("language")),
            capacity=capacity,
        ),
        TableSpec(
            name=CONSTANTS.TABLE_PERFORMANCE,
            key_schema=KeySchema(AttributeSpec("performanceId")),
            indexes=(
                IndexSpec("userId-completedAt-index", KeySchema(user_id, AttributeSpec("completedAt"))),
            ),
            capacity=capacity,
        ),
    ]


def default_functions(source_root: Path, role_name: str) -> List[FunctionSpec]:
    """The two ExploreSpeak Lambda services."""
    lambdas_dir = Path(source_root) / CONSTANTS.LAMBDA_SOURCE_DIR_NAME

    return [
        FunctionSpec(
            name=CONSTANTS.FUNCTION_VOCABULARY_SERVICE,
            source_dir=lambdas_dir / "vocabulary-service",
            role_name=role_name,
            environment={
                "TABLE_NAME_CARDS": CONSTANTS.TABLE_VOCABULARY_CARDS,
                "TABLE_NAME_SESSIONS": CONSTANTS.TABLE_REVIEW_SESSIONS,
            },
            description="Vocabulary and SRS service for ExploreSpeak",
        ),
        FunctionSpec(
            name=CONSTANTS.FUNCTION_ADAPTIVE_LEARNING_SERVICE,
            source_dir=lambdas_dir / "adaptive-learning-service",
            role_name=role_name,
            environment={
                "TABLE_NAME_PROFILES": CONSTANTS.TABLE_LEARNER_PROFILES,
                "TABLE_NAME_PERFORMANCE": CONSTANTS.TABLE_PERFORMANCE,
            },
            description="Adaptive learning service for ExploreSpeak",
        ),
    ]


def default_resources() -> List[ResourceSpec]:
    """Paths exposed by the frontend API client."""
    vocabulary = CONSTANTS.FUNCTION_VOCABULARY_SERVICE
    adaptive = CONSTANTS.FUNCTION_ADAPTIVE_LEARNING_SERVICE

    return [
        ResourceSpec("/vocabulary", [MethodBinding("GET", vocabulary), MethodBinding("POST", vocabulary)]),
        ResourceSpec("/vocabulary/review", [MethodBinding("POST", vocabulary)]),
        ResourceSpec("/adaptive/recommendations", [MethodBinding("GET", adaptive)]),
        ResourceSpec("/adaptive/profile", [MethodBinding("GET", adaptive), MethodBinding("PUT", adaptive)]),
    ]


def default_plan(
    source_root: Path,
    role_name: str = CONSTANTS.DEFAULT_LAMBDA_ROLE_NAME,
    capacity: Optional[CapacitySpec] = None
) -> DeploymentPlan:
    """Build the full ExploreSpeak deployment plan."""
    return DeploymentPlan(
        tables=default_tables(capacity),
        functions=default_functions(source_root, role_name),
        resources=default_resources(),
    )
