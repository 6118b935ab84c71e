# ==========================================
# 1. Configuration Filenames
# ==========================================
CONFIG_FILE = "deployment.json"

VALID_MODES = ("DEBUG", "PRODUCTION")

# ==========================================
# 2. Defaults
# ==========================================
DEFAULT_REGION = "us-east-1"
DEFAULT_STAGE_NAME = "prod"
DEFAULT_API_NAME = "ExploreSpeak-API"
DEFAULT_API_DESCRIPTION = "API for ExploreSpeak"
DEFAULT_LAMBDA_ROLE_NAME = "explorespeak-lambda-role"

# Bounded poll for tables becoming ACTIVE
DEFAULT_TABLE_WAIT_DELAY = 5
DEFAULT_TABLE_WAIT_ATTEMPTS = 60

# ==========================================
# 3. DynamoDB Tables
# ==========================================
TABLE_VOCABULARY_CARDS = "ExploreSpeak-VocabularyCards"
TABLE_REVIEW_SESSIONS = "ExploreSpeak-ReviewSessions"
TABLE_LEARNER_PROFILES = "ExploreSpeak-LearnerProfiles"
TABLE_PERFORMANCE = "ExploreSpeak-Performance"

BILLING_PAY_PER_REQUEST = "PAY_PER_REQUEST"
BILLING_PROVISIONED = "PROVISIONED"

# ==========================================
# 4. Lambda Functions
# ==========================================
FUNCTION_VOCABULARY_SERVICE = "explorespeak-vocabulary-service"
FUNCTION_ADAPTIVE_LEARNING_SERVICE = "explorespeak-adaptive-learning-service"

LAMBDA_SOURCE_DIR_NAME = "backend/lambdas"
LAMBDA_RUNTIME = "nodejs18.x"
LAMBDA_HANDLER = "index.handler"
LAMBDA_MEMORY_SIZE = 256
LAMBDA_TIMEOUT = 30

PACKAGE_ARCHIVE_SUFFIX = ".zip"
NPM_MANIFEST_FILE = "package.json"

# ==========================================
# 5. API Gateway
# ==========================================
APIGATEWAY_PRINCIPAL = "apigateway.amazonaws.com"
LAMBDA_INVOKE_API_VERSION = "2015-03-31"

# Status code -> integration response selection pattern.
# 200 is the default response, the other two are the declared error classes.
METHOD_RESPONSE_PATTERNS = {
    "200": None,
    "400": ".*[Bad Request].*",
    "500": ".*[Error].*",
}

# ==========================================
# 6. Phases
# ==========================================
PHASE_TABLES = "tables"
PHASE_FUNCTIONS = "functions"
PHASE_GATEWAY = "gateway"
PHASE_SMOKE = "smoke"

ALL_PHASES = (PHASE_TABLES, PHASE_FUNCTIONS, PHASE_GATEWAY, PHASE_SMOKE)
