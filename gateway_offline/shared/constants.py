"""Shared constants used across the offline gateway emulation."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Authorizer configuration
# ---------------------------------------------------------------------------
AUTHORIZER_TYPE_TOKEN = "TOKEN"

IDENTITY_SOURCE_PATTERN = r"^method.request.header.(\w+)$"
DEFAULT_IDENTITY_SOURCE = "method.request.header.Authorization"
DEFAULT_RESULT_TTL_SECONDS = 300

# ---------------------------------------------------------------------------
# Synthetic method ARN (account / API ids are not simulated)
# ---------------------------------------------------------------------------
ARN_ACCOUNT_PLACEHOLDER = "<Account id>"
ARN_API_PLACEHOLDER = "<API id>"
METHOD_ARN_TEMPLATE = (
    "arn:aws:execute-api:{region}:{account}:{api}/{stage}/{function_name}/{endpoint_path}"
)

# ---------------------------------------------------------------------------
# Policy validation
# ---------------------------------------------------------------------------
INVALID_POLICY_SEQUENCE = '\\"'
ALLOWED_CONTEXT_TYPES: tuple[type, ...] = (str, int, float, bool)
ALLOWED_CONTEXT_TYPE_NAMES = ("number", "string", "boolean")

# ---------------------------------------------------------------------------
# HTTP status codes surfaced by the authenticator
# ---------------------------------------------------------------------------
STATUS_UNAUTHORIZED = 401
STATUS_FORBIDDEN = 403
STATUS_INTERNAL_ERROR = 500

# ---------------------------------------------------------------------------
# Function defaults
# ---------------------------------------------------------------------------
DEFAULT_STAGE = "dev"
DEFAULT_REGION = "us-east-1"
DEFAULT_RUNTIME = "python3.12"
DEFAULT_TIMEOUT_SECONDS = 6
DEFAULT_MEMORY_SIZE_MB = 1024
FUNCTION_VERSION_LATEST = "$LATEST"
PYTHON_RUNTIME_PREFIX = "python"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_PREFIX = "Serverless: "
DEBUG_ENV_VAR = "SLS_DEBUG"
