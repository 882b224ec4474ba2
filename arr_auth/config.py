"""Configuration and settings."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
APP_HOME = Path(os.getenv("ARR_AUTH_HOME", str(Path.home() / ".arr-auth"))).expanduser()
TOKEN_CACHE_PATH = Path(
    os.getenv("ARR_TOKEN_CACHE_PATH", str(APP_HOME / "msalcache.bin3"))
).expanduser()

# Ensure directories exist
APP_HOME.mkdir(parents=True, exist_ok=True)

# Azure AD application
CLIENT_ID = os.getenv("ARR_CLIENT_ID", "")
TENANT_ID = os.getenv("ARR_TENANT_ID", "")
AUTHORITY = os.getenv("ARR_AUTHORITY", "")
REDIRECT_URI = os.getenv("ARR_REDIRECT_URI", "")

# Used when neither the caller nor the environment supplies a value
DEFAULT_AUTHORITY_BASE = "https://login.microsoftonline.com/"
DEFAULT_AUTHORITY = "common"
DEFAULT_REDIRECT_URI = "http://localhost"

# Login behaviour
INTERACTIVE_MODE = os.getenv("ARR_INTERACTIVE_MODE", "browser").lower()  # "browser" | "device_code"
STRICT_SILENT = os.getenv("ARR_STRICT_SILENT", "false").lower() == "true"
_interactive_timeout = os.getenv("ARR_INTERACTIVE_TIMEOUT_SECONDS", "")
INTERACTIVE_TIMEOUT_SECONDS = int(_interactive_timeout) if _interactive_timeout else None

# Logging
LOG_DIR = APP_HOME / "logs"
LOG_FILE = LOG_DIR / "arr_auth.jsonl"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
VERBOSE_LOGGING = os.getenv("VERBOSE_LOGGING", "false").lower() == "true"

# Ensure log directory exists
LOG_DIR.mkdir(parents=True, exist_ok=True)

# OpenTelemetry
TRACING_ENABLED = os.getenv("TRACING_ENABLED", "false").lower() == "true"
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "http://localhost:4318/v1/traces")
TRACING_SERVICE_NAME = os.getenv("TRACING_SERVICE_NAME", "arr-auth")
DEPLOYMENT_ENVIRONMENT = os.getenv("DEPLOYMENT_ENVIRONMENT", "development")
