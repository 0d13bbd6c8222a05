import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Root log level for every accessgraph logger
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

# If true, log every authorization decision
AUDIT_LOG_ALL: bool = os.environ.get("AUDIT_LOG_ALL") == "1"

# If true, log denied authorization decisions (on unless explicitly disabled)
AUDIT_LOG_DENIES: bool = os.environ.get("AUDIT_LOG_DENIES", "1") != "0"
