"""
Centralized configuration for EvalHub.

Loads environment variables from .env and provides connection settings.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# -- Paths -------------------------------------------------------------------


STATE_DIR = Path(os.getenv("EVALHUB_STATE_DIR", str(Path.home() / ".evalhub")))

# -- Connection ---------------------------------------------------------------

API_URL = os.getenv("EVALHUB_API_URL", "http://localhost:8000")
API_KEY = os.getenv("EVALHUB_API_KEY") or None
TENANT_ID = os.getenv("EVALHUB_TENANT_ID") or None

# -- Settings -----------------------------------------------------------------

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def validate_config() -> None:
    """Validate that the state directory exists or can be created."""
    for path_var in [STATE_DIR]:
        if not path_var.exists():
            try:
                path_var.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                print(f"Warning: Could not create {path_var}: {e}")
