"""Configuration for the budget calculator.

Values are module-level constants that can be overridden through environment
variables, so the CLI, the web app and the tests all read the same settings.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Storage
DATABASE_URL = os.environ.get("BUDGET_DATABASE_URL", "sqlite:///budget_state.sqlite3")
STATE_FILE = Path(os.environ.get("BUDGET_STATE_FILE", _PROJECT_ROOT / "data" / "budget_state.json"))

# Web
SECRET_KEY = os.environ.get("BUDGET_SECRET_KEY", "dev-secret-key")

# Debt payoff simulation. The ceiling bounds any override so the loop always terminates.
PAYOFF_MONTHS_CEILING = 1200
MAX_PAYOFF_MONTHS = min(max(int(os.environ.get("BUDGET_MAX_PAYOFF_MONTHS", "600")), 1), PAYOFF_MONTHS_CEILING)

# Defaults for new plans
DEFAULT_CURRENCY = os.environ.get("BUDGET_DEFAULT_CURRENCY", "LKR")
DEFAULT_LOCALE = os.environ.get("BUDGET_DEFAULT_LOCALE", "en-LK")

LOG_LEVEL = os.environ.get("BUDGET_LOG_LEVEL", "WARNING")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the CLI and web entry points."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
