"""
OnceDrop Configuration Settings
Once-per-server reward drop - environment driven configuration
"""
import os
from typing import Dict

# =============================================================================
# Database Configuration
# =============================================================================
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./oncedrop.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# =============================================================================
# Server Configuration
# =============================================================================
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# =============================================================================
# Drop Gate Defaults
# =============================================================================
# Baron Geddon
DEFAULT_NPC_ENTRY = 12056
# Talisman of Binding Shard
DEFAULT_ITEM_ENTRY = 17782
DEFAULT_ITEM_NAME = "Talisman of Binding Shard"
DEFAULT_CHANCE_PCT = 1.0

# Display names for creature template entries
CREATURE_NAMES = {
    DEFAULT_NPC_ENTRY: "Baron Geddon",
}

# Persistence
GATE_TABLE_NAME = "mod_once_drop"
GATE_KEY = "geddon_17782_once"

# Prefix accepted in front of every option key (e.g. "OnceDrop.Chance")
CONFIG_PREFIX = "OnceDrop."

# Recent announcements kept by the realtime channel
ANNOUNCEMENT_HISTORY_SIZE = 50

# =============================================================================
# Logging Configuration
# =============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# Environment variable -> option key
_OPTION_ENV_VARS = {
    "ONCE_DROP_ENABLE": "Enable",
    "ONCE_DROP_NPC_ENTRY": "NpcEntry",
    "ONCE_DROP_CHANCE": "Chance",
    "ONCE_DROP_ALLOW_REPEAT": "AllowRepeat",
    "ONCE_DROP_RESET_ON_STARTUP": "ResetOnStartup",
    "ONCE_DROP_ITEM_ENTRY": "ItemEntry",
    "ONCE_DROP_ITEM_NAME": "ItemName",
}


def drop_gate_options(environ=None) -> Dict[str, str]:
    """Collect the raw drop gate options that are set in the environment."""
    environ = os.environ if environ is None else environ
    return {
        option: environ[var]
        for var, option in _OPTION_ENV_VARS.items()
        if var in environ
    }
