"""
PA-Pedia - Configuration
=========================
Environment-driven settings. Values can come from a .env file next to the
working directory; anything unset falls back to the project data folder.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).parent.parent

DATA_DIR = Path(os.getenv("PA_PEDIA_DATA_DIR", str(PROJECT_ROOT / "data")))
FACTIONS_DIR = Path(os.getenv("PA_PEDIA_FACTIONS_DIR", str(DATA_DIR / "factions")))
DB_PATH = Path(os.getenv("PA_PEDIA_DB_PATH", str(DATA_DIR / "local_factions.db")))
GROUPS_DIR = DATA_DIR / "groups"

ASSET_BASE_URL = os.getenv("PA_PEDIA_ASSET_BASE_URL", "/factions").rstrip("/")
LOG_LEVEL = os.getenv("PA_PEDIA_LOG_LEVEL", "WARNING").upper()

# Uploaded factions carry this suffix in their folder name, which lets a
# deep link be routed to local storage before metadata has loaded.
LOCAL_FACTION_SUFFIX = "--local"
