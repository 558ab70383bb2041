from pathlib import Path
from threemeals.utilities.config import DATA_DIR as _DATA_DIR

# Centralized paths for data files (single source of truth)
DATA_DIR = Path(_DATA_DIR).resolve()
SESSION_FILE = DATA_DIR / 'session_storage.json'
PLAN_STORE_FILE = DATA_DIR / 'plans.json'

__all__ = ['DATA_DIR', 'SESSION_FILE', 'PLAN_STORE_FILE']
