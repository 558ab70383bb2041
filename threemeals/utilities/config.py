"""Configuration management for the 3meals planner."""
import os
from typing import Final
from pathlib import Path

# Load environment variables from .env file if it exists
from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Model Configuration
OPENAI_API_KEY: Final[str] = os.getenv('OPENAI_API_KEY', '')
OPENAI_MODEL: Final[str] = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

# Plan shape: 'template' expands a 7-day template to 28 days, 'full' asks for PLAN_DAYS directly
PLAN_MODE: Final[str] = os.getenv('PLAN_MODE', 'template').lower()
PLAN_DAYS: Final[int] = int(os.getenv('PLAN_DAYS', '30'))

# Application Settings
APP_HOST: Final[str] = os.getenv('APP_HOST', '0.0.0.0')
APP_PORT: Final[int] = int(os.getenv('APP_PORT', '8000'))
DEBUG: Final[bool] = os.getenv('DEBUG', 'False').lower() == 'true'

# Editor timing
SHUFFLE_DELAY_MS: Final[int] = int(os.getenv('SHUFFLE_DELAY_MS', '600'))

# File Paths
BASE_DIR: Final[Path] = Path(__file__).parent.parent
DATA_DIR: Final[Path] = Path(os.getenv('THREEMEALS_DATA_DIR', str(BASE_DIR / 'data')))

# Remote Persistence
PLAN_STORE_BACKEND: Final[str] = os.getenv('PLAN_STORE_BACKEND', 'json').lower()
REDIS_URL: Final[str] = os.getenv('REDIS_URL') or os.getenv('KV_REST_API_URL') or 'redis://localhost:6379/0'
DATABASE_URL: Final[str] = os.getenv('DATABASE_URL', f"sqlite:///{DATA_DIR / 'plans.db'}")
