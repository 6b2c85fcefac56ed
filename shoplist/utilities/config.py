"""Configuration management for the Shopping List application."""
import os
from typing import Final
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path(__file__).parent.parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Application Settings
APP_HOST: Final[str] = os.getenv('APP_HOST', '0.0.0.0')
APP_PORT: Final[int] = int(os.getenv('APP_PORT', '8000'))
DEBUG: Final[bool] = os.getenv('DEBUG', 'False').lower() == 'true'
LOG_LEVEL: Final[str] = os.getenv('LOG_LEVEL', 'INFO').upper()

# Storage
BASE_DIR: Final[Path] = Path(__file__).parent.parent.parent
DATA_DIR: Final[Path] = Path(os.getenv('SHOPLIST_DATA_DIR', str(BASE_DIR / 'data')))

# Images (0 disables downsampling)
IMAGE_MAX_SIZE: Final[int] = int(os.getenv('IMAGE_MAX_SIZE', '300'))
IMAGE_QUALITY: Final[int] = int(os.getenv('IMAGE_QUALITY', '50'))

# Startup housekeeping
ORPHAN_SWEEP_ON_STARTUP: Final[bool] = os.getenv('ORPHAN_SWEEP_ON_STARTUP', 'True').lower() == 'true'
