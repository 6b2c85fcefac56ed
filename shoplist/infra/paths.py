from pathlib import Path

from shoplist.utilities.config import DATA_DIR as _CONFIGURED_DATA_DIR

# Centralized data location (single source of truth); collections and
# image areas live underneath it, named in utilities/constants.py
DATA_DIR = Path(_CONFIGURED_DATA_DIR).resolve()

__all__ = ['DATA_DIR']
