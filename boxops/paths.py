from __future__ import annotations

import os
from pathlib import Path

APP_ENV_CONFIG = "BOXOPS_CONFIG_DIR"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains boxops/, api/, cli/, config/, tests/.
    """
    return Path(__file__).parent.parent.resolve()


def config_dir() -> Path:
    """
    Directory holding dashboard.yaml.
    Override with BOXOPS_CONFIG_DIR.
    """
    if os.environ.get(APP_ENV_CONFIG):
        return Path(os.environ[APP_ENV_CONFIG]).expanduser().resolve()
    return project_root() / "config"


def dashboard_config_path() -> Path:
    return config_dir() / "dashboard.yaml"
