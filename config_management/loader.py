import argparse
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .schemas import AppConfig

CONFIG_PATH_ENV = "CLOUDBUILD_GCHAT_CONFIG"


def load_config(path: Optional[str] = None, **overrides: Any) -> AppConfig:
    """
    Builds the AppConfig from an optional JSON file, keyword overrides and
    the environment, in that order of precedence.

    Overrides that are None are skipped so unset command line options fall
    through to the file and the environment.
    """
    if path is None:
        path = os.environ.get(CONFIG_PATH_ENV) or None

    config_data: Dict[str, Any] = {}
    if path:
        config_path = Path(path)
        if not config_path.is_file():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        try:
            with open(config_path, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Error decoding JSON from {path}: {e}")
        if not isinstance(config_data, dict):
            raise ValueError(f"Configuration in {path} must be a JSON object")

    config_data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return AppConfig(**config_data)
    except ValidationError as e:
        raise ValueError(f"Configuration validation error for {path or 'environment'}:\n{e}")


def register(parser: argparse.ArgumentParser) -> None:
    """Adds the webhook endpoint option to a command line parser."""
    parser.add_argument('--gchat.webhook',
                        dest='gchat_webhook',
                        default=None,
                        help='webhook endpoint for google chat (env: GCHAT_WEBHOOK)',
                        type=str)
