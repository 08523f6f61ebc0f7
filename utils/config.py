"""
Configuration management
"""

import copy
import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


DEFAULT_CONFIG_PATH = "config.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    'scoring': {
        'critical_weight': 15,
        'warning_weight': 5,
        'info_weight': 2,
        'max_score': 100,
    },
    'risk': {
        'high_risk_below': 70,
        'medium_risk_below': 90,
    },
    'cache': {
        'enabled': False,
        'max_entries': 1000,
    },
    'reports': {
        'dir': 'reports',
    },
    'logging': {
        'level': 'INFO',
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """Override config values with environment variables if present"""

    if os.getenv('LOG_LEVEL'):
        config['logging']['level'] = os.getenv('LOG_LEVEL').upper()
    if os.getenv('REPORTS_DIR'):
        config['reports']['dir'] = os.getenv('REPORTS_DIR')
    if os.getenv('RESULT_CACHE_ENABLED'):
        config['cache']['enabled'] = _env_flag(os.getenv('RESULT_CACHE_ENABLED'))

    return config


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file, layered over the defaults"""

    config_path = config_path or os.getenv('GST_CHECKER_CONFIG', DEFAULT_CONFIG_PATH)
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file) as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Configuration file must contain a mapping: {config_path}")

    return apply_env_overrides(_merge(DEFAULT_CONFIG, loaded))


def default_config() -> Dict[str, Any]:
    """Defaults with environment overrides, for when no file is available"""
    return apply_env_overrides(copy.deepcopy(DEFAULT_CONFIG))


def get_reports_dir(config: Dict = None) -> Path:
    """Get directory for saved reports"""

    if config is None:
        config = default_config()

    return Path(config.get('reports', {}).get('dir', 'reports'))
