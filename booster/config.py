"""
Configuration management for Booster.
"""
import copy
import os
import json
import logging
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

ENV_PREFIX = 'BOOSTER_'
ENV_SEPARATOR = '__'
CONFIG_PATH_ENV = 'BOOSTER_CONFIG_PATH'

# Default configuration
DEFAULT_CONFIG = {
    "providers": [],
    "gateway": {
        "timeout_seconds": 20,
        "max_pages": 5,
        "max_tries": 2,
        "apis": {}
    },
    "ai": {
        "provider": "huggingface",
        "timeout_seconds": 20,
        "openai": {
            "api_key": None,
            "model": "gpt-3.5-turbo",
            "temperature": 0.7,
            "max_tokens": 1000
        },
        "huggingface": {
            "api_key": None,
            "model": "google/flan-t5-large",
            "endpoint": "https://api-inference.huggingface.co/models",
            "max_new_tokens": 512
        }
    },
    "rewrite": {
        "max_attempts": 3,
        "backoff_seconds": 1,
        "min_length_ratio": 0.5,
        "local_expansion_fallback": True
    },
    "normalizer": {
        "expand_below_words": 100,
        "min_words": {
            "news": 10,
            "product": 0,
            "crypto": 0,
            "other": 0
        }
    },
    "images": {
        "enabled": True,
        "timeout_seconds": 10
    },
    "rate_limiting": {
        "min_interval_seconds": 1
    },
    "trends": {
        "max_keywords": 5,
        "trending_threshold": 60,
        "trending_tag": "🔥 Trending",
        "keywords": [
            "ai", "bitcoin", "elon musk", "meta", "gpt",
            "openai", "climate change", "apple", "nvidia", "tesla"
        ]
    },
    "affiliate": {
        "base_url": "",
        "keywords": []
    },
    "pipeline": {
        "max_concurrent_providers": 4
    },
    "storage": {
        "database": "booster.db"
    }
}

# Well-known credential variables that fill empty provider keys
CREDENTIAL_ENV = {
    'OPENAI_API_KEY': 'ai.openai.api_key',
    'HUGGINGFACE_API_KEY': 'ai.huggingface.api_key',
}


class Config:
    """
    Configuration manager for Booster.
    """
    def __init__(self, config_path: Optional[str] = None, overrides: Optional[Dict] = None,
                 use_env: bool = True):
        """
        Initialize the Config.

        Args:
            config_path: Path to a YAML or JSON configuration file
            overrides: Values merged on top of the file configuration
            use_env: Whether BOOSTER_* environment variables are applied
        """
        self.config_path = config_path
        self.use_env = use_env
        self.config = self._load_config()
        if overrides:
            self._update_dict(self.config, overrides)

    def _load_config(self) -> Dict:
        """
        Load configuration from file or use defaults.

        Returns:
            Configuration dictionary
        """
        config = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_path:
            try:
                path = Path(self.config_path)
                if path.exists():
                    if path.suffix.lower() in ['.yaml', '.yml']:
                        with open(path, 'r') as f:
                            user_config = yaml.safe_load(f) or {}
                    elif path.suffix.lower() == '.json':
                        with open(path, 'r') as f:
                            user_config = json.load(f)
                    else:
                        raise ValueError(f"Unsupported config file format: {path.suffix}")

                    # Update config with user settings
                    self._update_dict(config, user_config)
                else:
                    logger.warning(f"Config file {self.config_path} not found, using defaults")
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.error(f"Error loading config from {self.config_path}: {e}")
                logger.error("Using default configuration")

        if self.use_env:
            self._override_from_env(config)
            self._fill_credentials(config)

        return config

    def _update_dict(self, target: Dict, source: Dict) -> None:
        """
        Recursively update a dictionary.

        Args:
            target: Target dictionary to update
            source: Source dictionary with new values
        """
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._update_dict(target[key], value)
            else:
                target[key] = value

    def _override_from_env(self, config: Dict, prefix: str = ENV_PREFIX) -> None:
        """
        Override configuration with environment variables.

        BOOSTER_AI__PROVIDER=openai sets ai.provider; nested keys are
        separated by a double underscore so that keys like max_attempts
        stay reachable.

        Args:
            config: Configuration dictionary to update
            prefix: Prefix for environment variables
        """
        for key, value in os.environ.items():
            if not key.startswith(prefix) or key == CONFIG_PATH_ENV:
                continue

            parts = key[len(prefix):].lower().split(ENV_SEPARATOR)

            # Navigate to the right place in the config
            current = config
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]

            try:
                current[parts[-1]] = json.loads(value)
            except json.JSONDecodeError:
                current[parts[-1]] = value

    def _fill_credentials(self, config: Dict) -> None:
        for env_name, dotted in CREDENTIAL_ENV.items():
            value = os.getenv(env_name)
            if not value:
                continue
            *parents, leaf = dotted.split('.')
            current = config
            for part in parents:
                current = current.setdefault(part, {})
            if not current.get(leaf):
                current[leaf] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Dot-separated key path (e.g., 'rewrite.max_attempts')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        parts = key.split('.')
        current = self.config

        for part in parts:
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]

        return current

    def save(self, path: Optional[str] = None) -> bool:
        """
        Save the current configuration to a file.

        Args:
            path: Path to save the configuration to

        Returns:
            True if successful, False otherwise
        """
        save_path = path or self.config_path
        if not save_path:
            logger.error("No path specified for saving configuration")
            return False

        try:
            path = Path(save_path)
            if path.suffix.lower() in ['.yaml', '.yml']:
                with open(path, 'w') as f:
                    yaml.safe_dump(self.config, f, default_flow_style=False, allow_unicode=True)
            elif path.suffix.lower() == '.json':
                with open(path, 'w') as f:
                    json.dump(self.config, f, indent=2)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

            return True
        except (OSError, ValueError) as e:
            logger.error(f"Error saving config to {save_path}: {e}")
            return False


# Global configuration instance
config = Config(os.getenv(CONFIG_PATH_ENV))

def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value.

    Args:
        key: Dot-separated key path (e.g., 'storage.database')
        default: Default value if key not found

    Returns:
        Configuration value
    """
    return config.get(key, default)
