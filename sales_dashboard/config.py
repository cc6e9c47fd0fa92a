# sales_dashboard/config.py
"""
Centralized Configuration Management

Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Environment detection
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any
from dataclasses import dataclass

# Initialize logger
logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3001/api"
DEFAULT_API_TIMEOUT_SECONDS = 10.0


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ApiConfig:
    """Dashboard REST API configuration container"""
    base_url: str = DEFAULT_API_URL
    timeout_seconds: float = DEFAULT_API_TIMEOUT_SECONDS

    def to_dict(self) -> Dict[str, Any]:
        return {
            'base_url': self.base_url,
            'timeout_seconds': self.timeout_seconds,
        }


class Config:
    """
    Centralized configuration management

    Usage:
        from sales_dashboard.config import config

        # Get API config
        api_config = config.get_api_config()

        # Get app settings
        period = config.get_app_setting("DEFAULT_PERIOD", "30d")

        # Check feature flags
        if config.is_feature_enabled("EXPORT"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        api_secrets = st.secrets.get("API", {})
        self._api_config = ApiConfig(
            base_url=api_secrets.get("URL", DEFAULT_API_URL),
            timeout_seconds=float(api_secrets.get("TIMEOUT_SECONDS", DEFAULT_API_TIMEOUT_SECONDS))
        )

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        # Find and load .env file
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._api_config = ApiConfig(
            base_url=os.getenv("API_URL", DEFAULT_API_URL),
            timeout_seconds=float(os.getenv("API_TIMEOUT_SECONDS", str(DEFAULT_API_TIMEOUT_SECONDS)))
        )

        if not self._api_config.base_url:
            logger.error("Missing API_URL configuration")
            raise ValueError("Missing API_URL configuration. Please check .env file.")

        logger.info("💻 Running in LOCAL environment")

    def _load_app_config(self):
        """Load application-specific settings"""
        self._app_config = {
            # Drill-down defaults
            "DEFAULT_PERIOD": os.getenv("DEFAULT_PERIOD", "30d"),

            # Logging
            "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO").upper(),

            # Localization
            "CURRENCY": os.getenv("CURRENCY", "ARS"),

            # Feature flags
            "ENABLE_EXPORT": _as_bool(os.getenv("ENABLE_EXPORT"), default=True),
            "ENABLE_DEBUG_MODE": _as_bool(os.getenv("ENABLE_DEBUG_MODE"), default=False),
        }

    def _log_config_status(self):
        """Log configuration status"""
        logger.info(f"✅ API: {self._api_config.base_url} (timeout={self._api_config.timeout_seconds}s)")
        logger.info(f"✅ Default period: {self._app_config['DEFAULT_PERIOD']}")

    # ==================== PUBLIC GETTERS ====================

    def get_api_config(self) -> Dict[str, Any]:
        """Get API configuration as dictionary"""
        return self._api_config.to_dict()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, True)

    # ==================== PROPERTIES ====================

    @property
    def api_config(self) -> Dict[str, Any]:
        return self.get_api_config()

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

__all__ = [
    'config',
    'Config',
    'ApiConfig',
]
