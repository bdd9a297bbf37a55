"""
Configuration system for cachefirst

Provides centralized configuration for:
- Cache naming and versioning
- The precache manifest and offline fallback
- Push notification presentation
- Web app manifest metadata
"""

import copy
from typing import Any, Dict


def build_cache_name(app_name: str, version: str) -> str:
    """Return the version-qualified cache store name, e.g. ``myapp-v2025.01.20``."""
    return f"{app_name}-v{version}"


class WorkerConfig:
    """
    Central configuration for the offline cache worker.

    Usage:
        # In settings.py
        CACHEFIRST_CONFIG = {
            'app_name': 'university',
            'version': '2025.01.20',
            'origin': 'https://example.com',
        }

        # Or programmatically
        from cachefirst.config import config
        config.set('notification.lang', 'ar')
    """

    # Default configuration
    _defaults = {
        # Cache store naming; bump version on every deploy that changes cached assets
        "app_name": "cachefirst",
        "version": "1",
        # Origin that relative paths are resolved against and that decides same-origin responses
        "origin": "http://localhost",
        # Resources stored at install time
        "precache_urls": [
            "/",
            "/static/css/main.css",
            "/static/js/main.js",
            "/manifest.json",
            "/icon-192x192.png",
            "/icon-512x512.png",
        ],
        # Served for document requests when the network is unreachable
        "offline_fallback": "/",
        # Seconds before a network fetch counts as failed (None = wait indefinitely)
        "network_timeout": None,
        # Storage backend: 'memory' or 'django'
        "storage_backend": "memory",
        "cache_alias": "default",  # Django cache alias used by the 'django' backend
        # Push notifications
        "notification": {
            "title": "cachefirst",
            "default_body": "You have a new notification",
            "icon": "/icon-192x192.png",
            "badge": "/icon-192x192.png",
            "dir": "ltr",
            "lang": "en",
            "tag": "cachefirst-notification",
            "open_title": "Open app",
            "open_icon": "/icon-192x192.png",
            "close_title": "Close",
            "close_icon": "/icon-192x192.png",
        },
        # Web app manifest
        "manifest": {
            "name": "cachefirst App",
            "short_name": "cachefirst",
            "description": "Offline-capable web application",
            "start_url": "/",
            "scope": "/",
            "display": "standalone",
            "theme_color": "#16a34a",
            "background_color": "#ffffff",
            "icons": [
                {"src": "/icon-192x192.png", "sizes": "192x192", "type": "image/png"},
                {"src": "/icon-512x512.png", "sizes": "512x512", "type": "image/png"},
            ],
        },
    }

    def __init__(self):
        self._config = copy.deepcopy(self._defaults)
        self._load_from_settings()

    def _load_from_settings(self):
        """Load configuration from Django settings if available"""
        try:
            from django.conf import settings
            from django.core.exceptions import ImproperlyConfigured
        except ImportError:
            return

        try:
            overrides = getattr(settings, "CACHEFIRST_CONFIG", None)
        except ImproperlyConfigured:
            # Settings not configured yet (e.g. plain library use)
            return

        if overrides:
            self.update(overrides)

    @property
    def cache_name(self) -> str:
        """Name of the cache store owned by the configured version."""
        return build_cache_name(self.get("app_name"), self.get("version"))

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key (supports dot notation for nested values)
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            config.get('version')  # '1'
            config.get('notification.lang')  # 'en'
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value if value is not None else default

    def set(self, key: str, value: Any):
        """
        Set a configuration value.

        Args:
            key: Configuration key (supports dot notation for nested values)
            value: Value to set

        Example:
            config.set('version', '2025.01.20')
            config.set('notification.dir', 'rtl')
        """
        keys = key.split(".")

        target = self._config
        for k in keys[:-1]:
            if k not in target:
                target[k] = {}
            target = target[k]

        target[keys[-1]] = value

    def reset(self):
        """Reset configuration to defaults"""
        self._config = copy.deepcopy(self._defaults)
        self._load_from_settings()

    def update(self, config_dict: Dict[str, Any]):
        """
        Update multiple configuration values at once.

        Nested sections ('notification', 'manifest') are merged key by key,
        so overriding one notification field keeps the others.

        Example:
            config.update({
                'version': '2',
                'notification': {'lang': 'ar', 'dir': 'rtl'},
            })
        """
        for key, value in config_dict.items():
            current = self._config.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                current.update(value)
            else:
                self._config[key] = value

    def as_dict(self) -> Dict[str, Any]:
        """Get the entire configuration as a dictionary"""
        return copy.deepcopy(self._config)


# Global configuration instance
config = WorkerConfig()


def get_config() -> WorkerConfig:
    """Get the global configuration instance"""
    return config
