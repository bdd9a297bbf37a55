"""
Web app manifest generation.
"""

import logging
from typing import Any, Dict, List, Optional

from django.http import HttpRequest, JsonResponse

from .config import WorkerConfig, get_config

logger = logging.getLogger(__name__)


class WebAppManifestGenerator:
    """
    Builds the web app manifest served at ``/manifest.json``.

    Text direction and language follow the notification settings so the
    installed app and its notifications read the same way.
    """

    def __init__(self, config: Optional[WorkerConfig] = None):
        self.config = config or get_config()

    def generate_manifest(self) -> Dict[str, Any]:
        """
        Generate manifest dictionary.

        Returns:
            Web app manifest as dictionary
        """
        settings = self.config.get("manifest", {})
        manifest = {
            "name": settings.get("name"),
            "short_name": settings.get("short_name"),
            "description": settings.get("description"),
            "start_url": settings.get("start_url", "/"),
            "scope": settings.get("scope", "/"),
            "display": settings.get("display", "standalone"),
            "theme_color": settings.get("theme_color"),
            "background_color": settings.get("background_color"),
            "dir": self.config.get("notification.dir", "auto"),
            "lang": self.config.get("notification.lang", "en"),
            "icons": self._process_icons(settings.get("icons", [])),
        }
        return {key: value for key, value in manifest.items() if value is not None}

    def _process_icons(self, icons: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Keep well-formed icon entries; entries without ``src`` are dropped."""
        processed = []
        for icon in icons:
            if not isinstance(icon, dict) or "src" not in icon:
                logger.warning("Skipping invalid manifest icon: %r", icon)
                continue
            processed.append(
                {key: icon[key] for key in ("src", "sizes", "type", "purpose") if key in icon}
            )
        return processed


def manifest_view(request: HttpRequest) -> JsonResponse:
    """Django view that serves the web app manifest."""
    manifest = WebAppManifestGenerator().generate_manifest()
    response = JsonResponse(manifest, json_dumps_params={"ensure_ascii": False})
    response["Content-Type"] = "application/manifest+json"
    return response
