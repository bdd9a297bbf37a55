"""
Django management command to write the service worker and web app manifest.

Usage:
    python manage.py generate_sw
    python manage.py generate_sw --cache-version 2025.01.20
    python manage.py generate_sw --output static/sw.js
"""

import json
import os
import time

from django.conf import settings
from django.core.management.base import BaseCommand

from cachefirst.config import build_cache_name, get_config
from cachefirst.manifest import WebAppManifestGenerator
from cachefirst.service_worker import ServiceWorkerGenerator


class Command(BaseCommand):
    help = "Generate the cache-first service worker and web app manifest"

    def add_arguments(self, parser):
        parser.add_argument(
            "--output",
            "-o",
            type=str,
            default=None,
            help="Output path for sw.js (default: STATIC_ROOT/sw.js or BASE_DIR/static/sw.js)",
        )
        parser.add_argument(
            "--cache-version",
            type=str,
            default=None,
            help="Cache version string (default: configured version, or a timestamp with --bump)",
        )
        parser.add_argument(
            "--bump",
            action="store_true",
            help="Use the current timestamp as cache version",
        )
        parser.add_argument(
            "--force-manifest",
            action="store_true",
            help="Overwrite an existing manifest.json",
        )

    def handle(self, *args, **options):
        config = get_config()

        output_path = options["output"]
        if not output_path:
            static_root = getattr(settings, "STATIC_ROOT", None)
            if static_root:
                output_path = os.path.join(static_root, "sw.js")
            else:
                output_path = os.path.join(settings.BASE_DIR, "static", "sw.js")

        output_dir = os.path.dirname(output_path)
        if output_dir and not os.path.exists(output_dir):
            os.makedirs(output_dir)

        version = options["cache_version"]
        if not version:
            version = str(int(time.time())) if options["bump"] else config.get("version")

        sw_content = ServiceWorkerGenerator(config, version=version).generate_service_worker()
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(sw_content)

        self.stdout.write(self.style.SUCCESS(f"Generated service worker at: {output_path}"))
        self.stdout.write(f"  Cache: {build_cache_name(config.get('app_name'), version)}")
        self.stdout.write(f"  Precache URLs: {len(config.get('precache_urls', []))}")

        manifest_path = os.path.join(output_dir, "manifest.json") if output_dir else "manifest.json"
        if options["force_manifest"] or not os.path.exists(manifest_path):
            manifest = WebAppManifestGenerator(config).generate_manifest()
            with open(manifest_path, "w", encoding="utf-8") as f:
                json.dump(manifest, f, indent=2, ensure_ascii=False)
            self.stdout.write(self.style.SUCCESS(f"Generated manifest at: {manifest_path}"))
