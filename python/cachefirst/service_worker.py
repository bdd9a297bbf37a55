"""
Service worker script generation.

Renders the browser-side counterpart of ``OfflineCacheWorker`` so that
pages served by Django get the same cache-first behaviour.
"""

import json
import logging
from typing import Optional

from django.http import HttpRequest, HttpResponse

from .config import WorkerConfig, build_cache_name, get_config
from .notifications import ACTION_CLOSE, ACTION_OPEN

logger = logging.getLogger(__name__)


class ServiceWorkerGenerator:
    """
    Generates the service worker JavaScript from worker configuration.
    """

    def __init__(self, config: Optional[WorkerConfig] = None, version: Optional[str] = None):
        self.config = config or get_config()
        self.version = version or self.config.get("version")

    @property
    def cache_name(self) -> str:
        return build_cache_name(self.config.get("app_name"), self.version)

    def generate_service_worker(self) -> str:
        """
        Generate complete service worker JavaScript code.

        Returns:
            Service worker JavaScript code as string
        """
        sw_code = self._generate_header()
        sw_code += self._generate_constants()
        sw_code += self._generate_install_handler()
        sw_code += self._generate_activate_handler()
        sw_code += self._generate_fetch_handler()
        sw_code += self._generate_push_handler()
        sw_code += self._generate_notification_click_handler()
        return sw_code

    def _generate_header(self) -> str:
        return f"""/*
 * cachefirst service worker
 * Version: {self.version}
 * Generated automatically - do not edit
 */
"""

    def _generate_constants(self) -> str:
        notification = self.config.get("notification", {})
        options = {
            "body": notification.get("default_body"),
            "icon": notification.get("icon"),
            "badge": notification.get("badge"),
            "dir": notification.get("dir"),
            "lang": notification.get("lang"),
            "tag": notification.get("tag"),
            "actions": [
                {
                    "action": ACTION_OPEN,
                    "title": notification.get("open_title"),
                    "icon": notification.get("open_icon"),
                },
                {
                    "action": ACTION_CLOSE,
                    "title": notification.get("close_title"),
                    "icon": notification.get("close_icon"),
                },
            ],
        }
        return f"""
const CACHE_NAME = {json.dumps(self.cache_name)};
const PRECACHE_URLS = {json.dumps(self.config.get("precache_urls", []))};
const OFFLINE_FALLBACK = {json.dumps(self.config.get("offline_fallback", "/"))};
const NOTIFICATION_TITLE = {json.dumps(notification.get("title"), ensure_ascii=False)};
const NOTIFICATION_OPTIONS = {json.dumps(options, ensure_ascii=False)};
"""

    def _generate_install_handler(self) -> str:
        return """
self.addEventListener('install', (event) => {
  event.waitUntil(
    caches.open(CACHE_NAME).then((cache) => cache.addAll(PRECACHE_URLS))
  );
});
"""

    def _generate_activate_handler(self) -> str:
        return """
self.addEventListener('activate', (event) => {
  event.waitUntil(
    caches.keys().then((cacheNames) => Promise.all(
      cacheNames
        .filter((cacheName) => cacheName !== CACHE_NAME)
        .map((cacheName) => caches.delete(cacheName))
    ))
  );
});
"""

    def _generate_fetch_handler(self) -> str:
        return """
self.addEventListener('fetch', (event) => {
  event.respondWith(
    caches.open(CACHE_NAME)
      .then((cache) => cache.match(event.request))
      .then((cached) => {
        if (cached) {
          return cached;
        }
        return fetch(event.request).then((response) => {
          if (!response || response.status !== 200 || response.type !== 'basic'
              || event.request.method !== 'GET') {
            return response;
          }
          const responseToCache = response.clone();
          event.waitUntil(
            caches.open(CACHE_NAME)
              .then((cache) => cache.put(event.request, responseToCache))
              .catch((error) => console.warn('[cachefirst] cache write failed', error))
          );
          return response;
        });
      })
      .catch(() => {
        if (event.request.destination === 'document') {
          return caches.open(CACHE_NAME).then((cache) => cache.match(OFFLINE_FALLBACK));
        }
        return undefined;
      })
  );
});
"""

    def _generate_push_handler(self) -> str:
        return """
self.addEventListener('push', (event) => {
  const text = event.data ? event.data.text() : '';
  const options = Object.assign({}, NOTIFICATION_OPTIONS, {
    body: text || NOTIFICATION_OPTIONS.body,
  });
  event.waitUntil(self.registration.showNotification(NOTIFICATION_TITLE, options));
});
"""

    def _generate_notification_click_handler(self) -> str:
        return """
self.addEventListener('notificationclick', (event) => {
  event.notification.close();

  if (event.action === 'open') {
    event.waitUntil(
      clients.matchAll({ type: 'window' }).then((clientList) => {
        for (const client of clientList) {
          if (new URL(client.url).pathname === '/' && 'focus' in client) {
            return client.focus();
          }
        }
        return clients.openWindow('/');
      })
    );
  }
});
"""


def service_worker_view(request: HttpRequest) -> HttpResponse:
    """
    Django view that serves the service worker JavaScript file.

    The script must never be cached by the browser, otherwise a new cache
    version would not be picked up.
    """
    sw_code = ServiceWorkerGenerator().generate_service_worker()

    response = HttpResponse(sw_code, content_type="application/javascript")
    response["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response["Pragma"] = "no-cache"
    response["Expires"] = "0"
    response["Service-Worker-Allowed"] = "/"
    return response
