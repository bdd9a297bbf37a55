from django.apps import AppConfig


class CachefirstConfig(AppConfig):
    name = "cachefirst"
    verbose_name = "Offline cache worker"

    def ready(self):
        # Settings are loaded by now; pick up CACHEFIRST_CONFIG
        from cachefirst.config import config

        config.reset()
