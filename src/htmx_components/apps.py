from django.apps import AppConfig
from django.utils.module_loading import autodiscover_modules


class HtmxComponentsConfig(AppConfig):
    name = "htmx_components"
    verbose_name = "HTMX components"

    def ready(self):
        # Registers the NavBar and AuthStatus components
        from . import navigation  # noqa: F401

        # Applications register their model handlers in htmx_handlers.py
        autodiscover_modules("htmx_handlers")
