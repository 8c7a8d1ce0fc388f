from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

DEFAULTS = {
    "STATE_HEADER": "X-Page-State",
    "STATE_SALT": "htmx-components-page-state",
    "PERMISSION_CHECKER": "htmx_components.authorization.model_permission_checker",
    "VIEW_PATHS": {},
    "PAGE_SIZES": [10, 25, 50, 100],
}


def get_settings() -> dict:
    user_settings = getattr(settings, "HTMX_COMPONENTS", {})
    if not isinstance(user_settings, dict):
        raise ImproperlyConfigured("HTMX_COMPONENTS must be a dictionary")
    unknown = set(user_settings) - set(DEFAULTS)
    if unknown:
        raise ImproperlyConfigured(
            f"Unknown HTMX_COMPONENTS setting(s): {', '.join(sorted(unknown))}"
        )
    return {**DEFAULTS, **user_settings}


def get_setting(name: str):
    return get_settings()[name]
