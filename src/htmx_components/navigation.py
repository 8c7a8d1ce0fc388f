from django.template.loader import render_to_string

from .builders import ActionSetBuilder
from .paths import get_view_paths
from .responses import register_component

ACTIVE_URL_ATTRIBUTES = ("href", "hx-get")


class NavBarRegistry:
    """
    Callbacks that add items to the navigation bar. Each receives (request, ActionSetBuilder):

        @navbar.register
        def main_menu(request, actions):
            actions.add_action(lambda a: a.with_label("Products").with_hx_get("/products/"))
    """

    def __init__(self):
        self._callbacks = []

    def register(self, configure):
        self._callbacks.append(configure)
        return configure

    def clear(self):
        self._callbacks = []

    def build(self, request):
        builder = ActionSetBuilder(request)
        for configure in self._callbacks:
            configure(request, builder)
        action_set = builder.build()
        if request is not None:
            for action in action_set.actions():
                urls = [action.attributes.get(a) for a in ACTIVE_URL_ATTRIBUTES]
                if request.path in urls:
                    action.is_active = True
        return action_set


navbar = NavBarRegistry()


@register_component("NavBar")
def render_navbar(request, model=None):
    action_set = model if model is not None else navbar.build(request)
    return render_to_string(
        get_view_paths().nav_bar,
        {"action_set": action_set, "default_content": get_view_paths().default_nav_content},
        request,
    )


@register_component("AuthStatus")
def render_auth_status(request, model=None):
    user = model if model is not None else getattr(request, "user", None)
    return render_to_string(get_view_paths().auth_status, {"user": user}, request)
