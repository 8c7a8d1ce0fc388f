from django.core.exceptions import ImproperlyConfigured

from .conf import get_setting
from .state import PageState


class PageStateMiddleware:
    """
    Load the encrypted page state from the request header and attach it to the request as request.page_state.
    The state is written back to the response header when it has been loaded or changed, so the client
    can send it with the next htmx request.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        header = get_setting("STATE_HEADER")
        page_state = PageState()
        token = request.headers.get(header)
        if token:
            page_state.load(token)
        request.page_state = page_state

        response = self.get_response(request)

        if page_state.is_dirty or page_state.is_loaded:
            response[header] = page_state.encrypt()
        return response


def get_page_state(request) -> PageState:
    try:
        return request.page_state
    except AttributeError:
        raise ImproperlyConfigured(
            "Page state is not available. Add "
            "'htmx_components.middleware.PageStateMiddleware' to MIDDLEWARE."
        )
