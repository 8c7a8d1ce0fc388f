import pytest
from django.core.exceptions import ImproperlyConfigured
from django.http import HttpResponse

from htmx_components.middleware import PageStateMiddleware, get_page_state
from htmx_components.state import PageState

HEADER = "X-Page-State"


def test_untouched_state_sends_no_header(rf):
    middleware = PageStateMiddleware(lambda request: HttpResponse())
    response = middleware(rf.get("/"))
    assert HEADER not in response


def test_changed_state_is_sent(rf):
    def view(request):
        get_page_state(request).set("Custom", "value", 42)
        return HttpResponse()

    response = PageStateMiddleware(view)(rf.get("/"))
    state = PageState()
    state.load(response[HEADER])
    assert state.get("Custom", "value") == 42


def test_loaded_state_is_sent_back(rf):
    state = PageState()
    state.set("Custom", "value", "kept")
    request = rf.post("/", HTTP_X_PAGE_STATE=state.encrypt())
    seen = {}

    def view(request):
        seen["value"] = request.page_state.get("Custom", "value")
        return HttpResponse()

    response = PageStateMiddleware(view)(request)
    assert seen["value"] == "kept"
    returned = PageState()
    returned.load(response[HEADER])
    assert returned.get("Custom", "value") == "kept"


def test_invalid_header_gives_empty_state(rf, caplog):
    request = rf.post("/", HTTP_X_PAGE_STATE="garbage")
    seen = {}

    def view(request):
        seen["empty"] = request.page_state.is_empty
        return HttpResponse()

    response = PageStateMiddleware(view)(request)
    assert seen["empty"]
    assert HEADER not in response
    assert "Discarding invalid page state" in caplog.text


def test_custom_header_name(rf, settings):
    settings.HTMX_COMPONENTS = {"STATE_HEADER": "X-Custom-State"}

    def view(request):
        get_page_state(request).set("Custom", "value", 1)
        return HttpResponse()

    response = PageStateMiddleware(view)(rf.get("/"))
    assert "X-Custom-State" in response
    assert HEADER not in response


def test_missing_middleware(rf):
    with pytest.raises(ImproperlyConfigured):
        get_page_state(rf.get("/"))
