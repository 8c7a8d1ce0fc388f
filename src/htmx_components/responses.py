import re
from dataclasses import dataclass
from enum import Enum

from django.http import HttpResponse
from django.template.loader import render_to_string


class OobTargetDisposition(Enum):
    OUTER_HTML = "outerHTML"
    INNER_HTML = "innerHTML"
    AFTER_BEGIN = "afterbegin"
    BEFORE_END = "beforeend"
    BEFORE_BEGIN = "beforebegin"
    AFTER_END = "afterend"
    DELETE = "delete"
    NONE = "none"


@dataclass
class HtmxViewInfo:
    view_name: str
    model: object = None
    target_disposition: OobTargetDisposition = OobTargetDisposition.OUTER_HTML
    target_selector: str | None = None


_components = {}


def register_component(name):
    """
    Register a callable that renders a named fragment.
    The callable receives (request, model) and returns html.
    """

    def decorator(func):
        _components[name] = func
        return func

    return decorator


def is_component(name) -> bool:
    return name in _components


def render_component(request, name, model=None) -> str:
    return _components[name](request, model)


_OUTER_TAG = re.compile(r"<(\w+)([^>]*)>")
_VALID_SELECTOR = re.compile(r"^[a-zA-Z0-9\-_#.: \[\]=]*$")


def add_hx_swap_oob(html: str, info: HtmxViewInfo) -> str:
    """
    Add hx-swap-oob to the outermost element and wrap the fragment in <template>
    so that table rows survive htmx's parsing of the response.
    """
    target_selector = ""
    if info.target_selector and info.target_selector.strip():
        if not _VALID_SELECTOR.match(info.target_selector):
            raise ValueError(
                "target_selector contains invalid characters for a CSS query selector."
            )
        target_selector = ":" + info.target_selector

    match = _OUTER_TAG.search(html)
    if match and "hx-swap-oob" not in match.group(0):
        tag_name, tag_attributes = match.group(1), match.group(2).rstrip()
        tag_end = ">"
        if tag_attributes.endswith("/"):
            tag_attributes, tag_end = tag_attributes[:-1].rstrip(), " />"
        swap = f"{info.target_disposition.value}{target_selector}"
        updated_tag = f'<{tag_name}{tag_attributes} hx-swap-oob="{swap}"{tag_end}'
        return f"<template>{html[:match.start()]}{updated_tag}{html[match.end():]}</template>"
    return html


def _is_targetable(model):
    return hasattr(model, "target_disposition") and hasattr(model, "target_selector")


class MultiSwapResponse(HttpResponse):
    """
    An htmx response made of an optional main fragment plus any number of out-of-band fragments.
    Like TemplateResponse, content is rendered lazily; Django calls render() before the response is sent.
    Fragments are rendered from templates, or from components when the view name is a registered component.
    """

    def __init__(self, request, main=None, oobs=None, **kwargs):
        kwargs.setdefault("content_type", "text/html")
        super().__init__("", **kwargs)
        self.request = request
        self.model = None
        self._main = None
        self._oobs = list(oobs or [])
        self._is_rendered = False
        if main is not None:
            self.with_main_content(*main)

    def with_main_content(self, view_name, model):
        self._main = HtmxViewInfo(view_name, model, OobTargetDisposition.NONE)
        return self

    def with_oob_content(self, view_name, model, target_disposition=None, target_selector=None):
        if target_disposition is None:
            if _is_targetable(model):
                target_disposition = model.target_disposition or OobTargetDisposition.OUTER_HTML
                target_selector = target_selector or model.target_selector
            else:
                target_disposition = OobTargetDisposition.OUTER_HTML
        self._oobs.append(
            HtmxViewInfo(view_name, model, target_disposition, target_selector)
        )
        return self

    def with_oob_list(self, infos):
        self._oobs.extend(infos)
        return self

    @property
    def main(self):
        return self._main

    @property
    def oobs(self):
        return list(self._oobs)

    @property
    def is_rendered(self):
        return self._is_rendered

    def render_view(self, info: HtmxViewInfo) -> str:
        if is_component(info.view_name):
            return render_component(self.request, info.view_name, info.model)
        return render_to_string(info.view_name, {"model": info.model}, self.request)

    @property
    def rendered_content(self):
        parts = []
        if self._main is not None:
            parts.append(self.render_view(self._main).strip())
        for info in self._oobs:
            parts.append(add_hx_swap_oob(self.render_view(info).strip(), info))
        return "".join(f"{part}\n" for part in parts)

    def render(self):
        if not self._is_rendered:
            self.content = self.rendered_content
            self._is_rendered = True
        return self
