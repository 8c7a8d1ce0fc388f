from django.template.loader import render_to_string
from django.utils.safestring import mark_safe
from django_tables2.utils import AttributeDict

from .paths import get_view_paths


class ActionModel:
    """A button or link. Attributes hold the html attributes, typically hx-* ones."""

    def __init__(self, label="", icon="", css_class="", attributes=None, is_active=False):
        self.label = label
        self.icon = icon
        self.css_class = css_class
        self.attributes = dict(attributes or {})
        self.is_active = is_active

    def __repr__(self):
        return f"<ActionModel {self.label!r}>"

    @property
    def element(self):
        return "a" if "href" in self.attributes else "button"

    def attrs_html(self):
        attrs = AttributeDict(self.attributes)
        if self.element == "button" and "type" not in attrs:
            attrs["type"] = "button"
        css = " ".join(c for c in (self.css_class, "active" if self.is_active else "") if c)
        if css:
            attrs["class"] = css
        return attrs.as_html()

    def render(self):
        return mark_safe(
            render_to_string(get_view_paths().action, {"action": self})
        )


class ActionGroup:
    def __init__(self, label="", icon="", css_class="", items=None):
        self.label = label
        self.icon = icon
        self.css_class = css_class
        self.items = list(items or [])


class ActionSet:
    def __init__(self, items=None):
        self.items = list(items or [])

    def actions(self):
        """All ActionModels, including those inside groups"""
        result = []
        for item in self.items:
            if isinstance(item, ActionGroup):
                result.extend(i for i in item.items if isinstance(i, ActionModel))
            else:
                result.append(item)
        return result
