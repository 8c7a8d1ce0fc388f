import datetime
import json
import re

from django.core.serializers.json import DjangoJSONEncoder
from django.forms.utils import pretty_name

_HTML_ID_INVALID = re.compile(r"[^A-Za-z0-9\-_]")
_TEMPLATE_PLACEHOLDER = re.compile(r"\{[^{}]*\}")


def sanitize_for_html_id(value: str) -> str:
    """Replace every character that is not valid inside an html id with '_'"""
    return _HTML_ID_INVALID.sub("_", value or "")


def humanize(name: str) -> str:
    """
    'release_date' -> 'Release Date', 'author__name' -> 'Author Name'
    """
    return pretty_name(name.replace("__", "_")).title()


def to_json(value) -> str:
    return json.dumps(value, cls=DjangoJSONEncoder)


def to_input_string(value) -> str:
    """Format a python value the way an html input expects to receive it"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime.datetime):
        return value.strftime("%Y-%m-%dT%H:%M")
    if isinstance(value, datetime.date):
        return value.isoformat()
    return str(value)


def format_template(template: str, *args) -> str:
    """
    Substitute '{Name}' style placeholders in order of appearance.
    Placeholders without a matching argument are left as they are.
    """
    values = iter(args)

    def replace(match):
        try:
            return str(next(values))
        except StopIteration:
            return match.group(0)

    return _TEMPLATE_PLACEHOLDER.sub(replace, template)
