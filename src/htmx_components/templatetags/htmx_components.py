from django import template
from django.core.exceptions import ImproperlyConfigured
from django.template.loader import render_to_string
from django.templatetags.static import static
from django.utils.html import format_html
from django.utils.safestring import mark_safe
from django_tables2.utils import AttributeDict

from ..builders import form_url as build_form_url
from ..conf import get_setting
from ..paths import get_view_paths
from ..responses import render_component

register = template.Library()


@register.simple_tag
def htmx_components_script():
    return format_html('<script src="{}" defer></script>', static("htmx_components/js/htmx_components.js"))


@register.simple_tag(takes_context=True)
def page_state_meta(context):
    """Meta tag holding the page state of the initial page load, picked up by htmx_components.js"""
    request = context.get("request")
    page_state = getattr(request, "page_state", None)
    if page_state is None:
        raise ImproperlyConfigured("page_state_meta requires PageStateMiddleware and the request context processor")
    return format_html(
        '<meta name="x-page-state" data-header="{}" content="{}">',
        get_setting("STATE_HEADER"),
        page_state.encrypt(),
    )


@register.filter
def attrs(attributes):
    """Render a dictionary as html attributes"""
    return AttributeDict(attributes or {}).as_html()


@register.filter
def render_action(action):
    return action.render()


@register.simple_tag
def form_url(name, type_id, model_ui=None):
    return build_form_url(name, type_id, model_ui)


@register.simple_tag
def page_sizes():
    return get_setting("PAGE_SIZES")


@register.simple_tag(takes_context=True)
def table_part(context, name, model):
    """Render one of the table templates named in ViewPaths.table, e.g. {% table_part "body" table %}"""
    paths = get_view_paths().table
    try:
        template_name = getattr(paths, name)
    except AttributeError:
        raise ImproperlyConfigured(f"Unknown table template '{name}'")
    return mark_safe(render_to_string(template_name, {"model": model}, context.get("request")))


@register.simple_tag(takes_context=True)
def table_cell(context, row, column):
    """
    Render the content of one cell: the input when the row is being edited and the column is editable,
    otherwise the column's cell template.
    """
    paths = get_view_paths().table
    if row.is_editing and column.is_editable:
        template_name = column.cell_edit_partial_view or paths.cell_edit_text
        cell_context = {"input": column.get_input_model(row), "row": row, "column": column}
    else:
        template_name = column.cell_partial_view or paths.cell
        cell_context = {
            "value": column.get_value(row),
            "actions": column.get_actions(row),
            "row": row,
            "column": column,
        }
    return mark_safe(render_to_string(template_name, cell_context, context.get("request")))


@register.simple_tag(takes_context=True)
def column_filter(context, table, column):
    low, high = table.state.range_filters.get(column.data_name, ("", ""))
    filter_context = {
        "table": table,
        "column": column,
        "value": table.state.filters.get(column.data_name, ""),
        "low": low,
        "high": high,
    }
    template_name = column.filter_partial_view or get_view_paths().table.filter_text
    return mark_safe(render_to_string(template_name, filter_context, context.get("request")))


@register.simple_tag
def next_sort_direction(table, column):
    state = table.state
    if state.sort_column == column.data_name and state.sort_direction == "asc":
        return "desc"
    return "asc"


@register.simple_tag
def sort_indicator(table, column):
    state = table.state
    if state.sort_column != column.data_name:
        return ""
    return "▲" if state.sort_direction == "asc" else "▼"


@register.simple_tag(takes_context=True)
def render_input(context, input_model):
    return mark_safe(
        render_to_string(get_view_paths().input, {"input": input_model}, context.get("request"))
    )


@register.simple_tag(takes_context=True)
def htmx_navbar(context, action_set=None):
    return mark_safe(render_component(context.get("request"), "NavBar", action_set))


@register.simple_tag(takes_context=True)
def htmx_auth_status(context):
    return mark_safe(render_component(context.get("request"), "AuthStatus"))
