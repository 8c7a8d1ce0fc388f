from functools import wraps

from django.http import HttpResponse
from django_htmx.http import trigger_client_event

from .paths import get_view_paths
from .responses import MultiSwapResponse
from .table import TableModel

TABLE_EDITED_EVENT = "htmxComponents:tableEdited"
TABLE_REFRESHED_EVENT = "htmxComponents:tableRefreshed"


def _table_view(view_method, add_fragments, event_name):
    @wraps(view_method)
    def wrapper(view, *args, **kwargs):
        result = view_method(view, *args, **kwargs)
        if isinstance(result, HttpResponse) or not isinstance(result, TableModel):
            return result
        response = MultiSwapResponse(view.request)
        response.model = result
        add_fragments(response, result, get_view_paths().table)
        return trigger_client_event(response, event_name, {"type_id": result.type_id})

    return wrapper


def _edit_fragments(response, table_model, paths):
    for row in table_model.rows:
        row.table = table_model
        response.with_oob_content(paths.row, row)
    response.with_oob_content(paths.table_action_list, table_model)
    response.with_oob_content(paths.edit_class_toggle, table_model)


def _refresh_fragments(response, table_model, paths):
    for template_name in (paths.body, paths.header, paths.pagination, paths.table_action_list):
        response.with_oob_content(template_name, table_model)


def table_edit_action(view_method):
    """
    For view methods that return a TableModel holding the rows that changed.
    Each row is swapped out-of-band, using the row's own target disposition and selector,
    together with the table's action list. Triggers the client event htmxComponents:tableEdited.
    """
    return _table_view(view_method, _edit_fragments, TABLE_EDITED_EVENT)


def table_refresh_action(view_method):
    """
    For view methods that return a freshly fetched TableModel.
    The body, header, pagination and action list are swapped out-of-band.
    Triggers the client event htmxComponents:tableRefreshed.
    """
    return _table_view(view_method, _refresh_fragments, TABLE_REFRESHED_EVENT)
