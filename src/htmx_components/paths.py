from dataclasses import dataclass, field, fields, replace

from django.core.exceptions import ImproperlyConfigured

from .conf import get_setting

PREFIX = "htmx_components"


@dataclass
class TableViewPaths:
    table: str = f"{PREFIX}/_table.html"
    body: str = f"{PREFIX}/_table_body.html"
    cell: str = f"{PREFIX}/_table_cell.html"
    cell_action_list: str = f"{PREFIX}/_table_cell_action_list.html"
    table_action_list: str = f"{PREFIX}/_table_action_list.html"
    filter_date_range: str = f"{PREFIX}/_table_filter_date_range.html"
    filter_text: str = f"{PREFIX}/_table_filter_text.html"
    header: str = f"{PREFIX}/_table_header.html"
    pagination: str = f"{PREFIX}/_table_pagination.html"
    cell_edit_text: str = f"{PREFIX}/_table_cell_edit_text.html"
    row: str = f"{PREFIX}/_table_row.html"
    edit_class_toggle: str = f"{PREFIX}/_table_edit_class_toggle.html"


@dataclass
class ViewPaths:
    table: TableViewPaths = field(default_factory=TableViewPaths)
    nav_bar: str = f"{PREFIX}/_navbar.html"
    auth_status: str = f"{PREFIX}/_auth_status.html"
    input: str = f"{PREFIX}/_input.html"
    action: str = f"{PREFIX}/_action.html"
    default_nav_content: str = f"{PREFIX}/_default_nav_content.html"


def _apply(instance, overrides: dict, setting: str):
    names = {f.name for f in fields(instance)}
    for key in overrides:
        if key not in names:
            raise ImproperlyConfigured(f"Unknown view path '{key}' in {setting}")
    return replace(instance, **overrides)


def get_view_paths() -> ViewPaths:
    """
    Default template names updated with HTMX_COMPONENTS["VIEW_PATHS"].
    Table templates are overridden through a nested "table" dictionary.
    """
    overrides = dict(get_setting("VIEW_PATHS"))
    table_overrides = overrides.pop("table", {})
    paths = _apply(ViewPaths(), overrides, "VIEW_PATHS")
    paths.table = _apply(TableViewPaths(), table_overrides, "VIEW_PATHS['table']")
    return paths
