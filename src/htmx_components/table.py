import logging
from dataclasses import dataclass, field
from enum import Enum

from django.core.exceptions import ImproperlyConfigured
from django.core.paginator import Paginator
from django_filters import CharFilter, RangeFilter
from django_tables2.utils import Accessor

from .responses import OobTargetDisposition
from .utils import sanitize_for_html_id, to_json

logger = logging.getLogger(__name__)


@dataclass
class TableState:
    """Sorting, paging and filtering of a table. Round-tripped in the page state."""

    sort_column: str | None = None
    sort_direction: str = "asc"
    page: int = 1
    page_size: int = 10
    filters: dict[str, str] = field(default_factory=dict)
    range_filters: dict[str, tuple[str, str]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "sort_column": self.sort_column,
            "sort_direction": self.sort_direction,
            "page": self.page,
            "page_size": self.page_size,
            "filters": dict(self.filters),
            "range_filters": {k: list(v) for k, v in self.range_filters.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TableState":
        return cls(
            sort_column=data.get("sort_column"),
            sort_direction=data.get("sort_direction", "asc"),
            page=int(data.get("page", 1)),
            page_size=int(data.get("page_size", 10)),
            filters=dict(data.get("filters", {})),
            range_filters={
                k: (v[0], v[1]) for k, v in data.get("range_filters", {}).items()
            },
        )


class ColumnType(Enum):
    VALUE_SELECTOR = "value_selector"
    DISPLAY = "display"


class TableColumnModel:
    def __init__(
        self,
        header="",
        data_name="",
        column_type=ColumnType.VALUE_SELECTOR,
        sortable=True,
        filterable=False,
        is_editable=False,
        cell_partial_view=None,
        filter_partial_view=None,
        cell_edit_partial_view=None,
        selector=None,
        filter=None,
        range_filter=None,
        actions_factories=None,
        input_model_factory=None,
        model_handler=None,
    ):
        self.header = header
        self.data_name = data_name
        self.column_type = column_type
        self.sortable = sortable
        self.filterable = filterable
        self.is_editable = is_editable
        self.cell_partial_view = cell_partial_view
        self.filter_partial_view = filter_partial_view
        self.cell_edit_partial_view = cell_edit_partial_view
        self.selector = selector
        self.filter = filter
        self.range_filter = range_filter
        self.actions_factories = list(actions_factories or [])
        self.input_model_factory = input_model_factory
        self.model_handler = model_handler
        self.table = None

    def __repr__(self):
        return f"<TableColumnModel {self.id}>"

    @property
    def id(self):
        return "col_" + sanitize_for_html_id(self.data_name)

    def get_value(self, row):
        if row.item is None:
            return ""
        if self.selector is not None:
            return self.selector(row.item)
        if self.column_type == ColumnType.DISPLAY or not self.data_name:
            return ""
        return Accessor(self.data_name).resolve(row.item, quiet=True)

    def get_serialized_value(self, row) -> str:
        if row.item is None:
            return ""
        return to_json(self.get_value(row))

    def get_actions(self, row) -> list:
        if row.item is None:
            return []
        results = []
        for factory in self.actions_factories:
            actions = factory(row)
            if actions:
                results.extend(actions)
        return results

    def get_input_model(self, row):
        if self.input_model_factory is None:
            raise ImproperlyConfigured(f"Column '{self.data_name}' has no input model")
        return self.input_model_factory(row)


class TableRowContext:
    def __init__(
        self,
        item,
        model_handler,
        key=None,
        string_key=None,
        page_index=0,
        is_editing=False,
        target_selector=None,
        target_disposition=OobTargetDisposition.OUTER_HTML,
    ):
        self.item = item
        self.model_handler = model_handler
        self.key = key
        if string_key is not None:
            self.string_key = string_key
        self.page_index = page_index
        self.is_editing = is_editing
        self.target_selector = target_selector
        self.target_disposition = target_disposition
        self.table = None

    def __repr__(self):
        return f"<TableRowContext {self.row_id}>"

    @property
    def key(self):
        return self._key

    @key.setter
    def key(self, value):
        self._key = value
        self.string_key = "" if value is None else to_json(value)

    @property
    def row_id(self):
        return "row_" + sanitize_for_html_id(self.string_key)

    @property
    def needs_wrapper(self):
        """htmx inserts the children of an out-of-band element for these swaps, so the row needs a parent"""
        return self.target_disposition not in (
            OobTargetDisposition.OUTER_HTML,
            OobTargetDisposition.DELETE,
            OobTargetDisposition.NONE,
        )


class TableModel:
    def __init__(self, type_id, model_handler, columns=None, actions_factories=None):
        if model_handler is None:
            raise ValueError("TableModel requires a model handler")
        self.type_id = type_id
        self.model_handler = model_handler
        self.columns = list(columns or [])
        self.actions_factories = list(actions_factories or [])
        self.rows = []
        self.page_count = 1
        self.state = TableState()

    def __repr__(self):
        return f"<TableModel {self.type_id}>"

    def get_actions(self) -> list:
        results = []
        for factory in self.actions_factories:
            actions = factory(self)
            if actions:
                results.extend(actions)
        return results

    @property
    def is_editing(self):
        return any(row.is_editing for row in self.rows)

    def get_column(self, data_name):
        return next((c for c in self.columns if c.data_name == data_name), None)


def default_filter(field_name):
    """Case-insensitive 'contains' on the field"""
    char_filter = CharFilter(field_name=field_name, lookup_expr="icontains")
    return lambda queryset, value: char_filter.filter(queryset, value)


def default_range_filter(field_name):
    range_filter = RangeFilter(field_name=field_name)
    return lambda queryset, low, high: range_filter.filter(
        queryset, slice(low or None, high or None)
    )


def fetch_page(table_model: TableModel, queryset, table_state: TableState):
    """
    Apply the state's filters and sort order to the queryset and load the requested page into table_model.rows
    The page number is clamped to the available pages.
    """
    handler = table_model.model_handler
    for name, value in table_state.filters.items():
        column = table_model.get_column(name)
        if column is None or not column.filterable or column.filter is None:
            logger.debug("Ignoring filter on column %s", name)
            continue
        if value:
            queryset = column.filter(queryset, value)

    for name, (low, high) in table_state.range_filters.items():
        column = table_model.get_column(name)
        if column is None or not column.filterable or column.range_filter is None:
            logger.debug("Ignoring range filter on column %s", name)
            continue
        if low or high:
            queryset = column.range_filter(queryset, low, high)

    column = table_model.get_column(table_state.sort_column)
    if column and column.sortable and column.column_type == ColumnType.VALUE_SELECTOR:
        prefix = "-" if table_state.sort_direction == "desc" else ""
        queryset = queryset.order_by(f"{prefix}{column.data_name}", *handler.key_fields)
    elif not queryset.ordered:
        # Pagination needs a stable order
        queryset = queryset.order_by(*handler.key_fields)

    paginator = Paginator(queryset, max(1, table_state.page_size))
    page = paginator.get_page(max(1, table_state.page))
    table_state.page = page.number
    table_model.state = table_state
    table_model.page_count = paginator.num_pages
    table_model.rows = [
        TableRowContext(
            item=item,
            model_handler=handler,
            key=handler.key_of(item),
            page_index=index,
        )
        for index, item in enumerate(page.object_list)
    ]
    for row in table_model.rows:
        row.table = table_model
    return table_model
