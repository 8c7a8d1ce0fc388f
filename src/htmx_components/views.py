import logging

from django.core.exceptions import FieldDoesNotExist, PermissionDenied, ValidationError
from django.http import Http404, HttpResponseBadRequest, HttpResponseForbidden
from django.views import View
from django.views.generic import TemplateView

from .authorization import CrudOperation, is_authorized
from .decorators import table_edit_action, table_refresh_action
from .dispatch import invoke
from .handlers import ModelUI, registry
from .middleware import get_page_state
from .responses import MultiSwapResponse, OobTargetDisposition
from .state import FormStateKeys, TableStateKeys
from .table import TableRowContext, TableState

logger = logging.getLogger(__name__)

NEW_ROW_KEY = "new"
TABLE_BODY_SELECTOR = "#table-body"
SORT_DIRECTIONS = ("asc", "desc")


class FormController(View):
    """
    Handles the htmx requests sent by tables and inputs.
    Each url is bound to one action; the action method receives the ModelHandler of the type in the url.
    Actions returning a TableModel are turned into out-of-band swaps by the table decorators.
    A subclass can specialise an action for one model by defining '<action>_<model_name>', e.g. save_product.
    """

    action = None
    http_method_names = ["post", "delete"]
    registry = registry

    def post(self, request, type_id, model_ui=ModelUI.TABLE.value):
        handler = self.registry.get_model_handler(type_id, model_ui)
        if handler is None:
            return HttpResponseBadRequest(f"Model handler for type '{type_id}' not found.")
        return invoke(self, self.action, handler)

    def delete(self, request, *args, **kwargs):
        return self.post(request, *args, **kwargs)

    def param(self, name, default=None):
        if name in self.request.POST:
            return self.request.POST[name]
        return self.request.GET.get(name, default)

    def int_param(self, name, default=None):
        value = self.param(name, default)
        return int(value)

    @property
    def page_state(self):
        return get_page_state(self.request)

    def authorized(self, handler, *operations):
        return all(is_authorized(self.request, handler, op) for op in operations)

    def editing_item(self, handler):
        item = self.page_state.get_model(FormStateKeys.PARTITION, FormStateKeys.EDITING_ITEM)
        if not isinstance(item, handler.model):
            return None
        return item

    def editing_existing_record(self):
        return bool(
            self.page_state.get(FormStateKeys.PARTITION, FormStateKeys.EDITING_EXISTING_RECORD, False)
        )

    def clear_form_state(self):
        self.page_state.clear_key(FormStateKeys.PARTITION, FormStateKeys.EDITING_ITEM)
        self.page_state.clear_key(FormStateKeys.PARTITION, FormStateKeys.EDITING_EXISTING_RECORD)

    def table_state(self):
        return self.page_state.get_or_create(
            TableStateKeys.PARTITION, TableStateKeys.TABLE_STATE, TableState
        )

    def refresh(self, handler, table_state):
        table_model = handler.build_table_model_and_fetch_page(
            self.page_state, table_state, request=self.request
        )
        self.page_state.set(TableStateKeys.PARTITION, TableStateKeys.TABLE_STATE, table_model.state)
        return table_model

    # Inputs

    @table_edit_action
    def edit(self, handler):
        if not self.authorized(handler, CrudOperation.READ, CrudOperation.UPDATE):
            return HttpResponseForbidden()
        string_key = self.param("key", "")
        try:
            key = handler.parse_key(string_key)
        except ValueError as e:
            return HttpResponseBadRequest(str(e))
        item = handler.get_item(key)
        if item is None:
            return HttpResponseBadRequest(f"Model with key '{string_key}' not found.")

        self.page_state.set(FormStateKeys.PARTITION, FormStateKeys.EDITING_ITEM, item)
        self.page_state.set(FormStateKeys.PARTITION, FormStateKeys.EDITING_EXISTING_RECORD, True)

        table_model = handler.build_table_model(self.request)
        table_model.rows.append(
            TableRowContext(item, handler, key=key, is_editing=True)
        )
        return table_model

    def set_value(self, handler):
        operation = CrudOperation.UPDATE if self.editing_existing_record() else CrudOperation.CREATE
        if not self.authorized(handler, operation):
            return HttpResponseForbidden()
        item = self.editing_item(handler)
        if item is None:
            return HttpResponseBadRequest("No record is being edited.")

        property_name = self.param("property_name", "")
        value = self.param("value", "")
        try:
            field = handler.model._meta.get_field(property_name)
        except FieldDoesNotExist:
            return HttpResponseBadRequest(f"Property '{property_name}' not found.")
        if not field.concrete or not field.editable:
            return HttpResponseBadRequest(f"Property '{property_name}' cannot be edited.")

        try:
            form_field = field.formfield()
            converted = form_field.to_python(value) if form_field is not None else value
            if field.is_relation:
                setattr(item, field.name, converted)
            else:
                setattr(item, field.attname, field.to_python(converted))
        except ValidationError as e:
            return HttpResponseBadRequest(
                f"Failed to set property '{property_name}': {' '.join(e.messages)}"
            )

        self.page_state.set(FormStateKeys.PARTITION, FormStateKeys.EDITING_ITEM, item)
        # An empty response still carries the updated page state header
        return MultiSwapResponse(self.request)

    def value_changed(self, handler):
        raise NotImplementedError("This method is not implemented yet.")

    # Table CRUD

    @table_edit_action
    def save(self, handler):
        item = self.editing_item(handler)
        if item is None:
            return HttpResponseBadRequest("No record is being edited.")
        table_model = handler.build_table_model(self.request)

        if self.editing_existing_record():
            if not self.authorized(handler, CrudOperation.UPDATE):
                return HttpResponseForbidden()
            if handler.update_model is None:
                return HttpResponseBadRequest(f"Update is not defined for type '{handler.type_id}'.")
            result = handler.update_model(item)
            if result.is_error:
                return HttpResponseBadRequest(result.message)
            table_model.rows.append(
                TableRowContext(result.value, handler, key=handler.key_of(result.value))
            )
        else:
            if not self.authorized(handler, CrudOperation.CREATE):
                return HttpResponseForbidden()
            if handler.create_model is None:
                return HttpResponseBadRequest(f"Create is not defined for type '{handler.type_id}'.")
            result = handler.create_model(item)
            if result.is_error:
                return HttpResponseBadRequest(result.message)
            table_model.rows.append(
                TableRowContext(
                    None,
                    handler,
                    string_key=NEW_ROW_KEY,
                    target_disposition=OobTargetDisposition.DELETE,
                )
            )
            table_model.rows.append(
                TableRowContext(
                    result.value,
                    handler,
                    key=handler.key_of(result.value),
                    target_disposition=OobTargetDisposition.AFTER_BEGIN,
                    target_selector=TABLE_BODY_SELECTOR,
                )
            )

        self.clear_form_state()
        return table_model

    @table_edit_action
    def cancel_edit(self, handler):
        table_model = handler.build_table_model(self.request)
        if self.editing_existing_record():
            if not self.authorized(handler, CrudOperation.READ):
                return HttpResponseForbidden()
            item = self.editing_item(handler)
            if item is None:
                return HttpResponseBadRequest("No record is being edited.")
            key = handler.key_of(item)
            original = handler.get_item(key)
            if original is None:
                return HttpResponseBadRequest(f"Model with key '{handler.serialize_key(key)}' not found.")
            table_model.rows.append(TableRowContext(original, handler, key=key))
        else:
            table_model.rows.append(
                TableRowContext(
                    None,
                    handler,
                    string_key=NEW_ROW_KEY,
                    target_disposition=OobTargetDisposition.DELETE,
                )
            )

        self.clear_form_state()
        return table_model

    @table_edit_action
    def create(self, handler):
        if not self.authorized(handler, CrudOperation.CREATE):
            return HttpResponseForbidden()
        item = handler.model()
        self.page_state.set(FormStateKeys.PARTITION, FormStateKeys.EDITING_ITEM, item)
        self.page_state.set(FormStateKeys.PARTITION, FormStateKeys.EDITING_EXISTING_RECORD, False)

        table_model = handler.build_table_model(self.request)
        table_model.rows.append(
            TableRowContext(
                item,
                handler,
                string_key=NEW_ROW_KEY,
                is_editing=True,
                target_disposition=OobTargetDisposition.AFTER_BEGIN,
                target_selector=TABLE_BODY_SELECTOR,
            )
        )
        return table_model

    @table_edit_action
    def delete_record(self, handler):
        if handler.delete_model is None:
            return HttpResponseBadRequest(f"Delete is not defined for type '{handler.type_id}'.")
        if not self.authorized(handler, CrudOperation.DELETE):
            return HttpResponseForbidden()
        string_key = self.param("key", "")
        try:
            key = handler.parse_key(string_key)
        except ValueError as e:
            return HttpResponseBadRequest(str(e))

        result = handler.delete_model(key)
        if result.is_error:
            return HttpResponseBadRequest(result.message)

        table_model = handler.build_table_model(self.request)
        table_model.rows.append(
            TableRowContext(
                None, handler, key=key, target_disposition=OobTargetDisposition.DELETE
            )
        )
        return table_model

    # Table refresh

    @table_refresh_action
    def set_page(self, handler):
        if not self.authorized(handler, CrudOperation.READ):
            return HttpResponseForbidden()
        try:
            page = self.int_param("page")
        except (TypeError, ValueError):
            return HttpResponseBadRequest("Invalid page.")
        table_state = self.table_state()
        table_state.page = page
        return self.refresh(handler, table_state)

    @table_refresh_action
    def set_page_size(self, handler):
        if not self.authorized(handler, CrudOperation.READ):
            return HttpResponseForbidden()
        try:
            page_size = self.int_param("page_size")
        except (TypeError, ValueError):
            return HttpResponseBadRequest("Invalid page size.")
        if page_size < 1:
            return HttpResponseBadRequest("Invalid page size.")
        table_state = self.table_state()
        table_state.page_size = page_size
        return self.refresh(handler, table_state)

    @table_refresh_action
    def set_sort(self, handler):
        if not self.authorized(handler, CrudOperation.READ):
            return HttpResponseForbidden()
        column = self.param("column") or None
        direction = self.param("direction", "asc")
        if direction not in SORT_DIRECTIONS:
            return HttpResponseBadRequest(f"Invalid sort direction: {direction}")
        table_state = self.table_state()
        table_state.sort_column = column
        table_state.sort_direction = direction
        return self.refresh(handler, table_state)

    @table_refresh_action
    def set_filter(self, handler):
        if not self.authorized(handler, CrudOperation.READ):
            return HttpResponseForbidden()
        column_name = self.param("column", "")
        value = self.param("filter", "")
        try:
            input_number = self.int_param("input", 0)
        except ValueError:
            return HttpResponseBadRequest("Invalid input value.")

        table_model = handler.build_table_model(self.request)
        column = table_model.get_column(column_name)
        if column is None:
            return HttpResponseBadRequest(f"Column '{column_name}' not found.")
        if not column.filterable or (column.filter is None and column.range_filter is None):
            return HttpResponseBadRequest(f"Column '{column_name}' is not filterable.")

        table_state = self.table_state()
        if column.filter is not None:
            if value:
                table_state.filters[column_name] = value
            else:
                table_state.filters.pop(column_name, None)
        else:
            low, high = table_state.range_filters.get(column_name, ("", ""))
            if input_number == 1:
                low = value
            elif input_number == 2:
                high = value
            else:
                return HttpResponseBadRequest(f"Invalid input value: {input_number}")
            table_state.range_filters[column_name] = (low, high)
        table_state.page = 1
        try:
            return self.refresh(handler, table_state)
        except ValidationError as e:
            # refresh stores the table state only after a successful fetch
            return HttpResponseBadRequest(
                f"Invalid filter value for column '{column_name}': {' '.join(e.messages)}"
            )


class HtmxTableView(TemplateView):
    """
    A page showing the table of a registered model handler.
    Opening the page starts a new page state: default sorting, first page, no filters and nothing being edited.
    """

    type_id = None
    model_ui = ModelUI.TABLE
    template_name = "htmx_components/table_page.html"
    title = ""
    registry = registry

    def get_handler(self):
        handler = self.registry.get_model_handler(self.type_id, self.model_ui)
        if handler is None:
            raise Http404(f"No model handler for '{self.type_id}'")
        return handler

    def get_context_data(self, **kwargs):
        context = super().get_context_data(**kwargs)
        handler = self.get_handler()
        if not is_authorized(self.request, handler, CrudOperation.READ):
            raise PermissionDenied
        page_state = get_page_state(self.request)
        page_state.clear_partition(FormStateKeys.PARTITION)
        context.update(
            title=self.title,
            table=handler.build_table_model_and_fetch_page(page_state, request=self.request),
        )
        return context
