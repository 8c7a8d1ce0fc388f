"""
Fluent builders for the library's view-models.

Every builder method returns the builder so calls can be chained.
Work that depends on the complete configuration is queued as a build task and runs, in order, when build() is called.
"""
import logging

from django.core.exceptions import FieldDoesNotExist, ImproperlyConfigured
from django.db import models
from django.urls import reverse
from django.utils.http import urlencode
from django.utils.text import capfirst

from .actions import ActionGroup, ActionModel, ActionSet
from .authorization import CrudOperation, resource_operations
from .handlers import CrudFeatures, ModelHandler, ModelUI
from .inputs import InputKind, InputModel, InputSet
from .paths import get_view_paths
from .table import (
    ColumnType,
    TableColumnModel,
    TableModel,
    default_filter,
    default_range_filter,
)
from .utils import humanize, sanitize_for_html_id

logger = logging.getLogger(__name__)


def form_url(name, type_id, model_ui=None, **query):
    kwargs = {"type_id": type_id}
    if model_ui is not None:
        kwargs["model_ui"] = model_ui.value if isinstance(model_ui, ModelUI) else model_ui
    url = reverse(f"htmx_components:{name}", kwargs=kwargs)
    if query:
        url += "?" + urlencode(query)
    return url


class BuilderBase:
    def __init__(self, request=None):
        self.request = request
        self._build_tasks = []

    def add_build_task(self, task):
        self._build_tasks.append(task)

    def _build(self):
        raise NotImplementedError

    def build(self):
        for task in self._build_tasks:
            task()
        self._build_tasks = []
        return self._build()


# Actions


class ActionModelBuilder(BuilderBase):
    def __init__(self, request=None):
        super().__init__(request)
        self._label = ""
        self._icon = ""
        self._css_class = ""
        self._attributes = {}
        self._is_active = False

    def with_label(self, label):
        self._label = label
        return self

    def with_icon(self, icon):
        self._icon = icon
        return self

    def with_class(self, css_class):
        self._css_class = css_class
        return self

    def with_attribute(self, name, value):
        self._attributes[name] = value
        return self

    def with_is_active(self, is_active=True):
        self._is_active = is_active
        return self

    def with_hx_get(self, url):
        return self.with_attribute("hx-get", url)

    def with_hx_post(self, url):
        return self.with_attribute("hx-post", url)

    def with_hx_target(self, target):
        return self.with_attribute("hx-target", target)

    def with_hx_swap(self, swap):
        return self.with_attribute("hx-swap", swap)

    def with_hx_push_url(self, push_url="true"):
        return self.with_attribute("hx-push-url", push_url)

    def with_hx_include(self, selector):
        return self.with_attribute("hx-include", selector)

    def _build(self):
        return ActionModel(
            label=self._label,
            icon=self._icon,
            css_class=self._css_class,
            attributes=self._attributes,
            is_active=self._is_active,
        )


class ActionItemsBuilder(BuilderBase):
    def __init__(self, request=None):
        super().__init__(request)
        self._items = []

    def add_action(self, configure):
        def task():
            builder = ActionModelBuilder(self.request)
            configure(builder)
            self._items.append(builder.build())

        self.add_build_task(task)
        return self

    def add_item(self, item):
        self.add_build_task(lambda: self._items.append(item))
        return self

    def add_range(self, items):
        items = list(items)
        self.add_build_task(lambda: self._items.extend(items))
        return self


class ActionSetBuilder(ActionItemsBuilder):
    def add_group(self, configure):
        def task():
            builder = ActionGroupBuilder(self.request)
            configure(builder)
            self._items.append(builder.build())

        self.add_build_task(task)
        return self

    def _build(self):
        return ActionSet(self._items)


class ActionGroupBuilder(ActionItemsBuilder):
    def __init__(self, request=None):
        super().__init__(request)
        self._label = ""
        self._icon = ""
        self._css_class = ""

    def with_label(self, label):
        self._label = label
        return self

    def with_icon(self, icon):
        self._icon = icon
        return self

    def with_class(self, css_class):
        self._css_class = css_class
        return self

    def _build(self):
        return ActionGroup(self._label, self._icon, self._css_class, self._items)


def build_actions(factory, context, request=None):
    """Run factory(context, ActionSetBuilder) and return the resulting ActionModels"""
    builder = ActionSetBuilder(request)
    factory(context, builder)
    return builder.build().actions()


# Inputs


def get_input_kind(field) -> InputKind:
    if field is None:
        return InputKind.TEXT
    if field.choices:
        return InputKind.RADIO
    if isinstance(field, models.BooleanField):
        return InputKind.CHECKBOX
    if isinstance(field, models.DateField):
        return InputKind.DATE
    if isinstance(field, (models.IntegerField, models.FloatField, models.DecimalField)):
        return InputKind.NUMBER
    if isinstance(field, models.TextField):
        return InputKind.TEXTAREA
    if isinstance(field, models.ForeignKey):
        return InputKind.LOOKUP
    return InputKind.TEXT


class InputModelBuilder(BuilderBase):
    """Defaults are taken from the model field of the same name, when there is one"""

    def __init__(self, model, prop_name, request=None):
        super().__init__(request)
        try:
            field = model._meta.get_field(prop_name)
        except FieldDoesNotExist:
            field = None
        self._prop_name = prop_name
        self._id = sanitize_for_html_id(prop_name)
        self._type_id = model.__name__
        self._kind = get_input_kind(field)
        self._label = capfirst(field.verbose_name) if field is not None and hasattr(field, "verbose_name") else humanize(prop_name)
        self._placeholder = None
        self._css_class = None
        self._value = None
        self._attributes = {}
        self._options = None
        if field is not None and field.choices:
            self._options = [(str(k), str(v)) for k, v in field.flatchoices]

    def with_kind(self, kind: InputKind):
        self._kind = kind
        return self

    def with_name(self, name):
        self._prop_name = name
        return self

    def with_label(self, label):
        self._label = label
        return self

    def with_placeholder(self, placeholder):
        self._placeholder = placeholder
        return self

    def with_css_class(self, css_class):
        self._css_class = css_class
        return self

    def with_value(self, value):
        self._value = value
        return self

    def with_attribute(self, name, value):
        self._attributes[name] = value
        return self

    def with_options(self, options):
        self._options = [(str(k), str(v)) for k, v in options]
        return self

    def _build(self):
        return InputModel(
            prop_name=self._prop_name,
            id=self._id,
            type_id=self._type_id,
            label=self._label,
            placeholder=self._placeholder,
            css_class=self._css_class,
            kind=self._kind,
            object_value=self._value,
            attributes=self._attributes,
            options=self._options,
        )


class InputSetBuilder(BuilderBase):
    def __init__(self, model, request=None):
        super().__init__(request)
        self.model = model
        self._label = None
        self._inputs = []

    def add_input(self, prop_name, configure=None):
        def task():
            builder = InputModelBuilder(self.model, prop_name, self.request)
            if configure is not None:
                configure(builder)
            self._inputs.append(builder.build())

        self.add_build_task(task)
        return self

    def add_input_model(self, input_model):
        self.add_build_task(lambda: self._inputs.append(input_model))
        return self

    def add_range(self, input_models):
        input_models = list(input_models)
        self.add_build_task(lambda: self._inputs.extend(input_models))
        return self

    def with_label(self, label):
        self._label = label
        return self

    def _build(self):
        return InputSet(self._label, self._inputs)


# Tables


class TableColumnModelBuilder(BuilderBase):
    def __init__(self, model_handler, request=None, **options):
        super().__init__(request)
        self.model_handler = model_handler
        self._options = options
        self._options.setdefault("actions_factories", [])
        self._column = None

    def with_header(self, header):
        self._options["header"] = header
        return self

    def with_editable(self, is_editable=True):
        data_name = self._options.get("data_name", "")
        if data_name not in self.model_handler.input_model_builders:
            raise ImproperlyConfigured(
                f"No input model builder found for column '{data_name}'. "
                f"Register the input with ModelHandlerBuilder.with_input()."
            )
        self._options["is_editable"] = is_editable
        if is_editable:
            self._options["input_model_factory"] = self._input_model
            self._options.setdefault("cell_edit_partial_view", get_view_paths().table.cell_edit_text)
        return self

    def _input_model(self, row):
        input_model = row.model_handler.build_input_model(self._column.data_name)
        input_model.object_value = self._column.get_value(row)
        return input_model

    def with_cell_partial(self, template_name):
        self._options["cell_partial_view"] = template_name
        return self

    def with_filter_partial(self, template_name):
        self._options["filter_partial_view"] = template_name
        return self

    def with_filter(self, filter_func):
        """filter_func(queryset, value) -> queryset"""
        self._options["filter"] = filter_func
        self._options["filterable"] = True
        return self

    def with_range_filter(self, range_filter=None):
        """range_filter(queryset, low, high) -> queryset. Defaults to a RangeFilter on the column's field."""
        self._options["range_filter"] = range_filter or default_range_filter(
            self._options.get("data_name", "")
        )
        self._options["filterable"] = True
        if not self._options.get("filter_partial_view"):
            self._options["filter_partial_view"] = get_view_paths().table.filter_date_range
        return self

    def with_actions(self, factory):
        """factory(row_context, ActionSetBuilder) adds the actions shown in the cell"""
        self._options["actions_factories"].append(
            lambda row: build_actions(factory, row, self.request)
        )
        if not self._options.get("cell_partial_view"):
            self._options["cell_partial_view"] = get_view_paths().table.cell_action_list
        return self

    def with_crud_actions(self):
        def crud_actions(row, actions):
            type_id = row.model_handler.type_id
            if row.is_editing:
                actions.add_action(
                    lambda action: action.with_label("Save")
                    .with_icon("fas fa-save")
                    .with_hx_post(form_url("save", type_id, ModelUI.TABLE))
                    .with_hx_swap("none")
                )
                actions.add_action(
                    lambda action: action.with_label("Cancel")
                    .with_icon("fas fa-times")
                    .with_hx_post(form_url("cancel_edit", type_id, ModelUI.TABLE))
                    .with_hx_swap("none")
                )
                return
            handler = self.model_handler
            if handler.has_feature(CrudFeatures.UPDATE):
                actions.add_action(
                    lambda action: action.with_label("Edit")
                    .with_icon("fas fa-edit")
                    .with_hx_post(form_url("edit", type_id, ModelUI.TABLE, key=row.string_key))
                    .with_hx_swap("none")
                )
            if handler.has_feature(CrudFeatures.DELETE):
                actions.add_action(
                    lambda action: action.with_label("Delete")
                    .with_icon("fas fa-trash")
                    .with_class("text-red-600")
                    .with_hx_post(form_url("delete", type_id, ModelUI.TABLE, key=row.string_key))
                    .with_hx_swap("none")
                    .with_attribute("hx-confirm", "Delete this record?")
                )

        return self.with_actions(crud_actions)

    def _build(self):
        self._column = TableColumnModel(model_handler=self.model_handler, **self._options)
        return self._column


class TableModelBuilder(BuilderBase):
    def __init__(self, model_handler: ModelHandler, request=None):
        super().__init__(request)
        self.model_handler = model_handler
        self._type_id = model_handler.type_id
        self._columns = []
        self._actions_factories = []

    def add_selector_column(self, name, configure=None, selector=None):
        """
        A column showing a value of the record. name is a field or a '__' separated path;
        with a selector callable the name only labels the column and the column cannot be sorted or filtered.
        """

        def task():
            builder = TableColumnModelBuilder(
                self.model_handler,
                self.request,
                header=humanize(name),
                data_name=name,
                column_type=ColumnType.VALUE_SELECTOR,
                sortable=selector is None,
                filterable=selector is None,
                selector=selector,
            )
            if configure is not None:
                configure(builder)
            self._columns.append(builder.build())

        self.add_build_task(task)
        return self

    def add_display_column(self, header, configure=None):
        def task():
            builder = TableColumnModelBuilder(
                self.model_handler,
                self.request,
                header=header,
                column_type=ColumnType.DISPLAY,
                sortable=False,
                filterable=False,
            )
            if configure is not None:
                configure(builder)
            self._columns.append(builder.build())

        self.add_build_task(task)
        return self

    def add_crud_display_column(self, header="Actions"):
        return self.add_display_column(header, lambda column: column.with_crud_actions())

    def with_actions(self, factory):
        """factory(table_model, ActionSetBuilder) adds table level actions"""
        self._actions_factories.append(
            lambda table: build_actions(factory, table, self.request)
        )
        return self

    def with_crud_actions(self):
        if not self.model_handler.has_feature(CrudFeatures.CREATE):
            return self
        type_id = self._type_id
        return self.with_actions(
            lambda table, actions: actions.add_action(
                lambda action: action.with_label("Add New")
                .with_icon("fas fa-plus mr-1")
                .with_hx_post(form_url("create", type_id, ModelUI.TABLE))
                .with_hx_swap("none")
            )
        )

    def with_type_id(self, type_id):
        self._type_id = type_id
        return self

    def _build(self):
        table_model = TableModel(
            self._type_id,
            self.model_handler,
            columns=self._columns,
            actions_factories=self._actions_factories,
        )
        can_edit = self.model_handler.has_feature(CrudFeatures.CREATE | CrudFeatures.UPDATE)
        for column in table_model.columns:
            column.table = table_model
            if column.filterable and column.filter is None and column.range_filter is None:
                column.filter = default_filter(column.data_name)
            if column.filterable and not column.filter_partial_view:
                column.filter_partial_view = get_view_paths().table.filter_text
            if can_edit and column.input_model_factory is not None:
                column.is_editable = True
        return table_model


# Model handlers


class ModelHandlerBuilder(BuilderBase):
    def __init__(self, type_id, model, key_fields=("pk",), model_ui=ModelUI.TABLE, request=None):
        super().__init__(request)
        self.model = model
        self._type_id = type_id
        self._key_fields = tuple(key_fields)
        self._model_ui = model_ui
        self._crud_features = CrudFeatures.NONE
        self._crud = {}
        self._input_model_builders = {}
        self._configure_table = None

    def _register_operation(self, operation):
        self.add_build_task(lambda: resource_operations.register(self._type_id, operation))

    def _action_model(self, label, icon, attribute, route):
        def factory():
            return ActionModel(
                label=label,
                icon=icon,
                attributes={
                    attribute: form_url(route, self._type_id, self._model_ui),
                    "hx-swap": "none",
                },
            )

        return factory

    def with_type_id(self, type_id):
        self._type_id = type_id
        return self

    def with_key(self, *key_fields):
        self._key_fields = key_fields
        return self

    def with_queryset(self, get_queryset):
        """get_queryset() -> QuerySet of the records shown"""
        self._crud_features |= CrudFeatures.READ
        self._crud["get_queryset"] = get_queryset
        self._register_operation(CrudOperation.READ)
        return self

    def with_create(self, create_model):
        """create_model(item) -> ValueResult with the saved item"""
        self._crud_features |= CrudFeatures.CREATE
        self._crud["create_model"] = create_model
        self._crud["get_create_action_model"] = self._action_model(
            "Create", "fas fa-plus mr-1", "hx-post", "create"
        )
        self._set_cancel_action_model()
        self._register_operation(CrudOperation.CREATE)
        return self

    def with_update(self, update_model):
        """update_model(item) -> ValueResult with the saved item"""
        self._crud_features |= CrudFeatures.UPDATE
        self._crud["update_model"] = update_model
        self._crud["get_update_action_model"] = self._action_model(
            "Update", "fas fa-edit mr-1", "hx-post", "save"
        )
        self._set_cancel_action_model()
        self._register_operation(CrudOperation.UPDATE)
        return self

    def _set_cancel_action_model(self):
        self._crud.setdefault(
            "get_cancel_action_model",
            self._action_model("Cancel", "fas fa-times mr-1", "hx-post", "cancel_edit"),
        )

    def with_delete(self, delete_model):
        """delete_model(key) -> Result"""
        self._crud_features |= CrudFeatures.DELETE
        self._crud["delete_model"] = delete_model
        self._crud["get_delete_action_model"] = self._action_model(
            "Delete", "fas fa-trash mr-1", "hx-delete", "delete"
        )
        self._register_operation(CrudOperation.DELETE)
        return self

    def with_table(self, configure):
        """configure(TableModelBuilder) declares the columns and actions of the table"""
        self._configure_table = configure
        return self

    def with_input(self, prop_name, configure=None):
        def input_model_builder(handler):
            builder = InputModelBuilder(handler.model, prop_name)
            if configure is not None:
                configure(builder)
            input_model = builder.build()
            input_model.model_handler = handler
            input_model.type_id = handler.type_id
            return input_model

        self._input_model_builders.setdefault(prop_name, input_model_builder)
        return self

    def _build(self):
        return ModelHandler(
            self._type_id,
            self.model,
            key_fields=self._key_fields,
            model_ui=self._model_ui,
            crud_features=self._crud_features,
            input_model_builders=self._input_model_builders,
            configure_table=self._configure_table,
            **self._crud,
        )
