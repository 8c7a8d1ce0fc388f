import json
import logging
import threading
from enum import Enum, IntFlag

from django.core.exceptions import ImproperlyConfigured
from django.db.models import Q

from .authorization import resource_operations
from .state import TableStateKeys
from .table import TableState, fetch_page
from .utils import to_json

logger = logging.getLogger(__name__)


class CrudFeatures(IntFlag):
    NONE = 0
    CREATE = 1
    READ = 2
    UPDATE = 4
    DELETE = 8


class ModelUI(Enum):
    TABLE = "Table"


class ModelHandler:
    """
    Everything the library knows about one model type: how to query, create, update and delete it,
    how its table looks and which inputs edit it. Built once per type id by the ModelRegistry.
    """

    def __init__(
        self,
        type_id,
        model,
        key_fields=("pk",),
        model_ui=ModelUI.TABLE,
        crud_features=CrudFeatures.NONE,
        get_queryset=None,
        create_model=None,
        update_model=None,
        delete_model=None,
        get_create_action_model=None,
        get_update_action_model=None,
        get_cancel_action_model=None,
        get_delete_action_model=None,
        input_model_builders=None,
        configure_table=None,
    ):
        if not type_id:
            raise ImproperlyConfigured("A model handler needs a type_id")
        if model is None:
            raise ImproperlyConfigured(f"Model handler '{type_id}' needs a model")
        self.type_id = type_id
        self.model = model
        self.key_fields = tuple(self._attname(name) for name in key_fields)
        self.model_ui = model_ui
        self.crud_features = crud_features
        self.get_queryset = get_queryset
        self.create_model = create_model
        self.update_model = update_model
        self.delete_model = delete_model
        self.get_create_action_model = get_create_action_model
        self.get_update_action_model = get_update_action_model
        self.get_cancel_action_model = get_cancel_action_model
        self.get_delete_action_model = get_delete_action_model
        self.input_model_builders = dict(input_model_builders or {})
        self.configure_table = configure_table

    def __repr__(self):
        return f"<ModelHandler {self.type_id} {self.model.__name__}>"

    def _attname(self, name):
        if name == "pk":
            return name
        return self.model._meta.get_field(name).attname

    def _to_python(self, name, value):
        field = self.model._meta.pk if name == "pk" else self.model._meta.get_field(name)
        return field.to_python(value)

    @property
    def is_composite_key(self):
        return len(self.key_fields) > 1

    def has_feature(self, feature: CrudFeatures) -> bool:
        return bool(self.crud_features & feature)

    def key_of(self, item):
        values = tuple(getattr(item, name) for name in self.key_fields)
        return values if self.is_composite_key else values[0]

    def serialize_key(self, key) -> str:
        return to_json(list(key) if isinstance(key, tuple) else key)

    def parse_key(self, string_key: str):
        """Inverse of serialize_key. Raises ValueError for malformed keys."""
        try:
            value = json.loads(string_key)
        except (TypeError, ValueError):
            raise ValueError(f"Malformed key '{string_key}'")
        if self.is_composite_key:
            if not isinstance(value, list) or len(value) != len(self.key_fields):
                raise ValueError(
                    f"Key '{string_key}' does not match key fields {self.key_fields}"
                )
            return tuple(self._to_python(n, v) for n, v in zip(self.key_fields, value))
        if isinstance(value, (list, dict)):
            raise ValueError(f"Key '{string_key}' is not a simple value")
        return self._to_python(self.key_fields[0], value)

    def get_key_predicate(self, key) -> Q:
        if not self.is_composite_key:
            if isinstance(key, (tuple, list, dict)):
                raise TypeError(f"{self.type_id} has a simple key, got {key!r}")
            return Q(**{self.key_fields[0]: key})
        if isinstance(key, dict):
            values = [key[name] for name in self.key_fields]
        elif isinstance(key, (tuple, list)) and len(key) == len(self.key_fields):
            values = list(key)
        else:
            raise TypeError(f"Key {key!r} does not match key fields {self.key_fields}")
        predicate = Q()
        for name, value in zip(self.key_fields, values):
            predicate &= Q(**{name: value})
        return predicate

    def get_item(self, key):
        """The record with the given key from the handler's queryset, or None"""
        return self.get_queryset().filter(self.get_key_predicate(key)).first()

    def build_table_model(self, request=None):
        from .builders import TableModelBuilder

        builder = TableModelBuilder(self, request=request)
        if self.configure_table is not None:
            self.configure_table(builder)
        return builder.build()

    def build_table_model_and_fetch_page(self, page_state, table_state=None, request=None):
        # No table state means a new table without previous state
        if table_state is None:
            table_state = TableState()
            page_state.set(TableStateKeys.PARTITION, TableStateKeys.TABLE_STATE, table_state)
        table_model = self.build_table_model(request=request)
        if self.get_queryset is None:
            raise ImproperlyConfigured(f"{self.type_id} has no queryset")
        return fetch_page(table_model, self.get_queryset(), table_state)

    def build_input_model(self, name):
        try:
            builder = self.input_model_builders[name]
        except KeyError:
            raise ValueError(f"No input model found for name '{name}'.")
        return builder(self)


class ModelRegistry:
    def __init__(self):
        self._lock = threading.RLock()
        self._registrations = {}
        self._handlers = {}

    def register(self, type_id, model, configure=None, key="pk", model_ui=ModelUI.TABLE):
        """
        Register a model type. configure receives a ModelHandlerBuilder.
        Without configure, returns a decorator:

            @registry.register("products", Product)
            def products(handler):
                handler.with_queryset(Product.objects.all)
        """
        if configure is None:

            def decorator(func):
                self.register(type_id, model, func, key=key, model_ui=model_ui)
                return func

            return decorator

        key_fields = (key,) if isinstance(key, str) else tuple(key)
        with self._lock:
            if (type_id, model_ui) in self._registrations:
                raise ImproperlyConfigured(f"Model handler '{type_id}' is already registered")
            self._registrations[(type_id, model_ui)] = (model, configure, key_fields)
        logger.debug("Registered model handler %s for %s", type_id, model.__name__)
        return configure

    def unregister(self, type_id, model_ui=ModelUI.TABLE):
        with self._lock:
            self._registrations.pop((type_id, model_ui), None)
            self._handlers.pop((type_id, model_ui), None)
        resource_operations.unregister(type_id)

    def is_registered(self, type_id, model_ui=ModelUI.TABLE):
        return (type_id, model_ui) in self._registrations

    def get_model_handler(self, type_id, model_ui=ModelUI.TABLE):
        if not isinstance(model_ui, ModelUI):
            try:
                model_ui = ModelUI(model_ui)
            except ValueError:
                return None
        registry_key = (type_id, model_ui)
        handler = self._handlers.get(registry_key)
        if handler is not None:
            return handler
        with self._lock:
            if registry_key in self._handlers:
                return self._handlers[registry_key]
            if registry_key not in self._registrations:
                return None
            from .builders import ModelHandlerBuilder

            model, configure, key_fields = self._registrations[registry_key]
            builder = ModelHandlerBuilder(type_id, model, key_fields=key_fields, model_ui=model_ui)
            configure(builder)
            handler = builder.build()
            self._handlers[registry_key] = handler
            return handler


registry = ModelRegistry()
