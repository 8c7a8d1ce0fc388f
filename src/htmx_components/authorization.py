import logging
import threading
from enum import Enum
from functools import lru_cache

from django.utils.module_loading import import_string

from .conf import get_setting

logger = logging.getLogger(__name__)


class CrudOperation(Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


# Django's default model permissions
PERMISSION_ACTIONS = {
    CrudOperation.CREATE: "add",
    CrudOperation.READ: "view",
    CrudOperation.UPDATE: "change",
    CrudOperation.DELETE: "delete",
}


class ResourceOperationRegistry:
    """Records which operations exist for each resource (a model handler's type id)"""

    def __init__(self):
        self._lock = threading.Lock()
        self._operations = {}

    def register(self, resource: str, operation: CrudOperation):
        with self._lock:
            self._operations.setdefault(resource, set()).add(operation)

    def is_registered(self, resource: str, operation: CrudOperation) -> bool:
        return operation in self._operations.get(resource, ())

    def operations(self, resource: str) -> set:
        return set(self._operations.get(resource, ()))

    def unregister(self, resource: str):
        with self._lock:
            self._operations.pop(resource, None)

    def clear(self):
        with self._lock:
            self._operations.clear()


resource_operations = ResourceOperationRegistry()


def model_permission_checker(user, handler, operation: CrudOperation) -> bool:
    """
    Active superusers may do anything, other users need the Django model permission
    for the operation, e.g. 'shop.change_product' for UPDATE.
    """
    if user is None or not user.is_active:
        return False
    if user.is_superuser:
        return True
    opts = handler.model._meta
    return user.has_perm(f"{opts.app_label}.{PERMISSION_ACTIONS[operation]}_{opts.model_name}")


@lru_cache(maxsize=None)
def _load_checker(path):
    return import_string(path)


def get_permission_checker():
    return _load_checker(get_setting("PERMISSION_CHECKER"))


def is_authorized(request, handler, operation: CrudOperation) -> bool:
    if not resource_operations.is_registered(handler.type_id, operation):
        logger.info("%s is not enabled for %s", operation.name, handler.type_id)
        return False
    user = getattr(request, "user", None)
    allowed = get_permission_checker()(user, handler, operation)
    if not allowed:
        logger.info("%s denied %s on %s", user, operation.name, handler.type_id)
    return allowed
