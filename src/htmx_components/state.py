import base64
import json
import logging

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from django.conf import settings
from django.core import serializers
from django.core.serializers.base import DeserializationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db.models import Model

from .conf import get_setting
from .table import TableState

logger = logging.getLogger(__name__)


class FormStateKeys:
    PARTITION = "Form"
    EDITING_ITEM = "EditingItem"
    EDITING_EXISTING_RECORD = "EditingExistingRecord"


class TableStateKeys:
    PARTITION = "Table"
    TABLE_STATE = "TableState"


_TYPE = "__type__"


def _encode(value):
    if isinstance(value, TableState):
        return {_TYPE: "table_state", "data": value.to_dict()}
    if isinstance(value, Model):
        return {_TYPE: "model", "data": serializers.serialize("python", [value])[0]}
    return value


def _decode(value):
    if not isinstance(value, dict) or _TYPE not in value:
        return value
    if value[_TYPE] == "table_state":
        return TableState.from_dict(value["data"])
    if value[_TYPE] == "model":
        deserialized = next(serializers.deserialize("python", [value["data"]]))
        return deserialized.object
    raise ValueError(f"Unknown page state value type {value[_TYPE]}")


def _get_fernet() -> Fernet:
    """Derive a Fernet key from SECRET_KEY with HKDF"""
    kdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=get_setting("STATE_SALT").encode(),
        info=b"htmx-components-page-state",
    )
    return Fernet(base64.urlsafe_b64encode(kdf.derive(settings.SECRET_KEY.encode())))


class PageState:
    """
    Per page state kept by the client and sent back with every htmx request.
    Values are grouped in partitions; the whole state travels encrypted so the client cannot read or alter it.
    """

    def __init__(self):
        self._partitions = {}
        self.is_dirty = False
        self.is_loaded = False

    def __repr__(self):
        return f"<PageState {list(self._partitions)}>"

    @property
    def is_empty(self):
        return not any(self._partitions.values())

    def get(self, partition: str, key: str, default=None):
        try:
            return _decode(self._partitions[partition][key])
        except KeyError:
            return default

    def get_or_create(self, partition: str, key: str, factory):
        if key in self._partitions.get(partition, {}):
            return self.get(partition, key)
        value = factory()
        self.set(partition, key, value)
        return value

    def set(self, partition: str, key: str, value):
        self._partitions.setdefault(partition, {})[key] = _encode(value)
        self.is_dirty = True

    def clear_key(self, partition: str, key: str):
        values = self._partitions.get(partition, {})
        if key in values:
            del values[key]
            self.is_dirty = True

    def clear_partition(self, partition: str):
        if partition in self._partitions:
            del self._partitions[partition]
            self.is_dirty = True

    def to_json(self) -> str:
        return json.dumps(self._partitions, cls=DjangoJSONEncoder)

    def encrypt(self) -> str:
        return _get_fernet().encrypt(self.to_json().encode()).decode()

    def load(self, token: str):
        """Replace the state with the content of an encrypted token. Invalid tokens leave the state empty."""
        self._partitions = {}
        try:
            data = json.loads(_get_fernet().decrypt(token.encode()))
        except (InvalidToken, ValueError) as e:
            logger.warning("Discarding invalid page state: %s", e.__class__.__name__)
            return
        if not isinstance(data, dict):
            logger.warning("Discarding page state that is not a dictionary")
            return
        self._partitions = data
        self.is_loaded = True

    def get_model(self, partition: str, key: str):
        """get() for a stored model instance, or None if it no longer fits the model"""
        try:
            return self.get(partition, key)
        except DeserializationError as e:
            logger.warning("Stored %s/%s could not be restored: %s", partition, key, e)
            return None
