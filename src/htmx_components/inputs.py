from enum import Enum

from .utils import to_input_string


class InputKind(Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    DATE = "date"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    SELECT = "select"
    LOOKUP = "lookup"


class InputModel:
    def __init__(
        self,
        prop_name,
        id="",
        model_handler=None,
        type_id="",
        label="",
        placeholder=None,
        css_class=None,
        kind=InputKind.TEXT,
        object_value=None,
        attributes=None,
        options=None,
    ):
        self.prop_name = prop_name
        self.id = id
        self.model_handler = model_handler
        self.type_id = type_id
        self.label = label
        self.placeholder = placeholder
        self.css_class = css_class
        self.kind = kind
        self.object_value = object_value
        self.attributes = dict(attributes or {})
        self.options = options

    def __repr__(self):
        return f"<InputModel {self.prop_name} {self.kind.value}>"

    @property
    def value(self) -> str:
        return to_input_string(self.object_value)


class InputSet:
    def __init__(self, label=None, inputs=None):
        self.label = label
        self.inputs = list(inputs or [])
