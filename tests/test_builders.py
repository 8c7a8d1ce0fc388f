import pytest
from django.core.exceptions import ImproperlyConfigured

from htmx_components.actions import ActionGroup, ActionModel
from htmx_components.authorization import CrudOperation, resource_operations
from htmx_components.builders import (
    ActionSetBuilder,
    InputModelBuilder,
    InputSetBuilder,
    ModelHandlerBuilder,
    TableModelBuilder,
    build_actions,
    form_url,
)
from htmx_components.handlers import CrudFeatures
from htmx_components.inputs import InputKind
from htmx_components.result import Result
from htmx_components.table import ColumnType, TableRowContext
from myapp.models import LineItem, Product


def saved(item):
    return Result.value_of(item)


def handler_with(type_id, *features, configure_table=None):
    builder = ModelHandlerBuilder(type_id, Product).with_queryset(Product.objects.all)
    if "create" in features:
        builder.with_create(saved)
    if "update" in features:
        builder.with_update(saved)
    if "delete" in features:
        builder.with_delete(lambda key: Result.ok())
    builder.with_input("name")
    builder.with_table(
        configure_table
        or (lambda table: table.add_selector_column("name").add_crud_display_column().with_crud_actions())
    )
    return builder.build()


def labels(actions):
    return [action.label for action in actions]


def test_form_url():
    assert form_url("save", "products", "Table") == "/Form/products/Table/Save"
    assert form_url("set_page", "products") == "/Form/products/SetPage"
    assert form_url("edit", "products", "Table", key="[1, 2]") == "/Form/products/Table/Edit?key=%5B1%2C+2%5D"


def test_handler_features_and_operations():
    handler = handler_with("builder_all", "create", "update", "delete")
    assert handler.crud_features == (
        CrudFeatures.CREATE | CrudFeatures.READ | CrudFeatures.UPDATE | CrudFeatures.DELETE
    )
    assert resource_operations.operations("builder_all") == set(CrudOperation)
    assert handler.get_update_action_model().attributes["hx-post"] == "/Form/builder_all/Table/Save"
    assert handler.get_cancel_action_model().attributes["hx-post"] == "/Form/builder_all/Table/CancelEdit"
    assert handler.get_delete_action_model().attributes["hx-delete"] == "/Form/builder_all/Table/Delete"
    assert handler.get_create_action_model().label == "Create"

    read_only = handler_with("builder_read")
    assert read_only.crud_features == CrudFeatures.READ
    assert resource_operations.operations("builder_read") == {CrudOperation.READ}
    assert read_only.create_model is None
    assert read_only.get_cancel_action_model is None


def test_with_key():
    handler = ModelHandlerBuilder("builder_key", LineItem).with_key("order_number", "line").build()
    assert handler.key_fields == ("order_number", "line")


def test_table_actions_follow_features():
    table = handler_with("builder_table_create", "create").build_table_model()
    assert labels(table.get_actions()) == ["Add New"]
    assert table.get_actions()[0].attributes["hx-post"] == "/Form/builder_table_create/Table/Create"

    table = handler_with("builder_table_read").build_table_model()
    assert table.get_actions() == []


@pytest.mark.parametrize(
    "features, expected",
    [
        ((), []),
        (("update",), ["Edit"]),
        (("delete",), ["Delete"]),
        (("update", "delete"), ["Edit", "Delete"]),
    ],
)
def test_row_actions_follow_features(features, expected):
    handler = handler_with("builder_row_" + "_".join(features), *features)
    table = handler.build_table_model()
    column = table.columns[1]
    row = TableRowContext(Product(pk=3, name="x"), handler, key=3)
    actions = column.get_actions(row)
    assert labels(actions) == expected
    for action in actions:
        assert action.attributes["hx-post"].endswith("?key=3")
        assert action.attributes["hx-swap"] == "none"


def test_editing_row_actions():
    handler = handler_with("builder_editing", "update")
    column = handler.build_table_model().columns[1]
    row = TableRowContext(Product(pk=3), handler, key=3, is_editing=True)
    assert labels(column.get_actions(row)) == ["Save", "Cancel"]
    assert column.get_actions(TableRowContext(None, handler, key=3)) == []


def test_columns():
    handler = handler_with(
        "builder_columns",
        configure_table=lambda table: table.add_selector_column("price")
        .add_selector_column("category", lambda column: column.with_header("Kind"))
        .add_selector_column("computed", selector=lambda item: item.price * 2)
        .add_display_column("Notes"),
    )
    table = handler.build_table_model()
    price, category, computed, notes = table.columns
    assert price.header == "Price"
    assert price.sortable and price.filterable
    assert price.filter is not None
    assert price.filter_partial_view == "htmx_components/_table_filter_text.html"
    assert category.header == "Kind"
    assert not computed.sortable and not computed.filterable
    assert notes.column_type == ColumnType.DISPLAY
    assert all(column.table is table for column in table.columns)

    row = TableRowContext(Product(price=4, category="music"), handler, key=1)
    assert price.get_value(row) == 4
    assert computed.get_value(row) == 8
    assert notes.get_value(row) == ""
    assert category.get_serialized_value(row) == '"music"'
    assert price.id == "col_price"


def test_editable_column_requires_input():
    handler = handler_with(
        "builder_editable",
        "update",
        configure_table=lambda table: table.add_selector_column("price", lambda column: column.with_editable()),
    )
    with pytest.raises(ImproperlyConfigured):
        handler.build_table_model()


def test_editable_column_input_model():
    handler = handler_with(
        "builder_input",
        "update",
        configure_table=lambda table: table.add_selector_column("name", lambda column: column.with_editable()),
    )
    column = handler.build_table_model().columns[0]
    assert column.is_editable
    input_model = column.get_input_model(TableRowContext(Product(name="Alpha"), handler, key=1))
    assert input_model.value == "Alpha"
    assert input_model.type_id == "builder_input"


def test_range_filter_column():
    handler = handler_with(
        "builder_range",
        configure_table=lambda table: table.add_selector_column("released", lambda column: column.with_range_filter()),
    )
    column = handler.build_table_model().columns[0]
    assert column.range_filter is not None
    assert column.filter is None
    assert column.filter_partial_view == "htmx_components/_table_filter_date_range.html"


@pytest.mark.parametrize(
    "field, kind",
    [
        ("name", InputKind.TEXT),
        ("description", InputKind.TEXTAREA),
        ("price", InputKind.NUMBER),
        ("released", InputKind.DATE),
        ("active", InputKind.CHECKBOX),
        ("category", InputKind.RADIO),
        ("not_a_field", InputKind.TEXT),
    ],
)
def test_input_kinds(field, kind):
    assert InputModelBuilder(Product, field).build().kind == kind


def test_input_model_builder():
    input_model = InputModelBuilder(Product, "category").build()
    assert input_model.label == "Category"
    assert input_model.options == [("book", "Book"), ("music", "Music"), ("video", "Video")]

    input_model = (
        InputModelBuilder(Product, "not_a_field")
        .with_kind(InputKind.SELECT)
        .with_options([(1, "One")])
        .with_value(True)
        .with_attribute("required", "required")
        .build()
    )
    assert input_model.label == "Not A Field"
    assert input_model.options == [("1", "One")]
    assert input_model.value == "true"
    assert input_model.attributes == {"required": "required"}
    assert InputModelBuilder(LineItem, "product").build().kind == InputKind.LOOKUP


def test_input_set_builder():
    input_set = (
        InputSetBuilder(Product)
        .with_label("Product")
        .add_input("name")
        .add_input("price", lambda field: field.with_label("Cost"))
        .build()
    )
    assert input_set.label == "Product"
    assert [i.label for i in input_set.inputs] == ["Name", "Cost"]


def test_action_set_builder():
    def factory(context, actions):
        actions.add_action(lambda a: a.with_label("One").with_hx_get("/one/").with_hx_target("#main"))
        actions.add_group(
            lambda group: group.with_label("More").add_action(lambda a: a.with_label("Two"))
        )
        actions.add_item(ActionModel("Three"))

    action_set = ActionSetBuilder()
    factory(None, action_set)
    built = action_set.build()
    assert isinstance(built.items[1], ActionGroup)
    assert labels(built.actions()) == ["One", "Two", "Three"]
    assert built.items[0].attributes == {"hx-get": "/one/", "hx-target": "#main"}
    assert labels(build_actions(factory, None)) == ["One", "Two", "Three"]


def test_action_rendering():
    button = ActionModel("Save", icon="fas fa-save", attributes={"hx-post": "/save"}, is_active=True)
    html = button.render()
    assert html.startswith("<button ")
    assert 'type="button"' in html
    assert 'class="active"' in html
    assert '<i class="fas fa-save"></i> Save</button>' in html

    link = ActionModel("Home", attributes={"href": "/"})
    assert link.element == "a"
    assert link.render().startswith('<a href="/"')
