import pytest
from django.core.exceptions import ImproperlyConfigured
from django.db.models import Q

from htmx_components.authorization import CrudOperation, resource_operations
from htmx_components.handlers import CrudFeatures, ModelHandler, ModelRegistry, ModelUI, registry
from htmx_components.state import PageState, TableStateKeys
from htmx_components.table import TableState, fetch_page
from myapp.models import LineItem, Product


@pytest.fixture
def product_handler():
    return registry.get_model_handler("products")


@pytest.fixture
def line_item_handler():
    return registry.get_model_handler("line_items", "Table")


def test_registered_handlers(product_handler, line_item_handler):
    assert product_handler.model is Product
    assert product_handler.crud_features == (
        CrudFeatures.CREATE | CrudFeatures.READ | CrudFeatures.UPDATE | CrudFeatures.DELETE
    )
    assert line_item_handler.crud_features == CrudFeatures.READ
    assert line_item_handler.key_fields == ("order_number", "line")
    assert line_item_handler.is_composite_key
    assert not product_handler.is_composite_key


def test_handlers_are_cached(product_handler):
    assert registry.get_model_handler("products", ModelUI.TABLE) is product_handler


def test_unknown_handlers():
    assert registry.get_model_handler("missing") is None
    assert registry.get_model_handler("products", "Form") is None


def test_register_decorator_and_duplicates():
    models = ModelRegistry()

    @models.register("things", Product)
    def things(handler):
        handler.with_queryset(Product.objects.all)

    assert models.is_registered("things")
    with pytest.raises(ImproperlyConfigured):
        models.register("things", Product, things)
    models.unregister("things")
    assert not models.is_registered("things")
    assert models.get_model_handler("things") is None


def test_handler_requires_model():
    with pytest.raises(ImproperlyConfigured):
        ModelHandler("things", None)
    with pytest.raises(ImproperlyConfigured):
        ModelHandler("", Product)


def test_simple_key(product_handler):
    assert product_handler.serialize_key(5) == "5"
    assert product_handler.parse_key("5") == 5
    assert product_handler.key_of(Product(pk=7)) == 7
    assert product_handler.get_key_predicate(5) == Q(pk=5)


@pytest.mark.parametrize("string_key", ["", "abc", "[1, 2]", '{"pk": 1}'])
def test_malformed_simple_key(product_handler, string_key):
    with pytest.raises(ValueError):
        product_handler.parse_key(string_key)


def test_composite_key(line_item_handler):
    item = LineItem(order_number=3, line=4)
    key = line_item_handler.key_of(item)
    assert key == (3, 4)
    assert line_item_handler.serialize_key(key) == "[3, 4]"
    assert line_item_handler.parse_key("[3, 4]") == (3, 4)
    # Values are converted by the key fields
    assert line_item_handler.parse_key('["3", "4"]') == (3, 4)
    assert line_item_handler.get_key_predicate((3, 4)) == Q(order_number=3) & Q(line=4)
    assert line_item_handler.get_key_predicate({"line": 4, "order_number": 3}) == Q(order_number=3) & Q(line=4)


@pytest.mark.parametrize("string_key", ["3", "[3]", "[1, 2, 3]", "nope"])
def test_malformed_composite_key(line_item_handler, string_key):
    with pytest.raises(ValueError):
        line_item_handler.parse_key(string_key)


def test_key_predicate_shape(product_handler, line_item_handler):
    with pytest.raises(TypeError):
        product_handler.get_key_predicate((1, 2))
    with pytest.raises(TypeError):
        line_item_handler.get_key_predicate(1)


@pytest.mark.django_db
def test_get_item(product_handler, products):
    assert product_handler.get_item(products[0].pk) == products[0]
    assert product_handler.get_item(9999) is None


def test_build_input_model(product_handler):
    input_model = product_handler.build_input_model("name")
    assert input_model.prop_name == "name"
    assert input_model.type_id == "products"
    assert input_model.model_handler is product_handler
    assert input_model.placeholder == "Name"
    with pytest.raises(ValueError):
        product_handler.build_input_model("missing")


@pytest.mark.django_db
def test_build_table_and_fetch_page_stores_new_state(product_handler, products):
    page_state = PageState()
    table = product_handler.build_table_model_and_fetch_page(page_state)
    assert [row.item.name for row in table.rows] == ["Alpha", "Bravo", "Charlie", "Delta", "Echo"]
    assert page_state.get(TableStateKeys.PARTITION, TableStateKeys.TABLE_STATE) == TableState()
    assert all(row.table is table for row in table.rows)
    assert [row.page_index for row in table.rows] == [0, 1, 2, 3, 4]


def fetch(handler, **state):
    return fetch_page(handler.build_table_model(), handler.get_queryset(), TableState(**state))


@pytest.mark.django_db
def test_fetch_page_sort(product_handler, products):
    table = fetch(product_handler, sort_column="released", sort_direction="desc")
    assert [row.item.name for row in table.rows] == ["Echo", "Delta", "Charlie", "Bravo", "Alpha"]
    # Display columns are not sortable
    table = fetch(product_handler, sort_column="", sort_direction="desc")
    assert table.rows[0].item.name == "Alpha"


@pytest.mark.django_db
def test_fetch_page_filters(product_handler, products):
    table = fetch(product_handler, filters={"name": "LT"})
    assert [row.item.name for row in table.rows] == ["Delta"]
    table = fetch(product_handler, filters={"name": ""})
    assert len(table.rows) == 5
    # Unknown columns are ignored
    table = fetch(product_handler, filters={"missing": "x"})
    assert len(table.rows) == 5


@pytest.mark.django_db
def test_fetch_page_range_filter(product_handler, products):
    table = fetch(product_handler, range_filters={"released": ("", "2024-03-01")})
    assert [row.item.name for row in table.rows] == ["Alpha", "Bravo"]
    table = fetch(product_handler, range_filters={"released": ("2024-02-01", "2024-07-01")})
    assert [row.item.name for row in table.rows] == ["Bravo", "Charlie"]
    table = fetch(product_handler, range_filters={"released": ("", "")})
    assert len(table.rows) == 5


@pytest.mark.django_db
def test_fetch_page_paging(product_handler, many_products):
    table = fetch(product_handler, page=2, page_size=5)
    assert table.page_count == 3
    assert table.state.page == 2
    assert [row.item.name for row in table.rows][0] == "name_05"
    table = fetch(product_handler, page=0, page_size=5)
    assert table.state.page == 1
    table = fetch(product_handler, page=10, page_size=5)
    assert table.state.page == 3
    assert len(table.rows) == 2


@pytest.mark.django_db
def test_fetch_page_composite_key_order(line_item_handler, products):
    LineItem.objects.create(order_number=2, line=1, product=products[1])
    LineItem.objects.create(order_number=1, line=2, product=products[0])
    LineItem.objects.create(order_number=1, line=1, product=products[2])
    table = fetch(line_item_handler)
    assert [row.key for row in table.rows] == [(1, 1), (1, 2), (2, 1)]
    table = fetch(line_item_handler, sort_column="product__name")
    assert [row.item.product.name for row in table.rows] == ["Alpha", "Bravo", "Charlie"]
    table = fetch(line_item_handler, filters={"product__name": "brav"})
    assert [row.key for row in table.rows] == [(2, 1)]


def test_unregister_forgets_operations():
    models = ModelRegistry()
    models.register(
        "reregistered",
        Product,
        lambda handler: handler.with_queryset(Product.objects.all).with_delete(lambda key: None),
    )
    models.get_model_handler("reregistered")
    assert resource_operations.is_registered("reregistered", CrudOperation.DELETE)

    models.unregister("reregistered")
    assert resource_operations.operations("reregistered") == set()

    models.register("reregistered", Product, lambda handler: handler.with_queryset(Product.objects.all))
    handler = models.get_model_handler("reregistered")
    assert handler.crud_features == CrudFeatures.READ
    assert resource_operations.operations("reregistered") == {CrudOperation.READ}
