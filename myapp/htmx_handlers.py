import logging

from django.db import DatabaseError

from htmx_components.handlers import registry
from htmx_components.navigation import navbar
from htmx_components.result import Result

from .models import LineItem, Product


def save_product(product):
    if not product.name:
        return Result.error("A product needs a name", level=logging.WARNING)
    try:
        product.save()
    except DatabaseError as e:
        return Result.error("Failed to save {Product}: {Error}", product, e)
    return Result.value_of(product)


def delete_product(key):
    deleted, _ = Product.objects.filter(pk=key).delete()
    if not deleted:
        return Result.error("Product {Key} not found", key, level=logging.WARNING)
    return Result.ok()


def product_table(table):
    table.add_selector_column("name", lambda column: column.with_editable())
    table.add_selector_column("category", lambda column: column.with_editable())
    table.add_selector_column("price", lambda column: column.with_editable())
    table.add_selector_column(
        "released", lambda column: column.with_editable().with_range_filter()
    )
    table.add_selector_column("active", lambda column: column.with_editable())
    table.add_crud_display_column()
    table.with_crud_actions()


@registry.register("products", Product)
def products(handler):
    handler.with_queryset(lambda: Product.objects.order_by("name"))
    handler.with_create(save_product)
    handler.with_update(save_product)
    handler.with_delete(delete_product)
    handler.with_input("name", lambda field: field.with_placeholder("Name"))
    handler.with_input("category")
    handler.with_input("price")
    handler.with_input("released")
    handler.with_input("active")
    handler.with_table(product_table)


def line_item_table(table):
    table.add_selector_column("order_number")
    table.add_selector_column("line")
    table.add_selector_column("product__name", lambda column: column.with_header("Product"))
    table.add_selector_column("quantity")


@registry.register("line_items", LineItem, key=("order_number", "line"))
def line_items(handler):
    handler.with_queryset(LineItem.objects.select_related("product").all)
    handler.with_table(line_item_table)


@navbar.register
def main_menu(request, actions):
    actions.add_action(lambda action: action.with_label("Products").with_attribute("href", "/products/"))
    actions.add_action(lambda action: action.with_label("Line items").with_attribute("href", "/line-items/"))
