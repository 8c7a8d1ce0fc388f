from htmx_components.views import HtmxTableView


class ProductsView(HtmxTableView):
    type_id = "products"
    title = "Products"


class LineItemsView(HtmxTableView):
    type_id = "line_items"
    title = "Line items"
