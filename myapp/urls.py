from django.urls import include, path

from myapp.views import LineItemsView, ProductsView

urlpatterns = [
    path("Form/", include("htmx_components.urls")),
    path("products/", ProductsView.as_view(), name="products"),
    path("line-items/", LineItemsView.as_view(), name="line_items"),
]
