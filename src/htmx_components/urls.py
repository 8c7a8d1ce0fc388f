from django.urls import path

from .views import FormController

app_name = "htmx_components"

urlpatterns = [
    # Inputs
    path("<str:type_id>/<str:model_ui>/Edit", FormController.as_view(action="edit"), name="edit"),
    path("<str:type_id>/<str:model_ui>/SetValue", FormController.as_view(action="set_value"), name="set_value"),
    path("<str:type_id>/<str:model_ui>/ValueChanged", FormController.as_view(action="value_changed"), name="value_changed"),
    # Table CRUD
    path("<str:type_id>/<str:model_ui>/Save", FormController.as_view(action="save"), name="save"),
    path("<str:type_id>/<str:model_ui>/CancelEdit", FormController.as_view(action="cancel_edit"), name="cancel_edit"),
    path("<str:type_id>/<str:model_ui>/Create", FormController.as_view(action="create"), name="create"),
    path("<str:type_id>/<str:model_ui>/Delete", FormController.as_view(action="delete_record"), name="delete"),
    # Table refresh
    path("<str:type_id>/SetPage", FormController.as_view(action="set_page"), name="set_page"),
    path("<str:type_id>/SetPageSize", FormController.as_view(action="set_page_size"), name="set_page_size"),
    path("<str:type_id>/SetSort", FormController.as_view(action="set_sort"), name="set_sort"),
    path("<str:type_id>/SetFilter", FormController.as_view(action="set_filter"), name="set_filter"),
]
