from django.urls import path

from apps.orders.views import VendorOrdersView

from .views import VendorProductsView, VendorProfileView

app_name = "vendor"

urlpatterns = [
    path("profile", VendorProfileView.as_view(), name="vendor-profile"),
    path("products", VendorProductsView.as_view(), name="vendor-products"),
    path("orders", VendorOrdersView.as_view(), name="vendor-orders"),
]
