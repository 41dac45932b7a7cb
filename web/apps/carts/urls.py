from django.urls import path

from .views import CartItemDetailView, CartItemsView, CartView

app_name = "carts"

urlpatterns = [
    path("", CartView.as_view(), name="cart"),
    path("items", CartItemsView.as_view(), name="cart-items"),
    path("items/<uuid:pid>", CartItemDetailView.as_view(), name="cart-item"),
]
