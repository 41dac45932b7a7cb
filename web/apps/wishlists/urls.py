from django.urls import path

from .views import WishlistItemDetailView, WishlistItemsView, WishlistView

app_name = "wishlists"

urlpatterns = [
    path("", WishlistView.as_view(), name="wishlist"),
    path("items", WishlistItemsView.as_view(), name="wishlist-items"),
    path("items/<uuid:pid>", WishlistItemDetailView.as_view(), name="wishlist-item"),
]
