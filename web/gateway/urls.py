from django.urls import include, path

urlpatterns = [
    path("api/auth/", include("apps.accounts.urls_auth")),
    path("api/users/", include("apps.accounts.urls")),
    path("api/products/", include("apps.catalog.urls")),
    path("api/vendor/", include("apps.catalog.urls_vendor")),
    path("api/cart/", include("apps.carts.urls")),
    path("api/wishlist/", include("apps.wishlists.urls")),
    path("api/orders/", include("apps.orders.urls")),
    path("api/", include("apps.monitoring.urls")),
]
