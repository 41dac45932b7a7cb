from django.apps import AppConfig


class WishlistsConfig(AppConfig):
    name = "apps.wishlists"
    label = "wishlists"
