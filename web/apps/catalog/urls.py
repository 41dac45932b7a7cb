from django.urls import path

from .views import ProductDetailView, ProductRatingView, ProductsCollectionView

app_name = "catalog"

urlpatterns = [
    path("", ProductsCollectionView.as_view(), name="products-collection"),
    path("<uuid:pid>/", ProductDetailView.as_view(), name="products-detail"),
    path("<uuid:pid>/ratings", ProductRatingView.as_view(), name="products-ratings"),
]
