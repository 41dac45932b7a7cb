"""Wishlist endpoints. A product appears at most once per wishlist."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.catalog.models import Product
from gateway.errors import NotFound
from gateway.responses import envelope

from .models import Wishlist, WishlistItem


class WishlistIn(BaseModel):
    product: UUID


class WishlistItemOut(BaseModel):
    product: UUID
    name: str
    price: Decimal
    stock: int
    added_at: datetime


def _wishlist_for(user) -> Wishlist:
    wishlist, _ = Wishlist.objects.get_or_create(user=user)
    return wishlist


def _dump(wishlist: Wishlist) -> dict:
    items = [
        WishlistItemOut(
            product=i.product.id,
            name=i.product.name,
            price=i.product.price,
            stock=i.product.stock,
            added_at=i.added_at,
        ).model_dump(mode="json")
        for i in wishlist.items.select_related("product")
    ]
    return {"items": items}


class WishlistView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return envelope(_dump(_wishlist_for(request.user)))

    def delete(self, request):
        _wishlist_for(request.user).items.all().delete()
        return envelope(message="Wishlist cleared successfully")


class WishlistItemsView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        dto = WishlistIn.model_validate(request.data)
        product = Product.objects.filter(pk=dto.product).first()
        if product is None:
            raise NotFound("Product not found")
        wishlist = _wishlist_for(request.user)
        WishlistItem.objects.get_or_create(wishlist=wishlist, product=product)
        return envelope(_dump(wishlist))


class WishlistItemDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, pid):
        wishlist = _wishlist_for(request.user)
        wishlist.items.filter(product_id=pid).delete()
        return envelope(_dump(wishlist))
