"""Shopping cart endpoints for the authenticated user.

Every user has at most one cart, created on first use. Adding a product that
is already in the cart sets its quantity instead of adding to it.
"""

from decimal import Decimal

from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from apps.catalog.models import Product
from gateway.errors import InsufficientStock, NotFound
from gateway.responses import envelope

from .models import Cart, CartItem
from .schemas import CartItemIn, CartLineOut, CartOut, CartProductOut, CartQuantityIn


def _cart_for(user) -> Cart:
    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


def _check_stock(product: Product, quantity: int):
    if product.stock < quantity:
        raise InsufficientStock(f"Insufficient stock for product: {product.name}")


def _dump(cart: Cart) -> dict:
    lines = []
    total = Decimal("0")
    for item in cart.items.select_related("product"):
        p = item.product
        line_total = p.price * item.quantity
        total += line_total
        lines.append(
            CartLineOut(
                product=CartProductOut(id=p.id, name=p.name, price=p.price, stock=p.stock),
                quantity=item.quantity,
                line_total=line_total,
            )
        )
    return CartOut(items=lines, total=total).model_dump(mode="json")


class CartView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return envelope(_dump(_cart_for(request.user)))

    def delete(self, request):
        _cart_for(request.user).items.all().delete()
        return envelope(message="Cart cleared successfully")


class CartItemsView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        dto = CartItemIn.model_validate(request.data)
        product = Product.objects.filter(pk=dto.product, is_active=True).first()
        if product is None:
            raise NotFound("Product not found")
        _check_stock(product, dto.quantity)

        cart = _cart_for(request.user)
        CartItem.objects.update_or_create(cart=cart, product=product, defaults={"quantity": dto.quantity})
        return envelope(_dump(cart))


class CartItemDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, pid):
        dto = CartQuantityIn.model_validate(request.data)
        cart = _cart_for(request.user)
        item = cart.items.select_related("product").filter(product_id=pid).first()
        if item is None:
            raise NotFound("Item not found in cart")
        _check_stock(item.product, dto.quantity)
        item.quantity = dto.quantity
        item.save(update_fields=["quantity"])
        return envelope(_dump(cart))

    def delete(self, request, pid):
        cart = _cart_for(request.user)
        cart.items.filter(product_id=pid).delete()
        return envelope(_dump(cart))
