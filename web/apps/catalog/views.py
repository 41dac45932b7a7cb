"""HTTP views for products, ratings and the vendor area (profile, listings).

Reads are public. Writes require the vendor or admin role, and vendors may
only change their own products.
"""

import logging

from django.core.paginator import Paginator
from django.db.models import Avg, Q
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView

from apps.accounts.roles import IsVendor, IsVendorOrAdmin, is_admin
from apps.accounts.schemas import ProfileUpdateDTO
from apps.accounts.views import profile_payload, update_profile
from gateway.errors import Forbidden, NotFound, ValidationError
from gateway.responses import envelope

from .models import Product, ProductRating
from .schemas import ProductIn, ProductQuery, ProductReadDTO, ProductUpdate, RatingIn

logger = logging.getLogger(__name__)


def _with_rating():
    return Product.objects.annotate(avg_rating=Avg("ratings__rating"))


def _dump(product) -> dict:
    avg = getattr(product, "avg_rating", None)
    return ProductReadDTO.from_model(product, float(avg) if avg is not None else None).model_dump(mode="json")


def get_product_or_404(product_id) -> Product:
    product = _with_rating().filter(pk=product_id).first()
    if product is None:
        raise NotFound("Product not found")
    return product


def _ensure_owner(user, product: Product):
    if product.vendor_id != user.pk and not is_admin(user):
        raise Forbidden("Not authorized to modify this product")


class ProductsCollectionView(APIView):
    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated(), IsVendorOrAdmin()]
        return [AllowAny()]

    def get(self, request):
        q = ProductQuery.model_validate(request.query_params.dict())

        qs = _with_rating().filter(is_active=True)
        if q.category:
            qs = qs.filter(category__iexact=q.category)
        if q.search:
            qs = qs.filter(Q(name__icontains=q.search) | Q(description__icontains=q.search))
        if q.min_price is not None:
            qs = qs.filter(price__gte=q.min_price)
        if q.max_price is not None:
            qs = qs.filter(price__lte=q.max_price)
        qs = qs.order_by(q.sort, "id")

        paginator = Paginator(qs, q.limit)
        page_obj = paginator.get_page(q.page)
        return envelope(
            [_dump(p) for p in page_obj.object_list],
            pagination={
                "page": page_obj.number,
                "limit": q.limit,
                "total": paginator.count,
                "pages": paginator.num_pages,
            },
        )

    def post(self, request):
        dto = ProductIn.model_validate(request.data)
        if Product.objects.filter(sku=dto.sku).exists():
            raise ValidationError(f"SKU already exists: {dto.sku}")
        product = Product.objects.create(vendor=request.user, **dto.model_dump())
        logger.info("product created", extra={"product_id": str(product.id), "sku": product.sku})
        return envelope(_dump(get_product_or_404(product.id)), status_code=status.HTTP_201_CREATED)


class ProductDetailView(APIView):
    def get_permissions(self):
        if self.request.method in ("PUT", "DELETE"):
            return [IsAuthenticated(), IsVendorOrAdmin()]
        return [AllowAny()]

    def get(self, request, pid):
        return envelope(_dump(get_product_or_404(pid)))

    def put(self, request, pid):
        product = get_product_or_404(pid)
        _ensure_owner(request.user, product)
        dto = ProductUpdate.model_validate(request.data)
        changes = {
            k: v for k, v in dto.model_dump(exclude_unset=True).items()
            if v is not None or k == "compare_price"
        }
        for field, value in changes.items():
            setattr(product, field, value)
        if changes:
            product.save(update_fields=[*changes.keys(), "updated_at"])
        return envelope(_dump(get_product_or_404(pid)))

    def delete(self, request, pid):
        product = get_product_or_404(pid)
        _ensure_owner(request.user, product)
        product.delete()
        logger.info("product deleted", extra={"product_id": str(pid)})
        return envelope(message="Product deleted successfully")


class ProductRatingView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pid):
        product = get_product_or_404(pid)
        dto = RatingIn.model_validate(request.data)
        ProductRating.objects.update_or_create(
            product=product,
            user=request.user,
            defaults={"rating": dto.rating, "review": dto.review},
        )
        return envelope(_dump(get_product_or_404(pid)))


class VendorProductsView(APIView):
    permission_classes = [IsAuthenticated, IsVendor]

    def get(self, request):
        qs = _with_rating().filter(vendor=request.user).order_by("-created_at")
        return envelope([_dump(p) for p in qs])


class VendorProfileView(APIView):
    """The vendor's own profile together with the products they sell."""

    permission_classes = [IsAuthenticated, IsVendor]

    def _payload(self, user) -> dict:
        products = _with_rating().filter(vendor=user).order_by("-created_at")
        return {**profile_payload(user), "products": [_dump(p) for p in products]}

    def get(self, request):
        return envelope(self._payload(request.user))

    def put(self, request):
        dto = ProfileUpdateDTO.model_validate(request.data)
        update_profile(request.user, dto)
        return envelope(self._payload(request.user), message="Vendor profile updated successfully")
