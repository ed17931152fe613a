import uuid

from django.db.models import Q
from rest_framework import permissions, status
from rest_framework.generics import ListCreateAPIView, RetrieveUpdateDestroyAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from account.permissions import IsAdmin, IsAdminOrCashier, IsAdminOrReadOnly
from core.exceptions import service_error_response
from .models import Product
from .serializers import (
    ProductPricesSerializer,
    ProductSerializer,
    ProductVariantSerializer,
    SeasonToggleSerializer,
    VariantCreateSerializer,
)
from .services import ProductService


def _parse_bool(value):
    if value is None:
        return None
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _get_product(pk):
    return Product.objects.filter(pk=pk).select_related("vendor").prefetch_related("variants").first()


class ProductListCreateView(ListCreateAPIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminOrReadOnly]
    serializer_class = ProductSerializer

    def get_queryset(self):
        queryset = Product.objects.select_related("vendor").prefetch_related("variants")
        params = self.request.query_params
        if params.get("vendor"):
            queryset = queryset.filter(vendor_id=params["vendor"])
        is_active = _parse_bool(params.get("is_active"))
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        if params.get("season"):
            queryset = queryset.filter(season=params["season"])
        search = params.get("search")
        if search:
            search = search.strip()
            queryset = queryset.filter(Q(code__icontains=search) | Q(description__icontains=search))
        return queryset.order_by("code")

    def list(self, request, *args, **kwargs):
        params = request.query_params
        if params.get("vendor"):
            try:
                uuid.UUID(params["vendor"])
            except ValueError:
                return Response({"detail": "vendor must be a UUID."}, status=status.HTTP_400_BAD_REQUEST)
        if params.get("season") and not params["season"].isdigit():
            return Response({"detail": "season must be an integer."}, status=status.HTTP_400_BAD_REQUEST)
        return super().list(request, *args, **kwargs)


class ProductDetailView(RetrieveUpdateDestroyAPIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminOrReadOnly]
    serializer_class = ProductSerializer

    def get_queryset(self):
        return Product.objects.select_related("vendor").prefetch_related("variants")

    def destroy(self, request, *args, **kwargs):
        product = self.get_object()
        try:
            ProductService.delete_product(product)
        except ValueError as e:
            return service_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProductCodeCheckView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        code = request.query_params.get("code", "").strip()
        exclude_id = request.query_params.get("exclude_id") or None
        if not code:
            return Response({"detail": "code is required."}, status=status.HTTP_400_BAD_REQUEST)
        if exclude_id:
            try:
                exclude_id = uuid.UUID(exclude_id)
            except ValueError:
                return Response({"detail": "exclude_id must be a UUID."}, status=status.HTTP_400_BAD_REQUEST)
        exists = ProductService.code_exists(code, exclude_id=exclude_id)
        return Response({"code": code, "exists": exists, "available": not exists})


class ProductByCodeView(APIView):
    """Point-of-sale lookup: active products only."""

    permission_classes = [permissions.IsAuthenticated, IsAdminOrCashier]

    def get(self, request, code):
        product = (
            Product.objects.filter(code=code.strip(), is_active=True)
            .select_related("vendor")
            .prefetch_related("variants")
            .first()
        )
        if not product:
            return Response({"detail": "Product not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(ProductSerializer(product).data)


class ProductSearchView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminOrCashier]

    def get(self, request):
        query = request.query_params.get("q", "")
        active_only = _parse_bool(request.query_params.get("active_only"))
        products = ProductService.search(query, active_only=active_only is not False)
        return Response(ProductSerializer(products, many=True).data)


class ProductPricesView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def put(self, request, pk):
        product = _get_product(pk)
        if not product:
            return Response({"detail": "Product not found."}, status=status.HTTP_404_NOT_FOUND)
        serializer = ProductPricesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            ProductService.update_prices(product, **serializer.validated_data)
        except ValueError as e:
            return service_error_response(e)
        return Response(ProductSerializer(product).data)


class ProductToggleActiveView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def post(self, request, pk):
        product = _get_product(pk)
        if not product:
            return Response({"detail": "Product not found."}, status=status.HTTP_404_NOT_FOUND)
        is_active = _parse_bool(request.data.get("is_active"))
        if is_active is None:
            is_active = not product.is_active
        ProductService.set_active(product, is_active)
        return Response({"id": str(product.id), "is_active": product.is_active})


class SeasonToggleView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def post(self, request):
        serializer = SeasonToggleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        count = ProductService.set_season_active(data["season"], data["is_active"])
        return Response({"season": data["season"], "is_active": data["is_active"], "count": count})


class ProductLastSoldView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        raw_ids = [value for value in request.query_params.get("ids", "").split(",") if value.strip()]
        try:
            product_ids = [uuid.UUID(value.strip()) for value in raw_ids]
        except ValueError:
            return Response({"detail": "ids must be comma separated UUIDs."}, status=status.HTTP_400_BAD_REQUEST)
        dates = ProductService.last_sold_dates(product_ids)
        return Response(
            {
                str(product_id): last_sold_at.isoformat() if last_sold_at else None
                for product_id, last_sold_at in dates.items()
            }
        )


class ProductVariantCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def post(self, request, pk):
        product = _get_product(pk)
        if not product:
            return Response({"detail": "Product not found."}, status=status.HTTP_404_NOT_FOUND)
        serializer = VariantCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        variant = ProductService.get_or_create_variant(product, **serializer.validated_data)
        return Response(ProductVariantSerializer(variant).data, status=status.HTTP_201_CREATED)
