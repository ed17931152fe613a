from django.conf import settings
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from account.permissions import IsAdmin, IsAdminOrCashier
from catalog.models import ProductVariant
from core.exceptions import service_error_response
from .serializers import StockAdjustmentSerializer, StockMovementSerializer
from .services import InventoryService


class VariantStockAdjustView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def post(self, request, pk):
        variant = ProductVariant.objects.filter(pk=pk).select_related("product").first()
        if not variant:
            return Response({"detail": "Variant not found."}, status=status.HTTP_404_NOT_FOUND)
        serializer = StockAdjustmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            if data.get("stock") is not None:
                InventoryService.set_stock(variant, data["stock"], reason=data["reason"])
            else:
                InventoryService.adjust_stock(variant, data["quantity"], reason=data["reason"])
        except ValueError as e:
            return service_error_response(e)
        return Response(
            {
                "variant_id": str(variant.id),
                "product_id": str(variant.product_id),
                "stock": variant.stock,
                "message": "Stock updated successfully.",
            }
        )


class VariantMovementListView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, pk):
        variant = ProductVariant.objects.filter(pk=pk).first()
        if not variant:
            return Response({"detail": "Variant not found."}, status=status.HTTP_404_NOT_FOUND)
        movements = variant.movements.all()[:200]
        return Response(
            {
                "variant_id": str(variant.id),
                "stock": variant.stock,
                "movements": StockMovementSerializer(movements, many=True).data,
            }
        )


class LowStockAlertView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminOrCashier]

    def get(self, request):
        threshold = request.query_params.get("threshold", settings.LOW_STOCK_THRESHOLD)
        try:
            threshold = int(threshold)
        except (TypeError, ValueError):
            return Response({"detail": "threshold must be an integer."}, status=status.HTTP_400_BAD_REQUEST)
        if threshold < 0:
            return Response({"detail": "threshold must be >= 0."}, status=status.HTTP_400_BAD_REQUEST)

        alerts = [
            {
                "variant_id": str(variant.id),
                "product_id": str(variant.product_id),
                "product_code": variant.product.code,
                "product_description": variant.product.description,
                "vendor": variant.product.vendor.name,
                "color": variant.color,
                "size": variant.size,
                "stock": variant.stock,
                "threshold": threshold,
            }
            for variant in InventoryService.low_stock(threshold)
        ]
        return Response({"count": len(alerts), "alerts": alerts})
