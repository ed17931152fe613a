import uuid

from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from account.permissions import IsAdmin
from catalog.serializers import ProductSerializer
from core.exceptions import service_error_response
from vendors.models import Vendor
from .models import PurchaseReturnInvoice
from .serializers import (
    PurchaseInvoiceSerializer,
    PurchaseInvoiceWriteSerializer,
    PurchaseReturnInvoiceSerializer,
    PurchaseReturnWriteSerializer,
)
from .services import PurchaseService


def _get_invoice(pk):
    return PurchaseService.invoices().filter(pk=pk).first()


def _get_return(pk):
    return (
        PurchaseReturnInvoice.objects.select_related("vendor")
        .prefetch_related("items__variant__product")
        .filter(pk=pk)
        .first()
    )


class PurchaseInvoiceListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        vendor_id = request.query_params.get("vendor")
        if vendor_id:
            try:
                vendor_id = uuid.UUID(vendor_id)
            except ValueError:
                return Response({"detail": "vendor must be a UUID."}, status=status.HTTP_400_BAD_REQUEST)
        invoices = PurchaseService.invoices(vendor_id=vendor_id)
        return Response(PurchaseInvoiceSerializer(invoices, many=True).data)

    def post(self, request):
        serializer = PurchaseInvoiceWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            invoice = PurchaseService.create_invoice(
                data["vendor"],
                data["items"],
                purchase_date=data.get("purchase_date"),
                notes=data.get("notes", ""),
            )
        except ValueError as e:
            return service_error_response(e)
        return Response(PurchaseInvoiceSerializer(_get_invoice(invoice.pk)).data, status=status.HTTP_201_CREATED)


class PurchaseInvoiceDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, pk):
        invoice = _get_invoice(pk)
        if not invoice:
            return Response({"detail": "Purchase invoice not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(PurchaseInvoiceSerializer(invoice).data)

    def put(self, request, pk):
        invoice = _get_invoice(pk)
        if not invoice:
            return Response({"detail": "Purchase invoice not found."}, status=status.HTTP_404_NOT_FOUND)
        serializer = PurchaseInvoiceWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            PurchaseService.update_invoice(
                invoice,
                data["vendor"],
                data["items"],
                purchase_date=data.get("purchase_date"),
                notes=data.get("notes"),
            )
        except ValueError as e:
            return service_error_response(e)
        return Response(PurchaseInvoiceSerializer(_get_invoice(pk)).data)

    def delete(self, request, pk):
        invoice = _get_invoice(pk)
        if not invoice:
            return Response({"detail": "Purchase invoice not found."}, status=status.HTTP_404_NOT_FOUND)
        try:
            PurchaseService.delete_invoice(invoice)
        except ValueError as e:
            return service_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class PurchaseInvoiceReturnableView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, pk):
        invoice = _get_invoice(pk)
        if not invoice:
            return Response({"detail": "Purchase invoice not found."}, status=status.HTTP_404_NOT_FOUND)
        remaining = PurchaseService.returnable_quantities(invoice)
        return Response(
            {
                "purchase_invoice_id": invoice.pk,
                "items": [
                    {"variant_id": str(variant_id), "returnable_quantity": quantity}
                    for variant_id, quantity in remaining.items()
                ],
            }
        )


class PurchaseReturnListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        returns = PurchaseReturnInvoice.objects.select_related("vendor").prefetch_related("items__variant__product")
        purchase_invoice = request.query_params.get("purchase_invoice")
        if purchase_invoice:
            if not purchase_invoice.isdigit():
                return Response({"detail": "purchase_invoice must be an integer."}, status=status.HTTP_400_BAD_REQUEST)
            returns = returns.filter(purchase_invoice_id=int(purchase_invoice))
        return Response(PurchaseReturnInvoiceSerializer(returns, many=True).data)

    def post(self, request):
        serializer = PurchaseReturnWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            return_invoice = PurchaseService.create_return(
                data["purchase_invoice"],
                data["items"],
                reason=data.get("reason", ""),
                return_date=data.get("return_date"),
            )
        except ValueError as e:
            return service_error_response(e)
        return Response(
            PurchaseReturnInvoiceSerializer(_get_return(return_invoice.pk)).data, status=status.HTTP_201_CREATED
        )


class PurchaseReturnDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, pk):
        return_invoice = _get_return(pk)
        if not return_invoice:
            return Response({"detail": "Purchase return not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(PurchaseReturnInvoiceSerializer(return_invoice).data)

    def delete(self, request, pk):
        return_invoice = _get_return(pk)
        if not return_invoice:
            return Response({"detail": "Purchase return not found."}, status=status.HTTP_404_NOT_FOUND)
        try:
            PurchaseService.delete_return(return_invoice)
        except ValueError as e:
            return service_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class VendorProductsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, pk):
        vendor = Vendor.objects.filter(pk=pk).first()
        if not vendor:
            return Response({"detail": "Vendor not found."}, status=status.HTTP_404_NOT_FOUND)
        active_only = request.query_params.get("active_only", "").lower() in {"1", "true", "yes"}
        products = PurchaseService.products_by_vendor(vendor, active_only=active_only).select_related("vendor")
        return Response(ProductSerializer(products, many=True).data)


class VendorStatsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        return Response(PurchaseService.vendor_stats())
