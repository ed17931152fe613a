from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from account.permissions import IsAdmin, IsAdminOrCashier
from core.exceptions import service_error_response
from .models import ReturnInvoice
from .serializers import (
    ReturnCreateSerializer,
    ReturnInvoiceSerializer,
    SaleCreateSerializer,
    SalesInvoiceSerializer,
    SalesSearchSerializer,
)
from .services import SalesService


def _get_return(pk):
    return (
        ReturnInvoice.objects.select_related("processed_by")
        .prefetch_related("items__variant__product")
        .filter(pk=pk)
        .first()
    )


class SalesInvoiceListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminOrCashier]

    def get(self, request):
        params = SalesSearchSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        invoices = SalesService.search(
            params.validated_data.get("q", ""),
            date_from=params.validated_data.get("date_from"),
            date_to=params.validated_data.get("date_to"),
        )
        return Response(SalesInvoiceSerializer(invoices, many=True).data)

    def post(self, request):
        serializer = SaleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            invoice = SalesService.create_sale(
                request.user,
                data["items"],
                customer_name=data.get("customer_name", ""),
                payment_method=data["payment_method"],
            )
        except ValueError as e:
            return service_error_response(e)
        invoice = SalesService.invoices().get(pk=invoice.pk)
        return Response(SalesInvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)


class SalesInvoiceDetailView(APIView):

    def get_permissions(self):
        if self.request.method == "DELETE":
            return [permissions.IsAuthenticated(), IsAdmin()]
        return [permissions.IsAuthenticated(), IsAdminOrCashier()]

    def get(self, request, pk):
        invoice = SalesService.invoices().filter(pk=pk).first()
        if not invoice:
            return Response({"detail": "Sales invoice not found."}, status=status.HTTP_404_NOT_FOUND)
        data = SalesInvoiceSerializer(invoice).data
        data["returns"] = ReturnInvoiceSerializer(
            invoice.returns.select_related("processed_by").prefetch_related("items__variant__product"), many=True
        ).data
        return Response(data)

    def delete(self, request, pk):
        invoice = SalesService.invoices().filter(pk=pk).first()
        if not invoice:
            return Response({"detail": "Sales invoice not found."}, status=status.HTTP_404_NOT_FOUND)
        try:
            SalesService.delete_sale(invoice)
        except ValueError as e:
            return service_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ReturnListCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdminOrCashier]

    def get(self, request):
        returns = ReturnInvoice.objects.select_related("processed_by").prefetch_related("items__variant__product")
        sales_invoice = request.query_params.get("sales_invoice")
        if sales_invoice:
            if not sales_invoice.isdigit():
                return Response({"detail": "sales_invoice must be an integer."}, status=status.HTTP_400_BAD_REQUEST)
            returns = returns.filter(sales_invoice_id=int(sales_invoice))
        return Response(ReturnInvoiceSerializer(returns, many=True).data)

    def post(self, request):
        serializer = ReturnCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            return_invoice = SalesService.process_return(
                data["sales_invoice"],
                data["items"],
                processed_by=request.user,
                notes=data.get("notes", ""),
            )
        except ValueError as e:
            return service_error_response(e)
        return Response(ReturnInvoiceSerializer(_get_return(return_invoice.pk)).data, status=status.HTTP_201_CREATED)


class ReturnDetailView(APIView):

    def get_permissions(self):
        if self.request.method == "DELETE":
            return [permissions.IsAuthenticated(), IsAdmin()]
        return [permissions.IsAuthenticated(), IsAdminOrCashier()]

    def get(self, request, pk):
        return_invoice = _get_return(pk)
        if not return_invoice:
            return Response({"detail": "Return not found."}, status=status.HTTP_404_NOT_FOUND)
        return Response(ReturnInvoiceSerializer(return_invoice).data)

    def delete(self, request, pk):
        return_invoice = _get_return(pk)
        if not return_invoice:
            return Response({"detail": "Return not found."}, status=status.HTTP_404_NOT_FOUND)
        try:
            SalesService.delete_return(return_invoice)
        except ValueError as e:
            return service_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)
