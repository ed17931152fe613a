from rest_framework import permissions
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from account.permissions import IsAdmin
from .serializers import DateRangeSerializer, TopProductsSerializer
from .services import AnalyticsService, date_range


class AnalyticsView(APIView):
    """Base for the admin-only statistics endpoints that take a date window."""

    permission_classes = [permissions.IsAuthenticated, IsAdmin]
    params_serializer_class = DateRangeSerializer

    def get_params(self, request):
        serializer = self.params_serializer_class(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data
        try:
            start, end = date_range(params.get("date_from"), params.get("date_to"), days=params["days"])
        except ValueError as e:
            raise ValidationError({"detail": str(e)})
        return params, start, end


class DashboardSummaryView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        return Response(AnalyticsService.dashboard_summary())


class SalesOverTimeView(AnalyticsView):
    def get(self, request):
        params, start, end = self.get_params(request)
        return Response(AnalyticsService.sales_over_time(start, end, params["period"]))


class PurchasesOverTimeView(AnalyticsView):
    def get(self, request):
        params, start, end = self.get_params(request)
        return Response(AnalyticsService.purchases_over_time(start, end, params["period"]))


class ReturnsOverTimeView(AnalyticsView):
    def get(self, request):
        params, start, end = self.get_params(request)
        return Response(AnalyticsService.returns_over_time(start, end, params["period"]))


class TopProductsView(AnalyticsView):
    params_serializer_class = TopProductsSerializer

    def get(self, request):
        params, start, end = self.get_params(request)
        return Response(AnalyticsService.top_products(start, end, limit=params["limit"]))


class CashierPerformanceView(AnalyticsView):
    def get(self, request):
        params, start, end = self.get_params(request)
        return Response(AnalyticsService.cashier_performance(start, end))


class PaymentMethodsView(AnalyticsView):
    def get(self, request):
        params, start, end = self.get_params(request)
        return Response(AnalyticsService.payment_methods(start, end))


class StockLevelsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        return Response(AnalyticsService.stock_levels())


class SalesReportView(AnalyticsView):
    def get(self, request):
        params, start, end = self.get_params(request)
        return Response(AnalyticsService.sales_report(start, end))


class InventoryReportView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        return Response(AnalyticsService.inventory_report())


class ReturnsReportView(AnalyticsView):
    def get(self, request):
        params, start, end = self.get_params(request)
        return Response(AnalyticsService.returns_report(start, end))


class CashierReportView(AnalyticsView):
    def get(self, request):
        params, start, end = self.get_params(request)
        return Response(AnalyticsService.cashier_report(start, end))
