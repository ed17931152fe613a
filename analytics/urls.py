from django.urls import path

from .views import (
    CashierPerformanceView,
    CashierReportView,
    DashboardSummaryView,
    InventoryReportView,
    PaymentMethodsView,
    PurchasesOverTimeView,
    ReturnsOverTimeView,
    ReturnsReportView,
    SalesOverTimeView,
    SalesReportView,
    StockLevelsView,
    TopProductsView,
)


urlpatterns = [
    path("dashboard/", DashboardSummaryView.as_view(), name="analytics-dashboard"),
    path("sales-over-time/", SalesOverTimeView.as_view(), name="analytics-sales-over-time"),
    path("purchases-over-time/", PurchasesOverTimeView.as_view(), name="analytics-purchases-over-time"),
    path("returns-over-time/", ReturnsOverTimeView.as_view(), name="analytics-returns-over-time"),
    path("top-products/", TopProductsView.as_view(), name="analytics-top-products"),
    path("cashier-performance/", CashierPerformanceView.as_view(), name="analytics-cashier-performance"),
    path("payment-methods/", PaymentMethodsView.as_view(), name="analytics-payment-methods"),
    path("stock-levels/", StockLevelsView.as_view(), name="analytics-stock-levels"),
    path("reports/sales/", SalesReportView.as_view(), name="analytics-report-sales"),
    path("reports/inventory/", InventoryReportView.as_view(), name="analytics-report-inventory"),
    path("reports/returns/", ReturnsReportView.as_view(), name="analytics-report-returns"),
    path("reports/cashiers/", CashierReportView.as_view(), name="analytics-report-cashiers"),
]
