from django.urls import path

from .views import ReturnDetailView, ReturnListCreateView, SalesInvoiceDetailView, SalesInvoiceListCreateView


urlpatterns = [
    path("invoices/", SalesInvoiceListCreateView.as_view(), name="sales-invoice-list-create"),
    path("invoices/<int:pk>/", SalesInvoiceDetailView.as_view(), name="sales-invoice-detail"),
    path("returns/", ReturnListCreateView.as_view(), name="sales-return-list-create"),
    path("returns/<int:pk>/", ReturnDetailView.as_view(), name="sales-return-detail"),
]
