from django.urls import path

from catalog.views import ProductVariantCreateView
from .views import (
    PurchaseInvoiceDetailView,
    PurchaseInvoiceListCreateView,
    PurchaseInvoiceReturnableView,
    PurchaseReturnDetailView,
    PurchaseReturnListCreateView,
    VendorProductsView,
    VendorStatsView,
)


urlpatterns = [
    path("invoices/", PurchaseInvoiceListCreateView.as_view(), name="purchase-invoice-list-create"),
    path("invoices/<int:pk>/", PurchaseInvoiceDetailView.as_view(), name="purchase-invoice-detail"),
    path("invoices/<int:pk>/returnable/", PurchaseInvoiceReturnableView.as_view(), name="purchase-invoice-returnable"),
    path("returns/", PurchaseReturnListCreateView.as_view(), name="purchase-return-list-create"),
    path("returns/<int:pk>/", PurchaseReturnDetailView.as_view(), name="purchase-return-detail"),
    path("vendors/stats/", VendorStatsView.as_view(), name="vendor-purchase-stats"),
    path("vendors/<uuid:pk>/products/", VendorProductsView.as_view(), name="vendor-products"),
    path("products/<uuid:pk>/variants/", ProductVariantCreateView.as_view(), name="purchase-variant-create"),
]
