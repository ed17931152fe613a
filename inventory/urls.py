from django.urls import path

from .views import LowStockAlertView, VariantMovementListView, VariantStockAdjustView


urlpatterns = [
    path("variants/<uuid:pk>/adjust/", VariantStockAdjustView.as_view(), name="variant-stock-adjust"),
    path("variants/<uuid:pk>/movements/", VariantMovementListView.as_view(), name="variant-movements"),
    path("alerts/low-stock/", LowStockAlertView.as_view(), name="low-stock-alert"),
]
