from django.urls import path

from .views import (
    ProductByCodeView,
    ProductCodeCheckView,
    ProductDetailView,
    ProductLastSoldView,
    ProductListCreateView,
    ProductPricesView,
    ProductSearchView,
    ProductToggleActiveView,
    ProductVariantCreateView,
    SeasonToggleView,
)


urlpatterns = [
    path("products/", ProductListCreateView.as_view(), name="product-list-create"),
    path("products/check-code/", ProductCodeCheckView.as_view(), name="product-check-code"),
    path("products/search/", ProductSearchView.as_view(), name="product-search"),
    path("products/last-sold/", ProductLastSoldView.as_view(), name="product-last-sold"),
    path("products/by-code/<str:code>/", ProductByCodeView.as_view(), name="product-by-code"),
    path("products/season-toggle/", SeasonToggleView.as_view(), name="product-season-toggle"),
    path("products/<uuid:pk>/", ProductDetailView.as_view(), name="product-detail"),
    path("products/<uuid:pk>/prices/", ProductPricesView.as_view(), name="product-prices"),
    path("products/<uuid:pk>/toggle-active/", ProductToggleActiveView.as_view(), name="product-toggle-active"),
    path("products/<uuid:pk>/variants/", ProductVariantCreateView.as_view(), name="product-variant-create"),
]
