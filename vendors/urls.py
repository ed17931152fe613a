from django.urls import path

from .views import VendorDetailView, VendorListCreateView, VendorNameCheckView


urlpatterns = [
    path("", VendorListCreateView.as_view(), name="vendor-list"),
    path("check-name/", VendorNameCheckView.as_view(), name="vendor-check-name"),
    path("<uuid:pk>/", VendorDetailView.as_view(), name="vendor-detail"),
]
