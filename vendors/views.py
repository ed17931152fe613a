import uuid

from django.db.models import Count
from rest_framework import permissions, status
from rest_framework.generics import ListCreateAPIView, RetrieveUpdateDestroyAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from account.permissions import IsAdmin
from core.exceptions import service_error_response
from .models import Vendor
from .serializers import VendorSerializer
from .services import VendorService


class VendorListCreateView(ListCreateAPIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]
    serializer_class = VendorSerializer

    def get_queryset(self):
        queryset = Vendor.objects.annotate(products_count=Count("products"))
        search = self.request.query_params.get("search")
        if search:
            queryset = queryset.filter(name__icontains=search.strip())
        return queryset.order_by("name")


class VendorDetailView(RetrieveUpdateDestroyAPIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]
    serializer_class = VendorSerializer

    def get_queryset(self):
        return Vendor.objects.annotate(products_count=Count("products"))

    def destroy(self, request, *args, **kwargs):
        vendor = self.get_object()
        try:
            VendorService.delete_vendor(vendor)
        except ValueError as e:
            return service_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class VendorNameCheckView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        name = request.query_params.get("name", "")
        exclude_id = request.query_params.get("exclude_id") or None
        if not name.strip():
            return Response({"detail": "name is required."}, status=status.HTTP_400_BAD_REQUEST)
        if exclude_id:
            try:
                exclude_id = uuid.UUID(exclude_id)
            except ValueError:
                return Response({"detail": "exclude_id must be a UUID."}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"name": name.strip(), "exists": VendorService.name_exists(name, exclude_id=exclude_id)})
