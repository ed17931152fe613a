import logging

from django.db import transaction
from django.db.models import ProtectedError

from core.exceptions import ConflictError, DuplicateError
from .models import Vendor

logger = logging.getLogger(__name__)


class VendorService:

    @staticmethod
    def name_exists(name, exclude_id=None) -> bool:
        normalized = (name or "").strip()
        if not normalized:
            return False
        queryset = Vendor.objects.filter(name__iexact=normalized)
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return queryset.exists()

    @staticmethod
    @transaction.atomic
    def create_vendor(**data) -> Vendor:
        data["name"] = data["name"].strip()
        if VendorService.name_exists(data["name"]):
            raise DuplicateError("Vendor name already exists.")
        vendor = Vendor.objects.create(**data)
        logger.info("Vendor created id=%s name=%s", vendor.id, vendor.name)
        return vendor

    @staticmethod
    @transaction.atomic
    def update_vendor(vendor: Vendor, **data) -> Vendor:
        if "name" in data:
            data["name"] = data["name"].strip()
            if VendorService.name_exists(data["name"], exclude_id=vendor.pk):
                raise DuplicateError("Vendor name already exists.")
        for field, value in data.items():
            setattr(vendor, field, value)
        vendor.save()
        return vendor

    @staticmethod
    def delete_vendor(vendor: Vendor):
        # Products cascade; invoices protect their vendor and variants.
        try:
            with transaction.atomic():
                vendor.delete()
        except ProtectedError:
            raise ConflictError("Vendor has invoice history and cannot be deleted.")
        logger.info("Vendor deleted name=%s", vendor.name)
