from rest_framework import serializers

from core.exceptions import DuplicateError
from .models import Vendor
from .services import VendorService


class VendorSerializer(serializers.ModelSerializer):
    products_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Vendor
        fields = ["id", "name", "code_prefix", "address", "contact_info", "notes", "products_count", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Vendor name is required.")
        exclude_id = self.instance.pk if self.instance is not None else None
        if VendorService.name_exists(value, exclude_id=exclude_id):
            raise serializers.ValidationError("Vendor name already exists.")
        return value

    def validate_code_prefix(self, value):
        value = value.strip().upper()
        if not value:
            raise serializers.ValidationError("Code prefix is required.")
        return value

    def create(self, validated_data):
        try:
            return VendorService.create_vendor(**validated_data)
        except DuplicateError as e:
            raise serializers.ValidationError({"name": str(e)})

    def update(self, instance, validated_data):
        try:
            return VendorService.update_vendor(instance, **validated_data)
        except DuplicateError as e:
            raise serializers.ValidationError({"name": str(e)})
