from decimal import Decimal

from rest_framework import serializers

from catalog.models import ProductVariant
from vendors.models import Vendor
from .models import PurchaseInvoice, PurchaseItem, PurchaseReturnInvoice, PurchaseReturnItem


class _VariantLineMixin(serializers.Serializer):
    variant_id = serializers.UUIDField(source="variant.id", read_only=True)
    product_id = serializers.UUIDField(source="variant.product_id", read_only=True)
    product_code = serializers.CharField(source="variant.product.code", read_only=True)
    description = serializers.CharField(source="variant.product.description", read_only=True)
    color = serializers.CharField(source="variant.color", read_only=True)
    size = serializers.IntegerField(source="variant.size", read_only=True)


class PurchaseItemSerializer(_VariantLineMixin, serializers.ModelSerializer):
    total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = PurchaseItem
        fields = ["id", "variant_id", "product_id", "product_code", "description", "color", "size",
                  "quantity", "buying_price", "total"]


class PurchaseInvoiceSerializer(serializers.ModelSerializer):
    vendor_id = serializers.UUIDField(read_only=True)
    vendor_name = serializers.CharField(source="vendor.name", read_only=True)
    items = PurchaseItemSerializer(many=True, read_only=True)

    class Meta:
        model = PurchaseInvoice
        fields = ["id", "vendor_id", "vendor_name", "purchase_date", "total_amount", "notes", "items",
                  "created_at", "updated_at"]


class PurchaseItemInputSerializer(serializers.Serializer):
    variant_id = serializers.PrimaryKeyRelatedField(
        queryset=ProductVariant.objects.select_related("product"), source="variant"
    )
    quantity = serializers.IntegerField(min_value=1)
    buying_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))


class PurchaseInvoiceWriteSerializer(serializers.Serializer):
    vendor_id = serializers.PrimaryKeyRelatedField(queryset=Vendor.objects.all(), source="vendor")
    purchase_date = serializers.DateTimeField(required=False)
    notes = serializers.CharField(max_length=255, required=False, allow_blank=True)
    items = PurchaseItemInputSerializer(many=True, allow_empty=False)


class PurchaseReturnItemSerializer(_VariantLineMixin, serializers.ModelSerializer):
    total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = PurchaseReturnItem
        fields = ["id", "variant_id", "product_id", "product_code", "description", "color", "size",
                  "quantity", "refund_price", "total"]


class PurchaseReturnInvoiceSerializer(serializers.ModelSerializer):
    purchase_invoice_id = serializers.IntegerField(read_only=True)
    vendor_id = serializers.UUIDField(read_only=True)
    vendor_name = serializers.CharField(source="vendor.name", read_only=True)
    items = PurchaseReturnItemSerializer(many=True, read_only=True)

    class Meta:
        model = PurchaseReturnInvoice
        fields = ["id", "purchase_invoice_id", "vendor_id", "vendor_name", "return_date", "total_refund",
                  "reason", "items", "created_at"]


class PurchaseReturnItemInputSerializer(serializers.Serializer):
    variant_id = serializers.PrimaryKeyRelatedField(
        queryset=ProductVariant.objects.select_related("product"), source="variant"
    )
    quantity = serializers.IntegerField(min_value=1)
    refund_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal("0"), required=False, allow_null=True
    )


class PurchaseReturnWriteSerializer(serializers.Serializer):
    purchase_invoice_id = serializers.PrimaryKeyRelatedField(
        queryset=PurchaseInvoice.objects.all(), source="purchase_invoice"
    )
    return_date = serializers.DateTimeField(required=False)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)
    items = PurchaseReturnItemInputSerializer(many=True, allow_empty=False)
