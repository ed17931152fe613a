from decimal import Decimal

from rest_framework import serializers

from catalog.models import ProductVariant
from .models import ReturnInvoice, ReturnItem, SalesInvoice, SalesItem


class SalesItemSerializer(serializers.ModelSerializer):
    variant_id = serializers.UUIDField(source="variant.id", read_only=True)
    product_code = serializers.CharField(source="variant.product.code", read_only=True)
    description = serializers.CharField(source="variant.product.description", read_only=True)
    color = serializers.CharField(source="variant.color", read_only=True)
    size = serializers.IntegerField(source="variant.size", read_only=True)
    total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = SalesItem
        fields = ["id", "variant_id", "product_code", "description", "color", "size", "quantity",
                  "selling_price", "discount_value", "total"]


class SalesInvoiceSerializer(serializers.ModelSerializer):
    seller = serializers.CharField(source="seller.username", read_only=True, default=None)
    payment_method_display = serializers.CharField(source="get_payment_method_display", read_only=True)
    items = SalesItemSerializer(many=True, read_only=True)

    class Meta:
        model = SalesInvoice
        fields = ["id", "seller", "sale_date", "customer_name", "payment_method", "payment_method_display",
                  "total_amount", "is_returned", "items", "created_at"]


class SaleItemInputSerializer(serializers.Serializer):
    variant_id = serializers.PrimaryKeyRelatedField(
        queryset=ProductVariant.objects.select_related("product"), source="variant"
    )
    quantity = serializers.IntegerField(min_value=1)
    discount_percent = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), max_value=Decimal("100"), default=Decimal("0")
    )


class SaleCreateSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    payment_method = serializers.ChoiceField(choices=SalesInvoice.PaymentMethod.choices, default=SalesInvoice.PaymentMethod.CASH)
    items = SaleItemInputSerializer(many=True, allow_empty=False)


class SalesSearchSerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        if attrs.get("date_from") and attrs.get("date_to") and attrs["date_from"] > attrs["date_to"]:
            raise serializers.ValidationError("date_from must be before date_to.")
        return attrs


class ReturnItemSerializer(serializers.ModelSerializer):
    sales_item_id = serializers.IntegerField(read_only=True)
    variant_id = serializers.UUIDField(source="variant.id", read_only=True)
    product_code = serializers.CharField(source="variant.product.code", read_only=True)
    color = serializers.CharField(source="variant.color", read_only=True)
    size = serializers.IntegerField(source="variant.size", read_only=True)

    class Meta:
        model = ReturnItem
        fields = ["id", "sales_item_id", "variant_id", "product_code", "color", "size", "quantity", "refund_amount"]


class ReturnInvoiceSerializer(serializers.ModelSerializer):
    sales_invoice_id = serializers.IntegerField(read_only=True)
    processed_by = serializers.CharField(source="processed_by.username", read_only=True, default=None)
    items = ReturnItemSerializer(many=True, read_only=True)

    class Meta:
        model = ReturnInvoice
        fields = ["id", "sales_invoice_id", "processed_by", "return_date", "total_refund", "notes", "items"]


class ReturnItemInputSerializer(serializers.Serializer):
    sales_item_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)


class ReturnCreateSerializer(serializers.Serializer):
    sales_invoice_id = serializers.PrimaryKeyRelatedField(queryset=SalesInvoice.objects.all(), source="sales_invoice")
    notes = serializers.CharField(max_length=255, required=False, allow_blank=True)
    items = ReturnItemInputSerializer(many=True, allow_empty=False)
