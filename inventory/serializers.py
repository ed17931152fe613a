from rest_framework import serializers

from .models import StockMovement


class StockMovementSerializer(serializers.ModelSerializer):
    class Meta:
        model = StockMovement
        fields = ["id", "variant", "quantity", "stock_after", "reason", "created_at"]
        read_only_fields = fields


class StockAdjustmentSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(required=False)
    stock = serializers.IntegerField(required=False, min_value=0)
    reason = serializers.CharField(max_length=200, default="Manual Adjustment")

    def validate(self, attrs):
        has_quantity = attrs.get("quantity") is not None
        has_stock = attrs.get("stock") is not None
        if has_quantity == has_stock:
            raise serializers.ValidationError("Provide either quantity or stock.")
        if has_quantity and attrs["quantity"] == 0:
            raise serializers.ValidationError({"quantity": "quantity must not be zero."})
        return attrs
