from decimal import Decimal

from rest_framework import serializers

from core.exceptions import DuplicateError
from vendors.models import Vendor
from .models import Product, ProductVariant, Season
from .services import ProductService


class ProductVariantSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(required=False)
    stock = serializers.IntegerField(required=False, min_value=0)

    class Meta:
        model = ProductVariant
        fields = ['id', 'color', 'size', 'stock']

    def validate_color(self, value):
        return value.strip()


class ProductSerializer(serializers.ModelSerializer):
    variants = ProductVariantSerializer(many=True, required=False)
    vendor_id = serializers.PrimaryKeyRelatedField(queryset=Vendor.objects.all(), source='vendor', write_only=True)
    vendor = serializers.SerializerMethodField(read_only=True)
    total_stock = serializers.SerializerMethodField(read_only=True)
    season_name = serializers.CharField(source="get_season_display", read_only=True)
    max_discount = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Product
        fields = ['id', 'code', 'description', 'vendor_id', 'vendor', 'buying_price', 'selling_price',
                  'discount_limit', 'max_discount', 'is_active', 'season', 'season_name', 'variants',
                  'total_stock', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_vendor(self, obj):
        return {
            "id": str(obj.vendor.id),
            "name": obj.vendor.name,
            "code_prefix": obj.vendor.code_prefix,
        }

    def get_total_stock(self, obj):
        return obj.total_stock

    def get_max_discount(self, obj):
        allowed = ProductService.max_discount_percent(obj.buying_price, obj.selling_price)
        return str(allowed.quantize(Decimal("0.01")))

    def validate_code(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Product code is required.")
        exclude_id = self.instance.pk if self.instance is not None else None
        if ProductService.code_exists(value, exclude_id=exclude_id):
            raise serializers.ValidationError("Product code already exists.")
        return value

    def validate_variants(self, value):
        seen = set()
        for variant in value:
            if "size" not in variant:
                # Partial updates may address an existing variant by id alone.
                if not variant.get("id"):
                    raise serializers.ValidationError("Size is required for new variants.")
                continue
            key = (variant.get("color", ""), variant["size"])
            if key in seen:
                raise serializers.ValidationError(f"Duplicate variant {key[0] or '-'} / {key[1]}.")
            seen.add(key)
        return value

    def validate(self, attrs):
        instance = self.instance
        buying = attrs.get("buying_price", getattr(instance, "buying_price", None))
        selling = attrs.get("selling_price", getattr(instance, "selling_price", None))
        discount = attrs.get("discount_limit", getattr(instance, "discount_limit", None))
        if buying is not None and selling is not None:
            try:
                ProductService.validate_pricing(buying, selling, discount)
            except ValueError as e:
                raise serializers.ValidationError(str(e))
        return attrs

    def create(self, validated_data):
        variants_data = validated_data.pop('variants', [])
        try:
            return ProductService.create_product(variants=variants_data, **validated_data)
        except DuplicateError as e:
            raise serializers.ValidationError({e.field or "code": str(e)})
        except ValueError as e:
            raise serializers.ValidationError(str(e))

    def update(self, instance, validated_data):
        variants_data = validated_data.pop('variants', None)
        try:
            return ProductService.update_product(instance, variants=variants_data, **validated_data)
        except DuplicateError as e:
            raise serializers.ValidationError({e.field or "code": str(e)})
        except ValueError as e:
            raise serializers.ValidationError(str(e))


class ProductPricesSerializer(serializers.Serializer):
    buying_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))
    selling_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))
    discount_limit = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), max_value=Decimal("100"),
        required=False, allow_null=True,
    )


class SeasonToggleSerializer(serializers.Serializer):
    season = serializers.ChoiceField(choices=Season.choices)
    is_active = serializers.BooleanField()


class VariantCreateSerializer(serializers.Serializer):
    color = serializers.CharField(max_length=30, allow_blank=True)
    size = serializers.IntegerField(min_value=1, max_value=18)
