from django.contrib import admin

from .models import Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    readonly_fields = ("stock",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("code", "description", "vendor", "selling_price", "season", "is_active")
    list_filter = ("is_active", "season", "vendor")
    search_fields = ("code", "description")
    inlines = [ProductVariantInline]
