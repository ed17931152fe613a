from django.contrib import admin

from .models import StockMovement


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = ("id", "variant", "quantity", "stock_after", "reason", "created_at")
    search_fields = ("variant__product__code", "reason")
    list_select_related = ("variant__product",)

    def has_change_permission(self, request, obj=None):
        return False
