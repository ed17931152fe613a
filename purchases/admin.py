from django.contrib import admin

from .models import PurchaseInvoice, PurchaseItem, PurchaseReturnInvoice, PurchaseReturnItem


# Stock only moves through the services, so documents are read-only here.
class PurchaseItemInline(admin.TabularInline):
    model = PurchaseItem
    extra = 0
    can_delete = False
    readonly_fields = ("variant", "quantity", "buying_price")


class PurchaseReturnItemInline(admin.TabularInline):
    model = PurchaseReturnItem
    extra = 0
    can_delete = False
    readonly_fields = ("variant", "quantity", "refund_price")


@admin.register(PurchaseInvoice)
class PurchaseInvoiceAdmin(admin.ModelAdmin):
    list_display = ("id", "vendor", "purchase_date", "total_amount")
    list_filter = ("vendor",)
    readonly_fields = ("vendor", "purchase_date", "total_amount")
    inlines = [PurchaseItemInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PurchaseReturnInvoice)
class PurchaseReturnInvoiceAdmin(admin.ModelAdmin):
    list_display = ("id", "purchase_invoice", "vendor", "return_date", "total_refund")
    readonly_fields = ("purchase_invoice", "vendor", "return_date", "total_refund")
    inlines = [PurchaseReturnItemInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
