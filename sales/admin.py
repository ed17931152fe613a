from django.contrib import admin

from .models import ReturnInvoice, ReturnItem, SalesInvoice, SalesItem


class SalesItemInline(admin.TabularInline):
    model = SalesItem
    extra = 0
    can_delete = False
    readonly_fields = ("variant", "quantity", "selling_price", "discount_value")


class ReturnItemInline(admin.TabularInline):
    model = ReturnItem
    extra = 0
    can_delete = False
    readonly_fields = ("sales_item", "variant", "quantity", "refund_amount")


@admin.register(SalesInvoice)
class SalesInvoiceAdmin(admin.ModelAdmin):
    list_display = ("id", "sale_date", "seller", "customer_name", "payment_method", "total_amount", "is_returned")
    list_filter = ("payment_method", "is_returned")
    search_fields = ("id", "customer_name")
    readonly_fields = ("seller", "sale_date", "total_amount", "is_returned")
    inlines = [SalesItemInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ReturnInvoice)
class ReturnInvoiceAdmin(admin.ModelAdmin):
    list_display = ("id", "sales_invoice", "processed_by", "return_date", "total_refund")
    readonly_fields = ("sales_invoice", "processed_by", "return_date", "total_refund")
    inlines = [ReturnItemInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
