from django.contrib import admin

from .models import Vendor


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ("name", "code_prefix", "contact_info", "created_at")
    search_fields = ("name", "code_prefix")
