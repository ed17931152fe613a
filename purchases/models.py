from django.db import models
from django.utils import timezone

from catalog.models import ProductVariant
from vendors.models import Vendor


class PurchaseInvoice(models.Model):
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name="purchase_invoices")
    purchase_date = models.DateTimeField(default=timezone.now)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    notes = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-purchase_date", "-id"]

    def __str__(self):
        return f"Purchase #{self.pk} - {self.vendor}"


class PurchaseItem(models.Model):
    invoice = models.ForeignKey(PurchaseInvoice, related_name="items", on_delete=models.CASCADE)
    variant = models.ForeignKey(ProductVariant, related_name="purchase_items", on_delete=models.PROTECT)
    quantity = models.PositiveIntegerField()
    buying_price = models.DecimalField(max_digits=12, decimal_places=2)

    @property
    def total(self):
        return self.buying_price * self.quantity


class PurchaseReturnInvoice(models.Model):
    purchase_invoice = models.ForeignKey(PurchaseInvoice, related_name="returns", on_delete=models.PROTECT)
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name="purchase_returns")
    return_date = models.DateTimeField(default=timezone.now)
    total_refund = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-return_date", "-id"]

    def __str__(self):
        return f"Purchase return #{self.pk} for purchase #{self.purchase_invoice_id}"


class PurchaseReturnItem(models.Model):
    return_invoice = models.ForeignKey(PurchaseReturnInvoice, related_name="items", on_delete=models.CASCADE)
    variant = models.ForeignKey(ProductVariant, related_name="purchase_return_items", on_delete=models.PROTECT)
    quantity = models.PositiveIntegerField()
    refund_price = models.DecimalField(max_digits=12, decimal_places=2)

    @property
    def total(self):
        return self.refund_price * self.quantity
