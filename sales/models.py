from django.conf import settings
from django.db import models
from django.utils import timezone

from catalog.models import ProductVariant


class SalesInvoice(models.Model):
    class PaymentMethod(models.TextChoices):
        CASH = "CASH", "Cash"
        TRANSACTION = "TRANSACTION", "Transaction"

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name="sales_invoices"
    )
    sale_date = models.DateTimeField(default=timezone.now)
    customer_name = models.CharField(max_length=100, blank=True)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.CASH)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    is_returned = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-sale_date", "-id"]
        indexes = [models.Index(fields=["sale_date"], name="sales_invoice_date_idx")]

    def __str__(self):
        return f"Sale #{self.pk}"


class SalesItem(models.Model):
    invoice = models.ForeignKey(SalesInvoice, related_name="items", on_delete=models.CASCADE)
    variant = models.ForeignKey(ProductVariant, related_name="sales_items", on_delete=models.PROTECT)
    # Reduced by returns; zero once the line is fully returned.
    quantity = models.PositiveIntegerField()
    selling_price = models.DecimalField(max_digits=12, decimal_places=2)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2, default=0)  # per unit

    @property
    def unit_price(self):
        return self.selling_price - self.discount_value

    @property
    def total(self):
        return self.unit_price * self.quantity


class ReturnInvoice(models.Model):
    sales_invoice = models.ForeignKey(SalesInvoice, related_name="returns", on_delete=models.PROTECT)
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name="processed_returns"
    )
    return_date = models.DateTimeField(default=timezone.now)
    total_refund = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    notes = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-return_date", "-id"]

    def __str__(self):
        return f"Return #{self.pk} for sale #{self.sales_invoice_id}"


class ReturnItem(models.Model):
    return_invoice = models.ForeignKey(ReturnInvoice, related_name="items", on_delete=models.CASCADE)
    sales_item = models.ForeignKey(SalesItem, related_name="return_items", on_delete=models.PROTECT)
    variant = models.ForeignKey(ProductVariant, related_name="return_items", on_delete=models.PROTECT)
    quantity = models.PositiveIntegerField()
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2)
