from django.db import models
from catalog.models import ProductVariant


class StockMovement(models.Model):
    variant = models.ForeignKey(ProductVariant, related_name="movements", on_delete=models.CASCADE)
    quantity = models.IntegerField()  # positive for stock_in, negative for stock_out
    stock_after = models.IntegerField()
    reason = models.CharField(max_length=255)  # "Purchase #12", "Sale #40 deleted"
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["variant", "created_at"], name="inventory_movement_variant_idx"),
        ]

    def __str__(self):
        return f"{self.variant_id} {self.quantity:+d} ({self.reason})"
