import uuid
from django.db import models
from django.db.models.functions import Lower


class Vendor(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    code_prefix = models.CharField(max_length=10)
    address = models.CharField(max_length=255, blank=True)
    contact_info = models.CharField(max_length=200, blank=True, null=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(Lower("name"), name="vendors_vendor_name_ci_unique"),
        ]

    def __str__(self):
        return self.name
