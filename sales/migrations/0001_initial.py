from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SalesInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("sale_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("customer_name", models.CharField(blank=True, max_length=100)),
                ("payment_method", models.CharField(choices=[("CASH", "Cash"), ("TRANSACTION", "Transaction")], default="CASH", max_length=20)),
                ("total_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("is_returned", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("seller", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="sales_invoices", to=settings.AUTH_USER_MODEL)),
            ],
            options={"ordering": ["-sale_date", "-id"]},
        ),
        migrations.AddIndex(
            model_name="salesinvoice",
            index=models.Index(fields=["sale_date"], name="sales_invoice_date_idx"),
        ),
        migrations.CreateModel(
            name="SalesItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("selling_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("discount_value", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="sales.salesinvoice")),
                ("variant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="sales_items", to="catalog.productvariant")),
            ],
        ),
        migrations.CreateModel(
            name="ReturnInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("return_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("total_refund", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("notes", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("processed_by", models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="processed_returns", to=settings.AUTH_USER_MODEL)),
                ("sales_invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="returns", to="sales.salesinvoice")),
            ],
            options={"ordering": ["-return_date", "-id"]},
        ),
        migrations.CreateModel(
            name="ReturnItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("refund_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("return_invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="sales.returninvoice")),
                ("sales_item", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="return_items", to="sales.salesitem")),
                ("variant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="return_items", to="catalog.productvariant")),
            ],
        ),
    ]
