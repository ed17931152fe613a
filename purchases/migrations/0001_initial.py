from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        ("vendors", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PurchaseInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("purchase_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("total_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("notes", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("vendor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="purchase_invoices", to="vendors.vendor")),
            ],
            options={"ordering": ["-purchase_date", "-id"]},
        ),
        migrations.CreateModel(
            name="PurchaseItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("buying_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="purchases.purchaseinvoice")),
                ("variant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="purchase_items", to="catalog.productvariant")),
            ],
        ),
        migrations.CreateModel(
            name="PurchaseReturnInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("return_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("total_refund", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("purchase_invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="returns", to="purchases.purchaseinvoice")),
                ("vendor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="purchase_returns", to="vendors.vendor")),
            ],
            options={"ordering": ["-return_date", "-id"]},
        ),
        migrations.CreateModel(
            name="PurchaseReturnItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("refund_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("return_invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="purchases.purchasereturninvoice")),
                ("variant", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="purchase_return_items", to="catalog.productvariant")),
            ],
        ),
    ]
