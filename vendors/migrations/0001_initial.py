from django.db import migrations, models
import django.db.models.functions.text
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Vendor",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("code_prefix", models.CharField(max_length=10)),
                ("address", models.CharField(blank=True, max_length=255)),
                ("contact_info", models.CharField(blank=True, max_length=200, null=True)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.AddConstraint(
            model_name="vendor",
            constraint=models.UniqueConstraint(django.db.models.functions.text.Lower("name"), name="vendors_vendor_name_ci_unique"),
        ),
    ]
