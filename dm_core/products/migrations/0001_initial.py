from decimal import Decimal

from django.db import migrations, models

import dm_core.common.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.CharField(
                        default=dm_core.common.models.new_record_id,
                        editable=False,
                        max_length=64,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("position", models.PositiveIntegerField(db_index=True, default=0)),
                ("name", models.CharField(max_length=255)),
                ("thc_percent", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("cbd_percent", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("stock_grams", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("price_per_gram", models.DecimalField(decimal_places=2, max_digits=10)),
            ],
            options={
                "db_table": "products_product",
                "ordering": ["position", "name"],
            },
        ),
        migrations.AddConstraint(
            model_name="product",
            constraint=models.CheckConstraint(
                condition=models.Q(stock_grams__gte=0),
                name="ck_product_stock_non_negative",
            ),
        ),
        migrations.AddConstraint(
            model_name="product",
            constraint=models.CheckConstraint(
                condition=models.Q(price_per_gram__gt=0),
                name="ck_product_price_positive",
            ),
        ),
    ]
