from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="ordermodel",
            name="subtotal",
            field=models.DecimalField(decimal_places=10, max_digits=24),
        ),
        migrations.AlterField(
            model_name="ordermodel",
            name="discount_amount",
            field=models.DecimalField(decimal_places=10, default=0, max_digits=24),
        ),
        migrations.AlterField(
            model_name="ordermodel",
            name="shipping_cost",
            field=models.DecimalField(decimal_places=10, max_digits=24),
        ),
        migrations.AlterField(
            model_name="ordermodel",
            name="tax_amount",
            field=models.DecimalField(decimal_places=10, max_digits=24),
        ),
        migrations.AlterField(
            model_name="ordermodel",
            name="total_amount",
            field=models.DecimalField(decimal_places=10, max_digits=24),
        ),
    ]
