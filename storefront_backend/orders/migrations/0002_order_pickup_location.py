from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="order",
            name="pickup_location",
            field=models.CharField(
                blank=True,
                default="",
                help_text="Store counter where a store pickup order is collected",
                max_length=255,
            ),
        ),
    ]
