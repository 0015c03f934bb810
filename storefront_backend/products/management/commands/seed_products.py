from decimal import Decimal

from django.core.management.base import BaseCommand

from products.models import Product


PRODUCTS_DATA = [
    ("CBL-USBC-2M", "USB-C Cable 2m", "9.99", 120),
    ("PWR-65W-GAN", "65W GaN Charger", "39.00", 40),
    ("HDP-NC-700", "Noise Cancelling Headphones", "199.00", 15),
    ("KBD-MECH-TKL", "Mechanical Keyboard TKL", "89.50", 25),
    ("MSE-WL-PRO", "Wireless Mouse Pro", "49.90", 60),
    ("SSD-NVME-1T", "NVMe SSD 1TB", "79.00", 30),
]


class Command(BaseCommand):
    help = "Seed demo catalog products with stock"

    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding products..."))

        created_count = 0

        for sku, name, price, stock in PRODUCTS_DATA:
            _, created = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "unit_price": Decimal(price),
                    "stock": stock,
                },
            )
            if created:
                created_count += 1

        self.stdout.write(
            self.style.SUCCESS(f"Products seeded ({created_count} created).")
        )
