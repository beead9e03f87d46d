from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.products.models import Product

SAMPLE_PRODUCTS = [
    ("Sample Product 1", "First sample product", Decimal("99.99"), 100),
    ("Sample Product 2", "Second sample product", Decimal("149.99"), 50),
]


class Command(BaseCommand):
    help = "Seed database with an administrator and sample products."

    def add_arguments(self, parser):
        parser.add_argument(
            "--admin-password",
            default="admin123",
            help="Password for the seeded 'admin' user.",
        )

    def handle(self, *args, **options):
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users(options["admin_password"])
        products_created = self._seed_products()

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"products={products_created}"
            )
        )

    def _seed_users(self, admin_password: str) -> int:
        User = get_user_model()
        if User.objects.filter(username="admin").exists():
            return 0
        User.objects.create_superuser(
            "admin", email="admin@example.com", password=admin_password
        )
        return 1

    def _seed_products(self) -> int:
        self.stdout.write("Creating products...")
        created = 0
        for name, description, price, stock in SAMPLE_PRODUCTS:
            _, was_created = Product.objects.get_or_create(
                name=name,
                deleted_at=None,
                defaults={
                    "description": description,
                    "price": price,
                    "stock_quantity": stock,
                },
            )
            created += int(was_created)
        return created
