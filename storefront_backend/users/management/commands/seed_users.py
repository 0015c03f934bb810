# users/management/commands/seed_users.py

from __future__ import annotations

from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from permissions.roles import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_EMPLOYEE


@dataclass(frozen=True)
class SeedUserSpec:
    label: str
    role: str
    email: str
    first_name: str = ""
    last_name: str = ""


SEED_USERS = [
    SeedUserSpec("Admin", ROLE_ADMIN, "admin@example.com", "System", "Admin"),
    SeedUserSpec("Employee", ROLE_EMPLOYEE, "employee@example.com", "Counter", "Staff"),
    SeedUserSpec("Customer", ROLE_CUSTOMER, "customer@example.com", "Test", "Customer"),
]


class Command(BaseCommand):
    help = "Seed demo accounts (admin, employee, customer)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            type=str,
            default="Pass1234!",
            help="Password for seeded users (default: Pass1234!)",
        )
        parser.add_argument(
            "--force-password",
            action="store_true",
            help="Reset password for existing seeded users too.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password = options.get("password") or ""
        force_password = bool(options.get("force_password"))

        if not password or len(password) < 6:
            raise CommandError("--password must be at least 6 characters.")

        User = get_user_model()

        created_count = 0
        updated_count = 0

        for spec in SEED_USERS:
            is_admin = spec.role == ROLE_ADMIN
            is_staff = spec.role in {ROLE_ADMIN, ROLE_EMPLOYEE}

            user, created = User.objects.get_or_create(
                email=spec.email,
                defaults={
                    "role": spec.role,
                    "is_staff": is_staff,
                    "is_superuser": is_admin,
                    "is_active": True,
                    "first_name": spec.first_name,
                    "last_name": spec.last_name,
                },
            )

            dirty = False

            if user.role != spec.role:
                user.role = spec.role
                dirty = True

            if user.is_staff != is_staff:
                user.is_staff = is_staff
                dirty = True

            if user.is_superuser != is_admin:
                user.is_superuser = is_admin
                dirty = True

            if created or force_password:
                user.set_password(password)
                dirty = True

            if dirty:
                user.save()
                if not created:
                    updated_count += 1

            if created:
                created_count += 1
                self.stdout.write(f"created: {spec.label} ({spec.role}) -> {spec.email}")
            else:
                self.stdout.write(f"exists:  {spec.label} ({spec.role}) -> {spec.email}")

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(f"Created: {created_count}")
        self.stdout.write(f"Updated: {updated_count}")
