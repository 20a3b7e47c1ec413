# care/management/commands/ensure_demo_users.py
from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password

from care.models import User
from care.services.stats import invalidate_role_counts

DEMO_SET = [
    ("admin@caresora.test", "Asha Admin", "admin"),
    ("doctor@caresora.test", "Dr. Devi Rao", "doctor"),
    ("worker@caresora.test", "Ravi Worker", "worker"),
    ("patient@caresora.test", "Meena Patient", "patient"),
]
DEMO_VILLAGE = "Rampur"


class Command(BaseCommand):
    help = "Ensure one demo user per role exists with a known password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="Caresora#2024")

    def handle(self, *args, **opts):
        password = make_password(opts["password"])
        for email, name, role in DEMO_SET:
            u, created = User.objects.get_or_create(
                username=email,
                defaults={
                    "email": email,
                    "name": name,
                    "role": role,
                    "village": DEMO_VILLAGE,
                    "password": password,
                    "is_active": True,
                },
            )
            if not created:
                # reset password, role and active flag on every run
                u.password = password
                u.role = role
                u.is_active = True
                u.save(update_fields=["password", "role", "is_active"])
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({role})"))
        invalidate_role_counts()
        self.stdout.write(self.style.SUCCESS("All demo users ensured."))
