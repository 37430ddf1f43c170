# dm_core/iam/management/commands/ensure_roles.py

from django.core.management.base import BaseCommand
from django.contrib.auth.models import Group

from dm_core.iam.session import Role


class Command(BaseCommand):
    help = "Ensure the STAFF and ADMIN role groups exist (idempotent)."

    def handle(self, *args, **options):
        created = 0
        for name in Role.values:
            _, was_created = Group.objects.get_or_create(name=name)
            created += 1 if was_created else 0

        self.stdout.write(self.style.SUCCESS(f"Roles ensured. Newly created: {created}"))
