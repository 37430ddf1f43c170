# dm_core/store/management/commands/seed_store.py

from django.core.management.base import BaseCommand

from dm_core.store.collections import ensure_seeded


class Command(BaseCommand):
    help = "Seed empty store collections with sample products, patients and an order (idempotent)."

    def handle(self, *args, **options):
        seeded = ensure_seeded()
        if seeded:
            self.stdout.write(self.style.SUCCESS(f"Seeded: {', '.join(seeded)}"))
        else:
            self.stdout.write("Nothing to seed; all collections already hold records.")
