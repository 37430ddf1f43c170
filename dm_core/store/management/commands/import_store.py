# dm_core/store/management/commands/import_store.py
from __future__ import annotations

import json

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from dm_core.store.collections import COLLECTIONS, StoreError, write_collection


class Command(BaseCommand):
    help = (
        "Replace store collections from a JSON dump ({products: [...], patients: [...], orders: [...]}). "
        "Values may also be JSON strings, as copied out of browser localStorage. "
        "Collections missing from the file are left untouched."
    )

    def add_arguments(self, parser):
        parser.add_argument("path", type=str)

    def handle(self, *args, **opts):
        try:
            with open(opts["path"], encoding="utf-8") as fh:
                dump = json.load(fh)
        except (OSError, ValueError) as e:
            raise CommandError(f"Cannot read {opts['path']}: {e}")

        if not isinstance(dump, dict):
            raise CommandError("Expected a JSON object keyed by collection name.")

        written = {}
        try:
            with transaction.atomic():
                for name in COLLECTIONS:
                    if name not in dump:
                        continue
                    records = dump[name]
                    if isinstance(records, str):
                        records = json.loads(records)
                    if not isinstance(records, list):
                        raise CommandError(f"'{name}' must be a list of records.")
                    written[name] = write_collection(name, records)
        except (StoreError, ValueError) as e:
            raise CommandError(str(e))

        summary = ", ".join(f"{k}={v}" for k, v in written.items()) or "nothing"
        self.stdout.write(self.style.SUCCESS(f"Imported {summary}"))
