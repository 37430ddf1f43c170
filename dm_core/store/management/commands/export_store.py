# dm_core/store/management/commands/export_store.py
from __future__ import annotations

import json

from django.core.management.base import BaseCommand

from dm_core.store.collections import COLLECTIONS, read_collection


class Command(BaseCommand):
    help = "Dump products, patients and orders as JSON in the browser-store record format."

    def add_arguments(self, parser):
        parser.add_argument("--output", "-o", type=str, default=None, help="Write to this file instead of stdout.")
        parser.add_argument("--indent", type=int, default=2)

    def handle(self, *args, **opts):
        dump = {name: read_collection(name) for name in COLLECTIONS}
        text = json.dumps(dump, indent=opts["indent"])

        if opts["output"]:
            with open(opts["output"], "w", encoding="utf-8") as fh:
                fh.write(text)
            counts = ", ".join(f"{name}={len(dump[name])}" for name in COLLECTIONS)
            self.stdout.write(self.style.SUCCESS(f"Exported {counts} to {opts['output']}"))
        else:
            self.stdout.write(text)
