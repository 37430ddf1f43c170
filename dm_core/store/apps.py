from django.apps import AppConfig
from django.conf import settings
from django.db.models.signals import post_migrate


def _auto_seed(sender, **kwargs):
    # post_migrate is only sent for apps with models; orders is the last
    # collection to exist, so seed once its tables are in place.
    if sender.label != "orders" or not getattr(settings, "DM_AUTO_SEED", False):
        return
    from dm_core.store.collections import ensure_seeded

    ensure_seeded()


class StoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "dm_core.store"
    label = "store"

    def ready(self) -> None:
        post_migrate.connect(_auto_seed, dispatch_uid="dm_core.store.auto_seed")
