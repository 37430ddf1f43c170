from django.apps import AppConfig


class ProductsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "dm_core.products"
    label = "products"

    def ready(self):
        # register event handlers
        from dm_core.products import subscribers  # noqa: F401
