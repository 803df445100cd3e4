from django.apps import AppConfig


class MarketplaceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "marketplace"
    verbose_name = "Campus Marketplace"

    def ready(self):
        """Import signals when app is ready."""
        import marketplace.signals  # noqa: F401
