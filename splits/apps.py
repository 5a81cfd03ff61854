from django.apps import AppConfig
import logging


class SplitsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "splits"

    def ready(self):
        """Wire model signals into the change feed"""
        from django.conf import settings
        from . import signals  # noqa: F401

        logger = logging.getLogger('splits')
        logger.info(f"claimsplit started - DEBUG={settings.DEBUG}")
