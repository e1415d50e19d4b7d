"""
Django app configuration for restricted-subdomain.
"""

import logging

from django.apps import AppConfig as BaseAppConfig
from django.core.exceptions import FieldDoesNotExist, ImproperlyConfigured

logger = logging.getLogger(__name__)


class AppConfig(BaseAppConfig):
    """Django app configuration for restricted-subdomain."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "restricted_subdomain"
    verbose_name = "Restricted Subdomain"
    label = "restricted_subdomain"

    def ready(self):
        self._validate_configuration()

    def _validate_configuration(self):
        """Warn early when the subdomain model cannot be found."""
        from .resolver import get_subdomain_column, get_tenant_model
        from .settings import get_restricted_subdomain_settings

        settings = get_restricted_subdomain_settings()
        try:
            model = get_tenant_model(settings.through)
        except ImproperlyConfigured as e:
            logger.warning(f"Restricted subdomains are not configured: {e}")
            return

        column = get_subdomain_column(model, settings.by)
        try:
            model._meta.get_field(column)
        except FieldDoesNotExist:
            logger.warning(
                "Subdomain column %r does not exist on %s", column, model.__name__
            )
            return
        logger.debug("Restricted subdomains use %s.%s", model.__name__, column)
