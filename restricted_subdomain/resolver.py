"""
Subdomain resolution logic.
"""

import logging
from typing import Any, Optional

from django.apps import apps
from django.core.exceptions import ImproperlyConfigured
from django.db import models

from .settings import get_setting

logger = logging.getLogger(__name__)

DEFAULT_SUBDOMAIN_COLUMN = "code"


def get_tenant_model(label: Optional[str] = None) -> type[models.Model]:
    """
    Return the model that represents subdomains.

    Uses ``label`` (``"app_label.ModelName"``), then the ``through``
    setting, then the only installed concrete ``SubdomainModel`` subclass.
    """
    from .models import SubdomainModel

    label = label or get_setting("through")
    if label:
        if isinstance(label, type) and issubclass(label, models.Model):
            return label
        try:
            return apps.get_model(str(label))
        except (LookupError, ValueError) as exc:
            raise ImproperlyConfigured(
                f"Subdomain model '{label}' is not installed: {exc}"
            ) from exc

    candidates = [
        model
        for model in apps.get_models()
        if issubclass(model, SubdomainModel) and not model._meta.proxy
    ]
    if len(candidates) != 1:
        raise ImproperlyConfigured(
            "Set RESTRICTED_SUBDOMAIN['through'] to the subdomain model label; "
            f"found {len(candidates)} SubdomainModel subclasses."
        )
    return candidates[0]


def _is_configured_model(model: type[models.Model]) -> bool:
    label = get_setting("through")
    if not label:
        return True
    if isinstance(label, type):
        return issubclass(model, label)
    return model._meta.label_lower == str(label).strip().lower()


def get_subdomain_column(model: type[models.Model], by: Optional[str] = None) -> str:
    """
    Return the column holding subdomain identifiers on ``model``.

    ``by`` wins, then ``RESTRICTED_SUBDOMAIN['by']`` for the configured
    subdomain model, then ``SubdomainMeta.by``, then ``"code"``.
    """
    if by:
        return by
    if _is_configured_model(model):
        configured = str(get_setting("by") or "").strip()
        if configured:
            return configured
    meta = getattr(model, "SubdomainMeta", None)
    return getattr(meta, "by", None) or DEFAULT_SUBDOMAIN_COLUMN


def resolve_subdomain(
    raw: Any,
    *,
    model: Optional[type[models.Model]] = None,
    by: Optional[str] = None,
) -> Optional[models.Model]:
    """
    Look up the subdomain record matching ``raw`` exactly.

    Returns ``None`` when nothing matches; callers decide whether that is
    fatal. Model instances are returned unchanged.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, models.Model):
        return raw

    model = model or get_tenant_model()
    column = get_subdomain_column(model, by)
    tenant = model._default_manager.filter(**{column: raw}).first()
    if tenant is None:
        logger.debug("No %s with %s=%r", model.__name__, column, raw)
    return tenant


def extract_subdomain(request: Any) -> Optional[str]:
    """
    Return the first dot-delimited label of the request host.

    Subdomains therefore never contain a period.
    """
    host = request.get_host()
    host = str(host or "").split(":", 1)[0]
    if not host:
        return None
    return host.split(".")[0] or None


def get_subdomain_symbol(tenant: Any, by: Optional[str] = None) -> Optional[str]:
    if tenant is None:
        return None
    column = get_subdomain_column(type(tenant), by)
    value = getattr(tenant, column, None)
    if value is None:
        return None
    return str(value)
