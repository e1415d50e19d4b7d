"""
Request scoping for restricted subdomains.

``SubdomainMiddleware`` must come after Django's ``SessionMiddleware`` when
session partitioning is enabled.
"""

import logging
from functools import cached_property
from typing import Any, Callable, Optional

import sentry_sdk
from django.core.exceptions import ImproperlyConfigured
from django.db import models
from django.utils.module_loading import import_string

from .exceptions import SubdomainNotFound
from .registry import get_current_subdomain, tenant_registry
from .resolver import (
    extract_subdomain,
    get_subdomain_symbol,
    get_tenant_model,
    resolve_subdomain,
)
from .session import PartitionedSession
from .settings import RestrictedSubdomainSettings, get_restricted_subdomain_settings

logger = logging.getLogger(__name__)

SENTRY_TAG = "subdomain"


def current_subdomain() -> Optional[models.Model]:
    """Return the current subdomain record, or ``None``."""
    return get_current_subdomain()


def current_subdomain_symbol(by: Optional[str] = None) -> Optional[str]:
    """Return the current subdomain code, e.g. ``"acme"`` for acme.example.com."""
    if by is None:
        by = get_restricted_subdomain_settings().by
    return get_subdomain_symbol(get_current_subdomain(), by)


def require_subdomain() -> None:
    if get_current_subdomain() is None:
        raise SubdomainNotFound(message="A subdomain is required")


def require_no_subdomain() -> None:
    tenant = get_current_subdomain()
    if tenant is not None:
        raise SubdomainNotFound(
            get_subdomain_symbol(tenant), message="Only available without a subdomain"
        )


def _load_extractor(extractor: Any) -> Callable[[Any], Optional[str]]:
    if extractor is None:
        return extract_subdomain
    if callable(extractor):
        return extractor
    try:
        return import_string(extractor)
    except ImportError as exc:
        raise ImproperlyConfigured(
            f"Cannot import subdomain extractor '{extractor}': {exc}"
        ) from exc


class RequestScopeGuard:
    """
    Resolves the request subdomain and keeps it current while the handler runs.

    The current subdomain is cleared when the handler returns or raises,
    so a reused worker never sees the previous request's subdomain.
    """

    def __init__(self, settings: Optional[RestrictedSubdomainSettings] = None, **overrides: Any):
        self.settings = settings or get_restricted_subdomain_settings(**overrides)
        self.extractor = _load_extractor(self.settings.extractor)

    @cached_property
    def tenant_model(self) -> type[models.Model]:
        return get_tenant_model(self.settings.through)

    def extract_identifier(self, request: Any) -> Optional[str]:
        return self.extractor(request)

    def is_global(self, subdomain: Optional[str]) -> bool:
        return subdomain in self.settings.global_subdomains

    def current_subdomain_symbol(self) -> Optional[str]:
        return get_subdomain_symbol(get_current_subdomain(), self.settings.by)

    def activate(self, request: Any) -> Optional[models.Model]:
        subdomain = self.extract_identifier(request)
        if self.is_global(subdomain):
            logger.debug("Global subdomain %r, running unscoped", subdomain)
            return tenant_registry.set(None)

        tenant = resolve_subdomain(
            subdomain, model=self.tenant_model, by=self.settings.by
        )
        if tenant is None:
            logger.info("Subdomain %r not found", subdomain)
            raise SubdomainNotFound(subdomain)
        return tenant_registry.set(tenant)

    def bind_request(self, request: Any, tenant: Optional[models.Model]) -> None:
        symbol = get_subdomain_symbol(tenant, self.settings.by)
        request.subdomain = tenant
        request.subdomain_symbol = symbol
        if self.settings.partition_session and hasattr(request, "session"):
            setattr(
                request,
                self.settings.session_attribute,
                PartitionedSession(request.session, self.current_subdomain_symbol),
            )
        if self.settings.sentry_tags and symbol is not None:
            sentry_sdk.get_isolation_scope().set_tag(SENTRY_TAG, symbol)

    def release(self) -> None:
        tenant_registry.clear()
        if self.settings.sentry_tags:
            sentry_sdk.get_isolation_scope().remove_tag(SENTRY_TAG)

    def within_request(self, request: Any, handler: Callable[[Any], Any]) -> Any:
        try:
            tenant = self.activate(request)
            self.bind_request(request, tenant)
            return handler(request)
        finally:
            self.release()


class SubdomainMiddleware:
    """Django middleware applying ``RequestScopeGuard`` to every request."""

    def __init__(self, get_response):
        self.get_response = get_response
        self.guard = RequestScopeGuard()

    def __call__(self, request):
        return self.guard.within_request(request, self.get_response)
