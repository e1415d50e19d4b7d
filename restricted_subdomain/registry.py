"""
Current subdomain registry.

The active subdomain lives in a ``ContextVar``, so every thread and every
asyncio task sees its own value. Outside a request or an explicit
activation no subdomain is set, and restricted models are not filtered.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterable, Iterator, Optional

from django.db import models

from .resolver import resolve_subdomain

logger = logging.getLogger(__name__)


class TenantRegistry:
    """Holds the subdomain record active for the executing request or task."""

    def __init__(self, name: str = "restricted_subdomain_current"):
        self._current: ContextVar[Optional[models.Model]] = ContextVar(
            name, default=None
        )

    def get(self) -> Optional[models.Model]:
        return self._current.get()

    def _resolve(self, value: Any, model=None, by=None) -> Optional[models.Model]:
        if isinstance(value, str):
            tenant = resolve_subdomain(value, model=model, by=by)
            if tenant is None and value:
                logger.warning("Subdomain %r not found, running without a subdomain", value)
            return tenant
        return value

    def set(
        self,
        value: Any,
        *,
        model: Optional[type[models.Model]] = None,
        by: Optional[str] = None,
    ) -> Optional[models.Model]:
        """
        Make ``value`` the current subdomain.

        Strings are looked up on the subdomain column; an unknown string
        stores ``None``. Returns the stored value.
        """
        tenant = self._resolve(value, model, by)
        self._current.set(tenant)
        logger.debug("Current subdomain set to %r", tenant)
        return tenant

    def clear(self) -> None:
        self._current.set(None)

    @contextmanager
    def activate(
        self,
        value: Any,
        *,
        model: Optional[type[models.Model]] = None,
        by: Optional[str] = None,
    ) -> Iterator[Optional[models.Model]]:
        tenant = self._resolve(value, model, by)
        token = self._current.set(tenant)
        try:
            yield tenant
        finally:
            self._current.reset(token)

    def each(
        self, tenants: Iterable[models.Model], body: Callable[[models.Model], Any]
    ) -> list[Any]:
        """
        Run ``body(tenant)`` once per tenant with that tenant active.

        Whatever was active before the loop is restored afterwards, also
        when ``body`` raises.
        """
        previous = self._current.get()
        results = []
        try:
            for tenant in tenants:
                self._current.set(tenant)
                results.append(body(tenant))
        finally:
            self._current.set(previous)
        return results


tenant_registry = TenantRegistry()


def get_current_subdomain() -> Optional[models.Model]:
    return tenant_registry.get()


def set_current_subdomain(value: Any, **kwargs: Any) -> Optional[models.Model]:
    return tenant_registry.set(value, **kwargs)


def clear_current_subdomain() -> None:
    tenant_registry.clear()
