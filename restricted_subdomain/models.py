"""
Subdomain-aware models and managers.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from django.core.exceptions import FieldDoesNotExist, ImproperlyConfigured, ValidationError
from django.db import models

from .registry import get_current_subdomain, tenant_registry
from .resolver import get_subdomain_column, get_subdomain_symbol

logger = logging.getLogger(__name__)

DEFAULT_THROUGH = "agency"
MISSING_SUBDOMAIN_MESSAGE = "is missing"


@dataclass(frozen=True)
class RestrictionConfig:
    through: str
    delegate: Optional[str] = None

    @property
    def is_delegated(self) -> bool:
        return bool(self.delegate)

    @property
    def lookup(self) -> str:
        if self.delegate:
            return f"{self.delegate}__{self.through}"
        return self.through


_restriction_configs: dict[type[models.Model], RestrictionConfig] = {}


def _check_relation(model: type[models.Model], name: str, option: str) -> models.Field:
    try:
        field = model._meta.get_field(name)
    except FieldDoesNotExist as exc:
        raise ImproperlyConfigured(
            f"{model.__name__}: {option}='{name}' does not name a field"
        ) from exc
    if not field.is_relation:
        raise ImproperlyConfigured(
            f"{model.__name__}: {option}='{name}' is not a relation"
        )
    return field


def configure_restriction(
    model: type[models.Model],
    *,
    through: Optional[str] = None,
    delegate: Optional[str] = None,
) -> RestrictionConfig:
    """
    Mark ``model`` as restricted to the current subdomain.

    Options default to the model's ``SubdomainMeta``. A model is
    configured once; later calls return the first configuration.
    """
    if not (isinstance(model, type) and issubclass(model, RestrictedSubdomainModel)):
        raise ImproperlyConfigured(
            f"{getattr(model, '__name__', model)} must subclass RestrictedSubdomainModel "
            "to be restricted to a subdomain"
        )

    existing = _restriction_configs.get(model)
    if existing is not None:
        if (through and through != existing.through) or (
            delegate and delegate != existing.delegate
        ):
            logger.debug(
                "%s is already restricted through %r; ignoring new options",
                model.__name__,
                existing.through,
            )
        return existing

    meta = getattr(model, "SubdomainMeta", None)
    through = through or getattr(meta, "through", None) or DEFAULT_THROUGH
    delegate = delegate or getattr(meta, "delegate", None) or None

    if delegate:
        field = _check_relation(model, delegate, "delegate")
        _check_relation(field.related_model, through, "through")
    else:
        _check_relation(model, through, "through")

    config = RestrictionConfig(through=through, delegate=delegate)
    _restriction_configs[model] = config
    logger.debug("Restricted %s to subdomain via %s", model.__name__, config.lookup)
    return config


def get_restriction_config(model: type[models.Model]) -> RestrictionConfig:
    return _restriction_configs.get(model) or configure_restriction(model)


def is_restricted_to_subdomain(model: type[models.Model]) -> bool:
    return isinstance(model, type) and issubclass(model, RestrictedSubdomainModel)


def _delegate_filter(
    model: type[models.Model], config: RestrictionConfig, tenant: Any
) -> dict[str, Any]:
    field = model._meta.get_field(config.delegate)
    owned = field.related_model._base_manager.filter(**{config.through: tenant.pk})
    if field.auto_created and not field.concrete:
        # reverse association: delegate rows point back at ``model``
        return {"pk__in": owned.values(field.remote_field.name)}
    return {f"{config.delegate}__in": owned.values("pk")}


def apply_subdomain_restriction(
    queryset: models.QuerySet, config: RestrictionConfig, tenant: Any
) -> models.QuerySet:
    """
    Constrain ``queryset`` to ``tenant``.

    With no tenant the queryset is returned unchanged. Delegated models
    keep the rows referenced by at least one of the tenant's delegate
    rows, each row once.
    """
    if tenant is None:
        return queryset
    if config.is_delegated:
        return queryset.filter(**_delegate_filter(queryset.model, config, tenant))
    return queryset.filter(**{config.lookup: tenant.pk})


class RestrictedSubdomainQuerySet(models.QuerySet):
    def for_subdomain(self, tenant: Any):
        if tenant is None:
            return self.none()
        return apply_subdomain_restriction(
            self, get_restriction_config(self.model), tenant
        )

    def bulk_create(self, objs, *args, **kwargs):
        """Stamp the current subdomain on every object before inserting."""
        objs = list(objs)
        for obj in objs:
            obj._stamp_restricted_subdomain()
        return super().bulk_create(objs, *args, **kwargs)


class RestrictedSubdomainManager(models.Manager.from_queryset(RestrictedSubdomainQuerySet)):
    """
    Default manager for restricted models.

    Every queryset starts filtered to the current subdomain, and callers
    compose further filters on top. When no subdomain is active (shell,
    management commands, global subdomains) nothing is filtered and every
    row is visible. Batch code must activate a subdomain explicitly.
    """

    def get_queryset(self):
        queryset = super().get_queryset()
        config = get_restriction_config(self.model)
        return apply_subdomain_restriction(queryset, config, get_current_subdomain())


class SubdomainModel(models.Model):
    """
    Abstract base for the model that represents subdomains.

    The subdomain column defaults to ``code``; override it with
    ``SubdomainMeta.by``. Index that column, it is validated for presence
    and uniqueness.
    """

    class SubdomainMeta:
        by = "code"

    class Meta:
        abstract = True

    @classmethod
    def subdomain_column(cls) -> str:
        return get_subdomain_column(cls)

    @property
    def subdomain_symbol(self) -> Optional[str]:
        return get_subdomain_symbol(self)

    def clean(self):
        super().clean()
        column = self.subdomain_column()
        value = getattr(self, column, None)
        if value in (None, ""):
            raise ValidationError({column: "can't be blank"})
        taken = (
            type(self)._default_manager.filter(**{column: value})
            .exclude(pk=self.pk)
            .exists()
        )
        if taken:
            raise ValidationError({column: "has already been taken"})

    @classmethod
    def current(cls):
        return get_current_subdomain()

    @classmethod
    def set_current(cls, value: Any):
        return tenant_registry.set(value, model=cls)

    @classmethod
    def with_subdomain(cls, value: Any):
        return tenant_registry.activate(value, model=cls)

    @classmethod
    def without_subdomain(cls):
        return tenant_registry.activate(None)

    @classmethod
    def each_subdomain(cls, body: Callable[[models.Model], Any]) -> list[Any]:
        """Run ``body`` once per subdomain, for console and scheduled tasks."""
        return tenant_registry.each(list(cls._default_manager.all()), body)


class RestrictedSubdomainModel(models.Model):
    """
    Abstract base for models restricted to the current subdomain.

    Declare the association in ``SubdomainMeta``::

        class Widget(RestrictedSubdomainModel):
            agency = models.ForeignKey(Agency, on_delete=models.CASCADE)

            class SubdomainMeta:
                through = "agency"

    Models that reach the subdomain only through another restricted model
    set ``delegate`` to the reverse association name instead of declaring
    a foreign key; their queries are joined against the delegate.
    """

    objects = RestrictedSubdomainManager()

    class Meta:
        abstract = True

    def _stamp_restricted_subdomain(self) -> None:
        config = get_restriction_config(type(self))
        if config.is_delegated or not self._state.adding:
            return
        tenant = get_current_subdomain()
        setattr(self, config.through, tenant)
        if tenant is None:
            raise ValidationError({config.through: [MISSING_SUBDOMAIN_MESSAGE]})

    def clean_fields(self, exclude=None):
        errors = {}
        exclude = set(exclude or ())
        try:
            self._stamp_restricted_subdomain()
        except ValidationError as exc:
            errors = exc.update_error_dict(errors)
            exclude.add(get_restriction_config(type(self)).through)
        try:
            super().clean_fields(exclude=exclude)
        except ValidationError as exc:
            errors = exc.update_error_dict(errors)
        if errors:
            raise ValidationError(errors)

    def save(self, *args, **kwargs):
        self._stamp_restricted_subdomain()
        super().save(*args, **kwargs)
