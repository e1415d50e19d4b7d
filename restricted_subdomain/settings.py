"""
Restricted subdomain settings and configurations.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from django.conf import settings as django_settings

SETTINGS_NAME = "RESTRICTED_SUBDOMAIN"

_FALSE_STRINGS = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class RestrictedSubdomainSettings:
    through: Optional[str]
    by: Optional[str]
    global_subdomains: tuple[str, ...]
    extractor: Optional[Union[str, Callable[..., Optional[str]]]]
    partition_session: bool
    session_attribute: str
    sentry_tags: bool


def get_setting(key: str, default: Any = None) -> Any:
    config = getattr(django_settings, SETTINGS_NAME, None) or {}
    if not isinstance(config, dict):
        return default
    return config.get(key, default)


def _coerce_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _coerce_str(value: Any, default: Optional[str]) -> Optional[str]:
    if value is None:
        return default
    value = str(value).strip()
    return value or default


def _coerce_subdomains(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    return tuple(str(item) for item in value if item is not None)


def get_restricted_subdomain_settings(**overrides: Any) -> RestrictedSubdomainSettings:
    """
    Read ``settings.RESTRICTED_SUBDOMAIN`` and merge per-view overrides.

    Overrides whose value is ``None`` are ignored, so decorators can pass
    through every option they accept.
    """
    def pick(key: str, default: Any = None) -> Any:
        value = overrides.get(key)
        if value is not None:
            return value
        return get_setting(key, default)

    global_subdomains = overrides.get("global_subdomains")
    if global_subdomains is None:
        global_subdomains = get_setting("global", ())

    extractor = pick("extractor")
    if isinstance(extractor, str):
        extractor = _coerce_str(extractor, None)

    return RestrictedSubdomainSettings(
        through=_coerce_str(pick("through"), None),
        by=_coerce_str(pick("by"), None),
        global_subdomains=_coerce_subdomains(global_subdomains),
        extractor=extractor,
        partition_session=_coerce_bool(pick("partition_session", True), True),
        session_attribute=_coerce_str(
            pick("session_attribute", "tenant_session"), "tenant_session"
        ),
        sentry_tags=_coerce_bool(pick("sentry_tags", True), True),
    )
