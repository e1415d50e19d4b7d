"""
View decorators for restricted subdomains.
"""

from functools import wraps
from typing import Any, Callable, Iterable, Optional, Union

from .middleware import RequestScopeGuard, require_no_subdomain, require_subdomain


def use_restricted_subdomains(
    view_func: Optional[Callable] = None,
    *,
    through: Optional[str] = None,
    by: Optional[str] = None,
    global_subdomains: Optional[Union[str, Iterable[str]]] = None,
    extractor: Optional[Union[str, Callable[[Any], Optional[str]]]] = None,
):
    """
    Scope a single view to the request subdomain.

    Options override ``settings.RESTRICTED_SUBDOMAIN`` for this view::

        @use_restricted_subdomains(through="agencies.Agency", by="code",
                                   global_subdomains=["www", "login"])
        def dashboard(request):
            ...
    """

    def decorator(func):
        @wraps(func)
        def _wrapped_view(request, *args, **kwargs):
            guard = RequestScopeGuard(
                through=through,
                by=by,
                global_subdomains=global_subdomains,
                extractor=extractor,
            )
            return guard.within_request(
                request, lambda req: func(req, *args, **kwargs)
            )

        return _wrapped_view

    if view_func is not None:
        return decorator(view_func)
    return decorator


def subdomain_required(view_func: Callable) -> Callable:
    """Reject the request with a 404 unless a subdomain is active."""

    @wraps(view_func)
    def _wrapped_view(request, *args, **kwargs):
        require_subdomain()
        return view_func(request, *args, **kwargs)

    return _wrapped_view


def no_subdomain_required(view_func: Callable) -> Callable:
    """Reject the request with a 404 when a subdomain is active."""

    @wraps(view_func)
    def _wrapped_view(request, *args, **kwargs):
        require_no_subdomain()
        return view_func(request, *args, **kwargs)

    return _wrapped_view
