"""
GraphQL integration for restricted subdomains.
"""

from functools import wraps
from typing import Callable

from graphql import GraphQLError

from .exceptions import SubdomainNotFound
from .middleware import current_subdomain, require_no_subdomain, require_subdomain


class SubdomainContextMiddleware:
    """
    Graphene middleware exposing the current subdomain as
    ``info.context.subdomain``.
    """

    def resolve(self, next_resolver, root, info, **kwargs):
        context = getattr(info, "context", None)
        if context is not None and getattr(context, "subdomain", None) is None:
            context.subdomain = current_subdomain()
        return next_resolver(root, info, **kwargs)


def _not_found_error(exc: SubdomainNotFound) -> GraphQLError:
    return GraphQLError(str(exc), extensions={"code": "NOT_FOUND"})


def subdomain_required(resolver: Callable) -> Callable:
    @wraps(resolver)
    def wrapper(root, info, *args, **kwargs):
        try:
            require_subdomain()
        except SubdomainNotFound as exc:
            raise _not_found_error(exc) from exc
        return resolver(root, info, *args, **kwargs)

    return wrapper


def no_subdomain_required(resolver: Callable) -> Callable:
    @wraps(resolver)
    def wrapper(root, info, *args, **kwargs):
        try:
            require_no_subdomain()
        except SubdomainNotFound as exc:
            raise _not_found_error(exc) from exc
        return resolver(root, info, *args, **kwargs)

    return wrapper
