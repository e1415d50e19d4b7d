"""
Class-based view support for restricted subdomains.
"""

from typing import Any, Optional

from .middleware import RequestScopeGuard, current_subdomain
from .resolver import extract_subdomain


class RestrictedSubdomainViewMixin:
    """
    Scope a class-based view to the request subdomain.

    Class attributes override ``settings.RESTRICTED_SUBDOMAIN``. Override
    ``get_request_subdomain`` to read the subdomain from somewhere other
    than the host, e.g. in browser tests.
    """

    subdomain_through: Optional[str] = None
    subdomain_by: Optional[str] = None
    global_subdomains: Optional[list[str]] = None

    def get_request_subdomain(self, request: Any) -> Optional[str]:
        return extract_subdomain(request)

    def get_subdomain_guard(self) -> RequestScopeGuard:
        return RequestScopeGuard(
            through=self.subdomain_through,
            by=self.subdomain_by,
            global_subdomains=self.global_subdomains,
            extractor=self.get_request_subdomain,
        )

    @property
    def current_subdomain(self):
        return current_subdomain()

    @property
    def session(self):
        attribute = self.subdomain_guard.settings.session_attribute
        return getattr(self.request, attribute, self.request.session)

    def dispatch(self, request, *args, **kwargs):
        parent_dispatch = super().dispatch
        self.subdomain_guard = self.get_subdomain_guard()
        return self.subdomain_guard.within_request(
            request, lambda req: parent_dispatch(req, *args, **kwargs)
        )
