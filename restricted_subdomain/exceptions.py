"""
Exceptions raised by restricted-subdomain scoping.
"""

from typing import Optional

from django.http import Http404


class RestrictedSubdomainError(Exception):
    """Base class for restricted-subdomain errors."""


class SubdomainNotFound(RestrictedSubdomainError, Http404):
    """
    Raised when a request subdomain does not match any tenant, or when a
    view requires (or forbids) an active subdomain and that expectation
    is not met.

    Subclasses ``Http404`` so Django answers with a "not found" response.
    """

    def __init__(self, subdomain: Optional[str] = None, message: Optional[str] = None):
        self.subdomain = subdomain
        if message is None:
            if subdomain:
                message = f"Subdomain '{subdomain}' not found"
            else:
                message = "Subdomain not found"
        super().__init__(message)
