"""
Template context processor exposing the current subdomain.
"""

from .middleware import current_subdomain, current_subdomain_symbol


def subdomain(request):
    return {
        "current_subdomain": current_subdomain(),
        "current_subdomain_symbol": current_subdomain_symbol(),
    }
