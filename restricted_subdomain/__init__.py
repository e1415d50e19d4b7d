"""
Restricted subdomains for Django.

Scopes models, sessions and requests to the tenant named by the request
subdomain.
"""

__version__ = "0.1.0"
