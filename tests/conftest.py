import pytest

from restricted_subdomain.registry import tenant_registry


@pytest.fixture(autouse=True)
def _clear_current_subdomain():
    tenant_registry.clear()
    yield
    tenant_registry.clear()
