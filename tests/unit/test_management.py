from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings

from restricted_subdomain.registry import get_current_subdomain, tenant_registry
from tests.models import Agency, Widget

pytestmark = pytest.mark.unit


class TestEachSubdomainCommand(TestCase):
    def setUp(self):
        self.acme = Agency.objects.create(code="acme")
        self.beta = Agency.objects.create(code="beta")
        with tenant_registry.activate(self.acme):
            Widget.objects.create(name="anvil")
            Widget.objects.create(name="rocket")
        with tenant_registry.activate(self.beta):
            Widget.objects.create(name="hammer")

    def _run(self, *args, **options):
        out = StringIO()
        call_command("each_subdomain", *args, stdout=out, stderr=StringIO(), **options)
        return out.getvalue()

    def test_runs_once_per_subdomain(self):
        output = self._run("record_subdomain")
        self.assertIn("acme:2", output)
        self.assertIn("beta:1", output)
        self.assertLess(output.index("acme:2"), output.index("beta:1"))
        self.assertIsNone(get_current_subdomain())

    def test_only(self):
        output = self._run("record_subdomain", only="beta")
        self.assertNotIn("acme:", output)
        self.assertIn("beta:1", output)

    def test_restores_active_subdomain(self):
        tenant_registry.set(self.beta)
        self._run("record_subdomain")
        self.assertEqual(get_current_subdomain(), self.beta)

    def test_failure_stops(self):
        with self.assertRaises(CommandError):
            self._run("record_subdomain", "--fail-on", "acme")

    def test_keep_going_reports_failures(self):
        with self.assertRaises(CommandError) as ctx:
            self._run("record_subdomain", "--fail-on", "acme", keep_going=True)
        self.assertIn("acme", str(ctx.exception))

    @override_settings(RESTRICTED_SUBDOMAIN={"through": "tests.Agency", "by": "name"})
    def test_uses_configured_column(self):
        Agency.objects.filter(pk=self.acme.pk).update(name="zulu")
        Agency.objects.filter(pk=self.beta.pk).update(name="alpha")

        output = self._run("record_subdomain")
        self.assertLess(output.index("alpha:1"), output.index("zulu:2"))

        output = self._run("record_subdomain", only="zulu")
        self.assertIn("zulu:2", output)
        self.assertNotIn("alpha:", output)
