import argparse
import logging

from django.core.management import call_command
from django.core.management.base import BaseCommand, CommandError

from restricted_subdomain.registry import tenant_registry
from restricted_subdomain.resolver import (
    get_subdomain_column,
    get_subdomain_symbol,
    get_tenant_model,
)

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Run a management command once per subdomain, with that subdomain active."

    def add_arguments(self, parser):
        parser.add_argument("command_name", help="Management command to run.")
        parser.add_argument(
            "command_args",
            nargs=argparse.REMAINDER,
            help="Arguments passed to the command.",
        )
        parser.add_argument(
            "--only",
            default=None,
            help="Comma-separated subdomain codes to run for (default: all).",
        )
        parser.add_argument(
            "--through",
            default=None,
            help="Subdomain model label (default: RESTRICTED_SUBDOMAIN['through']).",
        )
        parser.add_argument(
            "--keep-going",
            action="store_true",
            help="Continue with the next subdomain when the command fails.",
        )

    def handle(self, *args, **options):
        model = get_tenant_model(options.get("through"))
        column = get_subdomain_column(model)
        tenants = model._default_manager.order_by(column)
        only = options.get("only")
        if only:
            codes = [code.strip() for code in only.split(",") if code.strip()]
            tenants = tenants.filter(**{f"{column}__in": codes})

        command_name = options["command_name"]
        command_args = options.get("command_args") or []
        failures = []

        def run(tenant):
            symbol = get_subdomain_symbol(tenant)
            self.stdout.write(self.style.MIGRATE_HEADING(f"[{symbol}] {command_name}"))
            try:
                call_command(
                    command_name, *command_args, stdout=self.stdout, stderr=self.stderr
                )
            except CommandError as exc:
                if not options.get("keep_going"):
                    raise
                logger.warning("%s failed for subdomain %s: %s", command_name, symbol, exc)
                self.stderr.write(self.style.ERROR(f"[{symbol}] {exc}"))
                failures.append(symbol)

        tenant_registry.each(list(tenants), run)

        if failures:
            raise CommandError(
                f"{command_name} failed for: {', '.join(failures)}"
            )
