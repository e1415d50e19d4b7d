from django.core.management.base import BaseCommand, CommandError

from restricted_subdomain.middleware import current_subdomain_symbol
from tests.models import Widget


class Command(BaseCommand):
    help = "Print the active subdomain and its widget count."

    def add_arguments(self, parser):
        parser.add_argument("--fail-on", default=None)

    def handle(self, *args, **options):
        symbol = current_subdomain_symbol()
        if symbol and symbol == options.get("fail_on"):
            raise CommandError(f"refusing {symbol}")
        self.stdout.write(f"{symbol}:{Widget.objects.count()}")
