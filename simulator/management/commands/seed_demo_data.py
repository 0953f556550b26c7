from django.core.management.base import BaseCommand, CommandError

from simulator.lifecycle import seed_demo_data
from simulator.management.commands.generate_scenario import parse_date


class Command(BaseCommand):
    help = 'Replace all business data with the demo data set.'

    def add_arguments(self, parser):
        parser.add_argument('--date', type=parse_date, help='Date to seed around (YYYY-MM-DD). Defaults to today.')

    def handle(self, *args, **options):
        result = seed_demo_data(today=options.get('date'))
        if not result['success']:
            raise CommandError(f"Seed failed: {result['error']}")

        for name, count in result['data'].items():
            self.stdout.write(f'  {name}: {count}')
        self.stdout.write(self.style.SUCCESS('Demo data created.'))
