import argparse
from datetime import date

from django.core.management.base import BaseCommand, CommandError

from simulator.clock import is_valid_date_string
from simulator.lifecycle import SCENARIO_KINDS, generate_all_scenarios, generate_scenario


def parse_date(value: str) -> date:
    if not is_valid_date_string(value):
        raise argparse.ArgumentTypeError(f"'{value}' is not a date in YYYY-MM-DD format.")
    return date.fromisoformat(value)


class Command(BaseCommand):
    help = 'Generate a freeze test scenario (member, enrollment and freeze log).'

    def add_arguments(self, parser):
        parser.add_argument('kind', choices=SCENARIO_KINDS + ('all',))
        parser.add_argument('--date', type=parse_date, help='Date to anchor the scenario on (YYYY-MM-DD). Defaults to today.')

    def handle(self, *args, **options):
        kind = options['kind']
        today = options.get('date')

        if kind == 'all':
            result = generate_all_scenarios(today=today)
        else:
            result = generate_scenario(kind, today=today)

        if not result['success']:
            raise CommandError(result['error'])

        scenarios = result['data'] if isinstance(result['data'], list) else [result['data']]
        for scenario in scenarios:
            self.stdout.write(
                f"  {scenario['kind']}: member {scenario['member_id']} ({scenario['effective_date']})"
            )
        self.stdout.write(self.style.SUCCESS(f'{len(scenarios)} scenario(s) generated.'))
