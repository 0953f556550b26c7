from django.core.management.base import BaseCommand, CommandError

from simulator.lifecycle import WIPE_STEPS, wipe_all_business_data


class Command(BaseCommand):
    help = 'Delete ALL business data (members, classes, payments, instructors). Auth users and dance types are kept.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--noinput', '--no-input',
            action='store_false',
            dest='interactive',
            help='Do not prompt for confirmation.',
        )

    def handle(self, *args, **options):
        if options['interactive']:
            tables = ', '.join(table for table, _ in WIPE_STEPS)
            answer = input(f"This deletes every row in: {tables}.\nType 'yes' to continue: ")
            if answer != 'yes':
                self.stdout.write('Wipe cancelled.')
                return

        result = wipe_all_business_data()
        if not result['success']:
            completed = ', '.join(result.get('completed_steps', [])) or 'none'
            raise CommandError(
                f"Wipe stopped at '{result.get('failed_step')}': {result['error']} (completed: {completed})"
            )

        for table, count in result['data']['deleted'].items():
            self.stdout.write(f'  {table}: {count} deleted')
        self.stdout.write(self.style.SUCCESS('All business data deleted.'))
