# Replay Checkout Event Management Command
import stripe
from django.core.management.base import BaseCommand, CommandError

from core import payments


class Command(BaseCommand):
    help = 'Fetches Stripe events by id and processes them as if the webhook had delivered them.'

    def add_arguments(self, parser):
        parser.add_argument(
            'event_ids',
            nargs='+',
            help='Stripe event ids (evt_...) to replay.',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Fetch and report the events without processing them.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        unlocked = 0

        for event_id in options['event_ids']:
            try:
                event = payments.retrieve_event(event_id)
            except stripe.StripeError as e:
                raise CommandError(f'Could not retrieve event {event_id}: {e}')

            if event.type != payments.CHECKOUT_COMPLETED:
                self.stdout.write(self.style.WARNING(
                    f'Skipping {event_id}: event type {event.type} is not replayed.'
                ))
                continue

            if dry_run:
                self.stdout.write(f'  [DRY-RUN] Would process {event_id} ({event.type})')
                continue

            if payments.dispatch_event(event):
                unlocked += 1
                self.stdout.write(f'  {event_id}: messaging unlocked')
            else:
                self.stdout.write(f'  {event_id}: no change')

        if dry_run:
            self.stdout.write(self.style.SUCCESS('Dry run completed. No changes saved.'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Replay completed. {unlocked} account(s) unlocked.'))
