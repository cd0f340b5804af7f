# Recalculate Ratings Management Command
from django.core.management.base import BaseCommand, CommandError
from django.db.models import Count

from core.models import Review, Service
from core.ratings import summarize_ratings


class Command(BaseCommand):
    help = 'Recalculates service rating summaries and booking counts from stored reviews and bookings.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Run the command without saving changes to the database.',
        )
        parser.add_argument(
            '--service-id',
            type=int,
            help='Recalculate a single service.',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=1000,
            help='Batch size for bulk processing.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        batch_size = options['batch_size']

        if batch_size < 1:
            raise CommandError('--batch-size must be at least 1.')

        services = Service.objects.annotate(stored_bookings=Count('bookings')).order_by('id')
        if options['service_id'] is not None:
            services = services.filter(pk=options['service_id'])
            if not services.exists():
                raise CommandError(f"Service {options['service_id']} does not exist.")

        self.recalculate_services(services, dry_run, batch_size)

        if dry_run:
            self.stdout.write(self.style.SUCCESS('Dry run completed. No changes saved.'))
        else:
            self.stdout.write(self.style.SUCCESS('Recalculation completed successfully.'))

    def recalculate_services(self, services, dry_run, batch_size):
        self.stdout.write('Recalculating service ratings...')
        updates = []
        changed = 0
        count = 0

        for service in services.iterator(chunk_size=batch_size):
            ratings = Review.objects.filter(service_id=service.id).values_list('rating', flat=True)
            new_avg, new_total = summarize_ratings(ratings)
            new_bookings = service.stored_bookings

            if (
                abs(service.rating_average - new_avg) > 0.001
                or service.rating_count != new_total
                or service.booking_count != new_bookings
            ):
                changed += 1
                if dry_run:
                    self.stdout.write(
                        f'  [DRY-RUN] Service {service.id} ({service.name}): '
                        f'Rating {service.rating_average:.2f} -> {new_avg:.2f}, '
                        f'Reviews {service.rating_count} -> {new_total}, '
                        f'Bookings {service.booking_count} -> {new_bookings}'
                    )
                service.rating_average = new_avg
                service.rating_count = new_total
                service.booking_count = new_bookings
                updates.append(service)

            if len(updates) >= batch_size:
                if not dry_run:
                    Service.objects.bulk_update(updates, ['rating_average', 'rating_count', 'booking_count'])
                updates = []

            count += 1
            if count % 100 == 0:
                self.stdout.write(f'Processed {count} services...')

        if updates and not dry_run:
            Service.objects.bulk_update(updates, ['rating_average', 'rating_count', 'booking_count'])

        self.stdout.write(f'Processed {count} services total, {changed} out of date.')
