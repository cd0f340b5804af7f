import os
import sys
import django
import random
from decimal import Decimal
from datetime import timedelta

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set up Django environment
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'homehero.settings')
django.setup()

from django.core.management import call_command
from django.utils import timezone
from faker import Faker

from core.models import User, Service, Booking, Review

fake = Faker()

# Starter catalogue; categories outside the fixed set are listed as "other"
CATALOGUE = [
    ('Professional Plumbing', 'plumbing', 50, 'John Smith',
     'Expert plumbing services for all your home and office needs. From leak repairs to full installations, we handle it all with precision and care.'),
    ('Expert Electrician', 'electrical', 60, 'Sarah Johnson',
     'Licensed electrician providing safe and reliable electrical services. We specialize in wiring, installations, and electrical repairs.'),
    ('Deep Cleaning Service', 'cleaning', 80, 'Maria Garcia',
     'Professional deep cleaning for homes and offices. Our team uses eco-friendly products to ensure a spotless and healthy environment.'),
    ('AC Repair & Maintenance', 'hvac', 70, 'Michael Brown',
     'Complete HVAC solutions including AC repair, maintenance, and installation. Keep your space comfortable year-round.'),
    ('Carpentry & Woodwork', 'carpentry', 55, 'David Wilson',
     'Custom carpentry services for furniture repair, installations, and woodwork projects. Quality craftsmanship guaranteed.'),
    ('House Painting Pro', 'painting', 65, 'Lisa Anderson',
     'Professional painting services for interior and exterior projects. We deliver flawless finishes with attention to detail.'),
    ('Garden & Landscaping', 'other', 45, 'Robert Lee',
     'Transform your outdoor space with our expert landscaping and garden maintenance services.'),
    ('Pest Control Experts', 'other', 90, 'James Martinez',
     'Safe and effective pest control solutions for your home or business. We eliminate pests and prevent future infestations.'),
]

TIME_SLOTS = ['09:00', '10:30', '13:00', '15:30', '17:00']


def create_providers():
    print(f"Creating {len(CATALOGUE)} providers...")
    providers = []

    for index, (_, _, _, name, _) in enumerate(CATALOGUE, start=1):
        uid = f'provider{index}'
        user, _ = User.objects.get_or_create(
            uid=uid,
            defaults={
                'username': uid,
                'email': f"{name.split()[0].lower()}@example.com",
                'display_name': name,
                'role': User.Role.PROVIDER,
                'is_verified': True,
                'city': fake.city(),
                'country': 'USA',
            }
        )
        providers.append(user)

    print(f"Created {len(providers)} providers.")
    return providers


def create_customers(num_customers=15):
    print(f"Creating {num_customers} customers...")
    customers = []

    for _ in range(num_customers):
        uid = fake.unique.pystr(min_chars=28, max_chars=28)
        user = User(
            uid=uid,
            username=uid,
            email=fake.unique.email(),
            display_name=fake.name(),
            role=User.Role.CUSTOMER,
            street=fake.street_address(),
            city=fake.city(),
            state=fake.state(),
            zip_code=fake.postcode(),
            country='USA',
        )
        user.set_unusable_password()
        user.save()
        customers.append(user)

    print(f"Created {len(customers)} customers.")
    return customers


def create_services(providers):
    print("Creating services...")
    services = []

    for provider, (name, category, price, _, description) in zip(providers, CATALOGUE):
        service, _ = Service.objects.get_or_create(
            name=name,
            provider_uid=provider.uid,
            defaults={
                'category': category,
                'description': description,
                'price': Decimal(price),
                'provider_name': provider.display_name,
                'provider_email': provider.email,
                'provider_verified': provider.is_verified,
                'available': True,
            }
        )
        services.append(service)

    print(f"Created {len(services)} services.")
    return services


def create_bookings(customers, services):
    print("Creating bookings...")
    bookings = []

    statuses = [choice for choice, _ in Booking.Status.choices]

    for customer in customers:
        # Each customer makes 1-4 bookings
        for _ in range(random.randint(1, 4)):
            service = random.choice(services)
            status = random.choice(statuses)

            # Finished work lies in the past, open work in the future
            if status in (Booking.Status.COMPLETED, Booking.Status.CANCELLED):
                booking_date = timezone.localdate() - timedelta(days=random.randint(1, 150))
            else:
                booking_date = timezone.localdate() + timedelta(days=random.randint(1, 30))

            booking = Booking.objects.create(
                service=service,
                customer_uid=customer.uid,
                customer_name=customer.display_name,
                customer_email=customer.email,
                provider_uid=service.provider_uid,
                provider_name=service.provider_name,
                provider_email=service.provider_email,
                booking_date=booking_date,
                booking_time=random.choice(TIME_SLOTS),
                address=customer.street or fake.street_address(),
                city=customer.city,
                zip_code=customer.zip_code,
                status=status,
                price=service.price,
                duration=random.randint(1, 4),
                notes=fake.sentence(),
            )
            if status == Booking.Status.CANCELLED:
                Booking.objects.filter(pk=booking.pk).update(
                    cancellation_reason=fake.sentence(),
                    cancelled_by=random.choice(['customer', 'provider']),
                    cancelled_at=timezone.now(),
                )
            bookings.append(booking)

    print(f"Created {len(bookings)} bookings.")
    return bookings


def create_reviews(bookings):
    print("Creating reviews...")
    reviews = []

    completed_bookings = [b for b in bookings if b.status == Booking.Status.COMPLETED]

    for booking in completed_bookings:
        # 70% chance of leaving a review
        if random.random() < 0.7:
            review = Review.objects.create(
                service=booking.service,
                booking=booking,
                reviewer_uid=booking.customer_uid,
                reviewer_name=booking.customer_name,
                rating=random.randint(3, 5),
                comment=fake.paragraph()[:500]
            )
            reviews.append(review)

    print(f"Created {len(reviews)} reviews.")
    return reviews


def main():
    print("Starting database population...")

    providers = create_providers()
    customers = create_customers(num_customers=15)
    services = create_services(providers)
    bookings = create_bookings(customers, services)
    create_reviews(bookings)

    # Booking counts are not maintained by direct inserts
    call_command('recalculate_ratings')

    print("Database population completed successfully!")


if __name__ == '__main__':
    main()
