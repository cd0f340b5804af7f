import django.contrib.auth.models
import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.db import migrations, models

import core.validators


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('uid', models.CharField(error_messages={'unique': 'A profile for this identity already exists.'}, help_text='Subject id issued by the identity provider.', max_length=128, unique=True, verbose_name='identity uid')),
                ('email', models.EmailField(error_messages={'unique': 'A user with that email already exists.'}, help_text='Required. Enter a valid email address.', max_length=254, unique=True, verbose_name='email address')),
                ('display_name', models.CharField(blank=True, default='', max_length=150, verbose_name='display name')),
                ('photo_url', models.URLField(blank=True, default='', max_length=500, verbose_name='photo URL')),
                ('role', models.CharField(choices=[('customer', 'Customer'), ('provider', 'Provider'), ('both', 'Customer and provider')], default='customer', help_text='Whether the user books services, offers them, or both.', max_length=10, verbose_name='role')),
                ('phone_number', models.CharField(blank=True, default='', help_text='Optional. Enter phone number in international format.', max_length=20, validators=[core.validators.validate_phone_number], verbose_name='phone number')),
                ('street', models.CharField(blank=True, default='', max_length=200, verbose_name='street')),
                ('city', models.CharField(blank=True, default='', max_length=100, verbose_name='city')),
                ('state', models.CharField(blank=True, default='', max_length=100, verbose_name='state')),
                ('zip_code', models.CharField(blank=True, default='', max_length=20, verbose_name='zip code')),
                ('country', models.CharField(blank=True, default='', max_length=100, verbose_name='country')),
                ('is_verified', models.BooleanField(default=False, help_text='Indicates whether a service provider has been verified.', verbose_name='verified status')),
                ('notify_email', models.BooleanField(default=True, verbose_name='email notifications')),
                ('notify_sms', models.BooleanField(default=False, verbose_name='SMS notifications')),
                ('language', models.CharField(default='en', max_length=10, verbose_name='language')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['role'], name='user_role_idx'),
                    models.Index(fields=['is_verified'], name='user_verified_idx'),
                ],
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Service',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Name of the service', max_length=200, verbose_name='name')),
                ('category', models.CharField(choices=[('plumbing', 'Plumbing'), ('electrical', 'Electrical'), ('cleaning', 'Cleaning'), ('carpentry', 'Carpentry'), ('hvac', 'HVAC'), ('painting', 'Painting'), ('other', 'Other')], max_length=20, verbose_name='category')),
                ('description', models.TextField(help_text='Detailed description of the service', max_length=1000, validators=[django.core.validators.MaxLengthValidator(1000)], verbose_name='description')),
                ('price', models.DecimalField(decimal_places=2, help_text='Hourly price in USD', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'), message='Price cannot be negative.')], verbose_name='price')),
                ('image', models.URLField(default='https://via.placeholder.com/400x300', max_length=500, verbose_name='image')),
                ('provider_uid', models.CharField(max_length=128, verbose_name='provider uid')),
                ('provider_name', models.CharField(max_length=150, verbose_name='provider name')),
                ('provider_email', models.EmailField(max_length=254, verbose_name='provider email')),
                ('provider_verified', models.BooleanField(default=False, verbose_name='provider verified')),
                ('available', models.BooleanField(default=True, help_text='Whether the service is currently available', verbose_name='available')),
                ('rating_average', models.FloatField(default=0, help_text='Mean rating of the service reviews, 0 when unreviewed', validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(5)], verbose_name='rating average')),
                ('rating_count', models.PositiveIntegerField(default=0, help_text='Number of reviews', verbose_name='rating count')),
                ('booking_count', models.PositiveIntegerField(default=0, verbose_name='booking count')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
            ],
            options={
                'verbose_name': 'service',
                'verbose_name_plural': 'services',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['category', 'available'], name='service_category_avail_idx'),
                    models.Index(fields=['provider_uid'], name='service_provider_idx'),
                    models.Index(fields=['rating_average'], name='service_rating_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('customer_uid', models.CharField(max_length=128, verbose_name='customer uid')),
                ('customer_name', models.CharField(max_length=150, verbose_name='customer name')),
                ('customer_email', models.EmailField(max_length=254, verbose_name='customer email')),
                ('provider_uid', models.CharField(max_length=128, verbose_name='provider uid')),
                ('provider_name', models.CharField(max_length=150, verbose_name='provider name')),
                ('provider_email', models.EmailField(max_length=254, verbose_name='provider email')),
                ('booking_date', models.DateField(help_text='Date when the service is scheduled', verbose_name='booking date')),
                ('booking_time', models.CharField(help_text='Time of day, as entered by the customer', max_length=20, verbose_name='booking time')),
                ('address', models.CharField(max_length=300, verbose_name='address')),
                ('city', models.CharField(blank=True, default='', max_length=100, verbose_name='city')),
                ('zip_code', models.CharField(blank=True, default='', max_length=20, verbose_name='zip code')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('confirmed', 'Confirmed'), ('in-progress', 'In progress'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='pending', max_length=20, verbose_name='status')),
                ('price', models.DecimalField(decimal_places=2, help_text='Price agreed at booking time', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))], verbose_name='price')),
                ('duration', models.PositiveIntegerField(default=1, help_text='Expected duration in hours', validators=[django.core.validators.MinValueValidator(1)], verbose_name='duration')),
                ('notes', models.TextField(blank=True, default='', max_length=500, validators=[django.core.validators.MaxLengthValidator(500)], verbose_name='notes')),
                ('cancellation_reason', models.CharField(blank=True, default='', max_length=500, verbose_name='cancellation reason')),
                ('cancelled_by', models.CharField(blank=True, default='', help_text='customer or provider', max_length=10, verbose_name='cancelled by')),
                ('cancelled_at', models.DateTimeField(blank=True, null=True, verbose_name='cancelled at')),
                ('version', models.PositiveIntegerField(default=0, help_text='Incremented on every status change', verbose_name='version')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('service', models.ForeignKey(blank=True, help_text='Service being booked', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bookings', to='core.service')),
            ],
            options={
                'verbose_name': 'booking',
                'verbose_name_plural': 'bookings',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['customer_uid', 'status'], name='booking_customer_status_idx'),
                    models.Index(fields=['provider_uid', 'status'], name='booking_provider_status_idx'),
                    models.Index(fields=['booking_date'], name='booking_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Review',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reviewer_uid', models.CharField(max_length=128, verbose_name='reviewer uid')),
                ('reviewer_name', models.CharField(max_length=150, verbose_name='reviewer name')),
                ('rating', models.PositiveSmallIntegerField(help_text='Rating from 1 to 5 stars', validators=[django.core.validators.MinValueValidator(1, message='Rating must be at least 1.'), django.core.validators.MaxValueValidator(5, message='Rating must be at most 5.')], verbose_name='rating')),
                ('comment', models.TextField(help_text='Written feedback about the service', max_length=500, validators=[django.core.validators.MaxLengthValidator(500)], verbose_name='comment')),
                ('response_text', models.TextField(blank=True, default='', max_length=500, validators=[django.core.validators.MaxLengthValidator(500)], verbose_name='provider response')),
                ('response_at', models.DateTimeField(blank=True, null=True, verbose_name='responded at')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('booking', models.OneToOneField(error_messages={'unique': 'This booking has already been reviewed.'}, help_text='Booking being reviewed (one review per booking)', on_delete=django.db.models.deletion.CASCADE, related_name='review', to='core.booking')),
                ('service', models.ForeignKey(help_text='Service being reviewed', on_delete=django.db.models.deletion.CASCADE, related_name='reviews', to='core.service')),
            ],
            options={
                'verbose_name': 'review',
                'verbose_name_plural': 'reviews',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['service', '-created_at'], name='review_service_created_idx'),
                    models.Index(fields=['reviewer_uid'], name='review_reviewer_idx'),
                ],
            },
        ),
    ]
