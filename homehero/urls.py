"""
URL configuration for the HomeHero project.

API routes accept paths with or without a trailing slash.
"""
from django.contrib import admin
from django.urls import path, re_path

from core.views import (
    BookingCancelView,
    BookingDetailView,
    BookingListCreateView,
    BookingStatusUpdateView,
    CurrentUserView,
    CustomerBookingsView,
    HealthCheckView,
    ProviderBookingsView,
    ProviderServicesView,
    ProviderStatisticsView,
    ReviewDetailView,
    ReviewListCreateView,
    ReviewResponseView,
    RootView,
    ServiceDetailView,
    ServiceListCreateView,
    ServiceReviewCreateView,
    ServiceReviewsView,
    TopRatedServicesView,
    UserDetailView,
    UserListCreateView,
)

UID = r'(?P<uid>[^/]+)'
PK = r'(?P<pk>\d+)'

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', RootView.as_view(), name='root'),
    re_path(r'^api/health/?$', HealthCheckView.as_view(), name='health'),

    # Service endpoints
    re_path(r'^api/services/?$', ServiceListCreateView.as_view(), name='service_list'),
    re_path(r'^api/services/top-rated/?$', TopRatedServicesView.as_view(), name='service_top_rated'),
    re_path(rf'^api/services/user/{UID}/?$', ProviderServicesView.as_view(), name='service_by_provider'),
    re_path(rf'^api/services/{PK}/?$', ServiceDetailView.as_view(), name='service_detail'),
    re_path(rf'^api/services/{PK}/review/?$', ServiceReviewCreateView.as_view(), name='service_review'),

    # Booking endpoints
    re_path(r'^api/bookings/?$', BookingListCreateView.as_view(), name='booking_list'),
    re_path(rf'^api/bookings/user/{UID}/?$', CustomerBookingsView.as_view(), name='booking_by_customer'),
    re_path(rf'^api/bookings/provider/{UID}/?$', ProviderBookingsView.as_view(), name='booking_by_provider'),
    re_path(rf'^api/bookings/{PK}/?$', BookingDetailView.as_view(), name='booking_detail'),
    re_path(rf'^api/bookings/{PK}/status/?$', BookingStatusUpdateView.as_view(), name='booking_status'),
    re_path(rf'^api/bookings/{PK}/cancel/?$', BookingCancelView.as_view(), name='booking_cancel'),

    # Review endpoints
    re_path(r'^api/reviews/?$', ReviewListCreateView.as_view(), name='review_list'),
    re_path(r'^api/reviews/service/(?P<service_id>\d+)/?$', ServiceReviewsView.as_view(), name='review_by_service'),
    re_path(rf'^api/reviews/{PK}/?$', ReviewDetailView.as_view(), name='review_detail'),
    re_path(rf'^api/reviews/{PK}/response/?$', ReviewResponseView.as_view(), name='review_response'),

    # User endpoints
    re_path(r'^api/users/?$', UserListCreateView.as_view(), name='user_list'),
    re_path(r'^api/users/me/?$', CurrentUserView.as_view(), name='user_me'),
    re_path(rf'^api/users/{UID}/provider-stats/?$', ProviderStatisticsView.as_view(), name='provider_stats'),
    re_path(rf'^api/users/{UID}/?$', UserDetailView.as_view(), name='user_detail'),
]

handler404 = 'core.views.handler404'
handler500 = 'core.views.handler500'
