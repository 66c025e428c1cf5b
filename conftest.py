"""
Pytest configuration and fixtures.
"""

from datetime import date

import pytest
from django.contrib.auth import get_user_model

User = get_user_model()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='testuser',
        email='test@example.com',
        password='testpass123'
    )


@pytest.fixture
def authenticated_client(client, user):
    """Return a client with an authenticated user."""
    client.force_login(user)
    return client


@pytest.fixture
def raw_practice_data():
    """
    A Greyfinch payload for two locations.

    March 2024 totals: Gilbert 2 patients, 3 leads, 3 appointments,
    1 booking; Phoenix-Ahwatukee 1 patient, 2 leads, 2 appointments,
    1 booking. Records dated outside March are noise.
    """
    gilbert = {'id': 'loc-1', 'name': 'Gilbert'}
    phoenix = {'id': 'loc-2', 'name': 'Phoenix-Ahwatukee'}
    return {
        'locations': [gilbert, phoenix],
        'patients': [
            {'id': 'p1', 'createdAt': '2024-03-05T10:00:00Z', 'primaryLocation': gilbert, 'source': 'Google Ads'},
            {'id': 'p2', 'createdAt': '2024-03-20', 'primaryLocation': gilbert, 'source': 'Dr. Smith referral'},
            {'id': 'p3', 'createdAt': '2024-02-10', 'primaryLocation': gilbert, 'source': 'Google Ads'},
            {'id': 'p4', 'createdAt': '2024-03-12', 'primaryLocation': {'id': 'loc-2'}, 'source': ''},
        ],
        'leads': [
            {'id': 'l1', 'createdAt': '2024-03-01', 'location': gilbert, 'source': 'Instagram'},
            {'id': 'l2', 'createdAt': '2024-03-15', 'location': gilbert, 'source': 'referral'},
            {'id': 'l3', 'createdAt': '2024-03-31T23:00:00', 'location': gilbert},
            {'id': 'l4', 'createdAt': '2024-04-01', 'location': gilbert, 'source': 'online'},
            {'id': 'l5', 'createdAt': '2024-03-10', 'location': phoenix, 'source': 'Website form'},
            {'id': 'l6', 'createdAt': '2024-03-11', 'location': phoenix, 'source': 'walk-in'},
        ],
        'appointments': [
            {'id': 'a1', 'scheduledDate': '2024-03-04T09:00:00Z', 'location': gilbert,
             'status': 'completed', 'fee': 300, 'production': 400},
            {'id': 'a2', 'scheduledDate': '2024-03-06', 'location': gilbert, 'status': 'no-show'},
            {'id': 'a3', 'scheduledDate': '2024-03-25', 'location': gilbert,
             'status': 'completed', 'amount': '500.00'},
            {'id': 'a4', 'scheduledDate': '2024-04-02', 'location': gilbert, 'status': 'completed'},
            {'id': 'a5', 'scheduledDate': '2024-03-13', 'location': phoenix,
             'status': 'cancelled', 'value': 200},
            {'id': 'a6', 'scheduledDate': '2024-03-14', 'location': phoenix, 'status': 'completed'},
        ],
        'appointmentBookings': [
            {'id': 'b1', 'startTime': '2024-03-04T09:00:00Z', 'appointment': {'id': 'a1', 'location': gilbert}},
            {'id': 'b2', 'startTime': '2024-03-14', 'location': 'Phoenix-Ahwatukee'},
        ],
    }


@pytest.fixture
def practice_data(raw_practice_data):
    from analytics.records import PracticeData
    return PracticeData.from_raw(raw_practice_data)


@pytest.fixture
def march_period():
    from analytics.filters import PeriodDefinition
    return PeriodDefinition(date(2024, 3, 1), date(2024, 3, 31))


@pytest.fixture
def gilbert(db):
    """Create the Gilbert location."""
    from core.models import Location
    return Location.objects.create(name='Gilbert', greyfinch_id='loc-1')


@pytest.fixture
def phoenix(db):
    """Create the Phoenix-Ahwatukee location."""
    from core.models import Location
    return Location.objects.create(name='Phoenix-Ahwatukee', greyfinch_id='loc-2')


@pytest.fixture
def greyfinch_integration(db):
    """Create an active Greyfinch integration."""
    from integrations.models import Integration
    return Integration.objects.create(
        integration_type='greyfinch',
        name='Greyfinch',
        api_key='fake_key',
        api_secret='fake_secret',
    )


@pytest.fixture
def snapshot(db, greyfinch_integration, raw_practice_data):
    """Store the raw payload as the latest snapshot."""
    from integrations.models import PracticeDataSnapshot
    return PracticeDataSnapshot.objects.create(
        integration=greyfinch_integration,
        data_json=raw_practice_data,
        location_count=2,
        patient_count=4,
        lead_count=6,
        appointment_count=6,
        booking_count=2,
    )
