"""
Pytest configuration and fixtures for Mechanix backend tests
"""
import itertools
from decimal import Decimal

import pytest

from mechanix import create_app
from mechanix.auth import generate_token
from mechanix.extensions import db
from mechanix.models import (
    ProviderProfile,
    ProviderSpecialization,
    ServiceCategory,
    ServiceRequest,
    User,
    Vehicle,
)
from mechanix.services import build_services
from tests.fakes import RecordingNotificationSink

LAGOS = (6.5244, 3.3792)

_counter = itertools.count(1)


@pytest.fixture(scope='function')
def app():
    """Create application instance with a fresh in-memory database"""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def db_session(app):
    return db.session


@pytest.fixture
def notifier():
    return RecordingNotificationSink()


@pytest.fixture
def services(app, notifier):
    """Domain services on the SQL store with notifications captured in memory"""
    return build_services(app.config, notifier=notifier)


# --- Factories ---------------------------------------------------------------

@pytest.fixture
def user_factory(db_session):
    """Factory for creating users of any type"""
    def _create_user(user_type='customer', **kwargs):
        n = next(_counter)
        defaults = {
            'full_name': f'Test {user_type.title()} {n}',
            'email': f'{user_type}{n}@example.com',
            'phone': f'+23480000{n:05d}',
            'user_type': user_type,
        }
        defaults.update(kwargs)
        user = User(**defaults)
        db_session.add(user)
        db_session.commit()
        return user

    return _create_user


@pytest.fixture
def provider_factory(db_session, user_factory):
    """Factory for mechanics with a provider profile"""
    def _create_provider(lat=LAGOS[0], lng=LAGOS[1], verification_status='approved',
                         is_available=True, specializations=('Engine Repair',),
                         wallet_balance=Decimal('0.00'), **user_kwargs):
        user = user_factory('mechanic', **user_kwargs)
        profile = ProviderProfile(
            user_id=user.id,
            verification_status=verification_status,
            is_available=is_available,
            current_lat=lat,
            current_lng=lng,
            rating=Decimal('0.0'),
            total_jobs=0,
            wallet_balance=wallet_balance,
        )
        profile.specializations = [ProviderSpecialization(specialization=s) for s in specializations]
        db_session.add(profile)
        db_session.commit()
        return user

    return _create_provider


@pytest.fixture
def customer(user_factory):
    return user_factory('customer', full_name='Ada Customer')


@pytest.fixture
def other_customer(user_factory):
    return user_factory('customer', full_name='Bayo Customer')


@pytest.fixture
def mechanic(provider_factory):
    return provider_factory(full_name='Chidi Mechanic')


@pytest.fixture
def other_mechanic(provider_factory):
    return provider_factory(full_name='Dayo Mechanic', lat=LAGOS[0] + 0.05)


@pytest.fixture
def category(db_session):
    category = ServiceCategory(name='Engine', description='Engine diagnostics and repair', is_active=True)
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def vehicle(db_session, customer):
    vehicle = Vehicle(customer_id=customer.id, car_name='Toyota', car_model='Corolla', car_year=2015)
    db_session.add(vehicle)
    db_session.commit()
    return vehicle


@pytest.fixture
def service_request_factory(db_session, customer, mechanic, vehicle, category):
    """Factory for service requests inserted directly in any state"""
    def _create_request(status='pending', **kwargs):
        defaults = {
            'customer_id': customer.id,
            'mechanic_id': mechanic.id,
            'vehicle_id': vehicle.id,
            'category_id': category.id,
            'problem_description': 'Car will not start',
            'customer_location_lat': LAGOS[0],
            'customer_location_lng': LAGOS[1],
            'customer_location_address': '12 Marina Road, Lagos',
            'status': status,
            'mechanic_confirmed': False,
            'customer_confirmed': False,
        }
        defaults.update(kwargs)
        service_request = ServiceRequest(**defaults)
        db_session.add(service_request)
        db_session.commit()
        return service_request

    return _create_request


@pytest.fixture
def pending_request(service_request_factory):
    return service_request_factory()


@pytest.fixture
def in_progress_request(service_request_factory):
    return service_request_factory(status='in_progress')


# --- Auth headers ------------------------------------------------------------

def _headers_for(user):
    token = generate_token(user.id, user.user_type)
    return {
        'Authorization': f'Bearer {token}',
        'Content-Type': 'application/json'
    }


@pytest.fixture
def customer_headers(app, customer):
    """Generate auth headers with JWT token for customer"""
    return _headers_for(customer)


@pytest.fixture
def other_customer_headers(app, other_customer):
    return _headers_for(other_customer)


@pytest.fixture
def mechanic_headers(app, mechanic):
    """Generate auth headers with JWT token for mechanic"""
    return _headers_for(mechanic)


@pytest.fixture
def other_mechanic_headers(app, other_mechanic):
    return _headers_for(other_mechanic)


@pytest.fixture
def headers_for(app):
    """Build auth headers for any user"""
    return _headers_for
