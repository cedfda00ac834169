"""
Customer profile and vehicle endpoint tests
"""
import json
from datetime import datetime, timedelta, timezone

import pytest

from mechanix.models import User, Vehicle


class TestVehicles:

    def test_list_own_vehicles(self, client, customer_headers, vehicle):
        response = client.get('/api/customers/vehicles', headers=customer_headers)

        assert response.status_code == 200
        data = json.loads(response.data)['data']
        assert [v['id'] for v in data] == [vehicle.id]
        assert 'customer_id' not in data[0]

    def test_primary_first_then_newest(self, client, db_session, customer, customer_headers):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for day, (name, primary) in enumerate([('Corolla', True), ('Civic', False), ('Golf', False)]):
            db_session.add(Vehicle(customer_id=customer.id, car_name=name, is_primary=primary,
                                   created_at=base + timedelta(days=day)))
        db_session.commit()

        response = client.get('/api/customers/vehicles', headers=customer_headers)

        data = json.loads(response.data)['data']
        assert [v['car_name'] for v in data] == ['Corolla', 'Golf', 'Civic']

    def test_other_customers_vehicles_hidden(self, client, other_customer_headers, vehicle):
        response = client.get('/api/customers/vehicles', headers=other_customer_headers)

        assert json.loads(response.data)['data'] == []

    def test_add_vehicle(self, client, customer_headers):
        response = client.post('/api/customers/vehicles', headers=customer_headers,
                               json={'car_name': 'Honda', 'car_model': 'Accord', 'car_year': 2012})

        assert response.status_code == 201
        data = json.loads(response.data)['data']
        assert data['car_name'] == 'Honda'
        assert data['car_year'] == 2012
        assert data['is_primary'] is False

        listed = json.loads(client.get('/api/customers/vehicles', headers=customer_headers).data)['data']
        assert [v['car_name'] for v in listed] == ['Honda']

    def test_add_vehicle_requires_name(self, client, customer_headers):
        response = client.post('/api/customers/vehicles', headers=customer_headers, json={'car_year': 2012})

        assert response.status_code == 400
        assert json.loads(response.data)['error']['message'] == 'car_name is required'

    def test_mechanics_cannot_add_vehicles(self, client, mechanic_headers):
        response = client.post('/api/customers/vehicles', headers=mechanic_headers,
                               json={'car_name': 'Honda'})

        assert response.status_code == 403


class TestProfile:

    @pytest.fixture
    def payload(self):
        return {
            'full_name': '  Ada Obi ',
            'email': 'Ada.Obi@Example.com',
            'phone': '+2348011112222',
            'gender': 'female',
        }

    def test_update_profile(self, client, db_session, customer, customer_headers, payload):
        response = client.put('/api/customers/profile', headers=customer_headers, json=payload)

        assert response.status_code == 200
        data = json.loads(response.data)['data']
        assert data['id'] == customer.id
        assert data['full_name'] == 'Ada Obi'
        assert data['email'] == 'ada.obi@example.com'
        assert data['gender'] == 'female'

        db_session.expire_all()
        stored = db_session.get(User, customer.id)
        assert stored.phone == '+2348011112222'
        assert stored.gender == 'female'

    def test_resubmitting_own_values(self, client, customer, customer_headers):
        body = {'full_name': customer.full_name, 'email': customer.email,
                'phone': customer.phone, 'gender': 'male'}

        response = client.put('/api/customers/profile', headers=customer_headers, json=body)

        assert response.status_code == 200

    def test_email_taken_by_another_user(self, client, db_session, customer, other_customer,
                                         customer_headers, payload):
        payload['email'] = other_customer.email.upper()
        original_email = customer.email

        response = client.put('/api/customers/profile', headers=customer_headers, json=payload)

        assert response.status_code == 409
        error = json.loads(response.data)['error']
        assert error == {'message': 'Email is already taken by another user', 'code': 'duplicate_account'}
        db_session.expire_all()
        assert db_session.get(User, customer.id).email == original_email

    def test_phone_taken_by_another_user(self, client, other_customer, customer_headers, payload):
        payload['phone'] = other_customer.phone

        response = client.put('/api/customers/profile', headers=customer_headers, json=payload)

        assert response.status_code == 409
        assert json.loads(response.data)['error']['message'] == 'Phone number is already taken by another user'

    @pytest.mark.parametrize('field', ['full_name', 'email', 'phone', 'gender'])
    def test_missing_field(self, client, customer_headers, payload, field):
        del payload[field]

        response = client.put('/api/customers/profile', headers=customer_headers, json=payload)

        assert response.status_code == 400
        assert json.loads(response.data)['error']['message'] == f'{field} is required'

    def test_invalid_email(self, client, customer_headers, payload):
        payload['email'] = 'not-an-email'

        response = client.put('/api/customers/profile', headers=customer_headers, json=payload)

        assert response.status_code == 400

    def test_mechanics_cannot_edit_customer_profile(self, client, mechanic_headers, payload):
        response = client.put('/api/customers/profile', headers=mechanic_headers, json=payload)

        assert response.status_code == 403
