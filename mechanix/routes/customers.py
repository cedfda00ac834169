"""
Customer profile and vehicle routes
"""
from flask import Blueprint, request

from mechanix.auth import require_auth, require_role
from mechanix.errors import respond, success_response
from mechanix.models import Vehicle
from mechanix.schemas import ProfileUpdate, VehicleCreate, parse_body
from mechanix.services import get_services

customers_bp = Blueprint('customers', __name__)


@customers_bp.route('/profile', methods=['PUT'])
@require_auth
@require_role('customer')
def update_profile():
    body = parse_body(ProfileUpdate)
    result = get_services().profiles.update(
        request.user_id,
        full_name=body.full_name,
        email=body.email,
        phone=body.phone,
        gender=body.gender,
    )
    return respond(result, serialize=lambda user: user.to_profile_dict())


@customers_bp.route('/vehicles', methods=['GET'])
@require_auth
@require_role('customer')
def list_vehicles():
    """Primary vehicle first, then newest."""
    vehicles = get_services().store.catalog.list_vehicles(request.user_id)
    return success_response([v.to_dict(exclude=['customer_id']) for v in vehicles])


@customers_bp.route('/vehicles', methods=['POST'])
@require_auth
@require_role('customer')
def add_vehicle():
    body = parse_body(VehicleCreate)
    store = get_services().store

    vehicle = Vehicle(
        customer_id=request.user_id,
        car_name=body.car_name,
        car_model=body.car_model,
        car_year=body.car_year,
        is_primary=body.is_primary,
    )
    store.catalog.add_vehicle(vehicle)
    store.commit()
    return success_response(vehicle.to_dict(exclude=['customer_id']), 201)
