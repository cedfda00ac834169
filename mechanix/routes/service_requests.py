"""
Customer-facing service request routes.
"""
from flask import Blueprint, request

from mechanix.auth import require_auth, require_role
from mechanix.errors import respond
from mechanix.extensions import limiter
from mechanix.schemas import CreateServiceRequest, CustomerCompletion, RequestListQuery, parse_body, parse_query
from mechanix.services import get_services
from . import serialize_request, serialize_requests

service_requests_bp = Blueprint('service_requests', __name__)


@service_requests_bp.route('', methods=['POST'])
@limiter.limit('20 per minute')
@require_auth
@require_role('customer')
def create_request():
    body = parse_body(CreateServiceRequest)
    location = body.customer_location
    result = get_services().requests.create(
        customer_id=request.user_id,
        mechanic_id=body.mechanic_id,
        vehicle_id=body.vehicle_id,
        category_id=body.category_id,
        problem_description=body.problem_description,
        lat=location.lat,
        lng=location.lng,
        address=location.address,
    )
    return respond(result, status_code=201, serialize=serialize_request)


@service_requests_bp.route('', methods=['GET'])
@require_auth
def list_requests():
    query = parse_query(RequestListQuery)
    result = get_services().requests.list_for(request.user_id, request.user_type, query.status)
    return respond(result, serialize=serialize_requests)


@service_requests_bp.route('/<request_id>', methods=['GET'])
@require_auth
def get_request(request_id):
    result = get_services().requests.get(request.user_id, request_id)
    return respond(result, serialize=serialize_request)


@service_requests_bp.route('/<request_id>/cancel', methods=['PUT'])
@require_auth
@require_role('customer')
def cancel_request(request_id):
    result = get_services().requests.cancel(request.user_id, request_id)
    return respond(result, serialize=serialize_request)


@service_requests_bp.route('/<request_id>/complete', methods=['PUT'])
@require_auth
@require_role('customer')
def complete_request(request_id):
    """Customer enters pricing and a rating, and confirms the job is done."""
    body = parse_body(CustomerCompletion)
    result = get_services().requests.complete_by_customer(
        request.user_id, request_id,
        material_cost=body.material_cost,
        labor_cost=body.labor_cost,
        rating=body.rating,
        review=body.review,
    )
    return respond(result, serialize=serialize_request)
