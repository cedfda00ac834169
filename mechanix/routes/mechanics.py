"""
Mechanic routes: discovery, availability, location, dashboard stats and the
mechanic side of the service request lifecycle.
"""
import logging

from flask import Blueprint, current_app, request

from mechanix.auth import require_auth, require_role
from mechanix.errors import error_response, not_found, respond, success_response
from mechanix.schemas import AvailabilityUpdate, LocationUpdate, NearbyQuery, parse_body, parse_query
from mechanix.services import get_services
from . import serialize_request

mechanics_bp = Blueprint('mechanics', __name__)

logger = logging.getLogger(__name__)


@mechanics_bp.route('/nearby', methods=['GET'])
def nearby():
    """Approved, available mechanics within ``radius`` km, nearest first."""
    query = parse_query(NearbyQuery)
    radius = query.radius or current_app.config['DEFAULT_SEARCH_RADIUS_KM']
    mechanics = get_services().matcher.find_nearby(
        query.lat, query.lng, radius_km=radius, specialization=query.specialization,
    )
    return success_response(mechanics)


@mechanics_bp.route('/categories', methods=['GET'])
def categories():
    store = get_services().store
    return success_response([c.to_dict() for c in store.catalog.list_active_categories()])


@mechanics_bp.route('/availability', methods=['PUT'])
@require_auth
@require_role('mechanic')
def update_availability():
    body = parse_body(AvailabilityUpdate)
    store = get_services().store

    profile = store.providers.get_by_user(request.user_id)
    if profile is None:
        return error_response(not_found('Mechanic profile'))

    is_available = body.is_available if body.is_available is not None else not profile.is_available
    store.providers.set_availability(profile, is_available)
    store.commit()
    logger.info('Mechanic %s availability set to %s', request.user_id, is_available)
    return success_response({'is_available': is_available})


@mechanics_bp.route('/location', methods=['PUT'])
@require_auth
@require_role('mechanic')
def update_location():
    body = parse_body(LocationUpdate)
    store = get_services().store

    profile = store.providers.get_by_user(request.user_id)
    if profile is None:
        return error_response(not_found('Mechanic profile'))

    store.providers.set_location(profile, body.latitude, body.longitude)
    store.commit()
    return success_response({'latitude': body.latitude, 'longitude': body.longitude})


@mechanics_bp.route('/stats', methods=['GET'])
@require_auth
@require_role('mechanic')
def stats():
    return respond(get_services().ledger.stats(request.user_id))


# --- Service request actions -------------------------------------------------

@mechanics_bp.route('/requests/<request_id>/accept', methods=['PUT'])
@require_auth
@require_role('mechanic')
def accept_request(request_id):
    result = get_services().requests.accept(request.user_id, request_id)
    return respond(result, serialize=serialize_request)


@mechanics_bp.route('/requests/<request_id>/decline', methods=['PUT'])
@require_auth
@require_role('mechanic')
def decline_request(request_id):
    result = get_services().requests.decline(request.user_id, request_id)
    return respond(result, serialize=serialize_request)


@mechanics_bp.route('/requests/<request_id>/arrived', methods=['PUT'])
@require_auth
@require_role('mechanic')
def mark_arrived(request_id):
    result = get_services().requests.mark_arrived(request.user_id, request_id)
    return respond(result, serialize=serialize_request)


@mechanics_bp.route('/requests/<request_id>/complete', methods=['PUT'])
@require_auth
@require_role('mechanic')
def complete_request(request_id):
    result = get_services().requests.complete_by_mechanic(request.user_id, request_id)
    return respond(result, serialize=serialize_request)
