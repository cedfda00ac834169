"""
Service request lifecycle.

    pending -> accepted -> in_progress -> completed
    pending | accepted -> cancelled

``completed`` and ``cancelled`` are terminal. Every status change is a
compare-and-set on the current status, so a caller acting on a stale read gets
a business-rule error instead of overwriting someone else's transition.

Completion needs both parties. Each party's confirmation is its own
compare-and-set on its flag; finalization is a second compare-and-set
(``in_progress`` with both flags set -> ``completed``) that succeeds for exactly
one caller, and only that caller settles the commission, bumps the job counter
and recomputes the rating, all in one transaction.
"""
import logging

from sqlalchemy.exc import IntegrityError

from mechanix.errors import Err, ErrorKind, Ok, business_rule, forbidden, not_found, validation_error
from mechanix.models import RequestStatus, ServiceRequest
from mechanix.models.base import utcnow
from .ledger import to_money
from .notifications import SERVICE_REQUEST

logger = logging.getLogger(__name__)

CUSTOMER = 'customer'
MECHANIC = 'mechanic'


class RequestStateMachine:

    def __init__(self, store, ledger, ratings, notifier):
        self.store = store
        self.ledger = ledger
        self.ratings = ratings
        self.notifier = notifier

    @property
    def requests(self):
        return self.store.requests

    def _notify(self, user_id, title, body, service_request):
        self.notifier.notify(user_id, title, body, SERVICE_REQUEST, service_request.id)

    def _load(self, request_id):
        service_request = self.requests.get(request_id)
        if service_request is None:
            return None, not_found('Service request')
        return service_request, None

    def _load_for_mechanic(self, mechanic_id, request_id):
        service_request, err = self._load(request_id)
        if err:
            return None, err
        if service_request.mechanic_id != mechanic_id:
            return None, forbidden('This request is not assigned to you')
        return service_request, None

    def _transition(self, service_request, from_statuses, to_status, message, **values):
        if service_request.status not in from_statuses:
            return business_rule(message, code='invalid_transition')
        if not self.requests.transition(service_request.id, from_statuses, to_status, **values):
            # Lost a race with another transition
            self.store.rollback()
            return business_rule(message, code='invalid_transition')
        self.store.commit()
        logger.info('Service request %s moved to %s', service_request.id, to_status)
        return None

    # -- customer side -------------------------------------------------------

    def create(self, customer_id, mechanic_id, vehicle_id, category_id, problem_description,
               lat, lng, address=None):
        profile = self.store.providers.get_by_user(mechanic_id)
        if profile is None:
            return not_found('Mechanic')
        if profile.verification_status != 'approved':
            return business_rule('Mechanic is not verified', code='mechanic_not_verified')
        if not profile.is_available:
            return business_rule('Mechanic is not available', code='mechanic_unavailable')

        catalog = self.store.catalog
        if catalog.get_vehicle_for_customer(vehicle_id, customer_id) is None:
            return not_found('Vehicle')
        category = catalog.get_category(category_id)
        if category is None or not category.is_active:
            return not_found('Service category')

        service_request = ServiceRequest(
            customer_id=customer_id,
            mechanic_id=mechanic_id,
            vehicle_id=vehicle_id,
            category_id=category_id,
            problem_description=problem_description,
            customer_location_lat=lat,
            customer_location_lng=lng,
            customer_location_address=address,
            status=RequestStatus.PENDING,
            mechanic_confirmed=False,
            customer_confirmed=False,
        )
        self.requests.add(service_request)
        self.store.commit()
        logger.info('Service request %s created by customer %s for mechanic %s',
                    service_request.id, customer_id, mechanic_id)

        self._notify(mechanic_id, 'New Service Request',
                     f'You have a new {category.name} request', service_request)
        return Ok(service_request)

    def cancel(self, customer_id, request_id):
        service_request, err = self._load(request_id)
        if err:
            return err
        if service_request.customer_id != customer_id:
            return forbidden('Only the customer can cancel this request')

        err = self._transition(service_request, RequestStatus.CANCELLABLE, RequestStatus.CANCELLED,
                               'Request cannot be cancelled in its current status')
        if err:
            return err

        self._notify(service_request.mechanic_id, 'Request Cancelled',
                     'The customer has cancelled the service request', service_request)
        return Ok(self.requests.get(request_id))

    def complete_by_customer(self, customer_id, request_id, material_cost, labor_cost, rating,
                             review=None):
        """Enter pricing and rating, and confirm completion from the customer side."""
        if material_cost is None or labor_cost is None or rating is None:
            return validation_error('Material cost, labor cost, and rating are required')
        material_cost = to_money(material_cost)
        labor_cost = to_money(labor_cost)
        if material_cost < 0 or labor_cost < 0:
            return validation_error('Costs cannot be negative')
        if not 1 <= int(rating) <= 5:
            return validation_error('Rating must be between 1 and 5')

        service_request, err = self._load(request_id)
        if err:
            return err
        if service_request.customer_id != customer_id:
            return forbidden('Only the customer can complete this request')
        if service_request.status != RequestStatus.IN_PROGRESS:
            return business_rule('Service must be in progress to complete', code='invalid_transition')

        confirmed = self.requests.confirm(
            request_id, CUSTOMER,
            material_cost=material_cost,
            labor_cost=labor_cost,
            total_cost=material_cost + labor_cost,
            customer_rating=int(rating),
            customer_review=review,
        )
        if not confirmed:
            self.store.rollback()
            return business_rule('Completion was already confirmed', code='already_confirmed')
        logger.info('Customer %s confirmed completion of %s', customer_id, request_id)
        return self._finalize(request_id, confirmed_by=CUSTOMER)

    # -- mechanic side -------------------------------------------------------

    def accept(self, mechanic_id, request_id):
        profile = self.store.providers.get_by_user(mechanic_id)
        if profile is None:
            return not_found('Mechanic profile')
        if not profile.is_available:
            return business_rule('You must be available to accept requests', code='mechanic_unavailable')

        service_request, err = self._load_for_mechanic(mechanic_id, request_id)
        if err:
            return err
        err = self._transition(service_request, (RequestStatus.PENDING,), RequestStatus.ACCEPTED,
                               'Request is no longer pending')
        if err:
            return err

        self._notify(service_request.customer_id, 'Request Accepted',
                     'Your mechanic has accepted the request and is on the way', service_request)
        return Ok(self.requests.get(request_id))

    def decline(self, mechanic_id, request_id):
        service_request, err = self._load_for_mechanic(mechanic_id, request_id)
        if err:
            return err
        err = self._transition(service_request, (RequestStatus.PENDING,), RequestStatus.CANCELLED,
                               'Request is no longer pending')
        if err:
            return err

        self._notify(service_request.customer_id, 'Request Declined',
                     'The mechanic is unable to take your request', service_request)
        return Ok(self.requests.get(request_id))

    def mark_arrived(self, mechanic_id, request_id):
        service_request, err = self._load_for_mechanic(mechanic_id, request_id)
        if err:
            return err
        err = self._transition(service_request, (RequestStatus.ACCEPTED,), RequestStatus.IN_PROGRESS,
                               'Request must be accepted before arrival', arrived_at=utcnow())
        if err:
            return err

        self._notify(service_request.customer_id, 'Mechanic Arrived',
                     'Your mechanic has arrived at your location', service_request)
        return Ok(self.requests.get(request_id))

    def complete_by_mechanic(self, mechanic_id, request_id):
        service_request, err = self._load_for_mechanic(mechanic_id, request_id)
        if err:
            return err
        if service_request.status != RequestStatus.IN_PROGRESS:
            return business_rule('Service must be in progress to complete', code='invalid_transition')

        if not self.requests.confirm(request_id, MECHANIC):
            self.store.rollback()
            return business_rule('Completion was already confirmed', code='already_confirmed')
        logger.info('Mechanic %s confirmed completion of %s', mechanic_id, request_id)
        return self._finalize(request_id, confirmed_by=MECHANIC)

    # -- completion ------------------------------------------------------------

    def _finalize(self, request_id, confirmed_by):
        service_request = self.requests.get(request_id)
        if not (service_request.mechanic_confirmed and service_request.customer_confirmed):
            self.store.commit()
            if confirmed_by == MECHANIC:
                self._notify(service_request.customer_id, 'Confirm Completion',
                             'Your mechanic marked the job as done. Please confirm and rate.',
                             service_request)
            else:
                self._notify(service_request.mechanic_id, 'Customer Confirmed',
                             'The customer confirmed the job is done', service_request)
            return Ok(self.requests.get(request_id))

        if service_request.labor_cost is None:
            self.store.rollback()
            return business_rule('Pricing must be entered by the customer before completion',
                                 code='pricing_missing')

        try:
            if not self.requests.finalize(request_id, utcnow()):
                # Another caller finalized; our confirmation still stands
                self.store.commit()
                return Ok(self.requests.get(request_id))

            settled = self.ledger.settle(service_request)
            if isinstance(settled, Err):
                self.store.rollback()
                return settled

            self.store.providers.increment_total_jobs(service_request.mechanic_id)
            self.ratings.recompute(service_request.mechanic_id)
            self.store.commit()
        except IntegrityError:
            self.store.rollback()
            logger.warning('Duplicate settlement for service request %s rolled back', request_id)
            return Err(ErrorKind.CONFLICT, 'Service request was already settled', 'already_settled')

        logger.info('Service request %s completed', request_id)
        service_request = self.requests.get(request_id)
        body = f'Service completed. Total: {service_request.total_cost}'
        self._notify(service_request.customer_id, 'Service Completed', body, service_request)
        self._notify(service_request.mechanic_id, 'Service Completed', body, service_request)
        return Ok(service_request)

    # -- reads -----------------------------------------------------------------

    def get(self, user_id, request_id):
        service_request, err = self._load(request_id)
        if err:
            return err
        if user_id not in (service_request.customer_id, service_request.mechanic_id):
            return forbidden('You do not have access to this request')
        return Ok(service_request)

    def list_for(self, user_id, user_type, status=None):
        if status is not None and status not in RequestStatus.ALL:
            return validation_error(f'Unknown status: {status}')
        if user_type == CUSTOMER:
            return Ok(self.requests.list_for_customer(user_id, status))
        if user_type == MECHANIC:
            return Ok(self.requests.list_for_mechanic(user_id, status))
        return forbidden('Only customers and mechanics have service requests')
