"""
Repository interfaces the domain services depend on.

Services never reach for ``db.session`` directly; they are handed a ``Store``
(or a single repository) so tests can substitute in-memory fakes. Methods that
change shared state are conditional writes: they return ``False`` when the
guard in their WHERE clause no longer holds, which is how concurrent callers
lose races without corrupting state.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence


class UserRepository:

    def get(self, user_id: str):
        raise NotImplementedError

    def taken_by_other(self, user_id: str, column: str, value: str) -> bool:
        """True when a user other than ``user_id`` already holds ``value`` in ``column``."""
        raise NotImplementedError


class ProviderRepository:

    def get_by_user(self, user_id: str):
        raise NotImplementedError

    def list_matchable(self) -> list:
        """Providers that are verification-approved and currently available."""
        raise NotImplementedError

    def set_availability(self, profile, is_available: bool) -> None:
        raise NotImplementedError

    def set_location(self, profile, lat: float, lng: float) -> None:
        raise NotImplementedError

    def update_rating(self, user_id: str, rating: Decimal) -> None:
        raise NotImplementedError

    def increment_total_jobs(self, user_id: str) -> None:
        raise NotImplementedError

    def credit_balance(self, user_id: str, amount: Decimal) -> bool:
        raise NotImplementedError

    def debit_balance(self, user_id: str, amount: Decimal) -> bool:
        """Debit only if the balance covers ``amount``."""
        raise NotImplementedError


class ServiceRequestRepository:

    def get(self, request_id: str):
        raise NotImplementedError

    def add(self, service_request) -> None:
        raise NotImplementedError

    def list_for_customer(self, user_id: str, status: Optional[str] = None) -> list:
        raise NotImplementedError

    def list_for_mechanic(self, user_id: str, status: Optional[str] = None) -> list:
        raise NotImplementedError

    def transition(self, request_id: str, from_statuses: Sequence[str], to_status: str, **values) -> bool:
        """Move to ``to_status`` only if the current status is one of ``from_statuses``."""
        raise NotImplementedError

    def confirm(self, request_id: str, party: str, **values) -> bool:
        """Set ``<party>_confirmed`` while ``in_progress`` and not yet confirmed by that party."""
        raise NotImplementedError

    def finalize(self, request_id: str, completed_at: datetime) -> bool:
        """``in_progress`` with both flags set -> ``completed``. True for exactly one caller."""
        raise NotImplementedError

    def ratings_for_mechanic(self, user_id: str) -> List[int]:
        """Non-null customer ratings across the mechanic's completed requests."""
        raise NotImplementedError

    def count_completed_since(self, user_id: str, since: datetime) -> int:
        raise NotImplementedError


class LedgerRepository:

    def has_entry(self, reference_id: str, reference_type: str, transaction_type: str) -> bool:
        raise NotImplementedError

    def append(self, entry) -> None:
        raise NotImplementedError

    def list_for_user(self, user_id: str, offset: int, limit: int) -> list:
        raise NotImplementedError

    def count_for_user(self, user_id: str) -> int:
        raise NotImplementedError

    def sum_for_user(self, user_id: str, transaction_types: Optional[Sequence[str]] = None,
                     since: Optional[datetime] = None) -> Decimal:
        raise NotImplementedError


class CatalogRepository:

    def get_category(self, category_id: str):
        raise NotImplementedError

    def list_active_categories(self) -> list:
        raise NotImplementedError

    def get_vehicle_for_customer(self, vehicle_id: str, customer_id: str):
        raise NotImplementedError

    def list_vehicles(self, customer_id: str) -> list:
        raise NotImplementedError

    def add_vehicle(self, vehicle) -> None:
        raise NotImplementedError


class Store:
    """A unit of work: the repositories plus a single commit boundary."""

    users: UserRepository
    providers: ProviderRepository
    requests: ServiceRequestRepository
    ledger: LedgerRepository
    catalog: CatalogRepository

    def commit(self) -> None:
        raise NotImplementedError

    def rollback(self) -> None:
        raise NotImplementedError
