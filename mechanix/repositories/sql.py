"""
SQLAlchemy-backed repositories.

Nothing in here commits; ``SqlStore.commit()`` is the only commit boundary so
a whole state transition (confirmation, finalization, settlement, rating)
lands in one transaction or not at all.
"""
from decimal import Decimal

from sqlalchemy import func, select, update

from mechanix.extensions import db
from mechanix.models import (
    ProviderProfile,
    RequestStatus,
    ServiceCategory,
    ServiceRequest,
    User,
    Vehicle,
    WalletTransaction,
)
from .base import (
    CatalogRepository,
    LedgerRepository,
    ProviderRepository,
    ServiceRequestRepository,
    Store,
    UserRepository,
)

CENT = Decimal('0.01')


class _SqlRepository:

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def _conditional_update(self, model, criteria, values):
        stmt = (
            update(model)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        changed = self.session.execute(stmt).rowcount == 1
        if changed:
            self._expire_cached(model)
        return changed

    def _expire_cached(self, model):
        # The UPDATE bypassed the ORM; drop stale copies so the next read reloads.
        for obj in list(self.session.identity_map.values()):
            if isinstance(obj, model):
                self.session.expire(obj)


class SqlUserRepository(_SqlRepository, UserRepository):

    def get(self, user_id):
        return self.session.get(User, user_id)

    def taken_by_other(self, user_id, column, value):
        field = getattr(User, column)
        stmt = select(User.id).where(field == value, User.id != user_id).limit(1)
        return self.session.execute(stmt).first() is not None


class SqlProviderRepository(_SqlRepository, ProviderRepository):

    def get_by_user(self, user_id):
        return self.session.execute(
            select(ProviderProfile).where(ProviderProfile.user_id == user_id)
        ).scalar_one_or_none()

    def list_matchable(self):
        stmt = (
            select(ProviderProfile)
            .where(
                ProviderProfile.verification_status == 'approved',
                ProviderProfile.is_available.is_(True),
            )
            .order_by(ProviderProfile.created_at, ProviderProfile.id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def set_availability(self, profile, is_available):
        profile.is_available = bool(is_available)

    def set_location(self, profile, lat, lng):
        profile.current_lat = lat
        profile.current_lng = lng

    def update_rating(self, user_id, rating):
        self._conditional_update(
            ProviderProfile,
            [ProviderProfile.user_id == user_id],
            {'rating': rating},
        )

    def increment_total_jobs(self, user_id):
        self._conditional_update(
            ProviderProfile,
            [ProviderProfile.user_id == user_id],
            {'total_jobs': ProviderProfile.total_jobs + 1},
        )

    def credit_balance(self, user_id, amount):
        return self._conditional_update(
            ProviderProfile,
            [ProviderProfile.user_id == user_id],
            {'wallet_balance': ProviderProfile.wallet_balance + amount},
        )

    def debit_balance(self, user_id, amount):
        return self._conditional_update(
            ProviderProfile,
            [ProviderProfile.user_id == user_id, ProviderProfile.wallet_balance >= amount],
            {'wallet_balance': ProviderProfile.wallet_balance - amount},
        )


class SqlServiceRequestRepository(_SqlRepository, ServiceRequestRepository):

    def get(self, request_id):
        return self.session.get(ServiceRequest, request_id)

    def add(self, service_request):
        self.session.add(service_request)
        self.session.flush()

    def _list(self, column, user_id, status):
        stmt = select(ServiceRequest).where(column == user_id)
        if status:
            stmt = stmt.where(ServiceRequest.status == status)
        stmt = stmt.order_by(ServiceRequest.created_at.desc())
        return list(self.session.execute(stmt).scalars().all())

    def list_for_customer(self, user_id, status=None):
        return self._list(ServiceRequest.customer_id, user_id, status)

    def list_for_mechanic(self, user_id, status=None):
        return self._list(ServiceRequest.mechanic_id, user_id, status)

    def transition(self, request_id, from_statuses, to_status, **values):
        values['status'] = to_status
        return self._conditional_update(
            ServiceRequest,
            [ServiceRequest.id == request_id, ServiceRequest.status.in_(list(from_statuses))],
            values,
        )

    def confirm(self, request_id, party, **values):
        flag = getattr(ServiceRequest, f'{party}_confirmed')
        values[f'{party}_confirmed'] = True
        return self._conditional_update(
            ServiceRequest,
            [
                ServiceRequest.id == request_id,
                ServiceRequest.status == RequestStatus.IN_PROGRESS,
                flag.is_(False),
            ],
            values,
        )

    def finalize(self, request_id, completed_at):
        return self._conditional_update(
            ServiceRequest,
            [
                ServiceRequest.id == request_id,
                ServiceRequest.status == RequestStatus.IN_PROGRESS,
                ServiceRequest.mechanic_confirmed.is_(True),
                ServiceRequest.customer_confirmed.is_(True),
            ],
            {'status': RequestStatus.COMPLETED, 'completed_at': completed_at},
        )

    def ratings_for_mechanic(self, user_id):
        stmt = select(ServiceRequest.customer_rating).where(
            ServiceRequest.mechanic_id == user_id,
            ServiceRequest.status == RequestStatus.COMPLETED,
            ServiceRequest.customer_rating.is_not(None),
        )
        return [int(r) for r in self.session.execute(stmt).scalars().all()]

    def count_completed_since(self, user_id, since):
        stmt = select(func.count(ServiceRequest.id)).where(
            ServiceRequest.mechanic_id == user_id,
            ServiceRequest.status == RequestStatus.COMPLETED,
            ServiceRequest.completed_at >= since,
        )
        return self.session.execute(stmt).scalar_one()


class SqlLedgerRepository(_SqlRepository, LedgerRepository):

    def has_entry(self, reference_id, reference_type, transaction_type):
        stmt = select(WalletTransaction.id).where(
            WalletTransaction.reference_id == reference_id,
            WalletTransaction.reference_type == reference_type,
            WalletTransaction.transaction_type == transaction_type,
        ).limit(1)
        return self.session.execute(stmt).first() is not None

    def append(self, entry):
        self.session.add(entry)
        self.session.flush()

    def list_for_user(self, user_id, offset, limit):
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.user_id == user_id)
            .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id)
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())

    def count_for_user(self, user_id):
        stmt = select(func.count(WalletTransaction.id)).where(WalletTransaction.user_id == user_id)
        return self.session.execute(stmt).scalar_one()

    def sum_for_user(self, user_id, transaction_types=None, since=None):
        stmt = select(func.coalesce(func.sum(WalletTransaction.amount), 0)).where(
            WalletTransaction.user_id == user_id
        )
        if transaction_types:
            stmt = stmt.where(WalletTransaction.transaction_type.in_(list(transaction_types)))
        if since is not None:
            stmt = stmt.where(WalletTransaction.created_at >= since)
        total = self.session.execute(stmt).scalar_one()
        return Decimal(str(total)).quantize(CENT)


class SqlCatalogRepository(_SqlRepository, CatalogRepository):

    def get_category(self, category_id):
        return self.session.get(ServiceCategory, category_id)

    def list_active_categories(self):
        stmt = select(ServiceCategory).where(ServiceCategory.is_active.is_(True)).order_by(ServiceCategory.name)
        return list(self.session.execute(stmt).scalars().all())

    def get_vehicle_for_customer(self, vehicle_id, customer_id):
        return self.session.execute(
            select(Vehicle).where(Vehicle.id == vehicle_id, Vehicle.customer_id == customer_id)
        ).scalar_one_or_none()

    def list_vehicles(self, customer_id):
        stmt = (
            select(Vehicle)
            .where(Vehicle.customer_id == customer_id)
            .order_by(Vehicle.is_primary.desc(), Vehicle.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def add_vehicle(self, vehicle):
        self.session.add(vehicle)
        self.session.flush()


class SqlStore(Store):

    def __init__(self, session=None):
        self.session = session if session is not None else db.session
        self.users = SqlUserRepository(self.session)
        self.providers = SqlProviderRepository(self.session)
        self.requests = SqlServiceRequestRepository(self.session)
        self.ledger = SqlLedgerRepository(self.session)
        self.catalog = SqlCatalogRepository(self.session)

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
