"""
Settlement ledger: commission split, withdrawals and wallet reporting.

Every balance change is paired with the WalletTransaction rows that explain it
in the same transaction, so ``ProviderProfile.wallet_balance`` stays equal to
the sum of the mechanic's transaction amounts.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import SQLAlchemyError

from mechanix.errors import Ok, business_rule, internal_error, not_found, validation_error
from mechanix.models import (
    REFERENCE_SERVICE_REQUEST,
    TransactionStatus,
    TransactionType,
    WalletTransaction,
)

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
DEFAULT_COMMISSION_RATE = Decimal('0.15')
SETTLEMENT_TYPES = (TransactionType.CREDIT, TransactionType.COMMISSION_DEDUCTION)


def to_money(value):
    """Coerce to a Decimal rounded half-up to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def start_of_day(now=None):
    now = now or datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class Settlement:
    labor_cost: Decimal
    commission: Decimal
    earnings: Decimal
    applied: bool = True


class SettlementLedger:

    def __init__(self, store, commission_rate=DEFAULT_COMMISSION_RATE):
        self.store = store
        self.commission_rate = Decimal(str(commission_rate))

    def split(self, labor_cost):
        """Return ``(commission, earnings)`` for a labor cost."""
        labor_cost = to_money(labor_cost)
        commission = to_money(labor_cost * self.commission_rate)
        return commission, labor_cost - commission

    def settle(self, service_request):
        """
        Apply the commission split for a completed request.

        Runs inside the completion unit of work and never commits. A request
        that already carries a commission row is a no-op; a concurrent duplicate
        that slips past the check fails on the unique constraint when the rows
        are flushed, and the caller rolls the whole completion back.
        """
        if service_request.labor_cost is None:
            return business_rule('Pricing must be entered by the customer before completion',
                                 code='pricing_missing')

        ledger = self.store.ledger
        labor_cost = to_money(service_request.labor_cost)
        commission, earnings = self.split(labor_cost)

        if ledger.has_entry(service_request.id, REFERENCE_SERVICE_REQUEST,
                            TransactionType.COMMISSION_DEDUCTION):
            logger.info('Service request %s already settled, skipping', service_request.id)
            return Ok(Settlement(labor_cost, commission, earnings, applied=False))

        if not self.store.providers.credit_balance(service_request.mechanic_id, earnings):
            return not_found('Mechanic profile')

        ledger.append(WalletTransaction(
            user_id=service_request.mechanic_id,
            amount=labor_cost,
            transaction_type=TransactionType.CREDIT,
            description='Labor payment for service request',
            reference_id=service_request.id,
            reference_type=REFERENCE_SERVICE_REQUEST,
            status=TransactionStatus.COMPLETED,
        ))
        ledger.append(WalletTransaction(
            user_id=service_request.mechanic_id,
            amount=-commission,
            transaction_type=TransactionType.COMMISSION_DEDUCTION,
            description=f'Platform commission ({self.commission_rate * 100:.0f}%)',
            reference_id=service_request.id,
            reference_type=REFERENCE_SERVICE_REQUEST,
            status=TransactionStatus.COMPLETED,
        ))

        logger.info('Settled service request %s: labor=%s commission=%s earnings=%s',
                    service_request.id, labor_cost, commission, earnings)
        return Ok(Settlement(labor_cost, commission, earnings))

    def withdraw(self, user_id, amount, bank_details=None):
        """
        Debit the wallet and record a pending withdrawal in one transaction.

        The debit is conditional on the balance covering ``amount``; if the
        ledger row cannot be written the debit is rolled back with it.
        """
        amount = to_money(amount)
        if amount <= 0:
            return validation_error('Withdrawal amount must be greater than zero')

        providers = self.store.providers
        profile = providers.get_by_user(user_id)
        if profile is None:
            return not_found('Mechanic profile')

        if not providers.debit_balance(user_id, amount):
            logger.info('Withdrawal of %s rejected for mechanic %s: insufficient balance', amount, user_id)
            return business_rule('Insufficient balance', code='insufficient_balance')

        transaction = WalletTransaction(
            user_id=user_id,
            amount=-amount,
            transaction_type=TransactionType.WITHDRAWAL,
            description='Withdrawal request',
            status=TransactionStatus.PENDING,
            bank_details=bank_details,
        )
        try:
            self.store.ledger.append(transaction)
            self.store.commit()
        except SQLAlchemyError:
            self.store.rollback()
            logger.exception('Failed to record withdrawal for mechanic %s, debit reverted', user_id)
            return internal_error('Failed to create withdrawal transaction')

        logger.info('Withdrawal of %s requested by mechanic %s', amount, user_id)
        return Ok({
            'transaction': transaction.to_dict(),
            'new_balance': float(profile.wallet_balance),
        })

    def wallet(self, user_id, page=1, limit=20):
        profile = self.store.providers.get_by_user(user_id)
        if profile is None:
            return not_found('Mechanic profile')

        ledger = self.store.ledger
        total = ledger.count_for_user(user_id)
        transactions = ledger.list_for_user(user_id, offset=(page - 1) * limit, limit=limit)
        return Ok({
            'balance': float(profile.wallet_balance or 0),
            'recent_transactions': [t.to_dict() for t in transactions],
            'pagination': {
                'page': page,
                'limit': limit,
                'total': total,
                'total_pages': math.ceil(total / limit) if total else 0,
            },
        })

    def stats(self, user_id, now=None):
        """Dashboard figures. Today's earnings are the net of today's settlement rows."""
        profile = self.store.providers.get_by_user(user_id)
        if profile is None:
            return not_found('Mechanic profile')

        since = start_of_day(now)
        today_earnings = self.store.ledger.sum_for_user(user_id, SETTLEMENT_TYPES, since=since)
        today_jobs = self.store.requests.count_completed_since(user_id, since)
        return Ok({
            'today_earnings': float(today_earnings),
            'today_jobs': today_jobs,
            'total_jobs': profile.total_jobs or 0,
            'rating': float(profile.rating or 0),
            'wallet_balance': float(profile.wallet_balance or 0),
            'is_available': profile.is_available,
        })
