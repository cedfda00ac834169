"""
Settlement, withdrawal and wallet reporting tests
"""
from decimal import Decimal

import pytest
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from mechanix.errors import Err, ErrorKind, Ok
from mechanix.models import ProviderProfile, ServiceRequest, WalletTransaction
from mechanix.repositories import SqlStore
from mechanix.services import SettlementLedger, build_services
from tests.fakes import RecordingNotificationSink


def _profile(db_session, user):
    return db_session.query(ProviderProfile).filter_by(user_id=user.id).one()


def _ledger_sum(db_session, user):
    total = db_session.query(func.coalesce(func.sum(WalletTransaction.amount), 0)).filter(
        WalletTransaction.user_id == user.id).scalar()
    return Decimal(str(total)).quantize(Decimal('0.01'))


def _complete(services, customer, mechanic, service_request, labor='100.00', material='50.00', rating=4):
    services.requests.complete_by_mechanic(mechanic.id, service_request.id)
    return services.requests.complete_by_customer(
        customer.id, service_request.id,
        material_cost=Decimal(material),
        labor_cost=Decimal(labor),
        rating=rating,
    )


class TestCommissionSplit:

    def test_fifteen_percent_of_labor(self, services):
        assert services.ledger.split(Decimal('100.00')) == (Decimal('15.00'), Decimal('85.00'))

    def test_commission_rounds_to_cents(self, services):
        commission, earnings = services.ledger.split(Decimal('33.33'))

        assert commission == Decimal('5.00')
        assert earnings == Decimal('28.33')

    def test_custom_rate(self, app):
        ledger = SettlementLedger(SqlStore(), commission_rate='0.10')

        assert ledger.split(Decimal('80')) == (Decimal('8.00'), Decimal('72.00'))


class TestSettlement:

    def test_completion_scenario(self, services, db_session, customer, mechanic, in_progress_request):
        result = _complete(services, customer, mechanic, in_progress_request)

        assert result.value.status == 'completed'
        assert result.value.total_cost == Decimal('150.00')

        commissions = db_session.query(WalletTransaction).filter_by(
            reference_id=in_progress_request.id, transaction_type='commission_deduction').all()
        assert len(commissions) == 1
        assert commissions[0].amount == Decimal('-15.00')
        assert commissions[0].user_id == mechanic.id

        assert _profile(db_session, mechanic).wallet_balance == Decimal('85.00')

    def test_material_cost_is_not_commissioned(self, services, db_session, customer, mechanic,
                                               in_progress_request):
        _complete(services, customer, mechanic, in_progress_request, labor='100.00', material='900.00')

        assert _profile(db_session, mechanic).wallet_balance == Decimal('85.00')

    def test_balance_equals_ledger_sum(self, services, db_session, customer, mechanic, in_progress_request):
        _complete(services, customer, mechanic, in_progress_request)

        assert _profile(db_session, mechanic).wallet_balance == _ledger_sum(db_session, mechanic)

    def test_settling_again_is_a_no_op(self, services, db_session, customer, mechanic, in_progress_request):
        _complete(services, customer, mechanic, in_progress_request)
        completed = db_session.get(ServiceRequest, in_progress_request.id)

        result = services.ledger.settle(completed)
        db_session.commit()

        assert isinstance(result, Ok)
        assert result.value.applied is False
        assert db_session.query(WalletTransaction).filter_by(
            reference_id=in_progress_request.id, transaction_type='commission_deduction').count() == 1
        assert _profile(db_session, mechanic).wallet_balance == Decimal('85.00')

    def test_settlement_requires_pricing(self, services, in_progress_request):
        result = services.ledger.settle(in_progress_request)

        assert result.kind == ErrorKind.BUSINESS_RULE
        assert result.code == 'pricing_missing'

    def test_concurrent_duplicate_is_rolled_back(self, app, db_session, customer, mechanic,
                                                 in_progress_request, monkeypatch):
        # A racing finalizer already wrote its commission row but the check ran before it committed
        db_session.add(WalletTransaction(
            user_id=mechanic.id, amount=Decimal('-15.00'), transaction_type='commission_deduction',
            reference_id=in_progress_request.id, reference_type='service_request', status='completed',
        ))
        db_session.commit()
        services = build_services(app.config, notifier=RecordingNotificationSink())
        monkeypatch.setattr(services.store.ledger, 'has_entry', lambda *args: False)

        result = _complete(services, customer, mechanic, in_progress_request)

        assert isinstance(result, Err)
        assert result.kind == ErrorKind.CONFLICT
        assert db_session.query(WalletTransaction).filter_by(
            reference_id=in_progress_request.id, transaction_type='commission_deduction').count() == 1
        assert _profile(db_session, mechanic).wallet_balance == Decimal('0.00')


class TestWithdrawal:

    def test_rejects_amount_above_balance(self, services, db_session, provider_factory):
        mechanic = provider_factory(wallet_balance=Decimal('150.00'))

        result = services.ledger.withdraw(mechanic.id, Decimal('200.00'))

        assert result.kind == ErrorKind.BUSINESS_RULE
        assert result.code == 'insufficient_balance'
        assert db_session.query(WalletTransaction).filter_by(user_id=mechanic.id).count() == 0
        assert _profile(db_session, mechanic).wallet_balance == Decimal('150.00')

    def test_debits_and_records_pending_withdrawal(self, services, db_session, provider_factory):
        mechanic = provider_factory(wallet_balance=Decimal('150.00'))

        result = services.ledger.withdraw(mechanic.id, Decimal('50.00'), {'bank': 'GTBank', 'account': '0123'})

        assert result.value['new_balance'] == 100.0
        transaction = result.value['transaction']
        assert transaction['amount'] == -50.0
        assert transaction['transaction_type'] == 'withdrawal'
        assert transaction['status'] == 'pending'
        assert transaction['bank_details'] == {'bank': 'GTBank', 'account': '0123'}
        assert _profile(db_session, mechanic).wallet_balance == Decimal('100.00')

    def test_full_balance_can_be_withdrawn(self, services, db_session, provider_factory):
        mechanic = provider_factory(wallet_balance=Decimal('150.00'))

        result = services.ledger.withdraw(mechanic.id, Decimal('150.00'))

        assert result.value['new_balance'] == 0.0

    @pytest.mark.parametrize('amount', [Decimal('0'), Decimal('-5')])
    def test_amount_must_be_positive(self, services, mechanic, amount):
        result = services.ledger.withdraw(mechanic.id, amount)

        assert result.kind == ErrorKind.VALIDATION

    def test_unknown_mechanic(self, services, customer):
        result = services.ledger.withdraw(customer.id, Decimal('10'))

        assert result.kind == ErrorKind.NOT_FOUND

    def test_failed_insert_reverts_debit(self, app, db_session, provider_factory, monkeypatch):
        mechanic = provider_factory(wallet_balance=Decimal('150.00'))
        store = SqlStore()
        ledger = SettlementLedger(store)

        def broken_append(entry):
            raise SQLAlchemyError('insert failed')

        monkeypatch.setattr(store.ledger, 'append', broken_append)

        result = ledger.withdraw(mechanic.id, Decimal('50.00'))

        assert result.kind == ErrorKind.INTERNAL
        assert _profile(db_session, mechanic).wallet_balance == Decimal('150.00')
        assert db_session.query(WalletTransaction).count() == 0

    def test_balance_tracks_ledger_after_settlement_and_withdrawal(self, services, db_session, customer,
                                                                   mechanic, in_progress_request):
        _complete(services, customer, mechanic, in_progress_request)

        services.ledger.withdraw(mechanic.id, Decimal('35.00'))

        assert _profile(db_session, mechanic).wallet_balance == Decimal('50.00')
        assert _ledger_sum(db_session, mechanic) == Decimal('50.00')


class TestWalletAndStats:

    def test_wallet_page(self, services, customer, mechanic, in_progress_request):
        _complete(services, customer, mechanic, in_progress_request)
        services.ledger.withdraw(mechanic.id, Decimal('10.00'))

        result = services.ledger.wallet(mechanic.id, page=1, limit=2)

        assert result.value['balance'] == 75.0
        assert len(result.value['recent_transactions']) == 2
        assert result.value['pagination'] == {'page': 1, 'limit': 2, 'total': 3, 'total_pages': 2}

    def test_empty_wallet(self, services, mechanic):
        result = services.ledger.wallet(mechanic.id)

        assert result.value['balance'] == 0.0
        assert result.value['recent_transactions'] == []
        assert result.value['pagination']['total_pages'] == 0

    def test_stats_after_completion(self, services, customer, mechanic, in_progress_request):
        _complete(services, customer, mechanic, in_progress_request, rating=4)

        stats = services.ledger.stats(mechanic.id).value

        assert stats['today_earnings'] == 85.0
        assert stats['today_jobs'] == 1
        assert stats['total_jobs'] == 1
        assert stats['rating'] == 4.0
        assert stats['wallet_balance'] == 85.0
        assert stats['is_available'] is True

    def test_stats_for_unknown_mechanic(self, services, customer):
        assert services.ledger.stats(customer.id).kind == ErrorKind.NOT_FOUND
