"""
Schema-level guards: enum CHECK constraints on status and type columns
"""
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from mechanix.models import RequestStatus, TransactionStatus, TransactionType, User, WalletTransaction


class TestEnumConstraints:

    def test_unknown_transaction_type_rejected(self, db_session, mechanic):
        db_session.add(WalletTransaction(user_id=mechanic.id, amount=Decimal('5.00'), transaction_type='bonus'))

        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

    @pytest.mark.parametrize('transaction_type', TransactionType.ALL)
    def test_known_transaction_types_accepted(self, db_session, mechanic, transaction_type):
        db_session.add(WalletTransaction(user_id=mechanic.id, amount=Decimal('5.00'),
                                         transaction_type=transaction_type))
        db_session.commit()

    def test_transaction_status_may_be_null_or_known(self, db_session, mechanic):
        for status in (None,) + TransactionStatus.ALL:
            db_session.add(WalletTransaction(user_id=mechanic.id, amount=Decimal('-1.00'),
                                             transaction_type=TransactionType.WITHDRAWAL, status=status))
        db_session.commit()

        db_session.add(WalletTransaction(user_id=mechanic.id, amount=Decimal('-1.00'),
                                         transaction_type=TransactionType.WITHDRAWAL, status='queued'))
        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

    def test_unknown_request_status_rejected(self, db_session, service_request_factory):
        with pytest.raises(IntegrityError):
            service_request_factory(status='on_hold')
        db_session.rollback()

    @pytest.mark.parametrize('status', [s for s in RequestStatus.ALL if s != RequestStatus.COMPLETED])
    def test_request_statuses_accepted(self, service_request_factory, status):
        assert service_request_factory(status=status).status == status

    def test_unknown_user_type_rejected(self, db_session):
        db_session.add(User(full_name='Admin', user_type='admin'))

        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()

    def test_unknown_verification_status_rejected(self, provider_factory, db_session):
        with pytest.raises(IntegrityError):
            provider_factory(verification_status='suspended')
        db_session.rollback()
