"""Wallet ledger model"""
from mechanix.extensions import db
from .base import generate_uuid, one_of, serialize_value, utcnow


class TransactionType:
    COMMISSION_DEDUCTION = 'commission_deduction'
    WITHDRAWAL = 'withdrawal'
    TOP_UP = 'top_up'
    CREDIT = 'credit'

    ALL = (COMMISSION_DEDUCTION, WITHDRAWAL, TOP_UP, CREDIT)


class TransactionStatus:
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'

    ALL = (PENDING, COMPLETED, FAILED)


REFERENCE_SERVICE_REQUEST = 'service_request'


class WalletTransaction(db.Model):
    """
    Append-only ledger entry. ``amount`` is signed: negative rows are debits.

    The unique constraint guarantees at most one entry of each type per
    originating service request (withdrawals carry no reference and are not
    affected since NULLs never collide).
    """
    __tablename__ = 'wallet_transactions'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='RESTRICT'),
                        nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    transaction_type = db.Column(db.String(30), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    reference_id = db.Column(db.String(36), nullable=True)
    reference_type = db.Column(db.String(50), nullable=True)
    status = db.Column(db.String(20), nullable=True)
    bank_details = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    __table_args__ = (
        db.UniqueConstraint('reference_id', 'reference_type', 'transaction_type',
                            name='uq_wallet_transactions_reference_type'),
        one_of('transaction_type', TransactionType.ALL, name='ck_wallet_transactions_type'),
        one_of('status', TransactionStatus.ALL, name='ck_wallet_transactions_status', nullable=True),
    )

    def __repr__(self):
        return f'<WalletTransaction {self.transaction_type} {self.amount}>'

    def to_dict(self):
        return {
            column.name: serialize_value(getattr(self, column.name))
            for column in self.__table__.columns
        }
