"""Provider (mechanic) profile models"""
from mechanix.extensions import db
from .base import BaseModel, generate_uuid, one_of

VERIFICATION_STATUSES = ('pending', 'approved', 'rejected')


class ProviderProfile(BaseModel):
    """
    Mechanic profile: availability, location, rating and the running wallet
    balance. ``wallet_balance`` is the only mutable ledger total and must stay
    equal to the sum of the provider's WalletTransaction amounts.
    """
    __tablename__ = 'provider_profiles'

    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'),
                        nullable=False, unique=True, index=True)
    verification_status = db.Column(db.String(20), nullable=False, default='pending')
    is_available = db.Column(db.Boolean, nullable=False, default=False)
    current_lat = db.Column(db.Float, nullable=True)
    current_lng = db.Column(db.Float, nullable=True)
    profile_photo_url = db.Column(db.Text, nullable=True)
    rating = db.Column(db.Numeric(2, 1), nullable=False, default=0)
    total_jobs = db.Column(db.Integer, nullable=False, default=0)
    wallet_balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    __table_args__ = (
        db.CheckConstraint('wallet_balance >= 0', name='ck_provider_wallet_balance_positive'),
        db.CheckConstraint('rating >= 0 AND rating <= 5', name='ck_provider_rating_range'),
        one_of('verification_status', VERIFICATION_STATUSES, name='ck_provider_verification_status'),
        db.Index('ix_provider_profiles_matchable', 'verification_status', 'is_available'),
    )

    user = db.relationship('User', back_populates='provider_profile', lazy='joined')
    specializations = db.relationship('ProviderSpecialization', back_populates='provider',
                                      lazy='selectin', cascade='all, delete-orphan')

    def __repr__(self):
        return f'<ProviderProfile {self.user_id} - {self.verification_status}>'

    @property
    def specialization_names(self):
        return [s.specialization for s in self.specializations]

    @property
    def has_location(self):
        return self.current_lat is not None and self.current_lng is not None


class ProviderSpecialization(db.Model):
    __tablename__ = 'provider_specializations'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    provider_id = db.Column(db.String(36), db.ForeignKey('provider_profiles.id', ondelete='CASCADE'),
                            nullable=False, index=True)
    specialization = db.Column(db.String(100), nullable=False)

    provider = db.relationship('ProviderProfile', back_populates='specializations')
