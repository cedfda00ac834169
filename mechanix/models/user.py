"""User model"""
from mechanix.extensions import db
from .base import BaseModel, one_of

USER_TYPES = ('customer', 'mechanic', 'vendor')


class User(BaseModel):
    """
    Account record. Credentials and OTP verification live in the identity
    service; this table backs foreign keys, display names and the editable
    customer profile.
    """
    __tablename__ = 'users'

    full_name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    phone = db.Column(db.String(20), unique=True, nullable=True, index=True)
    gender = db.Column(db.String(20), nullable=True)
    user_type = db.Column(db.String(20), nullable=False, default='customer')
    profile_picture_url = db.Column(db.Text, nullable=True)

    __table_args__ = (
        one_of('user_type', USER_TYPES, name='ck_users_user_type'),
    )

    provider_profile = db.relationship('ProviderProfile', back_populates='user', uselist=False)
    vehicles = db.relationship('Vehicle', back_populates='customer', lazy='dynamic')

    def __repr__(self):
        return f'<User {self.id} ({self.user_type})>'

    def to_public_dict(self):
        return {
            'id': self.id,
            'full_name': self.full_name,
            'profile_picture_url': self.profile_picture_url,
        }

    def to_profile_dict(self):
        """Own profile, as returned to the account holder."""
        return {
            'id': self.id,
            'email': self.email,
            'phone': self.phone,
            'full_name': self.full_name,
            'gender': self.gender,
            'user_type': self.user_type,
            'profile_picture_url': self.profile_picture_url,
        }
