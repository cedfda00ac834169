"""Service categories and customer vehicles"""
from mechanix.extensions import db
from .base import BaseModel


class ServiceCategory(BaseModel):
    __tablename__ = 'service_categories'

    name = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    icon_url = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self, exclude=None):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'icon_url': self.icon_url,
        }


class Vehicle(BaseModel):
    __tablename__ = 'customer_vehicles'

    customer_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'),
                            nullable=False, index=True)
    car_name = db.Column(db.String(100), nullable=False)
    car_model = db.Column(db.String(100), nullable=True)
    car_year = db.Column(db.Integer, nullable=True)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)

    customer = db.relationship('User', back_populates='vehicles')

    def __repr__(self):
        return f'<Vehicle {self.car_name} {self.car_model}>'
