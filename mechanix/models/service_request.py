"""Service request model"""
from mechanix.extensions import db
from .base import BaseModel, one_of


class RequestStatus:
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    ALL = (PENDING, ACCEPTED, IN_PROGRESS, COMPLETED, CANCELLED)
    CANCELLABLE = (PENDING, ACCEPTED)


class ServiceRequest(BaseModel):
    """
    Job order linking a customer, a mechanic, a vehicle and a category.

    Rows are never deleted; cancellation is a terminal status. ``status`` only
    reaches ``completed`` once both confirmation flags are true.
    """
    __tablename__ = 'service_requests'

    customer_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='RESTRICT'),
                            nullable=False, index=True)
    mechanic_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='RESTRICT'),
                            nullable=False, index=True)
    vehicle_id = db.Column(db.String(36), db.ForeignKey('customer_vehicles.id', ondelete='RESTRICT'),
                           nullable=False)
    category_id = db.Column(db.String(36), db.ForeignKey('service_categories.id', ondelete='RESTRICT'),
                            nullable=False)

    problem_description = db.Column(db.Text, nullable=False)
    customer_location_lat = db.Column(db.Float, nullable=False)
    customer_location_lng = db.Column(db.Float, nullable=False)
    customer_location_address = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=RequestStatus.PENDING)

    # Pricing is entered by the customer on completion
    material_cost = db.Column(db.Numeric(12, 2), nullable=True)
    labor_cost = db.Column(db.Numeric(12, 2), nullable=True)
    total_cost = db.Column(db.Numeric(12, 2), nullable=True)

    customer_rating = db.Column(db.Integer, nullable=True)
    customer_review = db.Column(db.Text, nullable=True)

    mechanic_confirmed = db.Column(db.Boolean, nullable=False, default=False)
    customer_confirmed = db.Column(db.Boolean, nullable=False, default=False)

    arrived_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        one_of('status', RequestStatus.ALL, name='ck_service_requests_status'),
        db.CheckConstraint(
            'customer_rating IS NULL OR (customer_rating >= 1 AND customer_rating <= 5)',
            name='ck_service_requests_rating',
        ),
        db.CheckConstraint(
            "status != 'completed' OR (mechanic_confirmed AND customer_confirmed)",
            name='ck_service_requests_completed_confirmed',
        ),
        db.Index('ix_service_requests_mechanic_status', 'mechanic_id', 'status'),
    )

    customer = db.relationship('User', foreign_keys=[customer_id], lazy='joined')
    mechanic = db.relationship('User', foreign_keys=[mechanic_id], lazy='joined')
    vehicle = db.relationship('Vehicle', lazy='joined')
    category = db.relationship('ServiceCategory', lazy='joined')

    def __repr__(self):
        return f'<ServiceRequest {self.id} - {self.status}>'

    def to_dict(self, include_relationships=False):
        """Convert to dictionary with optional relationships"""
        data = super().to_dict()
        if include_relationships:
            data['customer'] = self.customer.to_public_dict() if self.customer else None
            data['mechanic'] = self.mechanic.to_public_dict() if self.mechanic else None
            data['vehicle'] = self.vehicle.to_dict(exclude=['customer_id']) if self.vehicle else None
            data['category'] = self.category.to_dict() if self.category else None
        return data
