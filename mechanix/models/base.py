"""
Base model with common fields and methods
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from mechanix.extensions import db


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


def serialize_value(value):
    """Convert a column value into something ``jsonify`` can emit."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def one_of(column, values, name, nullable=False):
    """CHECK constraint restricting ``column`` to ``values``."""
    allowed = ', '.join(f"'{v}'" for v in values)
    sql = f'{column} IN ({allowed})'
    if nullable:
        sql = f'{column} IS NULL OR {sql}'
    return db.CheckConstraint(sql, name=name)


class BaseModel(db.Model):
    """Abstract base model with common fields"""
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self, exclude=None):
        """
        Convert model to dictionary

        Args:
            exclude (list): List of fields to exclude

        Returns:
            dict: Model as dictionary
        """
        exclude = exclude or []
        return {
            column.name: serialize_value(getattr(self, column.name))
            for column in self.__table__.columns
            if column.name not in exclude
        }
