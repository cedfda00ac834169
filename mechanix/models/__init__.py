"""SQLAlchemy models package"""
from .user import User
from .provider import ProviderProfile, ProviderSpecialization
from .catalog import ServiceCategory, Vehicle
from .service_request import ServiceRequest, RequestStatus
from .wallet import WalletTransaction, TransactionType, TransactionStatus, REFERENCE_SERVICE_REQUEST
from .notification import Notification

__all__ = [
    'User',
    'ProviderProfile',
    'ProviderSpecialization',
    'ServiceCategory',
    'Vehicle',
    'ServiceRequest',
    'RequestStatus',
    'WalletTransaction',
    'TransactionType',
    'TransactionStatus',
    'REFERENCE_SERVICE_REQUEST',
    'Notification',
]
