"""Persistence seams for the domain services."""
from .base import (
    CatalogRepository,
    LedgerRepository,
    ProviderRepository,
    ServiceRequestRepository,
    Store,
    UserRepository,
)
from .sql import SqlStore

__all__ = [
    'CatalogRepository',
    'LedgerRepository',
    'ProviderRepository',
    'ServiceRequestRepository',
    'Store',
    'UserRepository',
    'SqlStore',
]
