"""
Domain services, wired together once per application.

Routes fetch them with ``get_services()`` rather than building their own, so
tests can swap a collaborator on ``app.extensions['mechanix']``.
"""
from dataclasses import dataclass

from flask import current_app

from mechanix.repositories import SqlStore
from .geo import GeoMatcher, haversine_km
from .ledger import DEFAULT_COMMISSION_RATE, SettlementLedger
from .notifications import DatabaseNotificationSink, NotificationSink
from .profiles import ProfileService
from .ratings import RatingAggregator
from .requests import RequestStateMachine


@dataclass
class Services:
    store: SqlStore
    matcher: GeoMatcher
    ledger: SettlementLedger
    ratings: RatingAggregator
    requests: RequestStateMachine
    notifier: NotificationSink
    profiles: ProfileService


def build_services(config, store=None, notifier=None):
    store = store or SqlStore()
    notifier = notifier or DatabaseNotificationSink(store.session)
    ledger = SettlementLedger(store, commission_rate=config.get('COMMISSION_RATE', DEFAULT_COMMISSION_RATE))
    ratings = RatingAggregator(store.requests, store.providers)
    return Services(
        store=store,
        matcher=GeoMatcher(store.providers),
        ledger=ledger,
        ratings=ratings,
        requests=RequestStateMachine(store, ledger, ratings, notifier),
        notifier=notifier,
        profiles=ProfileService(store),
    )


def get_services() -> Services:
    return current_app.extensions['mechanix']


__all__ = [
    'Services',
    'build_services',
    'get_services',
    'GeoMatcher',
    'haversine_km',
    'SettlementLedger',
    'RatingAggregator',
    'RequestStateMachine',
    'ProfileService',
    'NotificationSink',
    'DatabaseNotificationSink',
]
