"""
Notification sink for service request events.

IMPORTANT: ``notify`` must never raise. A notification failure is logged and
swallowed so it can never undo or block a committed state transition.
"""
import logging

from mechanix.models import Notification

logger = logging.getLogger(__name__)

SERVICE_REQUEST = 'service_request'


class NotificationSink:
    """Fire-and-forget interface consumed by the request state machine."""

    def notify(self, user_id, title, body, type=SERVICE_REQUEST, reference_id=None):
        raise NotImplementedError


class DatabaseNotificationSink(NotificationSink):
    """Persists notifications to the ``notifications`` table for clients to poll."""

    def __init__(self, session):
        self.session = session

    def notify(self, user_id, title, body, type=SERVICE_REQUEST, reference_id=None):
        try:
            self.session.add(Notification(
                user_id=user_id,
                title=title,
                body=body,
                type=type,
                reference_id=reference_id,
            ))
            self.session.commit()
            logger.debug('Notification "%s" queued for user %s', title, user_id)
        except Exception:
            logger.exception('Failed to store notification for user %s', user_id)
            try:
                self.session.rollback()
            except Exception:
                logger.exception('Rollback after notification failure also failed')
