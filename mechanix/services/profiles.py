"""
Customer profile edits.

Email and phone identify an account, so neither may collide with another
user's. The lookup excludes the caller, letting a customer resubmit their own
values unchanged; the unique indexes on ``users`` catch a concurrent writer
that slips past the lookup.
"""
import logging

from sqlalchemy.exc import IntegrityError

from mechanix.errors import Err, ErrorKind, Ok, not_found

logger = logging.getLogger(__name__)


class ProfileService:

    def __init__(self, store):
        self.store = store

    def update(self, user_id, full_name, email, phone, gender):
        user = self.store.users.get(user_id)
        if user is None:
            return not_found('User')

        email = email.lower()
        if self.store.users.taken_by_other(user_id, 'email', email):
            return Err(ErrorKind.CONFLICT, 'Email is already taken by another user', 'duplicate_account')
        if self.store.users.taken_by_other(user_id, 'phone', phone):
            return Err(ErrorKind.CONFLICT, 'Phone number is already taken by another user',
                       'duplicate_account')

        user.full_name = full_name
        user.email = email
        user.phone = phone
        user.gender = gender
        try:
            self.store.commit()
        except IntegrityError:
            self.store.rollback()
            logger.warning('Profile update for user %s collided with another account', user_id)
            return Err(ErrorKind.CONFLICT, 'Email or phone number is already taken by another user',
                       'duplicate_account')

        logger.info('User %s updated their profile', user_id)
        return Ok(user)
