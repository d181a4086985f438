"""
Storage access for the sign-in flow.

Wraps the ORM so callers see a small set of operations and a single
PersistenceError type. "Not found" is reported as None, never as an error.
"""
from datetime import timedelta
import logging

from django.db import DatabaseError

from config.clock import ClockError
from products.models import Product
from users.models import User
from .models import SMSCode

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    pass


class Repository:
    def __init__(self, clock):
        self.clock = clock

    def upsert_sms_code(self, phone, code, ttl_minutes):
        """Store `code` for `phone`, replacing any previous code.

        Runs as one INSERT ... ON CONFLICT (phone) DO UPDATE statement, so
        concurrent requests for the same phone leave exactly one row holding
        the last writer's code and expiry. Returns the stored expiry.
        """
        logger.info("writing sms code to database, phone_number: %s", phone)
        try:
            expires_at = self.clock.now() + timedelta(minutes=ttl_minutes)
        except ClockError as exc:
            raise PersistenceError("unable to compute sms code expiry") from exc

        try:
            SMSCode.objects.bulk_create(
                [SMSCode(phone=phone, code=code, expires_at=expires_at)],
                update_conflicts=True,
                unique_fields=['phone'],
                update_fields=['code', 'expires_at'],
            )
        except DatabaseError as exc:
            raise PersistenceError("unable to insert sms code to database") from exc

        logger.info("sms code successfully written to the database")
        return expires_at

    def get_sms_code(self, phone):
        logger.info("receiving sms code from database")
        try:
            sms_code = SMSCode.objects.filter(phone=phone).first()
        except DatabaseError as exc:
            raise PersistenceError("error during receiving sms code") from exc

        if sms_code is None:
            logger.info("sms code not found in database")
        return sms_code

    def delete_sms_code(self, phone):
        try:
            deleted, _ = SMSCode.objects.filter(phone=phone).delete()
        except DatabaseError as exc:
            raise PersistenceError("unable to delete sms code") from exc
        return deleted

    def get_user_by_phone(self, phone):
        logger.info("receiving user by phone number from database")
        try:
            return User.objects.filter(phone=phone).first()
        except DatabaseError as exc:
            raise PersistenceError("error during receiving user by phone number") from exc

    def insert_user(self, user):
        logger.info("register new user")
        try:
            user.save(force_insert=True)
        except DatabaseError as exc:
            raise PersistenceError("unable to insert user to database") from exc

        logger.info("user successfully inserted to database")
        return user

    def list_products(self):
        logger.info("receiving all products from database")
        try:
            products = list(Product.objects.order_by('id'))
        except DatabaseError as exc:
            raise PersistenceError("error during receiving all products") from exc

        logger.info("products successfully received")
        return products
