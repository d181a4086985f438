"""
Clock used for every expiry computation in the sign-in flow.

Times are always converted to one named zone so that stored expiries and the
"now" they are compared against agree regardless of the host's local zone.
"""
from datetime import datetime
import logging

import pytz

logger = logging.getLogger(__name__)

DEFAULT_ZONE = 'Europe/Moscow'


class ClockError(Exception):
    pass


class Clock:
    def __init__(self, zone_name=DEFAULT_ZONE):
        self.zone_name = zone_name

    def _zone(self):
        try:
            return pytz.timezone(self.zone_name)
        except pytz.UnknownTimeZoneError as exc:
            logger.error("Unable to load time zone: %s", self.zone_name)
            raise ClockError(f"unable to load location: {self.zone_name}") from exc

    def now(self) -> datetime:
        return datetime.now(pytz.utc).astimezone(self._zone())


def get_clock() -> Clock:
    from django.conf import settings
    return Clock(getattr(settings, 'SIGN_IN_TIME_ZONE', DEFAULT_ZONE))
