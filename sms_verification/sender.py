import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


class SMSDeliveryError(Exception):
    pass


def _message_text(code: str) -> str:
    minutes = getattr(settings, 'SMS_CODE_EXPIRATION_MINUTES', None)
    if minutes:
        return f"Your sign-in code is {code}. It expires in {minutes} minutes."
    return f"Your sign-in code is {code}."


def _send_console(phone: str, code: str) -> None:
    # Stand-in for a real SMS gateway
    logger.info("sms sent to phone number: %s | code: %s", phone, code)


def _send_twilio(phone: str, code: str) -> None:
    account_sid = getattr(settings, 'TWILIO_ACCOUNT_SID', '')
    auth_token = getattr(settings, 'TWILIO_AUTH_TOKEN', '')
    from_number = getattr(settings, 'TWILIO_FROM_NUMBER', '')
    if not account_sid or not auth_token or not from_number:
        raise SMSDeliveryError('Missing Twilio credentials: set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_FROM_NUMBER')

    data = {
        'To': phone,
        'From': from_number,
        'Body': _message_text(code),
    }
    try:
        resp = requests.post(
            TWILIO_MESSAGES_URL.format(sid=account_sid),
            auth=(account_sid, auth_token),
            data=data,
            timeout=10,
        )
    except requests.RequestException as exc:
        raise SMSDeliveryError(f"Twilio request failed: {exc}") from exc

    if resp.status_code >= 400:
        raise SMSDeliveryError(f"Twilio error {resp.status_code}: {resp.text}")
    try:
        sid = resp.json().get('sid', '')
    except ValueError as exc:
        raise SMSDeliveryError(f"Twilio returned an unreadable response: {resp.text}") from exc
    logger.info("sms queued for %s sid=%s", phone, sid)


BACKENDS = {
    'console': _send_console,
    'twilio': _send_twilio,
}


def send_sign_in_code(phone: str, code: str) -> None:
    backend = getattr(settings, 'SMS_BACKEND', 'console')
    send = BACKENDS.get(backend)
    if send is None:
        raise SMSDeliveryError(f"Unknown SMS backend: {backend}")
    send(phone, code)
