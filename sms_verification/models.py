from django.db import models


class SMSCode(models.Model):
    # One row per phone; a new request overwrites code and expiry in place.
    phone = models.TextField(unique=True)
    code = models.CharField(max_length=8)
    expires_at = models.DateTimeField()

    class Meta:
        db_table = 'sms_codes'

    def __str__(self):
        return f"{self.phone} (expires {self.expires_at:%Y-%m-%d %H:%M})"
