from django.db import models


class User(models.Model):
    """A person who has signed in at least once with an SMS code.

    Rows are created on the first successful code verification for a phone
    and are never updated by the sign-in flow. No name is collected there,
    so `name` stays empty unless edited through the admin.
    """
    name = models.CharField(max_length=150, blank=True, default='')
    phone = models.TextField(unique=True)

    class Meta:
        db_table = 'users'

    def __str__(self):
        return f"{self.id} {self.phone}"
