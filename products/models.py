from django.db import models


class Product(models.Model):
    name = models.CharField(max_length=255)

    class Meta:
        db_table = 'products'
        ordering = ['id']

    def __str__(self):
        return self.name
