from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('id', 'phone', 'name')
    search_fields = ('phone', 'name')
    ordering = ('-id',)
