"""
Administration Django des comptes du portail
"""
from django.contrib import admin
from .models import Compte


@admin.register(Compte)
class CompteAdmin(admin.ModelAdmin):
    list_display = ['user', 'code_client', 'type_operation', 'email_notif', 'a_acces', 'date_creation']
    list_filter = ['type_operation', 'a_acces', 'user__groups']
    search_fields = ['user__username', 'user__email', 'code_client', 'email_notif']
    readonly_fields = ['date_creation']
    raw_id_fields = ['user']
