from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['utilisateur', 'operation_id', 'est_lue', 'date_creation']
    list_filter = ['est_lue', 'date_creation']
    search_fields = ['utilisateur__username', 'message']
    readonly_fields = ['date_creation', 'date_lecture']
