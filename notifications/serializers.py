"""
Serializers Django REST Framework pour le module Notifications.
"""
from rest_framework import serializers
from .models import Notification
from .services import NotificationService


class NotificationSerializer(serializers.ModelSerializer):
    """Notification in-app avec le lien vers l'opération dans le front du destinataire"""
    utilisateur_nom = serializers.CharField(source='utilisateur.username', read_only=True)
    lien = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = [
            'id', 'utilisateur', 'utilisateur_nom', 'titre', 'message',
            'operation_id', 'lien', 'est_lue', 'date_creation', 'date_lecture',
        ]
        read_only_fields = fields

    def get_lien(self, obj):
        if obj.operation_id is None:
            return None
        return NotificationService.lien_operation(obj.utilisateur, obj.operation_id)
