"""
Views Django REST Framework pour le module Notifications.
"""
from rest_framework import viewsets, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiExample, OpenApiResponse

from .models import Notification
from .serializers import NotificationSerializer
from .services import NotificationService


@extend_schema_view(
    list=extend_schema(
        summary="Liste des notifications de l'utilisateur",
        description="""
        Affiche les notifications reçues par l'utilisateur connecté, les plus récentes en premier.

        Types de notifications du portail:
        - Opération créée (administrateurs, agent affecté, client)
        - Opération réservée par un agent (client)
        - Détails, documents ou commentaires modifiés (agent réservataire, client, administrateurs)
        """,
        responses={200: NotificationSerializer(many=True)}
    ),
    retrieve=extend_schema(
        summary="Détails d'une notification",
    ),
)
@extend_schema(tags=["🔔 Notifications"])
class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet des notifications de l'utilisateur connecté
    """
    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        # Chaque utilisateur ne voit que ses propres notifications
        return Notification.objects.filter(utilisateur=self.request.user).order_by('-date_creation', '-id')

    @extend_schema(
        summary="Marquer une notification comme lue",
        responses={
            200: NotificationSerializer,
            404: OpenApiResponse(description="Notification introuvable")
        },
        examples=[
            OpenApiExample(
                "Succès marquage lecture",
                value={
                    "success": True,
                    "message": "Notification marquée comme lue",
                    "notification": {"id": 123, "est_lue": True, "date_lecture": "2026-06-25T14:30:00Z"}
                }
            )
        ]
    )
    @action(detail=True, methods=['post'], url_path='marquer-lue')
    def marquer_lue(self, request, pk=None):
        """
        POST /api/notifications/{id}/marquer-lue/
        """
        notification = NotificationService.marquer_lue(self.get_object())
        return Response({
            'success': True,
            'message': 'Notification marquée comme lue',
            'notification': NotificationSerializer(notification).data
        })

    @extend_schema(
        summary="Marquer toutes les notifications comme lues",
        responses={
            200: OpenApiResponse(
                description="Toutes les notifications marquées comme lues",
                examples=[
                    OpenApiExample(
                        "Succès marquage en masse",
                        value={
                            "success": True,
                            "message": "15 notifications marquées comme lues",
                            "notifications_mises_a_jour": 15
                        }
                    )
                ]
            )
        }
    )
    @action(detail=False, methods=['post'], url_path='marquer-toutes-lues')
    def marquer_toutes_lues(self, request):
        """
        POST /api/notifications/marquer-toutes-lues/
        """
        count = NotificationService.marquer_toutes_lues(request.user)
        return Response({
            'success': True,
            'message': f'{count} notifications marquées comme lues',
            'notifications_mises_a_jour': count
        })

    @extend_schema(
        summary="Récupérer les notifications non lues",
        description="Compteur et liste des notifications non lues (badge du front).",
    )
    @action(detail=False, methods=['get'], url_path='non-lues')
    def non_lues(self, request):
        """
        GET /api/notifications/non-lues/
        """
        notifications = NotificationService.non_lues(request.user)
        serializer = NotificationSerializer(notifications, many=True)
        return Response({
            'count': notifications.count(),
            'notifications': serializer.data
        })
