import logging
from typing import Optional

from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from accounts.roles import Roles
from accounts.services import IdentityService

from .models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Fan-out des notifications d'opérations.

    Deux canaux : la notification in-app (persistée, ses erreurs remontent à
    l'appelant) et l'email (au mieux : une erreur d'envoi est journalisée et
    n'interrompt jamais la commande qui l'a déclenchée).
    """

    @staticmethod
    def envoyer_notification(utilisateur, message: str, operation_id: Optional[int] = None) -> Notification:
        """Crée la notification in-app du destinataire."""
        notification = Notification.objects.create(
            utilisateur=utilisateur,
            titre=f"Opération #{operation_id}" if operation_id else "",
            message=message,
            operation_id=operation_id,
        )
        logger.info(f"Notification créée: {notification.id} pour {utilisateur.username}")
        return notification

    @staticmethod
    def lien_operation(utilisateur, operation_id) -> str:
        if IdentityService.is_in_role(utilisateur, Roles.CLIENT):
            base = getattr(settings, 'NEJPORTAL_FRONT_CLIENT_URL', '')
        else:
            base = getattr(settings, 'NEJPORTAL_FRONT_ENTREPRISE_URL', '')
        return f"{base.rstrip('/')}/operations/{operation_id}"

    @staticmethod
    def envoyer_email_operation(email: str, operation_id, message: str, nom: str, lien: str = '') -> int:
        """
        Envoie l'email de notification d'une opération.

        Lève les erreurs du backend email : c'est à l'appelant de décider
        s'il les tolère.
        """
        sujet = f"[NEJ Portal] Opération #{operation_id}"
        corps = f"Bonjour {nom},\n\n{message}\n"
        if lien:
            corps += f"\nConsulter l'opération : {lien}\n"
        return send_mail(
            sujet,
            corps,
            getattr(settings, 'DEFAULT_FROM_EMAIL', None),
            [email],
            fail_silently=False,
        )

    @staticmethod
    def notifier_utilisateur(utilisateur, message: str, operation_id=None) -> Notification:
        """
        Notifie un utilisateur : in-app d'abord, puis email au mieux.
        """
        notification = NotificationService.envoyer_notification(utilisateur, message, operation_id)

        if not getattr(settings, 'NEJPORTAL_EMAIL_NOTIFICATIONS', True):
            return notification

        email = IdentityService.get_user_email_notif(utilisateur)
        if not email:
            logger.debug(f"Pas d'adresse de notification pour {utilisateur.username}, email ignoré")
            return notification

        try:
            NotificationService.envoyer_email_operation(
                email,
                operation_id,
                message,
                IdentityService.get_user_name(utilisateur) or email,
                lien=NotificationService.lien_operation(utilisateur, operation_id),
            )
        except Exception as e:
            logger.error(f"Échec de l'envoi de l'email de notification à {email}: {str(e)}")

        return notification

    @staticmethod
    def notifier_administrateurs(message: str, operation_id=None):
        notifications = []
        for admin in IdentityService.get_all_users_in_role(Roles.ADMINISTRATOR):
            notifications.append(NotificationService.notifier_utilisateur(admin, message, operation_id))
        return notifications

    @staticmethod
    def marquer_lue(notification: Notification) -> Notification:
        notification.marquer_comme_lue()
        return notification

    @staticmethod
    def marquer_toutes_lues(utilisateur) -> int:
        count = Notification.objects.filter(utilisateur=utilisateur, est_lue=False).update(
            est_lue=True, date_lecture=timezone.now()
        )
        logger.info(f"{count} notifications marquées comme lues pour {utilisateur.username}")
        return count

    @staticmethod
    def non_lues(utilisateur):
        return Notification.objects.filter(utilisateur=utilisateur, est_lue=False)
