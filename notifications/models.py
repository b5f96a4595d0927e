from django.db import models
from django.conf import settings
from django.utils import timezone


class Notification(models.Model):
    """
    Notification in-app d'un utilisateur du portail.

    La ligne en base est l'enregistrement de livraison : le front la lit par
    l'API (liste, non lues) et l'acquitte avec marquer-lue.
    """

    utilisateur = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications',
        verbose_name="Utilisateur"
    )
    titre = models.CharField(max_length=200, default='', blank=True, verbose_name="Titre")
    message = models.TextField(verbose_name="Message")

    # Opération concernée (lien vers le front)
    operation_id = models.PositiveIntegerField(null=True, blank=True, verbose_name="Opération")

    est_lue = models.BooleanField(default=False, verbose_name="Lue")

    # Dates
    date_creation = models.DateTimeField(
        default=timezone.now,
        verbose_name="Date de création"
    )
    date_lecture = models.DateTimeField(null=True, blank=True, verbose_name="Date de lecture")

    class Meta:
        db_table = 'notifications_notification'
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ['-date_creation', '-id']
        indexes = [
            models.Index(fields=['utilisateur', 'date_creation'], name='notif_user_date_idx'),
            models.Index(fields=['utilisateur', 'est_lue'], name='notif_user_lue_idx'),
        ]

    def __str__(self):
        return f"{self.message[:50]} - {self.utilisateur.username}"

    def marquer_comme_lue(self):
        if self.est_lue:
            return
        self.est_lue = True
        self.date_lecture = timezone.now()
        self.save(update_fields=['est_lue', 'date_lecture'])

    @classmethod
    def get_recentes(cls, utilisateur, limit=10):
        """Retourne les notifications récentes pour un utilisateur."""
        return cls.objects.filter(
            utilisateur=utilisateur
        ).order_by('-date_creation')[:limit]
