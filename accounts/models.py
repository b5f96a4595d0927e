from django.db import models
from django.conf import settings
from django.core.validators import EmailValidator, RegexValidator
from django.utils import timezone

from operations.enums import TypeOperation


class Compte(models.Model):
    """
    Profil applicatif attaché à un utilisateur Django.

    Le rôle (Administrator, Agent, Client) est porté par les groupes Django ;
    le profil ajoute le périmètre de type d'opération du personnel, l'adresse
    de notification et le code client des comptes clients.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='compte',
        help_text="Utilisateur Django associé pour l'authentification"
    )

    telephone = models.CharField(
        max_length=15,
        blank=True,
        default='',
        validators=[
            RegexValidator(
                regex=r'^\+?1?\d{8,15}$',
                message="Le numéro de téléphone doit être au format international."
            )
        ],
        help_text="Numéro de téléphone"
    )

    email_notif = models.EmailField(
        blank=True,
        default='',
        validators=[EmailValidator()],
        help_text="Adresse email recevant les notifications d'opérations"
    )

    type_operation = models.IntegerField(
        choices=TypeOperation.choices,
        null=True,
        blank=True,
        help_text="Restreint un agent / administrateur à un seul type d'opération"
    )

    code_client = models.CharField(
        max_length=50,
        blank=True,
        default='',
        db_index=True,
        help_text="Code client (comptes clients uniquement), clé de jointure avec les factures"
    )

    a_acces = models.BooleanField(
        default=True,
        help_text="Indique si le compte peut se connecter au portail"
    )

    date_creation = models.DateTimeField(
        default=timezone.now,
        help_text="Date de création du compte"
    )

    class Meta:
        db_table = 'accounts_compte'
        verbose_name = "Compte"
        verbose_name_plural = "Comptes"
        ordering = ['-date_creation']

    def __str__(self):
        return f"{self.user.username} ({self.user.email})"

    @property
    def email_notification(self):
        """Adresse de notification, à défaut l'email de connexion"""
        return self.email_notif or self.user.email
