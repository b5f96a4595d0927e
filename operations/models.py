from django.db import models
from django.conf import settings
from django.utils import timezone

from .enums import TypeOperation, OperationPriorite, EtatOperation
from .exceptions import OperationInvalide


class Operation(models.Model):
    """
    Opération de dédouanement (import, export, MAC) d'un client.

    Racine de l'agrégat : documents, commentaires et historiques lui
    appartiennent et sont supprimés avec elle.
    """

    # Client propriétaire, fixé à la création
    utilisateur = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='operations',
        help_text="Client propriétaire de l'opération"
    )

    # Agent affecté ; est_reserver en est dérivé
    reserver_par = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='operations_reservees',
        help_text="Agent ayant réservé l'opération"
    )

    type_operation = models.IntegerField(choices=TypeOperation.choices)
    operation_priorite = models.IntegerField(
        choices=OperationPriorite.choices,
        default=OperationPriorite.NORMALE
    )
    etat_operation = models.IntegerField(
        choices=EtatOperation.choices,
        default=EtatOperation.DEPOT_DOSSIER
    )

    regime = models.CharField(max_length=100, null=True, blank=True)
    bureau = models.CharField(max_length=100, null=True, blank=True)
    code_dossier = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        db_index=True,
        help_text="Clé de regroupement avec les factures du dossier"
    )

    tr = models.BooleanField(default=False, verbose_name="TR")
    debours = models.BooleanField(default=False, verbose_name="Débours")
    confirmation_dedouanement = models.BooleanField(default=False, verbose_name="Confirmation de dédouanement")

    created = models.DateTimeField(auto_now_add=True)
    last_modified = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'operations_operation'
        verbose_name = "Opération"
        verbose_name_plural = "Opérations"
        ordering = ['-last_modified']

    def __str__(self):
        return f"Opération #{self.pk} ({self.get_type_operation_display()})"

    @property
    def est_reserver(self):
        return self.reserver_par_id is not None

    @property
    def est_verrouillee(self):
        return self.etat_operation == EtatOperation.CLOTURE


def chemin_document(instance, filename):
    """documents/<client>/<operation>/<fichier>"""
    return f"documents/{instance.operation.utilisateur.username}/{instance.operation_id}/{filename}"


class Document(models.Model):
    operation = models.ForeignKey(Operation, on_delete=models.CASCADE, related_name='documents')
    nom_document = models.CharField(max_length=255)
    fichier = models.FileField(upload_to=chemin_document, max_length=500)
    taille_fichier = models.BigIntegerField(null=True, blank=True, help_text="Taille en octets")
    type_fichier = models.CharField(max_length=100, blank=True, default='', help_text="Type MIME")
    est_accepte = models.BooleanField(default=True)
    created = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'operations_document'
        ordering = ['created', 'id']

    def __str__(self):
        return self.nom_document


class Commentaire(models.Model):
    operation = models.ForeignKey(Operation, on_delete=models.CASCADE, related_name='commentaires')
    utilisateur = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='commentaires'
    )
    message = models.TextField()
    created = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'operations_commentaire'
        ordering = ['created', 'id']

    def __str__(self):
        return f"{self.utilisateur} : {self.message[:50]}"


class Historique(models.Model):
    """Journal d'audit append-only ; jamais modifié, supprimé seulement avec l'opération."""

    operation = models.ForeignKey(Operation, on_delete=models.CASCADE, related_name='historiques')
    utilisateur = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='historiques'
    )
    action = models.TextField()
    created = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'operations_historique'
        ordering = ['-created', '-id']

    def __str__(self):
        return f"#{self.operation_id} {self.action[:60]}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise OperationInvalide("Un historique ne peut pas être modifié.")
        super().save(*args, **kwargs)
