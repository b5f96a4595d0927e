from django.db import models

from operations.enums import EtatPayement


class Client(models.Model):
    """Société cliente, identifiée par son code client (référentiel de facturation)."""

    code_client = models.CharField(max_length=50, unique=True)
    nom = models.CharField(max_length=255)
    created = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'dossiers_client'
        ordering = ['nom']

    def __str__(self):
        return f"{self.code_client} - {self.nom}"


class Dossier(models.Model):
    code_dossier = models.CharField(max_length=50, unique=True)
    code_client = models.CharField(max_length=50, db_index=True)
    date = models.DateTimeField(null=True, blank=True)
    created = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'dossiers_dossier'
        ordering = ['code_dossier']

    def __str__(self):
        return self.code_dossier


class Facture(models.Model):
    """
    Facture d'un dossier. Le rattachement se fait par code (code_dossier,
    code_client) et non par clé étrangère : les factures sont importées
    depuis la comptabilité.
    """

    indice = models.IntegerField(null=True, blank=True)
    code_facture = models.CharField(max_length=50, null=True, blank=True)
    code_dossier = models.CharField(max_length=50, null=True, blank=True, db_index=True)
    code_client = models.CharField(max_length=50, null=True, blank=True, db_index=True)

    date_echeance = models.DateTimeField(null=True, blank=True)
    date_emission = models.DateTimeField(null=True, blank=True)

    montant_total = models.DecimalField(max_digits=18, decimal_places=3, null=True, blank=True)
    montant_paye = models.DecimalField(max_digits=18, decimal_places=3, null=True, blank=True)
    montant_restant = models.DecimalField(max_digits=18, decimal_places=3, null=True, blank=True)
    devise = models.CharField(max_length=10, null=True, blank=True)

    description = models.TextField(null=True, blank=True)
    chemin_fichier = models.CharField(max_length=500, null=True, blank=True)
    methode_paiement = models.CharField(max_length=100, null=True, blank=True)
    instructions_paiement = models.TextField(null=True, blank=True)

    etat_payement = models.IntegerField(choices=EtatPayement.choices, default=EtatPayement.IMPAYEE)

    created = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'dossiers_facture'
        ordering = ['code_dossier', 'indice', 'id']

    def __str__(self):
        return f"{self.code_facture or self.pk} ({self.code_dossier})"
