"""
Énumérations métier des opérations de dédouanement.

Les valeurs entières sont celles exposées par l'API (TypeOperationId,
EtatOperationId...) ; elles ne doivent pas être renumérotées.
"""
from django.db import models


class TypeOperation(models.IntegerChoices):
    IMPORT = 0, 'Import'
    EXPORT = 1, 'Export'
    MAC = 2, 'MAC'


class OperationPriorite(models.IntegerChoices):
    NORMALE = 0, 'Normale'
    URGENTE = 1, 'Urgente'
    TRES_URGENTE = 2, 'Très urgente'


class EtatOperation(models.IntegerChoices):
    """Cycle de dédouanement, du dépôt du dossier jusqu'à la clôture (terminal)."""
    DEPOT_DOSSIER = 0, 'Dépôt dossier'
    EN_COURS = 1, 'En cours'
    TRAITER = 2, 'Traiter'
    PESAGE = 3, 'Pesage'
    VISITE = 4, 'Visite'
    ENVOI_VALEUR = 5, 'Envoi valeur'
    LIQUIDATION = 6, 'Liquidation'
    SOUS_RESERVE_CAUTION_BANCAIRE = 7, 'Sous réserve caution bancaire'
    SOUS_RESERVE_PRODUCTION_DOCUMENTS = 8, 'Sous réserve production documents'
    MAIN_LEVEE = 9, 'Main levée'
    CLOTURE = 10, 'Clôture'


class EtatPayement(models.IntegerChoices):
    IMPAYEE = 0, 'Impayée'
    PAYEMENT_INCOMPLET = 1, 'Paiement incomplet'
    PAYEE = 2, 'Payée'
