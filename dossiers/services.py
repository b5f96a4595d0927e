"""
Agrégation des dossiers : regroupement des opérations par code dossier et
jointure avec les factures du même code.

Les dossiers ne sont pas stockés en tant que tels : chaque lecture recalcule
les totaux et l'état de paiement à partir des factures courantes.
"""
import logging
from decimal import Decimal
from typing import Iterable

from django.contrib.auth import get_user_model
from django.db.models import Count, DecimalField, F, Sum, Value
from django.db.models.functions import Coalesce

from accounts.services import IdentityService
from operations.enums import EtatPayement
from operations.exceptions import OperationInvalide
from operations.models import Operation
from operations.pagination import paginer
from operations.services import verifier_authentifie, exiger_personnel, exiger_client

from .models import Facture

logger = logging.getLogger(__name__)

MONTANT = DecimalField(max_digits=20, decimal_places=3)
ZERO = Value(Decimal('0'), output_field=MONTANT)


def calculer_etat_payement(etats: Iterable[int]) -> EtatPayement:
    """
    État de paiement d'un dossier à partir de celui de ses factures :
    une facture incomplète rend le dossier incomplet ; sinon il est payé si
    toutes ses factures le sont ; sinon impayé (y compris sans facture).
    """
    etats = [EtatPayement(e) for e in etats]
    if EtatPayement.PAYEMENT_INCOMPLET in etats:
        return EtatPayement.PAYEMENT_INCOMPLET
    if etats and all(e == EtatPayement.PAYEE for e in etats):
        return EtatPayement.PAYEE
    return EtatPayement.IMPAYEE


def resumer_factures(factures):
    """Compteur, description concaténée, totaux et état de paiement d'un ensemble de factures."""
    totaux = factures.aggregate(
        total=Coalesce(Sum('montant_total'), ZERO, output_field=MONTANT),
        paye=Coalesce(Sum('montant_paye'), ZERO, output_field=MONTANT),
        reste=Coalesce(Sum(F('montant_total') - F('montant_paye'), output_field=MONTANT), ZERO, output_field=MONTANT),
    )
    lignes = list(factures.order_by('indice', 'id').values_list('description', 'etat_payement'))
    return {
        'nombre_factures': len(lignes),
        'description': "\n".join(description or '' for description, _ in lignes),
        'montant_total': totaux['total'],
        'montant_paye': totaux['paye'],
        'montant_reste': totaux['reste'],
        'etat_payement': calculer_etat_payement(etat for _, etat in lignes),
    }


def _operations_avec_dossier():
    return Operation.objects.exclude(code_dossier__isnull=True).exclude(code_dossier='')


def filtrer_operations_dossier(queryset, code_dossier=None, clients=None, agents=None):
    if code_dossier:
        queryset = queryset.filter(code_dossier__contains=code_dossier.strip())
        logger.debug(f"Filtre des dossiers par code : {code_dossier}")
    if clients:
        queryset = queryset.filter(utilisateur_id__in=clients)
        logger.debug(f"Filtre des dossiers par clients : {clients}")
    if agents:
        queryset = queryset.filter(reserver_par_id__in=agents)
        logger.debug(f"Filtre des dossiers par agents : {agents}")
    return queryset


def agreger_dossiers(operations, factures, etats_payement=None):
    """
    Regroupe les opérations par code dossier (ordre croissant du code) et
    calcule pour chaque groupe le résumé des factures du même code. Le filtre
    sur l'état de paiement porte sur l'état calculé.
    """
    groupes = (
        operations.values('code_dossier')
        .annotate(nombre_operations=Count('id'))
        .order_by('code_dossier')
    )
    etats_payement = {int(e) for e in etats_payement or []}

    dossiers = []
    for groupe in groupes:
        code = groupe['code_dossier']
        dossier = {
            'code_dossier': code,
            'nombre_operations': groupe['nombre_operations'],
            **resumer_factures(factures.filter(code_dossier=code)),
        }
        if etats_payement and int(dossier['etat_payement']) not in etats_payement:
            continue
        dossiers.append(dossier)

    if etats_payement:
        logger.debug(f"Filtre des dossiers par état de paiement : {sorted(etats_payement)}")
    return dossiers


def _agents(operations):
    """Noms des agents des opérations, dans l'ordre, séparés par des tirets."""
    noms = []
    for operation in operations:
        if operation.reserver_par is not None and operation.reserver_par.username not in noms:
            noms.append(operation.reserver_par.username)
    return "-".join(noms)


def _details(operations, factures, code_dossier):
    operations = list(operations.select_related('utilisateur', 'reserver_par').order_by('id'))
    if not operations:
        logger.warning(f"Aucune opération pour le dossier {code_dossier}")
        raise OperationInvalide(f"No operations found for dossier {code_dossier}")

    dossier = {
        'code_dossier': operations[0].code_dossier,
        'nombre_operations': len(operations),
        **resumer_factures(factures),
        'client': IdentityService.get_user_name(operations[0].utilisateur) or '',
        'agents': _agents(operations),
    }
    return {
        'dossier': dossier,
        'operations': operations,
        'factures': list(factures.order_by('indice', 'id')),
    }


class DossierService:
    """Lectures des dossiers pour le personnel et pour les clients."""

    @staticmethod
    def lister_dossiers(acteur, code_dossier=None, etats_payement=None, clients=None, agents=None,
                        page_number=1, page_size=10):
        logger.info(
            f"Liste des dossiers : page={page_number}, taille={page_size}, code={code_dossier}, "
            f"clients={clients}, agents={agents}, etats={etats_payement}"
        )
        verifier_authentifie(acteur)
        exiger_personnel(acteur)

        operations = filtrer_operations_dossier(_operations_avec_dossier(), code_dossier, clients, agents)
        dossiers = agreger_dossiers(operations, Facture.objects.all(), etats_payement)
        return paginer(dossiers, page_number, page_size)

    @staticmethod
    def client_lister_dossiers(acteur, code_dossier=None, etats_payement=None, page_number=1, page_size=10):
        verifier_authentifie(acteur)
        exiger_client(acteur)
        code_client = DossierService._code_client(acteur)

        operations = filtrer_operations_dossier(
            _operations_avec_dossier().filter(utilisateur=acteur), code_dossier
        )
        dossiers = agreger_dossiers(operations, Facture.objects.filter(code_client=code_client), etats_payement)
        return paginer(dossiers, page_number, page_size)

    @staticmethod
    def details_dossier(acteur, code_dossier):
        logger.info(f"Détails du dossier {code_dossier}")
        verifier_authentifie(acteur)
        exiger_personnel(acteur)
        code = (code_dossier or '').strip()
        return _details(
            Operation.objects.filter(code_dossier=code),
            Facture.objects.filter(code_dossier=code),
            code,
        )

    @staticmethod
    def client_details_dossier(acteur, code_dossier):
        verifier_authentifie(acteur)
        exiger_client(acteur)
        code_client = DossierService._code_client(acteur)
        code = (code_dossier or '').strip()
        return _details(
            Operation.objects.filter(code_dossier=code, utilisateur=acteur),
            Facture.objects.filter(code_dossier=code, code_client=code_client),
            code,
        )

    @staticmethod
    def filtres_dossiers(acteur):
        """États de paiement, codes, clients et agents présents dans les dossiers."""
        verifier_authentifie(acteur)
        exiger_personnel(acteur)
        operations = _operations_avec_dossier()
        User = get_user_model()
        return {
            'etats_payement': [{'value': e.value, 'name': e.label} for e in EtatPayement],
            'codes_dossier': list(operations.order_by('code_dossier').values_list('code_dossier', flat=True).distinct()),
            'clients': list(User.objects.filter(operations__in=operations).distinct().order_by('id')),
            'agents': list(User.objects.filter(operations_reservees__in=operations).distinct().order_by('id')),
        }

    @staticmethod
    def client_filtres_dossiers(acteur):
        verifier_authentifie(acteur)
        exiger_client(acteur)
        operations = _operations_avec_dossier().filter(utilisateur=acteur)
        return {
            'etats_payement': [{'value': e.value, 'name': e.label} for e in EtatPayement],
            'codes_dossier': list(operations.order_by('code_dossier').values_list('code_dossier', flat=True).distinct()),
        }

    @staticmethod
    def _code_client(acteur):
        code_client = IdentityService.get_code_client(acteur)
        if not code_client:
            logger.warning(f"Client {acteur.pk} sans code client")
            raise OperationInvalide(f"User {acteur.pk} does not have the required codeClient.")
        return code_client
