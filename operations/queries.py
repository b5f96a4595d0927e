"""
Lectures sur les opérations : listes filtrées et paginées, détails,
historiques, filtres du front et tableaux de bord.
"""
import calendar
import logging

from django.db.models import Case, When, Value, IntegerField, CharField, Count, Q
from django.db.models.functions import Cast, ExtractMonth

from accounts.roles import Roles
from accounts.services import IdentityService
from dossiers.models import Dossier, Facture

from .enums import TypeOperation, EtatOperation, EtatPayement
from .exceptions import Introuvable, NonAutorise, OperationInvalide
from .models import Operation, Historique
from .pagination import paginer
from .services import verifier_authentifie, exiger_personnel, exiger_client, identifiant_operation

logger = logging.getLogger(__name__)


def filtrer_operations(queryset, filtres):
    """
    Applique les filtres de liste du front.

    filtres : recherche_id, date_debut, date_fin, type_operation, etats
    (+ in_etats), clients (+ in_clients), agents (+ in_agents). Les drapeaux
    in_* choisissent entre inclusion et exclusion.
    """
    filtres = filtres or {}

    recherche_id = filtres.get('recherche_id')
    if recherche_id:
        queryset = queryset.annotate(id_texte=Cast('id', CharField())).filter(id_texte__contains=str(recherche_id))
        logger.debug(f"Filtre par identifiant : {recherche_id}")

    if filtres.get('date_debut'):
        queryset = queryset.filter(created__gte=filtres['date_debut'])
    if filtres.get('date_fin'):
        queryset = queryset.filter(created__lte=filtres['date_fin'])

    if filtres.get('type_operation') is not None:
        queryset = queryset.filter(type_operation=filtres['type_operation'])
        logger.debug(f"Filtre par type : {filtres['type_operation']}")

    etats = filtres.get('etats')
    if etats:
        if filtres.get('in_etats', True):
            queryset = queryset.filter(etat_operation__in=etats)
        else:
            queryset = queryset.exclude(etat_operation__in=etats)
        logger.debug(f"Filtre par états : {etats} (inclusion={filtres.get('in_etats', True)})")

    clients = filtres.get('clients')
    if clients:
        if filtres.get('in_clients', True):
            queryset = queryset.filter(utilisateur_id__in=clients)
        else:
            queryset = queryset.exclude(utilisateur_id__in=clients)

    agents = filtres.get('agents')
    if agents:
        if filtres.get('in_agents', True):
            queryset = queryset.filter(reserver_par_id__in=agents)
        else:
            queryset = queryset.filter(Q(reserver_par__isnull=True) | ~Q(reserver_par_id__in=agents))

    return queryset


def ordonner_operations(queryset):
    """Non clôturées d'abord, puis réservées, puis par dernière modification."""
    return queryset.annotate(
        rang_cloture=Case(
            When(etat_operation=EtatOperation.CLOTURE, then=Value(1)),
            default=Value(0),
            output_field=IntegerField(),
        ),
        rang_reservation=Case(
            When(reserver_par__isnull=True, then=Value(1)),
            default=Value(0),
            output_field=IntegerField(),
        ),
    ).order_by('rang_cloture', 'rang_reservation', 'last_modified', 'id')


def _perimetre_personnel(acteur, roles, queryset, exiger_type=False):
    """
    Restreint au type d'opération du membre du personnel s'il en a un.
    Avec exiger_type, un agent sans type d'opération est refusé.
    """
    type_operation = IdentityService.get_type_operation(acteur)
    if type_operation is not None:
        return queryset.filter(type_operation=type_operation)
    if exiger_type:
        _refuser_agent_sans_type(acteur, roles)
    return queryset


def _refuser_agent_sans_type(acteur, roles):
    # le rôle administrateur l'emporte sur le rôle agent
    if Roles.AGENT in roles and Roles.ADMINISTRATOR not in roles:
        logger.warning(f"Agent {acteur.pk} sans type d'opération")
        raise NonAutorise("User is not authorized.")


def _base():
    return Operation.objects.select_related('utilisateur', 'reserver_par')


# --- Personnel ---

def lister_operations(acteur, filtres=None, page_number=1, page_size=10):
    logger.info(f"Liste des opérations demandée par {getattr(acteur, 'pk', None)}")
    verifier_authentifie(acteur)
    roles = exiger_personnel(acteur)
    queryset = _perimetre_personnel(acteur, roles, _base())
    queryset = ordonner_operations(filtrer_operations(queryset, filtres))
    return paginer(queryset, page_number, page_size)


def mes_operations(acteur, filtres=None, page_number=1, page_size=10):
    verifier_authentifie(acteur)
    exiger_personnel(acteur)
    queryset = _base().filter(reserver_par=acteur)
    queryset = filtrer_operations(queryset, filtres).order_by('-last_modified', 'id')
    return paginer(queryset, page_number, page_size)


def operations_non_reservees(acteur, filtres=None, page_number=1, page_size=10):
    """Opérations à prendre en charge : non réservées et non clôturées."""
    verifier_authentifie(acteur)
    roles = exiger_personnel(acteur)
    queryset = _perimetre_personnel(acteur, roles, _base(), exiger_type=True)
    queryset = queryset.filter(reserver_par__isnull=True).exclude(etat_operation=EtatOperation.CLOTURE)
    queryset = filtrer_operations(queryset, filtres).order_by('-last_modified', 'id')
    return paginer(queryset, page_number, page_size)


def details_operation(acteur, operation_id):
    verifier_authentifie(acteur)
    exiger_personnel(acteur)
    operation = (
        _base()
        .prefetch_related('documents', 'commentaires__utilisateur', 'historiques__utilisateur')
        .filter(pk=identifiant_operation(operation_id))
        .first()
    )
    if operation is None:
        raise Introuvable('Operations', operation_id)
    return operation


def lister_historiques(acteur, operation_id=None, page_number=1, page_size=10):
    verifier_authentifie(acteur)
    roles = exiger_personnel(acteur)
    queryset = Historique.objects.select_related('utilisateur', 'operation')
    type_operation = IdentityService.get_type_operation(acteur)
    if type_operation is not None:
        queryset = queryset.filter(operation__type_operation=type_operation)
    if operation_id is not None:
        queryset = queryset.filter(operation_id=operation_id)
    logger.debug(f"Historiques pour {acteur.pk} (rôles {sorted(roles)})")
    return paginer(queryset.order_by('-created', '-id'), page_number, page_size)


def filtres_operations(acteur):
    """Valeurs proposées par les listes déroulantes du front entreprise."""
    verifier_authentifie(acteur)
    roles = exiger_personnel(acteur)
    type_operation = IdentityService.get_type_operation(acteur)
    if type_operation is None:
        _refuser_agent_sans_type(acteur, roles)

    types = list(TypeOperation)
    agents = IdentityService.get_all_users_in_role(Roles.AGENT)
    if type_operation is not None:
        types = [type_operation]
        agents = agents.filter(compte__type_operation=type_operation)

    clients = IdentityService.get_all_users_in_role(Roles.CLIENT)
    noms_par_code = dict(clients.filter(compte__code_client__gt='').values_list('compte__code_client', 'username'))

    dossiers = [
        {'code_dossier': code, 'nom': f"{code}--{noms_par_code.get(code_client, '')}"}
        for code, code_client in Dossier.objects.order_by('code_dossier').values_list('code_dossier', 'code_client')
    ]

    return {
        'types_operation': [{'value': t.value, 'name': t.label} for t in types],
        'etats_operation': [{'value': e.value, 'name': e.label} for e in EtatOperation],
        'agents': list(agents),
        'clients': list(clients),
        'dossiers': dossiers,
    }


# --- Client ---

def client_lister_operations(acteur, filtres=None, page_number=1, page_size=10):
    verifier_authentifie(acteur)
    exiger_client(acteur)
    filtres = dict(filtres or {})
    for cle in ('clients', 'agents'):
        filtres.pop(cle, None)
    queryset = _base().filter(utilisateur=acteur)
    queryset = filtrer_operations(queryset, filtres).order_by('-last_modified', 'id')
    return paginer(queryset, page_number, page_size)


def client_details_operation(acteur, operation_id):
    verifier_authentifie(acteur)
    exiger_client(acteur)
    operation = (
        _base()
        .prefetch_related('documents', 'commentaires__utilisateur', 'historiques__utilisateur')
        .filter(pk=identifiant_operation(operation_id), utilisateur=acteur)
        .first()
    )
    if operation is None:
        raise Introuvable('Operations', operation_id)
    return operation


def client_lister_historiques(acteur, operation_id=None, page_number=1, page_size=10):
    verifier_authentifie(acteur)
    exiger_client(acteur)
    queryset = Historique.objects.select_related('utilisateur', 'operation').filter(operation__utilisateur=acteur)
    if operation_id is not None:
        queryset = queryset.filter(operation_id=operation_id)
    return paginer(queryset.order_by('-created', '-id'), page_number, page_size)


# --- Tableaux de bord ---

def _filtrer_periode(queryset, champ, annee, mois):
    if annee:
        queryset = queryset.filter(**{f'{champ}__year': annee})
    if mois:
        queryset = queryset.filter(**{f'{champ}__month': mois})
    return queryset


def _compter_par_etat(queryset):
    comptes = dict(queryset.values_list('etat_operation').annotate(n=Count('id')).order_by())
    return [{'etat': e.label, 'value': e.value, 'nombre': comptes.get(e.value, 0)} for e in EtatOperation]


def _compter_factures_par_etat(queryset):
    comptes = dict(queryset.values_list('etat_payement').annotate(n=Count('id')).order_by())
    return [{'etat': e.label, 'value': e.value, 'nombre': comptes.get(e.value, 0)} for e in EtatPayement]


def _graphique_annuel(queryset, annee):
    """Douze mois de l'année, à zéro quand il n'y a pas d'opération."""
    par_mois = {
        ligne['mois']: ligne
        for ligne in queryset.filter(created__year=annee)
        .annotate(mois=ExtractMonth('created'))
        .values('mois')
        .annotate(
            total=Count('id'),
            imports=Count('id', filter=Q(type_operation=TypeOperation.IMPORT)),
            exports=Count('id', filter=Q(type_operation=TypeOperation.EXPORT)),
        )
        .order_by('mois')
    }
    graphique = []
    for mois in range(1, 13):
        ligne = par_mois.get(mois, {})
        graphique.append({
            'mois': calendar.month_abbr[mois],
            'total': ligne.get('total', 0),
            'imports': ligne.get('imports', 0),
            'exports': ligne.get('exports', 0),
        })
    return graphique


def _comptes_operations(queryset):
    return {
        'nbr_total_operations': queryset.count(),
        'nbr_encours_operations': queryset.exclude(etat_operation=EtatOperation.CLOTURE).count(),
        'nbr_total_import_operations': queryset.filter(type_operation=TypeOperation.IMPORT).count(),
        'nbr_total_export_operations': queryset.filter(type_operation=TypeOperation.EXPORT).count(),
    }


def tableau_de_bord(acteur, annee=None, mois=None):
    """
    Compteurs du front entreprise. Un administrateur voit tout son périmètre
    et les factures ; un agent voit ses opérations réservées.
    """
    verifier_authentifie(acteur)
    roles = exiger_personnel(acteur)
    operations = _perimetre_personnel(acteur, roles, Operation.objects.all(), exiger_type=True)

    tableau = {}
    if Roles.ADMINISTRATOR in roles:
        if annee:
            tableau['graphique_operations'] = _graphique_annuel(operations, annee)
        operations = _filtrer_periode(operations, 'created', annee, mois)
        factures = _filtrer_periode(Facture.objects.all(), 'date_emission', annee, mois)
        tableau.update(_comptes_operations(operations))
        tableau.update({
            'nbr_not_reserved_operations': operations.filter(reserver_par__isnull=True).count(),
            'nbr_total_agents': IdentityService.get_all_users_in_role(Roles.AGENT).count(),
            'nbr_total_clients': IdentityService.get_all_users_in_role(Roles.CLIENT).count(),
            'nbr_total_factures': factures.count(),
            'operations_par_etat': _compter_par_etat(operations),
            'factures_par_etat': _compter_factures_par_etat(factures),
        })
        return tableau

    operations = _filtrer_periode(operations, 'created', annee, mois)
    mes = operations.filter(reserver_par=acteur)
    tableau.update(_comptes_operations(mes))
    tableau.update({
        'nbr_not_reserved_operations': operations.filter(reserver_par__isnull=True).count(),
        'operations_par_etat': _compter_par_etat(operations),
    })
    return tableau


def client_tableau_de_bord(acteur, annee=None, mois=None):
    verifier_authentifie(acteur)
    exiger_client(acteur)
    code_client = IdentityService.get_code_client(acteur)
    if not code_client:
        logger.warning(f"Client {acteur.pk} sans code client")
        raise OperationInvalide(f"User {acteur.pk} does not have the required codeClient.")

    operations = Operation.objects.filter(utilisateur=acteur)
    factures = Facture.objects.filter(code_client=code_client)

    tableau = {}
    if annee:
        tableau['graphique_operations'] = _graphique_annuel(operations, annee)
    operations = _filtrer_periode(operations, 'created', annee, mois)
    factures = _filtrer_periode(factures, 'date_emission', annee, mois)
    tableau.update(_comptes_operations(operations))
    tableau.update({
        'nbr_total_factures': factures.count(),
        'operations_par_etat': _compter_par_etat(operations),
        'factures_par_etat': _compter_factures_par_etat(factures),
    })
    return tableau
