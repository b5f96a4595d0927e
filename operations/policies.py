"""
Politique de modification champ par champ des opérations.

Fonctions pures : elles reçoivent un instantané de l'opération, la demande
et l'ensemble des rôles de l'acteur, et retournent les champs à modifier.
Aucun accès base de données ici.
"""
from collections import namedtuple

from accounts.roles import Roles

from .enums import TypeOperation, OperationPriorite, EtatOperation
from .exceptions import OperationInvalide

CHAMPS_PERSONNEL = (
    'type_operation',
    'code_dossier',
    'operation_priorite',
    'etat_operation',
    'bureau',
    'tr',
    'debours',
    'confirmation_dedouanement',
    'regime',
    'reserver_par',
)

CHAMPS_CLIENT = ('type_operation', 'bureau', 'regime')

CHAMPS_TEXTE = ('code_dossier', 'bureau', 'regime')

LIBELLES = {
    'type_operation': "Type",
    'code_dossier': "Code dossier",
    'operation_priorite': "Priorité",
    'etat_operation': "État",
    'bureau': "Bureau",
    'tr': "TR",
    'debours': "Débours",
    'confirmation_dedouanement': "Confirmation de dédouanement",
    'regime': "Régime",
    'reserver_par': "Agent",
}

ENUMS = {
    'type_operation': TypeOperation,
    'operation_priorite': OperationPriorite,
    'etat_operation': EtatOperation,
}

Contexte = namedtuple('Contexte', ['est_agent', 'est_admin', 'cloture', 'code_valide'])


def est_vide(valeur):
    return valeur is None or (isinstance(valeur, str) and not valeur.strip())


def normaliser_texte(valeur):
    if est_vide(valeur):
        return None
    return valeur.strip()


def instantane(operation):
    """Valeurs courantes des champs modifiables d'une opération."""
    return {
        'type_operation': operation.type_operation,
        'code_dossier': operation.code_dossier,
        'operation_priorite': operation.operation_priorite,
        'etat_operation': operation.etat_operation,
        'bureau': operation.bureau,
        'tr': operation.tr,
        'debours': operation.debours,
        'confirmation_dedouanement': operation.confirmation_dedouanement,
        'regime': operation.regime,
        'reserver_par': operation.reserver_par_id,
    }


def valider_enum(champ, valeur):
    enum = ENUMS[champ]
    try:
        return enum(int(valeur))
    except (TypeError, ValueError):
        raise OperationInvalide(f"Invalid {enum.__name__} value.")


def fusionner_demande(courant, fournis, champs=CHAMPS_PERSONNEL):
    """
    Complète la demande avec les valeurs courantes des champs non fournis.

    Un champ absent de `fournis` est demandé à sa valeur actuelle ; un champ
    texte fourni vide est demandé à None.
    """
    demande = {champ: courant[champ] for champ in champs}
    for champ in champs:
        if champ not in fournis:
            continue
        valeur = fournis[champ]
        if champ in ENUMS:
            valeur = int(valider_enum(champ, valeur))
        elif champ in CHAMPS_TEXTE:
            valeur = normaliser_texte(valeur)
        elif champ == 'reserver_par':
            valeur = None if est_vide(valeur) else int(valeur)
        demande[champ] = valeur
    return demande


def verifier_cloture(etat_demande, code_dossier_valide):
    """Entrer en clôture exige un code dossier valide, quel que soit le rôle."""
    if etat_demande == EtatOperation.CLOTURE and not code_dossier_valide:
        raise OperationInvalide("Impossible de clôturer une opération sans un code dossier valide.")


# --- Gardes par champ (table de décision du personnel) ---

def _admin(ctx, valeur):
    return ctx.est_admin


def _agent_hors_cloture_ou_admin(ctx, valeur):
    return (ctx.est_agent and not ctx.cloture) or ctx.est_admin


def _garde_code_dossier(ctx, valeur):
    return (
        ((ctx.est_agent or ctx.est_admin) and ctx.code_valide)
        or (est_vide(valeur) and not ctx.cloture)
    )


def _garde_etat(ctx, valeur):
    return (
        (ctx.est_agent and not ctx.cloture)
        or (ctx.est_agent and ctx.cloture and ctx.code_valide)
        or ctx.est_admin
    )


GARDES_PERSONNEL = {
    'type_operation': _admin,
    'code_dossier': _garde_code_dossier,
    'operation_priorite': _admin,
    'etat_operation': _garde_etat,
    'bureau': _agent_hors_cloture_ou_admin,
    'tr': _admin,
    'debours': _admin,
    'confirmation_dedouanement': _admin,
    'regime': _agent_hors_cloture_ou_admin,
    'reserver_par': _agent_hors_cloture_ou_admin,
}


def calculer_changements_personnel(courant, demande, roles, code_dossier_valide):
    """
    Applique la table de décision du personnel (agents, administrateurs).

    courant / demande : dictionnaires {champ: valeur} sur CHAMPS_PERSONNEL,
    la demande étant déjà fusionnée avec l'état courant.
    roles : ensemble des rôles de l'acteur.

    Retourne {champ: nouvelle_valeur} pour les seuls champs qui changent.
    Lève OperationInvalide si la clôture est demandée sans code dossier valide
    (avant toute évaluation de champ) ou si l'acteur n'est ni agent ni
    administrateur.
    """
    verifier_cloture(demande['etat_operation'], code_dossier_valide)

    ctx = Contexte(
        est_agent=Roles.AGENT in roles,
        est_admin=Roles.ADMINISTRATOR in roles,
        cloture=demande['etat_operation'] == EtatOperation.CLOTURE,
        code_valide=code_dossier_valide,
    )
    if not (ctx.est_agent or ctx.est_admin):
        raise OperationInvalide("Invalid staff id value.")

    changements = {}
    for champ in CHAMPS_PERSONNEL:
        valeur = demande[champ]
        if valeur == courant[champ]:
            continue
        if GARDES_PERSONNEL[champ](ctx, valeur):
            changements[champ] = valeur
    return changements


def calculer_changements_client(courant, demande):
    """
    Modification en libre-service : type, bureau et régime, seulement tant
    que l'opération est au dépôt du dossier.
    """
    changements = {
        champ: demande[champ]
        for champ in CHAMPS_CLIENT
        if demande[champ] != courant[champ]
    }
    if changements and courant['etat_operation'] != EtatOperation.DEPOT_DOSSIER:
        raise OperationInvalide("L'opération n'est plus modifiable par le client.")
    return changements


def _afficher(champ, valeur, noms_utilisateurs=None):
    if valeur is None:
        return "-"
    if champ in ENUMS:
        return ENUMS[champ](valeur).label
    if isinstance(valeur, bool):
        return "oui" if valeur else "non"
    if champ == 'reserver_par' and noms_utilisateurs:
        return noms_utilisateurs.get(valeur, str(valeur))
    return str(valeur)


def decrire_changements(courant, changements, noms_utilisateurs=None):
    """Résumé lisible des changements, une ligne par champ."""
    return [
        f"{LIBELLES[champ]} : {_afficher(champ, courant[champ], noms_utilisateurs)} -> "
        f"{_afficher(champ, valeur, noms_utilisateurs)}"
        for champ, valeur in changements.items()
    ]
