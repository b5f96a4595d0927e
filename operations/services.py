"""
Commandes sur les opérations (création, modification, réservation,
documents, commentaires).

Chaque commande s'exécute dans un bloc transaction.atomic() : l'opération,
ses documents et son historique sont écrits ensemble ou pas du tout. Les
notifications partent après la fermeture du bloc.
"""
import functools
import logging

from django.db import transaction
from django.utils import timezone

from accounts.roles import Roles
from accounts.services import IdentityService
from dossiers.models import Dossier

from .enums import OperationPriorite, EtatOperation
from .events import (
    DispatcheurEvenements,
    OperationCreee,
    DetailsModifies,
    OperationReservee,
    DocumentsAjoutes,
    CommentaireAjoute,
)
from .exceptions import (
    ERREURS_PROPAGEES,
    ErreurInattendue,
    Introuvable,
    NonAutorise,
    OperationInvalide,
)
from .models import Operation, Document, Commentaire, Historique
from . import policies

logger = logging.getLogger(__name__)


def commande(fonction):
    """
    Laisse passer NonAutorise / Introuvable / OperationInvalide et enveloppe
    toute autre erreur dans ErreurInattendue (la transaction a déjà été
    annulée par la sortie du bloc atomic).
    """
    @functools.wraps(fonction)
    def wrapper(*args, **kwargs):
        try:
            return fonction(*args, **kwargs)
        except ERREURS_PROPAGEES:
            raise
        except Exception as e:
            logger.exception(f"Erreur inattendue pendant {fonction.__name__}")
            raise ErreurInattendue("Une erreur inattendue est survenue. Veuillez réessayer plus tard.") from e
    return wrapper


def verifier_authentifie(acteur):
    if acteur is None or not getattr(acteur, 'is_authenticated', False):
        raise NonAutorise("Utilisateur non authentifié.")


def exiger_personnel(acteur):
    roles = IdentityService.get_roles(acteur)
    if not roles & set(Roles.ADMIN_ET_AGENT):
        logger.warning(f"Identifiant personnel invalide : {acteur.pk}")
        raise OperationInvalide("Invalid staff id value.")
    return roles


def exiger_client(acteur):
    if not IdentityService.is_in_role(acteur, Roles.CLIENT):
        logger.warning(f"Identifiant client invalide : {acteur.pk}")
        raise OperationInvalide("Invalid Client Id value.")


def code_dossier_valide(code_dossier):
    """Non vide et connu : un dossier porte ce code ou une opération l'utilise déjà."""
    if policies.est_vide(code_dossier):
        return False
    code = code_dossier.strip()
    return (
        Dossier.objects.filter(code_dossier=code).exists()
        or Operation.objects.filter(code_dossier=code).exists()
    )


def identifiant_operation(operation_id):
    """Identifiant numérique d'opération ; toute autre valeur est introuvable."""
    try:
        return int(operation_id)
    except (TypeError, ValueError):
        logger.warning(f"Identifiant d'opération invalide : {operation_id!r}")
        raise Introuvable('Operations', operation_id)


def _charger_operation(operation_id, verrouiller=False):
    if verrouiller:
        # pas de jointure sous FOR UPDATE (reserver_par est nullable)
        queryset = Operation.objects.select_for_update()
    else:
        queryset = Operation.objects.select_related('utilisateur', 'reserver_par')
    operation = queryset.filter(pk=identifiant_operation(operation_id)).first()
    if operation is None:
        logger.warning(f"Opération introuvable : {operation_id}")
        raise Introuvable('Operations', operation_id)
    return operation


def _charger_operation_client(acteur, operation_id, verrouiller=False):
    operation = _charger_operation(operation_id, verrouiller)
    if operation.utilisateur_id != acteur.pk:
        logger.warning(f"Le client {acteur.pk} a tenté d'accéder à l'opération {operation_id}")
        raise Introuvable('Operations', operation_id)
    return operation


def _historiser(operation, acteur, action):
    return Historique.objects.create(operation=operation, utilisateur=acteur, action=action)


def _ajouter_fichiers(operation, fichiers):
    documents = []
    for fichier in fichiers or []:
        document = Document.objects.create(
            operation=operation,
            nom_document=fichier.name,
            fichier=fichier,
            taille_fichier=getattr(fichier, 'size', None),
            type_fichier=getattr(fichier, 'content_type', '') or '',
            est_accepte=True,
        )
        logger.debug(f"Fichier ajouté : {document.nom_document} pour l'opération {operation.pk}")
        documents.append(document)
    return documents


class OperationService:
    """Commandes du personnel et des clients sur les opérations."""

    # --- Création ---

    @staticmethod
    @commande
    def creer_operation(acteur, client_id, agent_id=None, type_operation=None,
                        operation_priorite=OperationPriorite.NORMALE, tr=False, debours=False,
                        confirmation_dedouanement=False, commentaire=None, fichiers=None):
        """
        Création par le personnel pour le compte d'un client, éventuellement
        déjà affectée à un agent.
        """
        logger.info(f"Création d'une opération pour le client {client_id} par {getattr(acteur, 'pk', None)}")
        verifier_authentifie(acteur)
        exiger_personnel(acteur)

        type_operation = policies.valider_enum('type_operation', type_operation)
        operation_priorite = policies.valider_enum('operation_priorite', operation_priorite)

        client = IdentityService.get_user(client_id)
        if client is None or not IdentityService.is_in_role(client, Roles.CLIENT):
            logger.warning(f"Identifiant client invalide : {client_id}")
            raise OperationInvalide("Invalid Client Id value.")

        agent = None
        if not policies.est_vide(agent_id):
            agent = IdentityService.get_user(agent_id)
            if agent is None or not IdentityService.is_in_role(agent, Roles.AGENT):
                logger.warning(f"Identifiant agent invalide : {agent_id}")
                raise OperationInvalide("Invalid Agent Id value.")

        evenements = DispatcheurEvenements()
        with transaction.atomic():
            operation = Operation.objects.create(
                utilisateur=client,
                reserver_par=agent,
                type_operation=type_operation,
                operation_priorite=operation_priorite,
                etat_operation=EtatOperation.DEPOT_DOSSIER,
                tr=bool(tr),
                debours=bool(debours),
                confirmation_dedouanement=bool(confirmation_dedouanement),
            )
            _historiser(
                operation, acteur,
                f"L'opération numéro {operation.pk} a été créée par {acteur.username} "
                f"pour le client {client.username}."
            )
            _ajouter_fichiers(operation, fichiers)
            if not policies.est_vide(commentaire):
                Commentaire.objects.create(operation=operation, utilisateur=acteur, message=commentaire.strip())
            evenements.ajouter(OperationCreee(operation, acteur))

        evenements.distribuer()
        logger.info(f"Opération {operation.pk} créée avec succès")
        return operation

    @staticmethod
    @commande
    def client_creer_operation(acteur, type_operation, commentaire=None, fichiers=None):
        """Création en libre-service par un client ; les administrateurs sont notifiés."""
        logger.info(f"Création d'une opération par le client {getattr(acteur, 'pk', None)}")
        verifier_authentifie(acteur)
        exiger_client(acteur)
        type_operation = policies.valider_enum('type_operation', type_operation)

        evenements = DispatcheurEvenements()
        with transaction.atomic():
            operation = Operation.objects.create(
                utilisateur=acteur,
                type_operation=type_operation,
                operation_priorite=OperationPriorite.NORMALE,
                etat_operation=EtatOperation.DEPOT_DOSSIER,
            )
            _historiser(
                operation, acteur,
                f"L'opération numéro {operation.pk} a été créée par le client {acteur.username}."
            )
            _ajouter_fichiers(operation, fichiers)
            if not policies.est_vide(commentaire):
                Commentaire.objects.create(operation=operation, utilisateur=acteur, message=commentaire.strip())
            evenements.ajouter(OperationCreee(operation, acteur, par_client=True))

        evenements.distribuer()
        logger.info(f"Opération {operation.pk} créée avec succès par le client {acteur.username}")
        return operation

    # --- Détails ---

    @staticmethod
    @commande
    def modifier_details_operation(acteur, operation_id, commande_details):
        """
        Modification des détails par le personnel.

        commande_details : dict des champs demandés (sous-ensemble de
        policies.CHAMPS_PERSONNEL) ; les champs absents gardent leur valeur.
        Retourne True si l'opération a été modifiée, False pour un no-op.
        """
        logger.info(f"Modification des détails de l'opération {operation_id}")
        verifier_authentifie(acteur)
        roles = IdentityService.get_roles(acteur)

        evenements = DispatcheurEvenements()
        with transaction.atomic():
            operation = _charger_operation(operation_id, verrouiller=True)
            courant = policies.instantane(operation)
            demande = policies.fusionner_demande(courant, commande_details)
            code_valide = code_dossier_valide(demande['code_dossier'])

            changements = policies.calculer_changements_personnel(courant, demande, roles, code_valide)
            if not changements:
                logger.info(f"Aucun changement pour l'opération {operation.pk}")
                return False

            noms = {}
            if 'reserver_par' in changements:
                agent_id = changements['reserver_par']
                if agent_id is None:
                    operation.reserver_par = None
                else:
                    agent = IdentityService.get_user(agent_id)
                    if agent is None or not IdentityService.is_in_role(agent, Roles.AGENT):
                        logger.warning(f"Identifiant agent invalide : {agent_id}")
                        raise OperationInvalide("Invalid Agent Id value.")
                    operation.reserver_par = agent
                    noms[agent.pk] = agent.username
                if courant['reserver_par'] is not None and operation.reserver_par_id != courant['reserver_par']:
                    ancien = IdentityService.get_user(courant['reserver_par'])
                    if ancien is not None:
                        noms[ancien.pk] = ancien.username

            for champ, valeur in changements.items():
                if champ != 'reserver_par':
                    setattr(operation, champ, valeur)
            operation.save()

            _historiser(
                operation, acteur,
                f"L'opération numéro {operation.pk} a été modifiée par l'équipe : {acteur.username} : "
                f"détails de l'opération modifiés avec succès."
            )
            evenements.ajouter(DetailsModifies(
                operation, acteur,
                changements=policies.decrire_changements(courant, changements, noms),
            ))

        evenements.distribuer()
        logger.info(f"Opération {operation.pk} modifiée : {', '.join(changements)}")
        return True

    @staticmethod
    @commande
    def client_modifier_details_operation(acteur, operation_id, commande_details):
        """
        Modification en libre-service (type, bureau, régime) d'une opération
        du client, possible seulement au dépôt du dossier.
        """
        logger.info(f"Modification client des détails de l'opération {operation_id}")
        verifier_authentifie(acteur)
        exiger_client(acteur)

        evenements = DispatcheurEvenements()
        with transaction.atomic():
            operation = _charger_operation_client(acteur, operation_id, verrouiller=True)
            courant = policies.instantane(operation)
            demande = policies.fusionner_demande(courant, commande_details, policies.CHAMPS_CLIENT)
            changements = policies.calculer_changements_client(courant, demande)
            if not changements:
                logger.info(f"Aucun changement pour l'opération {operation.pk}")
                return False

            for champ, valeur in changements.items():
                setattr(operation, champ, valeur)
            operation.save()

            _historiser(
                operation, acteur,
                f"L'opération numéro {operation.pk} a été modifiée par le client {acteur.username} : "
                f"détails de l'opération modifiés avec succès."
            )
            evenements.ajouter(DetailsModifies(
                operation, acteur, par_client=True,
                changements=policies.decrire_changements(courant, changements),
            ))

        evenements.distribuer()
        logger.info(f"Opération {operation.pk} modifiée par le client {acteur.username}")
        return True

    # --- Réservation ---

    @staticmethod
    @commande
    def reserver_operation(acteur, operation_id):
        """
        Le premier agent qui réserve l'emporte.

        La réservation est un UPDATE conditionnel (reserver_par IS NULL) :
        deux demandes concurrentes ne peuvent pas toutes deux modifier la
        ligne. Retourne True si l'acteur a obtenu la réservation, False si
        l'opération était déjà réservée.
        """
        logger.info(f"Réservation de l'opération {operation_id}")
        verifier_authentifie(acteur)
        if not IdentityService.is_in_role(acteur, Roles.AGENT):
            logger.warning(f"L'utilisateur {acteur.pk} n'est pas agent, réservation de {operation_id} refusée")
            raise NonAutorise("User is not authorized as an agent.")

        operation_id = identifiant_operation(operation_id)
        evenements = DispatcheurEvenements()
        with transaction.atomic():
            if not Operation.objects.filter(pk=operation_id).exists():
                logger.warning(f"Opération introuvable : {operation_id}")
                raise Introuvable('Operations', operation_id)

            lignes = Operation.objects.filter(pk=operation_id, reserver_par__isnull=True).update(
                reserver_par=acteur,
                last_modified=timezone.now(),
            )
            if lignes == 0:
                logger.warning(f"L'opération {operation_id} est déjà réservée")
                return False

            operation = _charger_operation(operation_id)
            _historiser(
                operation, acteur,
                f"L'opération numéro {operation.pk} a été réservée par {acteur.username}."
            )
            evenements.ajouter(OperationReservee(operation, acteur))

        evenements.distribuer()
        logger.info(f"Opération {operation_id} réservée par {acteur.username}")
        return True

    # --- Documents ---

    @staticmethod
    @commande
    def ajouter_documents(acteur, operation_id, fichiers=None, document_ids=None):
        """
        Ajout de fichiers et bascule de l'acceptation de documents existants
        par le personnel.
        """
        logger.info(f"Mise à jour des documents de l'opération {operation_id}")
        verifier_authentifie(acteur)
        exiger_personnel(acteur)

        if not fichiers and not document_ids:
            _charger_operation(operation_id)
            logger.info(f"Aucun changement pour l'opération {operation_id}")
            return False

        evenements = DispatcheurEvenements()
        with transaction.atomic():
            operation = _charger_operation(operation_id)
            documents = _ajouter_fichiers(operation, fichiers)

            for document_id in document_ids or []:
                document = Document.objects.filter(pk=document_id, operation=operation).first()
                if document is None:
                    raise Introuvable('Document', document_id)
                document.est_accepte = not document.est_accepte
                document.save(update_fields=['est_accepte'])
                logger.debug(f"Document {document.pk} : accepté={document.est_accepte}")

            Operation.objects.filter(pk=operation.pk).update(last_modified=timezone.now())
            _historiser(
                operation, acteur,
                f"L'opération numéro {operation.pk} a été modifiée par l'équipe : {acteur.username} : "
                f"documents de l'opération modifiés avec succès."
            )
            evenements.ajouter(DocumentsAjoutes(operation, acteur, nombre=len(documents)))

        evenements.distribuer()
        logger.info(f"Documents de l'opération {operation.pk} modifiés")
        return True

    @staticmethod
    @commande
    def client_ajouter_documents(acteur, operation_id, fichiers=None):
        """Ajout de fichiers par le client, refusé (sans erreur) sur une opération clôturée."""
        logger.info(f"Ajout de documents client sur l'opération {operation_id}")
        verifier_authentifie(acteur)
        exiger_client(acteur)

        evenements = DispatcheurEvenements()
        with transaction.atomic():
            operation = _charger_operation_client(acteur, operation_id)
            if operation.est_verrouillee:
                logger.warning(f"Opération {operation.pk} clôturée : documents client ignorés")
                return False
            if not fichiers:
                logger.info(f"Aucun changement pour l'opération {operation.pk}")
                return False

            documents = _ajouter_fichiers(operation, fichiers)
            Operation.objects.filter(pk=operation.pk).update(last_modified=timezone.now())
            _historiser(
                operation, acteur,
                f"L'opération numéro {operation.pk} a été modifiée par le client {acteur.username} : "
                f"documents de l'opération modifiés avec succès."
            )
            evenements.ajouter(DocumentsAjoutes(operation, acteur, par_client=True, nombre=len(documents)))

        evenements.distribuer()
        return True

    # --- Commentaires ---

    @staticmethod
    @commande
    def ajouter_commentaire(acteur, operation_id, message):
        logger.info(f"Ajout d'un commentaire sur l'opération {operation_id}")
        verifier_authentifie(acteur)
        exiger_personnel(acteur)
        return OperationService._commenter(acteur, _charger_operation, operation_id, message, par_client=False)

    @staticmethod
    @commande
    def client_ajouter_commentaire(acteur, operation_id, message):
        logger.info(f"Ajout d'un commentaire client sur l'opération {operation_id}")
        verifier_authentifie(acteur)
        exiger_client(acteur)
        charger = functools.partial(_charger_operation_client, acteur)
        return OperationService._commenter(acteur, charger, operation_id, message, par_client=True)

    @staticmethod
    def _commenter(acteur, charger, operation_id, message, par_client):
        evenements = DispatcheurEvenements()
        with transaction.atomic():
            operation = charger(operation_id)
            if policies.est_vide(message):
                logger.info(f"Commentaire vide ignoré pour l'opération {operation.pk}")
                return None

            commentaire = Commentaire.objects.create(
                operation=operation, utilisateur=acteur, message=message.strip()
            )
            Operation.objects.filter(pk=operation.pk).update(last_modified=timezone.now())
            auteur = f"le client {acteur.username}" if par_client else f"l'équipe : {acteur.username}"
            _historiser(
                operation, acteur,
                f"L'opération numéro {operation.pk} a été commentée par {auteur}."
            )
            evenements.ajouter(CommentaireAjoute(operation, acteur, par_client=par_client))

        evenements.distribuer()
        return commentaire
