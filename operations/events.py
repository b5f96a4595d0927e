"""
Événements post-commit des opérations.

Les commandes accumulent leurs événements dans un DispatcheurEvenements
pendant la transaction ; distribuer() n'est appelé qu'une fois le bloc
transaction.atomic() refermé, pour que les notifications ne portent que sur
des changements validés.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from accounts.roles import Roles
from accounts.services import IdentityService
from notifications.services import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class EvenementOperation:
    operation: object
    acteur: object
    par_client: bool = False

    def message(self) -> str:
        raise NotImplementedError


@dataclass
class OperationCreee(EvenementOperation):

    def message(self):
        if self.par_client:
            nom = IdentityService.get_user_name(self.acteur)
            return f"Une nouvelle opération (ID : {self.operation.pk}) a été créée par le client {nom}."
        return f"Une nouvelle opération (ID : {self.operation.pk}) a été créée pour vous."

    def message_agent(self):
        return f"Une nouvelle opération (ID : {self.operation.pk}) a été créée et vous a été affectée."


@dataclass
class DetailsModifies(EvenementOperation):
    changements: List[str] = field(default_factory=list)

    def message(self):
        nom = IdentityService.get_user_name(self.acteur)
        message = f"Opération (ID : {self.operation.pk}) : détails modifiés par {nom}."
        if self.changements:
            message += "\n" + "\n".join(self.changements)
        return message


@dataclass
class OperationReservee(EvenementOperation):

    def message(self):
        nom = IdentityService.get_user_name(self.acteur)
        return f"Votre opération (ID : {self.operation.pk}) a été prise en charge par l'agent {nom}."


@dataclass
class DocumentsAjoutes(EvenementOperation):
    nombre: int = 0

    def message(self):
        nom = IdentityService.get_user_name(self.acteur)
        return f"Opération (ID : {self.operation.pk}) : documents modifiés par {nom}."


@dataclass
class CommentaireAjoute(EvenementOperation):

    def message(self):
        nom = IdentityService.get_user_name(self.acteur)
        return f"Opération (ID : {self.operation.pk}) : nouveau commentaire de {nom}."


class DispatcheurEvenements:
    """
    Calcule les destinataires de chaque événement et déclenche le fan-out.

    - création par le personnel : l'agent affecté (s'il n'est pas l'acteur)
      puis le client ;
    - action du personnel : l'agent réservataire (modification des détails
      uniquement) puis le client ;
    - action du client : l'agent réservataire, à défaut tous les
      administrateurs ;
    - réservation : le client.
    """

    def __init__(self):
        self.evenements = []

    def ajouter(self, evenement):
        self.evenements.append(evenement)

    def __len__(self):
        return len(self.evenements)

    def destinataires(self, evenement):
        """Liste de couples (utilisateur, message)."""
        operation = evenement.operation
        agent = operation.reserver_par
        message = evenement.message()

        if isinstance(evenement, OperationReservee):
            return [(operation.utilisateur, message)]

        if isinstance(evenement, OperationCreee) and not evenement.par_client:
            envois = []
            if agent is not None and agent.pk != evenement.acteur.pk:
                envois.append((agent, evenement.message_agent()))
            envois.append((operation.utilisateur, message))
            return envois

        if evenement.par_client:
            if agent is not None:
                return [(agent, message)]
            return [(admin, message) for admin in IdentityService.get_all_users_in_role(Roles.ADMINISTRATOR)]

        envois = []
        if isinstance(evenement, DetailsModifies) and agent is not None:
            envois.append((agent, message))
        envois.append((operation.utilisateur, message))
        return envois

    def distribuer(self):
        """Notifie les destinataires puis vide la liste. Retourne le nombre de notifications."""
        envoyees = 0
        evenements, self.evenements = self.evenements, []
        for evenement in evenements:
            for utilisateur, message in self.destinataires(evenement):
                NotificationService.notifier_utilisateur(utilisateur, message, evenement.operation.pk)
                envoyees += 1
            logger.debug(f"{type(evenement).__name__} distribué pour l'opération {evenement.operation.pk}")
        return envoyees
