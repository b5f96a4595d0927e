"""
Exceptions métier du portail NEJ.

Les trois premières sont propagées telles quelles jusqu'à la frontière HTTP ;
toute autre erreur est enveloppée dans ErreurInattendue.
"""


class PortailException(Exception):
    """Exception de base pour toutes les erreurs métier du portail."""
    pass


class NonAutorise(PortailException):
    """Levée quand l'acteur n'est pas authentifié ou n'a pas le rôle requis."""
    pass


class Introuvable(PortailException):
    """Levée quand une opération, un document ou un dossier n'existe pas."""

    def __init__(self, nom, cle):
        super().__init__(f'Entity "{nom}" ({cle}) was not found.')
        self.nom = nom
        self.cle = cle


class OperationInvalide(PortailException):
    """Levée quand une règle métier est violée (valeur invalide, clôture sans dossier...)."""
    pass


class ErreurInattendue(PortailException):
    """Enveloppe toute autre exception ; l'originale est conservée dans __cause__."""
    pass


ERREURS_PROPAGEES = (NonAutorise, Introuvable, OperationInvalide)
