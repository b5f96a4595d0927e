"""
Scénario de bout en bout : création, réservation, tentative de clôture sans
dossier, rattachement au dossier puis clôture.
"""
import pytest

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.roles import Roles
from accounts.services import creer_compte
from dossiers.models import Dossier, Facture
from notifications.models import Notification
from operations.enums import TypeOperation, EtatOperation, EtatPayement
from operations.models import Operation, Historique


def creer_utilisateur(username, role, **extra):
    return creer_compte({
        'username': username,
        'email': f'{username}@nej.tn',
        'password': 'motdepasse1',
        'role': role,
        **extra,
    }).user


@pytest.fixture(autouse=True)
def sans_email(settings):
    settings.NEJPORTAL_EMAIL_NOTIFICATIONS = False


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin(db):
    return creer_utilisateur('admin1', Roles.ADMINISTRATOR)


@pytest.fixture
def agent(db):
    return creer_utilisateur('agent1', Roles.AGENT, type_operation=TypeOperation.IMPORT)


@pytest.fixture
def client_user(db):
    return creer_utilisateur('societe-x', Roles.CLIENT, code_client='C001')


@pytest.fixture
def dossier(db):
    dossier = Dossier.objects.create(code_dossier='111111', code_client='C001')
    Facture.objects.create(
        code_dossier='111111', code_client='C001', indice=1,
        montant_total=100, montant_paye=100, etat_payement=EtatPayement.PAYEE,
        description="Transit",
    )
    return dossier


@pytest.mark.django_db
class TestClotureOperation:

    def modifier(self, api_client, acteur, operation, donnees):
        api_client.force_authenticate(user=acteur)
        url = reverse('entreprise-operation-modifier-details', args=[operation.pk])
        return api_client.patch(url, donnees, format='json')

    def test_scenario_complet(self, api_client, admin, agent, client_user, dossier):
        # 1. Dépôt par le client
        api_client.force_authenticate(user=client_user)
        response = api_client.post(
            reverse('client-operation-creer'),
            {'type_operation': TypeOperation.IMPORT, 'commentaire': "BL joint"},
            format='json'
        )
        assert response.status_code == status.HTTP_201_CREATED
        operation = Operation.objects.get(pk=response.data['id'])
        assert operation.etat_operation == EtatOperation.DEPOT_DOSSIER
        assert operation.code_dossier is None
        assert Notification.objects.filter(utilisateur=admin, operation_id=operation.pk).count() == 1

        # 2. Réservation par l'agent
        api_client.force_authenticate(user=agent)
        response = api_client.post(reverse('entreprise-operation-reserver', args=[operation.pk]))
        assert response.status_code == status.HTTP_200_OK
        assert response.data['reservee'] is True

        historiques = Historique.objects.filter(operation=operation).count()

        # 3. Clôture sans code dossier : refusée, rien ne change
        response = self.modifier(api_client, admin, operation, {
            'etat_operation': EtatOperation.CLOTURE, 'code_dossier': None,
        })
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        operation.refresh_from_db()
        assert operation.etat_operation == EtatOperation.DEPOT_DOSSIER
        assert Historique.objects.filter(operation=operation).count() == historiques

        # 4. Rattachement au dossier existant
        response = self.modifier(api_client, admin, operation, {
            'etat_operation': EtatOperation.DEPOT_DOSSIER, 'code_dossier': '111111',
        })
        assert response.status_code == status.HTTP_200_OK
        assert response.data['modifiee'] is True
        operation.refresh_from_db()
        assert operation.code_dossier == '111111'
        assert Historique.objects.filter(operation=operation).count() == historiques + 1

        # 5. Clôture avec le même code dossier
        notifications_client = Notification.objects.filter(utilisateur=client_user).count()
        notifications_agent = Notification.objects.filter(utilisateur=agent).count()
        response = self.modifier(api_client, admin, operation, {
            'etat_operation': EtatOperation.CLOTURE, 'code_dossier': '111111',
        })
        assert response.status_code == status.HTTP_200_OK
        operation.refresh_from_db()
        assert operation.etat_operation == EtatOperation.CLOTURE
        assert operation.est_verrouillee
        assert Historique.objects.filter(operation=operation).count() == historiques + 2
        assert Notification.objects.filter(utilisateur=client_user).count() == notifications_client + 1
        assert Notification.objects.filter(utilisateur=agent).count() == notifications_agent + 1

        # 6. Le dossier apparaît payé côté client
        api_client.force_authenticate(user=client_user)
        response = api_client.get(reverse('client-dossier-tous'))
        assert response.status_code == status.HTTP_200_OK
        assert response.data['items'][0]['code_dossier'] == '111111'
        assert response.data['items'][0]['etat_payement'] == EtatPayement.PAYEE

    def test_meme_commande_deux_fois(self, api_client, admin, client_user, dossier):
        operation = Operation.objects.create(utilisateur=client_user, type_operation=TypeOperation.IMPORT)
        donnees = {'bureau': 'Rades', 'regime': 'IM4'}

        premiere = self.modifier(api_client, admin, operation, donnees)
        seconde = self.modifier(api_client, admin, operation, donnees)

        assert premiere.data['modifiee'] is True
        assert seconde.data['modifiee'] is False
        assert Historique.objects.filter(operation=operation).count() == 1
        assert Notification.objects.filter(utilisateur=client_user).count() == 1

    def test_commentaire_client_apres_cloture(self, api_client, client_user, dossier):
        operation = Operation.objects.create(
            utilisateur=client_user, type_operation=TypeOperation.IMPORT,
            etat_operation=EtatOperation.CLOTURE, code_dossier='111111',
        )
        api_client.force_authenticate(user=client_user)
        response = api_client.post(reverse('client-operation-commenter', args=[operation.pk]),
                                   {'message': "Merci pour le suivi"}, format='json')
        assert response.status_code == status.HTTP_201_CREATED
        assert operation.commentaires.count() == 1
