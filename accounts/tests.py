"""
Tests du module Comptes : oracle d'identité, création de comptes,
connexion JWT et administration des comptes.
"""
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from operations.enums import TypeOperation
from operations.exceptions import OperationInvalide

from .models import Compte
from .roles import Roles
from .services import IdentityService, creer_compte, modifier_compte, login_et_jwt

User = get_user_model()


class IdentityServiceTest(TestCase):

    def setUp(self):
        self.admin = creer_compte({
            'username': 'admin1', 'email': 'admin@nej.tn', 'password': 'motdepasse1',
            'role': Roles.ADMINISTRATOR,
        }).user
        self.agent = creer_compte({
            'username': 'agent1', 'email': 'agent@nej.tn', 'password': 'motdepasse1',
            'role': Roles.AGENT, 'type_operation': TypeOperation.EXPORT,
            'email_notif': 'agent.notif@nej.tn',
        }).user
        self.client_user = creer_compte({
            'username': 'societe-x', 'email': 'client@societe-x.tn', 'password': 'motdepasse1',
            'role': Roles.CLIENT, 'code_client': 'C001',
        }).user

    def test_roles(self):
        self.assertTrue(IdentityService.is_in_role(self.agent, Roles.AGENT))
        self.assertFalse(IdentityService.is_in_role(self.agent, Roles.ADMINISTRATOR))
        self.assertEqual(IdentityService.get_roles(self.admin), frozenset({Roles.ADMINISTRATOR}))

    def test_utilisateur_avec_deux_roles(self):
        from django.contrib.auth.models import Group
        self.admin.groups.add(Group.objects.get(name=Roles.AGENT))
        self.assertEqual(IdentityService.get_roles(self.admin), frozenset({Roles.ADMINISTRATOR, Roles.AGENT}))

    def test_type_operation_et_code_client(self):
        self.assertEqual(IdentityService.get_type_operation(self.agent), TypeOperation.EXPORT)
        self.assertIsNone(IdentityService.get_type_operation(self.admin))
        self.assertEqual(IdentityService.get_code_client(self.client_user), 'C001')
        self.assertIsNone(IdentityService.get_code_client(self.agent))

    def test_email_notification(self):
        self.assertEqual(IdentityService.get_user_email_notif(self.agent), 'agent.notif@nej.tn')
        # à défaut, l'email de connexion
        self.assertEqual(IdentityService.get_user_email_notif(self.client_user), 'client@societe-x.tn')

    def test_utilisateur_sans_compte(self):
        user = User.objects.create_user(username='nu', email='nu@nej.tn', password='x')
        self.assertIsNone(IdentityService.get_type_operation(user))
        self.assertEqual(IdentityService.get_user_email_notif(user), 'nu@nej.tn')
        self.assertEqual(IdentityService.get_roles(user), frozenset())

    def test_utilisateurs_actifs_du_role(self):
        self.agent.is_active = False
        self.agent.save()
        self.assertEqual(list(IdentityService.get_all_users_in_role(Roles.AGENT)), [])
        self.assertEqual(list(IdentityService.get_all_users_in_role(Roles.CLIENT)), [self.client_user])

    def test_get_user(self):
        self.assertEqual(IdentityService.get_user(self.agent.pk), self.agent)
        self.assertIsNone(IdentityService.get_user(None))
        self.assertIsNone(IdentityService.get_user(999999))


class GestionComptesTest(TestCase):

    def test_role_inconnu(self):
        with self.assertRaises(OperationInvalide):
            creer_compte({'username': 'x', 'email': 'x@nej.tn', 'password': 'motdepasse1', 'role': 'Superviseur'})
        self.assertFalse(User.objects.filter(username='x').exists())

    def test_code_client_ignore_hors_client(self):
        compte = creer_compte({
            'username': 'agent2', 'email': 'agent2@nej.tn', 'password': 'motdepasse1',
            'role': Roles.AGENT, 'code_client': 'C999',
        })
        self.assertEqual(compte.code_client, '')

    def test_desactivation(self):
        compte = creer_compte({
            'username': 'agent3', 'email': 'agent3@nej.tn', 'password': 'motdepasse1', 'role': Roles.AGENT,
        })
        modifier_compte(compte, {'a_acces': False})
        compte.user.refresh_from_db()
        self.assertFalse(compte.user.is_active)
        self.assertIsNone(login_et_jwt('agent3@nej.tn', 'motdepasse1'))


class AuthentificationAPITest(TestCase):

    def setUp(self):
        self.api = APIClient()
        creer_compte({
            'username': 'agent1', 'email': 'agent@nej.tn', 'password': 'motdepasse1', 'role': Roles.AGENT,
        })

    def test_login_succes(self):
        response = self.api.post('/api/auth/login/', {'email': 'agent@nej.tn', 'motDePasse': 'motdepasse1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['roles'], [Roles.AGENT])

    def test_login_echec(self):
        response = self.api.post('/api/auth/login/', {'email': 'agent@nej.tn', 'motDePasse': 'faux'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_moi(self):
        token = login_et_jwt('agent@nej.tn', 'motdepasse1')['access']
        self.api.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = self.api.get('/api/auth/moi/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'agent1')

    def test_non_authentifie(self):
        response = self.api.get('/api/auth/moi/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class CompteAPITest(TestCase):

    def setUp(self):
        self.api = APIClient()
        self.admin = creer_compte({
            'username': 'admin1', 'email': 'admin@nej.tn', 'password': 'motdepasse1', 'role': Roles.ADMINISTRATOR,
        }).user
        self.agent = creer_compte({
            'username': 'agent1', 'email': 'agent@nej.tn', 'password': 'motdepasse1', 'role': Roles.AGENT,
        }).user

    def test_creation_client_par_admin(self):
        self.api.force_authenticate(self.admin)
        response = self.api.post('/api/entreprise/comptes/', {
            'username': 'societe-y', 'email': 'y@societe-y.tn', 'password': 'motdepasse1',
            'role': Roles.CLIENT, 'code_client': 'C002',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['roles'], [Roles.CLIENT])
        self.assertTrue(Compte.objects.filter(code_client='C002').exists())

    def test_client_sans_code_client(self):
        self.api.force_authenticate(self.admin)
        response = self.api.post('/api/entreprise/comptes/', {
            'username': 'societe-z', 'email': 'z@societe-z.tn', 'password': 'motdepasse1', 'role': Roles.CLIENT,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('code_client', response.data)

    def test_agent_refuse(self):
        self.api.force_authenticate(self.agent)
        response = self.api.get('/api/entreprise/comptes/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_filtre_role(self):
        self.api.force_authenticate(self.admin)
        response = self.api.get('/api/entreprise/comptes/', {'role': Roles.AGENT})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['username'] for c in response.data], ['agent1'])
