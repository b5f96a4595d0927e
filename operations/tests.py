"""
TESTS POUR LE MODULE OPÉRATIONS - NEJ PORTAL

1. Politique de modification champ par champ (fonctions pures)
2. Commandes : création, détails, réservation, documents, commentaires
3. Notifications post-commit
4. Listes, filtres et pagination
5. API REST et codes de statut
"""
import shutil
import tempfile
from datetime import timedelta
from unittest.mock import patch

from django.contrib.auth.models import AnonymousUser, Group
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db.models.query import QuerySet
from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from accounts.roles import Roles
from accounts.services import creer_compte
from dossiers.models import Dossier
from notifications.models import Notification

from . import policies, queries
from .enums import TypeOperation, OperationPriorite, EtatOperation
from .exceptions import ErreurInattendue, Introuvable, NonAutorise, OperationInvalide
from .models import Operation, Document, Historique
from .pagination import paginer
from .services import OperationService, code_dossier_valide

MEDIA_TEST = tempfile.mkdtemp()

AGENT = frozenset({Roles.AGENT})
ADMIN = frozenset({Roles.ADMINISTRATOR})
AGENT_ADMIN = frozenset({Roles.AGENT, Roles.ADMINISTRATOR})


def creer_utilisateur(username, role, **extra):
    return creer_compte({
        'username': username,
        'email': f'{username}@nej.tn',
        'password': 'motdepasse1',
        'role': role,
        **extra,
    }).user


def fichier(nom='facture.pdf'):
    return SimpleUploadedFile(nom, b'%PDF-1.4 contenu', content_type='application/pdf')


def courant(**valeurs):
    etat = {
        'type_operation': TypeOperation.IMPORT,
        'code_dossier': None,
        'operation_priorite': OperationPriorite.NORMALE,
        'etat_operation': EtatOperation.DEPOT_DOSSIER,
        'bureau': None,
        'tr': False,
        'debours': False,
        'confirmation_dedouanement': False,
        'regime': None,
        'reserver_par': None,
    }
    etat.update(valeurs)
    return etat


# =============================================================================
# POLITIQUE DE MODIFICATION
# =============================================================================

class PolitiqueModificationTest(SimpleTestCase):

    def changements(self, fournis, roles, code_valide=False, **actuel):
        etat = courant(**actuel)
        demande = policies.fusionner_demande(etat, fournis)
        return policies.calculer_changements_personnel(etat, demande, roles, code_valide)

    def test_champs_reserves_admin(self):
        for champ, valeur in [
            ('type_operation', TypeOperation.EXPORT),
            ('operation_priorite', OperationPriorite.URGENTE),
            ('tr', True),
            ('debours', True),
            ('confirmation_dedouanement', True),
        ]:
            with self.subTest(champ=champ):
                self.assertEqual(self.changements({champ: valeur}, AGENT), {})
                self.assertEqual(self.changements({champ: valeur}, ADMIN), {champ: valeur})

    def test_agent_hors_cloture(self):
        fournis = {'bureau': 'Tunis Port', 'regime': 'IM4', 'etat_operation': EtatOperation.PESAGE, 'reserver_par': 5}
        self.assertEqual(self.changements(fournis, AGENT), {
            'bureau': 'Tunis Port',
            'regime': 'IM4',
            'etat_operation': EtatOperation.PESAGE,
            'reserver_par': 5,
        })

    def test_agent_en_cloture(self):
        fournis = {'bureau': 'Rades', 'etat_operation': EtatOperation.CLOTURE, 'code_dossier': '111111', 'tr': True}
        self.assertEqual(self.changements(fournis, AGENT, code_valide=True), {
            'etat_operation': EtatOperation.CLOTURE,
            'code_dossier': '111111',
        })

    def test_admin_en_cloture(self):
        fournis = {'bureau': 'Rades', 'etat_operation': EtatOperation.CLOTURE, 'code_dossier': '111111', 'tr': True}
        self.assertEqual(set(self.changements(fournis, ADMIN, code_valide=True)),
                         {'bureau', 'etat_operation', 'code_dossier', 'tr'})

    def test_admin_l_emporte_sur_agent(self):
        fournis = {'bureau': 'Rades', 'etat_operation': EtatOperation.CLOTURE, 'code_dossier': '111111'}
        self.assertIn('bureau', self.changements(fournis, AGENT_ADMIN, code_valide=True))

    def test_cloture_sans_code_valide_refusee_pour_tous(self):
        for roles in (AGENT, ADMIN, AGENT_ADMIN, frozenset()):
            with self.subTest(roles=roles):
                with self.assertRaisesMessage(OperationInvalide, "sans un code dossier valide"):
                    self.changements({'etat_operation': EtatOperation.CLOTURE, 'bureau': 'X'}, roles)

    def test_sans_role_personnel(self):
        with self.assertRaisesMessage(OperationInvalide, "Invalid staff id value."):
            self.changements({'bureau': 'X'}, frozenset({Roles.CLIENT}))

    def test_code_dossier(self):
        # code inconnu : ignoré
        self.assertEqual(self.changements({'code_dossier': '999'}, ADMIN, code_valide=False), {})
        # vidage autorisé hors clôture
        self.assertEqual(
            self.changements({'code_dossier': '  '}, AGENT, code_valide=False, code_dossier='111111'),
            {'code_dossier': None}
        )

    def test_champs_omis_conserves(self):
        etat = courant(bureau='Rades', tr=True)
        demande = policies.fusionner_demande(etat, {'regime': ' IM4 '})
        self.assertEqual(demande['bureau'], 'Rades')
        self.assertTrue(demande['tr'])
        self.assertEqual(demande['regime'], 'IM4')

    def test_enum_invalide(self):
        with self.assertRaisesMessage(OperationInvalide, "Invalid EtatOperation value."):
            policies.fusionner_demande(courant(), {'etat_operation': 42})

    def test_client_au_depot(self):
        etat = courant(bureau='Rades')
        demande = policies.fusionner_demande(etat, {'bureau': 'Sfax'}, policies.CHAMPS_CLIENT)
        self.assertEqual(policies.calculer_changements_client(etat, demande), {'bureau': 'Sfax'})

    def test_client_apres_depot(self):
        etat = courant(bureau='Rades', etat_operation=EtatOperation.EN_COURS)
        demande = policies.fusionner_demande(etat, {'bureau': 'Sfax'}, policies.CHAMPS_CLIENT)
        with self.assertRaises(OperationInvalide):
            policies.calculer_changements_client(etat, demande)
        # sans changement effectif ce n'est pas une erreur
        demande = policies.fusionner_demande(etat, {'bureau': 'Rades'}, policies.CHAMPS_CLIENT)
        self.assertEqual(policies.calculer_changements_client(etat, demande), {})

    def test_description_des_changements(self):
        lignes = policies.decrire_changements(
            courant(),
            {'etat_operation': EtatOperation.PESAGE, 'tr': True, 'reserver_par': 3},
            {3: 'agent1'},
        )
        self.assertEqual(lignes, [
            "État : Dépôt dossier -> Pesage",
            "TR : non -> oui",
            "Agent : - -> agent1",
        ])


class PaginationTest(SimpleTestCase):

    def test_page(self):
        page = paginer(list(range(25)), page_number=2, page_size=10)
        self.assertEqual(page['items'], list(range(10, 20)))
        self.assertEqual(page['total_pages'], 3)
        self.assertEqual(page['total_count'], 25)
        self.assertTrue(page['has_previous_page'])
        self.assertTrue(page['has_next_page'])

    def test_page_au_dela(self):
        page = paginer(list(range(5)), page_number=4, page_size=10)
        self.assertEqual(page['items'], [])
        self.assertFalse(page['has_next_page'])

    def test_liste_vide(self):
        page = paginer([], 1, 10)
        self.assertEqual(page['total_pages'], 0)
        self.assertEqual(page['items'], [])


# =============================================================================
# COMMANDES
# =============================================================================

@override_settings(MEDIA_ROOT=MEDIA_TEST, NEJPORTAL_EMAIL_NOTIFICATIONS=False)
class OperationTestCase(TestCase):

    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_TEST, ignore_errors=True)

    def setUp(self):
        self.admin = creer_utilisateur('admin1', Roles.ADMINISTRATOR)
        self.agent = creer_utilisateur('agent1', Roles.AGENT, type_operation=TypeOperation.IMPORT)
        self.agent2 = creer_utilisateur('agent2', Roles.AGENT, type_operation=TypeOperation.IMPORT)
        self.client_user = creer_utilisateur('societe-x', Roles.CLIENT, code_client='C001')
        self.autre_client = creer_utilisateur('societe-y', Roles.CLIENT, code_client='C002')
        Dossier.objects.create(code_dossier='111111', code_client='C001')

    def nouvelle_operation(self, **champs):
        valeurs = {'utilisateur': self.client_user, 'type_operation': TypeOperation.IMPORT}
        valeurs.update(champs)
        return Operation.objects.create(**valeurs)

    def notifications(self, utilisateur):
        return Notification.objects.filter(utilisateur=utilisateur).count()


class CreationOperationTest(OperationTestCase):

    def test_creation_par_admin(self):
        operation = OperationService.creer_operation(
            self.admin, self.client_user.pk, agent_id=self.agent.pk,
            type_operation=TypeOperation.IMPORT, commentaire="Conteneur 40 pieds",
            fichiers=[fichier()],
        )

        self.assertEqual(operation.etat_operation, EtatOperation.DEPOT_DOSSIER)
        self.assertEqual(operation.reserver_par, self.agent)
        self.assertTrue(operation.est_reserver)
        self.assertEqual(operation.documents.count(), 1)
        self.assertEqual(operation.commentaires.get().message, "Conteneur 40 pieds")
        self.assertEqual(operation.historiques.count(), 1)
        self.assertEqual(self.notifications(self.agent), 1)
        self.assertEqual(self.notifications(self.client_user), 1)

    def test_client_invalide(self):
        with self.assertRaisesMessage(OperationInvalide, "Invalid Client Id value."):
            OperationService.creer_operation(self.admin, self.agent.pk, type_operation=TypeOperation.IMPORT)
        self.assertEqual(Operation.objects.count(), 0)

    def test_agent_invalide(self):
        with self.assertRaisesMessage(OperationInvalide, "Invalid Agent Id value."):
            OperationService.creer_operation(
                self.admin, self.client_user.pk, agent_id=self.admin.pk, type_operation=TypeOperation.IMPORT
            )

    def test_type_invalide(self):
        with self.assertRaises(OperationInvalide):
            OperationService.creer_operation(self.admin, self.client_user.pk, type_operation=7)

    def test_erreur_inattendue_annule_tout(self):
        with patch('operations.services._historiser', side_effect=RuntimeError("disque plein")):
            with self.assertRaises(ErreurInattendue) as contexte:
                OperationService.creer_operation(
                    self.admin, self.client_user.pk, type_operation=TypeOperation.IMPORT, fichiers=[fichier()]
                )

        self.assertIsInstance(contexte.exception.__cause__, RuntimeError)
        self.assertEqual(Operation.objects.count(), 0)
        self.assertEqual(Document.objects.count(), 0)
        self.assertEqual(Notification.objects.count(), 0)

    def test_creation_par_client_notifie_les_admins(self):
        operation = OperationService.client_creer_operation(self.client_user, TypeOperation.EXPORT, "Urgent")
        self.assertEqual(operation.utilisateur, self.client_user)
        self.assertEqual(operation.operation_priorite, OperationPriorite.NORMALE)
        self.assertEqual(self.notifications(self.admin), 1)
        self.assertEqual(self.notifications(self.agent), 0)

    def test_creation_client_par_agent_refusee(self):
        with self.assertRaisesMessage(OperationInvalide, "Invalid Client Id value."):
            OperationService.client_creer_operation(self.agent, TypeOperation.EXPORT)

    def test_non_authentifie(self):
        with self.assertRaises(NonAutorise):
            OperationService.client_creer_operation(AnonymousUser(), TypeOperation.EXPORT)


class ModificationDetailsTest(OperationTestCase):

    def test_identifiant_non_numerique(self):
        with self.assertRaises(Introuvable):
            OperationService.modifier_details_operation(self.admin, 'abc', {'bureau': 'X'})
        with self.assertRaises(Introuvable):
            queries.details_operation(self.admin, 'abc')

    def test_modification_par_agent(self):
        operation = self.nouvelle_operation(reserver_par=self.agent)
        modifiee = OperationService.modifier_details_operation(
            self.agent, operation.pk, {'bureau': 'Rades', 'etat_operation': EtatOperation.EN_COURS}
        )

        self.assertTrue(modifiee)
        operation.refresh_from_db()
        self.assertEqual(operation.bureau, 'Rades')
        self.assertEqual(operation.etat_operation, EtatOperation.EN_COURS)
        self.assertEqual(operation.historiques.count(), 1)
        self.assertEqual(self.notifications(self.agent), 1)
        self.assertEqual(self.notifications(self.client_user), 1)
        self.assertIn("Bureau : - -> Rades", Notification.objects.get(utilisateur=self.client_user).message)

    def test_idempotence(self):
        operation = self.nouvelle_operation()
        commande = {'bureau': 'Rades'}
        self.assertTrue(OperationService.modifier_details_operation(self.admin, operation.pk, commande))
        self.assertFalse(OperationService.modifier_details_operation(self.admin, operation.pk, commande))
        self.assertEqual(operation.historiques.count(), 1)
        self.assertEqual(self.notifications(self.client_user), 1)

    def test_champ_refuse_seul_sans_effet(self):
        operation = self.nouvelle_operation()
        self.assertFalse(OperationService.modifier_details_operation(self.agent, operation.pk, {'tr': True}))
        operation.refresh_from_db()
        self.assertFalse(operation.tr)
        self.assertEqual(operation.historiques.count(), 0)
        self.assertEqual(Notification.objects.count(), 0)

    def test_cloture_sans_code_dossier(self):
        operation = self.nouvelle_operation()
        for acteur in (self.agent, self.admin):
            for code in (None, '', '999999'):
                with self.subTest(acteur=acteur.username, code=code):
                    with self.assertRaises(OperationInvalide):
                        OperationService.modifier_details_operation(acteur, operation.pk, {
                            'etat_operation': EtatOperation.CLOTURE, 'code_dossier': code, 'bureau': 'Rades',
                        })
        operation.refresh_from_db()
        self.assertEqual(operation.etat_operation, EtatOperation.DEPOT_DOSSIER)
        self.assertIsNone(operation.bureau)
        self.assertEqual(operation.historiques.count(), 0)

    def test_code_dossier_deja_utilise_est_valide(self):
        self.nouvelle_operation(code_dossier='222222')
        self.assertTrue(code_dossier_valide(' 222222 '))
        self.assertTrue(code_dossier_valide('111111'))
        self.assertFalse(code_dossier_valide('333333'))
        self.assertFalse(code_dossier_valide('  '))

    def test_agent_invalide_annule(self):
        operation = self.nouvelle_operation()
        with self.assertRaisesMessage(OperationInvalide, "Invalid Agent Id value."):
            OperationService.modifier_details_operation(
                self.admin, operation.pk, {'reserver_par': self.client_user.pk, 'bureau': 'Rades'}
            )
        operation.refresh_from_db()
        self.assertIsNone(operation.bureau)
        self.assertEqual(Notification.objects.count(), 0)

    def test_reaffectation(self):
        operation = self.nouvelle_operation(reserver_par=self.agent)
        OperationService.modifier_details_operation(self.admin, operation.pk, {'reserver_par': self.agent2.pk})
        operation.refresh_from_db()
        self.assertEqual(operation.reserver_par, self.agent2)
        self.assertIn("agent1 -> agent2", Notification.objects.get(utilisateur=self.client_user).message)

    def test_operation_introuvable(self):
        with self.assertRaises(Introuvable):
            OperationService.modifier_details_operation(self.admin, 999999, {'bureau': 'Rades'})

    def test_client_refuse(self):
        operation = self.nouvelle_operation()
        with self.assertRaisesMessage(OperationInvalide, "Invalid staff id value."):
            OperationService.modifier_details_operation(self.client_user, operation.pk, {'bureau': 'Rades'})


class ModificationClientTest(OperationTestCase):

    def test_bureau_au_depot_puis_en_cours(self):
        operation = self.nouvelle_operation(reserver_par=self.agent)
        self.assertTrue(OperationService.client_modifier_details_operation(
            self.client_user, operation.pk, {'bureau': 'Rades'}
        ))
        self.assertEqual(self.notifications(self.agent), 1)

        Operation.objects.filter(pk=operation.pk).update(etat_operation=EtatOperation.EN_COURS)
        with self.assertRaises(OperationInvalide):
            OperationService.client_modifier_details_operation(self.client_user, operation.pk, {'bureau': 'Sfax'})
        operation.refresh_from_db()
        self.assertEqual(operation.bureau, 'Rades')

    def test_operation_d_un_autre_client(self):
        operation = self.nouvelle_operation()
        with self.assertRaises(Introuvable):
            OperationService.client_modifier_details_operation(self.autre_client, operation.pk, {'bureau': 'Rades'})


class ReservationTest(OperationTestCase):

    def test_premier_agent_l_emporte(self):
        operation = self.nouvelle_operation()

        self.assertTrue(OperationService.reserver_operation(self.agent, operation.pk))
        self.assertFalse(OperationService.reserver_operation(self.agent2, operation.pk))

        operation.refresh_from_db()
        self.assertEqual(operation.reserver_par, self.agent)
        self.assertEqual(operation.historiques.count(), 1)
        self.assertEqual(self.notifications(self.client_user), 1)

    def test_reservations_entrelacees(self):
        """Un second agent réserve entre la vérification d'existence et l'UPDATE du premier."""
        operation = self.nouvelle_operation()
        exists_reel = QuerySet.exists
        resultats = {}

        def exists_puis_reservation_concurrente(queryset):
            existe = exists_reel(queryset)
            if queryset.model is Operation and 'agent2' not in resultats:
                resultats['agent2'] = None
                resultats['agent2'] = OperationService.reserver_operation(self.agent2, operation.pk)
            return existe

        with patch.object(QuerySet, 'exists', autospec=True, side_effect=exists_puis_reservation_concurrente):
            resultats['agent'] = OperationService.reserver_operation(self.agent, operation.pk)

        self.assertEqual(resultats, {'agent': False, 'agent2': True})
        operation.refresh_from_db()
        self.assertEqual(operation.reserver_par, self.agent2)
        self.assertEqual(Historique.objects.filter(operation=operation).count(), 1)
        self.assertEqual(self.notifications(self.client_user), 1)

    def test_identifiant_non_numerique(self):
        with self.assertRaises(Introuvable):
            OperationService.reserver_operation(self.agent, 'abc')

    def test_admin_non_agent(self):
        operation = self.nouvelle_operation()
        with self.assertRaises(NonAutorise):
            OperationService.reserver_operation(self.admin, operation.pk)

    def test_introuvable(self):
        with self.assertRaises(Introuvable):
            OperationService.reserver_operation(self.agent, 999999)


class DocumentsEtCommentairesTest(OperationTestCase):

    def test_bascule_acceptation(self):
        operation = self.nouvelle_operation()
        document = Document.objects.create(operation=operation, nom_document='bl.pdf', fichier='documents/bl.pdf')

        self.assertTrue(OperationService.ajouter_documents(self.agent, operation.pk, document_ids=[document.pk]))
        document.refresh_from_db()
        self.assertFalse(document.est_accepte)
        self.assertEqual(self.notifications(self.client_user), 1)

    def test_sans_fichier_ni_document(self):
        operation = self.nouvelle_operation()
        self.assertFalse(OperationService.ajouter_documents(self.agent, operation.pk))
        self.assertEqual(operation.historiques.count(), 0)

    def test_client_sur_operation_cloturee(self):
        operation = self.nouvelle_operation(etat_operation=EtatOperation.CLOTURE, code_dossier='111111')
        self.assertFalse(OperationService.client_ajouter_documents(self.client_user, operation.pk, [fichier()]))
        self.assertEqual(operation.documents.count(), 0)

    def test_client_documents(self):
        operation = self.nouvelle_operation()
        self.assertTrue(OperationService.client_ajouter_documents(self.client_user, operation.pk, [fichier()]))
        document = operation.documents.get()
        self.assertTrue(document.fichier.name.startswith(f'documents/societe-x/{operation.pk}/'))
        self.assertEqual(self.notifications(self.admin), 1)

    def test_commentaire_vide(self):
        operation = self.nouvelle_operation()
        self.assertIsNone(OperationService.ajouter_commentaire(self.agent, operation.pk, "   "))
        self.assertEqual(operation.commentaires.count(), 0)

    def test_commentaire_client_operation_cloturee(self):
        operation = self.nouvelle_operation(
            etat_operation=EtatOperation.CLOTURE, code_dossier='111111', reserver_par=self.agent
        )
        commentaire = OperationService.client_ajouter_commentaire(self.client_user, operation.pk, "Merci")
        self.assertEqual(commentaire.message, "Merci")
        self.assertEqual(self.notifications(self.agent), 1)
        self.assertEqual(self.notifications(self.admin), 0)

    def test_historique_non_modifiable(self):
        operation = self.nouvelle_operation()
        historique = Historique.objects.create(operation=operation, utilisateur=self.admin, action="créée")
        historique.action = "autre"
        with self.assertRaises(OperationInvalide):
            historique.save()


# =============================================================================
# LISTES ET TABLEAUX DE BORD
# =============================================================================

class ListesOperationsTest(OperationTestCase):

    def test_ordre(self):
        cloturee = self.nouvelle_operation(etat_operation=EtatOperation.CLOTURE, code_dossier='111111')
        reservee = self.nouvelle_operation(reserver_par=self.agent)
        libre = self.nouvelle_operation()

        page = queries.lister_operations(self.admin)
        self.assertEqual([o.pk for o in page['items']], [reservee.pk, libre.pk, cloturee.pk])

    def test_mes_operations_recentes_d_abord(self):
        ancienne = self.nouvelle_operation(reserver_par=self.agent)
        recente = self.nouvelle_operation(reserver_par=self.agent)
        self.nouvelle_operation(reserver_par=self.agent2)
        Operation.objects.filter(pk=ancienne.pk).update(last_modified=recente.last_modified - timedelta(days=1))

        page = queries.mes_operations(self.agent)
        self.assertEqual([o.pk for o in page['items']], [recente.pk, ancienne.pk])

    def test_perimetre_type_operation(self):
        self.nouvelle_operation(type_operation=TypeOperation.EXPORT)
        importation = self.nouvelle_operation()
        page = queries.lister_operations(self.agent)
        self.assertEqual([o.pk for o in page['items']], [importation.pk])

    def test_filtres_exclusion(self):
        self.nouvelle_operation(etat_operation=EtatOperation.PESAGE)
        depot = self.nouvelle_operation()
        page = queries.lister_operations(self.admin, {'etats': [EtatOperation.PESAGE], 'in_etats': False})
        self.assertEqual([o.pk for o in page['items']], [depot.pk])

    def test_non_reservees_agent_sans_type(self):
        agent_sans_type = creer_utilisateur('agent3', Roles.AGENT)
        with self.assertRaises(NonAutorise):
            queries.operations_non_reservees(agent_sans_type)

    def test_administrateur_agent_sans_type(self):
        admin_agent = creer_utilisateur('admin2', Roles.ADMINISTRATOR)
        admin_agent.groups.add(Group.objects.get(name=Roles.AGENT))
        libre = self.nouvelle_operation()

        page = queries.operations_non_reservees(admin_agent)
        self.assertEqual([o.pk for o in page['items']], [libre.pk])
        self.assertEqual(queries.filtres_operations(admin_agent)['types_operation'][0]['value'], TypeOperation.IMPORT)
        self.assertIn('nbr_total_factures', queries.tableau_de_bord(admin_agent))

    def test_client_ne_voit_que_les_siennes(self):
        self.nouvelle_operation()
        autre = self.nouvelle_operation(utilisateur=self.autre_client)
        page = queries.client_lister_operations(self.autre_client)
        self.assertEqual([o.pk for o in page['items']], [autre.pk])
        with self.assertRaises(Introuvable):
            queries.client_details_operation(self.client_user, autre.pk)

    def test_tableau_de_bord_admin(self):
        self.nouvelle_operation()
        self.nouvelle_operation(type_operation=TypeOperation.EXPORT, reserver_par=self.agent)
        tableau = queries.tableau_de_bord(self.admin)
        self.assertEqual(tableau['nbr_total_operations'], 2)
        self.assertEqual(tableau['nbr_not_reserved_operations'], 1)
        self.assertEqual(tableau['nbr_total_agents'], 2)
        self.assertEqual(tableau['nbr_total_clients'], 2)

    def test_tableau_de_bord_client(self):
        self.nouvelle_operation()
        tableau = queries.client_tableau_de_bord(self.client_user)
        self.assertEqual(tableau['nbr_total_operations'], 1)
        self.assertEqual(tableau['nbr_total_factures'], 0)


# =============================================================================
# API REST
# =============================================================================

class OperationAPITest(OperationTestCase):

    def setUp(self):
        super().setUp()
        self.api = APIClient()

    def test_non_authentifie(self):
        response = self.api.get('/api/entreprise/operations/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_client_sur_application_entreprise(self):
        self.api.force_authenticate(self.client_user)
        response = self.api.get('/api/entreprise/operations/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_liste_paginee(self):
        for _ in range(3):
            self.nouvelle_operation()
        self.api.force_authenticate(self.admin)
        response = self.api.get('/api/entreprise/operations/', {'page_number': 2, 'page_size': 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(response.data['total_count'], 3)
        self.assertTrue(response.data['has_previous_page'])

    def test_creation_multipart(self):
        self.api.force_authenticate(self.admin)
        response = self.api.post('/api/entreprise/operations/create/', {
            'client_id': self.client_user.pk,
            'type_operation': TypeOperation.IMPORT,
            'commentaire': 'Dossier complet',
            'fichiers': [fichier('bl.pdf'), fichier('facture.pdf')],
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        operation = Operation.objects.get(pk=response.data['id'])
        self.assertEqual(operation.documents.count(), 2)

    def test_details_introuvable(self):
        self.api.force_authenticate(self.admin)
        response = self.api.get('/api/entreprise/operations/999999/details/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_details_identifiant_non_numerique_404(self):
        self.api.force_authenticate(self.admin)
        response = self.api.get('/api/entreprise/operations/abc/details/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_details(self):
        operation = self.nouvelle_operation()
        self.api.force_authenticate(self.agent)
        response = self.api.get(f'/api/entreprise/operations/{operation.pk}/details/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['operation']['id'], operation.pk)
        self.assertEqual(response.data['client']['username'], 'societe-x')

    def test_details_avec_historique(self):
        operation = self.nouvelle_operation()
        OperationService.reserver_operation(self.agent, operation.pk)
        self.api.force_authenticate(self.client_user)
        response = self.api.get(f'/api/client/operations/{operation.pk}/details/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['historiques']), 1)
        self.assertEqual(response.data['historiques'][0]['utilisateur_nom'], 'agent1')

    def test_cloture_sans_code_400(self):
        operation = self.nouvelle_operation()
        self.api.force_authenticate(self.admin)
        response = self.api.patch(
            f'/api/entreprise/operations/{operation.pk}/update-info-general/',
            {'etat_operation': EtatOperation.CLOTURE}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("code dossier", response.data['detail'])

    def test_etat_invalide_400(self):
        operation = self.nouvelle_operation()
        self.api.force_authenticate(self.admin)
        response = self.api.patch(
            f'/api/entreprise/operations/{operation.pk}/update-info-general/',
            {'etat_operation': 42}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reservation_par_admin_403(self):
        operation = self.nouvelle_operation()
        self.api.force_authenticate(self.admin)
        response = self.api.post(f'/api/entreprise/operations/{operation.pk}/reserve/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_reservation(self):
        operation = self.nouvelle_operation()
        self.api.force_authenticate(self.agent)
        response = self.api.post(f'/api/entreprise/operations/{operation.pk}/reserve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['reservee'])
        response = self.api.post(f'/api/entreprise/operations/{operation.pk}/reserve/')
        self.assertFalse(response.data['reservee'])

    def test_client_modification_apres_depot_400(self):
        operation = self.nouvelle_operation(etat_operation=EtatOperation.EN_COURS)
        self.api.force_authenticate(self.client_user)
        response = self.api.patch(
            f'/api/client/operations/{operation.pk}/update-info-general/', {'bureau': 'Rades'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_client_details_d_un_autre_404(self):
        operation = self.nouvelle_operation()
        self.api.force_authenticate(self.autre_client)
        response = self.api.get(f'/api/client/operations/{operation.pk}/details/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_historiques_client(self):
        operation = OperationService.client_creer_operation(self.client_user, TypeOperation.IMPORT)
        self.api.force_authenticate(self.client_user)
        response = self.api.get('/api/client/historiques/', {'operation_id': operation.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_count'], 1)

    def test_filtres(self):
        self.api.force_authenticate(self.agent)
        response = self.api.get('/api/entreprise/operations/filters/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['types_operation'], [{'value': 0, 'name': 'Import'}])
        self.assertEqual(response.data['dossiers'], [{'code_dossier': '111111', 'nom': '111111--societe-x'}])
