"""
Tests de l'agrégation des dossiers : état de paiement, totaux, filtres,
pagination et API.
"""
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APIClient

from accounts.roles import Roles
from accounts.services import creer_compte
from operations.enums import TypeOperation, EtatPayement
from operations.exceptions import OperationInvalide
from operations.models import Operation

from .models import Dossier, Facture
from .services import DossierService, calculer_etat_payement, resumer_factures

PAYEE = EtatPayement.PAYEE
IMPAYEE = EtatPayement.IMPAYEE
INCOMPLET = EtatPayement.PAYEMENT_INCOMPLET


def creer_utilisateur(username, role, **extra):
    return creer_compte({
        'username': username,
        'email': f'{username}@nej.tn',
        'password': 'motdepasse1',
        'role': role,
        **extra,
    }).user


class EtatPayementTest(SimpleTestCase):

    def test_regles(self):
        cas = [
            ([PAYEE, PAYEE], PAYEE),
            ([PAYEE, IMPAYEE], IMPAYEE),
            ([PAYEE, INCOMPLET, IMPAYEE], INCOMPLET),
            ([IMPAYEE], IMPAYEE),
            ([], IMPAYEE),
        ]
        for etats, attendu in cas:
            with self.subTest(etats=etats):
                self.assertEqual(calculer_etat_payement(etats), attendu)


class DossiersTestCase(TestCase):

    def setUp(self):
        self.admin = creer_utilisateur('admin1', Roles.ADMINISTRATOR)
        self.agent = creer_utilisateur('agent1', Roles.AGENT)
        self.client_x = creer_utilisateur('societe-x', Roles.CLIENT, code_client='C001')
        self.client_y = creer_utilisateur('societe-y', Roles.CLIENT, code_client='C002')

        for code, client in (('222222', self.client_x), ('111111', self.client_x), ('333333', self.client_y)):
            Dossier.objects.create(code_dossier=code, code_client=client.compte.code_client)

        self.operation(self.client_x, '111111', reserver_par=self.agent)
        self.operation(self.client_x, '111111')
        self.operation(self.client_x, '222222')
        self.operation(self.client_y, '333333')
        self.operation(self.client_y, None)
        self.operation(self.client_y, '')

        self.facture('111111', 'C001', 1, '100', '100', PAYEE, "Transit")
        self.facture('111111', 'C001', 2, '50', '0', IMPAYEE, "Magasinage")
        self.facture('222222', 'C001', 1, '80', '80', PAYEE, "Transit")
        self.facture('333333', 'C002', 1, '200', '120', INCOMPLET, "Transport")

    def operation(self, client, code, **champs):
        return Operation.objects.create(
            utilisateur=client, type_operation=TypeOperation.IMPORT, code_dossier=code, **champs
        )

    def facture(self, code, code_client, indice, total, paye, etat, description):
        return Facture.objects.create(
            code_dossier=code, code_client=code_client, indice=indice,
            montant_total=Decimal(total), montant_paye=Decimal(paye),
            montant_restant=Decimal(total) - Decimal(paye),
            etat_payement=etat, description=description,
        )


class AgregationDossiersTest(DossiersTestCase):

    def test_resume_des_factures(self):
        resume = resumer_factures(Facture.objects.filter(code_dossier='111111'))
        self.assertEqual(resume['nombre_factures'], 2)
        self.assertEqual(resume['montant_total'], Decimal('150'))
        self.assertEqual(resume['montant_paye'], Decimal('100'))
        self.assertEqual(resume['montant_reste'], Decimal('50'))
        self.assertEqual(resume['etat_payement'], IMPAYEE)

    def test_rollup_et_ordre(self):
        page = DossierService.lister_dossiers(self.admin)
        dossiers = page['items']

        self.assertEqual([d['code_dossier'] for d in dossiers], ['111111', '222222', '333333'])
        premier = dossiers[0]
        self.assertEqual(premier['nombre_operations'], 2)
        self.assertEqual(premier['nombre_factures'], 2)
        self.assertEqual(premier['description'], "Transit\nMagasinage")
        self.assertEqual(premier['montant_total'], Decimal('150'))
        self.assertEqual(premier['montant_paye'], Decimal('100'))
        self.assertEqual(premier['montant_reste'], Decimal('50'))
        self.assertEqual(premier['etat_payement'], IMPAYEE)
        self.assertEqual(dossiers[1]['etat_payement'], PAYEE)
        self.assertEqual(dossiers[2]['etat_payement'], INCOMPLET)

    def test_filtre_etat_payement_apres_agregation(self):
        page = DossierService.lister_dossiers(self.admin, etats_payement=[PAYEE, INCOMPLET])
        self.assertEqual([d['code_dossier'] for d in page['items']], ['222222', '333333'])
        self.assertEqual(page['total_count'], 2)

    def test_filtres_code_client_agent(self):
        page = DossierService.lister_dossiers(self.admin, code_dossier='2222')
        self.assertEqual([d['code_dossier'] for d in page['items']], ['222222'])

        page = DossierService.lister_dossiers(self.admin, clients=[self.client_y.pk])
        self.assertEqual([d['code_dossier'] for d in page['items']], ['333333'])

        page = DossierService.lister_dossiers(self.admin, agents=[self.agent.pk])
        self.assertEqual([d['code_dossier'] for d in page['items']], ['111111'])
        # le dossier filtré par agent ne compte que les opérations de l'agent
        self.assertEqual(page['items'][0]['nombre_operations'], 1)

    def test_pagination_stable(self):
        premiere = DossierService.lister_dossiers(self.admin, page_number=1, page_size=2)
        seconde = DossierService.lister_dossiers(self.admin, page_number=2, page_size=2)
        self.assertEqual([d['code_dossier'] for d in premiere['items']], ['111111', '222222'])
        self.assertEqual([d['code_dossier'] for d in seconde['items']], ['333333'])
        self.assertEqual(premiere['total_pages'], 2)
        self.assertFalse(seconde['has_next_page'])

    def test_dossier_sans_facture(self):
        self.operation(self.client_y, '444444')
        page = DossierService.lister_dossiers(self.admin, code_dossier='444444')
        dossier = page['items'][0]
        self.assertEqual(dossier['nombre_factures'], 0)
        self.assertEqual(dossier['montant_total'], Decimal('0'))
        self.assertEqual(dossier['etat_payement'], IMPAYEE)

    def test_variante_client(self):
        # une facture d'un autre client sur le même code n'est pas comptée
        self.facture('111111', 'C002', 3, '999', '0', INCOMPLET, "Autre")
        page = DossierService.client_lister_dossiers(self.client_x)
        self.assertEqual([d['code_dossier'] for d in page['items']], ['111111', '222222'])
        self.assertEqual(page['items'][0]['etat_payement'], IMPAYEE)
        self.assertEqual(page['items'][0]['montant_total'], Decimal('150'))

    def test_client_sans_code_client(self):
        sans_code = creer_utilisateur('societe-z', Roles.CLIENT)
        with self.assertRaises(OperationInvalide):
            DossierService.client_lister_dossiers(sans_code)

    def test_personnel_requis(self):
        with self.assertRaisesMessage(OperationInvalide, "Invalid staff id value."):
            DossierService.lister_dossiers(self.client_x)

    def test_details(self):
        details = DossierService.details_dossier(self.admin, '111111')
        self.assertEqual(details['dossier']['client'], 'societe-x')
        self.assertEqual(details['dossier']['agents'], 'agent1')
        self.assertEqual(len(details['operations']), 2)
        self.assertEqual([f.indice for f in details['factures']], [1, 2])

    def test_details_inconnu(self):
        with self.assertRaisesMessage(OperationInvalide, "No operations found for dossier 999999"):
            DossierService.details_dossier(self.admin, '999999')

    def test_details_client_d_un_autre(self):
        with self.assertRaises(OperationInvalide):
            DossierService.client_details_dossier(self.client_y, '111111')

    def test_filtres(self):
        filtres = DossierService.filtres_dossiers(self.admin)
        self.assertEqual(filtres['codes_dossier'], ['111111', '222222', '333333'])
        self.assertEqual(filtres['agents'], [self.agent])
        self.assertEqual(filtres['clients'], [self.client_x, self.client_y])


class DossierAPITest(DossiersTestCase):

    def setUp(self):
        super().setUp()
        self.api = APIClient()

    def test_liste(self):
        self.api.force_authenticate(self.agent)
        response = self.api.get('/api/entreprise/dossiers/all/', {'etats_payement': [INCOMPLET]})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_count'], 1)
        self.assertEqual(response.data['items'][0]['etat_payement_display'], 'Paiement incomplet')

    def test_details(self):
        self.api.force_authenticate(self.client_x)
        response = self.api.get('/api/client/dossiers/111111/details/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['dossier']['nombre_factures'], 2)
        self.assertEqual(len(response.data['operations']), 2)

    def test_details_inconnu_400(self):
        self.api.force_authenticate(self.admin)
        response = self.api.get('/api/entreprise/dossiers/999999/details/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_client_sur_application_entreprise(self):
        self.api.force_authenticate(self.client_x)
        response = self.api.get('/api/entreprise/dossiers/all/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
