"""
Tests du module Notifications : canal in-app, canal email au mieux et API.
"""
from smtplib import SMTPException
from unittest.mock import patch

from django.core import mail
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from accounts.roles import Roles
from accounts.services import creer_compte

from .models import Notification
from .services import NotificationService


class NotificationServiceTest(TestCase):

    def setUp(self):
        self.client_user = creer_compte({
            'username': 'societe-x', 'email': 'client@societe-x.tn', 'password': 'motdepasse1',
            'role': Roles.CLIENT, 'code_client': 'C001', 'email_notif': 'notif@societe-x.tn',
        }).user
        self.admin = creer_compte({
            'username': 'admin1', 'email': 'admin@nej.tn', 'password': 'motdepasse1', 'role': Roles.ADMINISTRATOR,
        }).user

    def test_notification_in_app_et_email(self):
        notification = NotificationService.notifier_utilisateur(self.client_user, "Opération réservée", 42)

        self.assertEqual(notification.operation_id, 42)
        self.assertFalse(notification.est_lue)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['notif@societe-x.tn'])
        self.assertIn("#42", mail.outbox[0].subject)
        self.assertIn("/operations/42", mail.outbox[0].body)

    def test_echec_email_tolere(self):
        with patch('notifications.services.send_mail', side_effect=SMTPException("serveur indisponible")):
            with self.assertLogs('notifications.services', level='ERROR'):
                notification = NotificationService.notifier_utilisateur(self.client_user, "Message", 7)

        self.assertTrue(Notification.objects.filter(pk=notification.pk).exists())

    def test_echec_in_app_propage(self):
        with patch.object(Notification.objects, 'create', side_effect=RuntimeError("base indisponible")):
            with self.assertRaises(RuntimeError):
                NotificationService.notifier_utilisateur(self.client_user, "Message", 7)
        self.assertEqual(len(mail.outbox), 0)

    @override_settings(NEJPORTAL_EMAIL_NOTIFICATIONS=False)
    def test_email_desactive(self):
        NotificationService.notifier_utilisateur(self.client_user, "Message", 7)
        self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(Notification.objects.filter(utilisateur=self.client_user).count(), 1)

    @override_settings(NEJPORTAL_FRONT_ENTREPRISE_URL='https://entreprise.nej.tn/')
    def test_lien_selon_application(self):
        self.assertEqual(
            NotificationService.lien_operation(self.admin, 5),
            'https://entreprise.nej.tn/operations/5'
        )

    def test_notifier_administrateurs(self):
        notifications = NotificationService.notifier_administrateurs("Nouvelle opération", 3)
        self.assertEqual([n.utilisateur for n in notifications], [self.admin])

    def test_marquer_toutes_lues(self):
        NotificationService.envoyer_notification(self.client_user, "Un", 1)
        NotificationService.envoyer_notification(self.client_user, "Deux", 1)
        self.assertEqual(NotificationService.marquer_toutes_lues(self.client_user), 2)
        self.assertEqual(NotificationService.non_lues(self.client_user).count(), 0)


class NotificationAPITest(TestCase):

    def setUp(self):
        self.api = APIClient()
        self.client_user = creer_compte({
            'username': 'societe-x', 'email': 'client@societe-x.tn', 'password': 'motdepasse1',
            'role': Roles.CLIENT, 'code_client': 'C001',
        }).user
        self.autre = creer_compte({
            'username': 'societe-y', 'email': 'client@societe-y.tn', 'password': 'motdepasse1',
            'role': Roles.CLIENT, 'code_client': 'C002',
        }).user
        self.notification = NotificationService.envoyer_notification(self.client_user, "Pour X", 1)
        NotificationService.envoyer_notification(self.autre, "Pour Y", 2)

    def test_liste_ses_notifications(self):
        self.api.force_authenticate(self.client_user)
        response = self.api.get('/api/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([n['message'] for n in response.data], ["Pour X"])

    def test_marquer_lue(self):
        self.api.force_authenticate(self.client_user)
        response = self.api.post(f'/api/notifications/{self.notification.pk}/marquer-lue/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.notification.refresh_from_db()
        self.assertTrue(self.notification.est_lue)
        self.assertIsNotNone(self.notification.date_lecture)

    def test_notification_d_un_autre(self):
        self.api.force_authenticate(self.autre)
        response = self.api.post(f'/api/notifications/{self.notification.pk}/marquer-lue/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_non_lues(self):
        self.api.force_authenticate(self.client_user)
        response = self.api.get('/api/notifications/non-lues/')
        self.assertEqual(response.data['count'], 1)
