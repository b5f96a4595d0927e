import django.db.models.deletion
import django.utils.timezone
import operations.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Operation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type_operation', models.IntegerField(choices=[(0, 'Import'), (1, 'Export'), (2, 'MAC')])),
                ('operation_priorite', models.IntegerField(choices=[(0, 'Normale'), (1, 'Urgente'), (2, 'Très urgente')], default=0)),
                ('etat_operation', models.IntegerField(choices=[(0, 'Dépôt dossier'), (1, 'En cours'), (2, 'Traiter'), (3, 'Pesage'), (4, 'Visite'), (5, 'Envoi valeur'), (6, 'Liquidation'), (7, 'Sous réserve caution bancaire'), (8, 'Sous réserve production documents'), (9, 'Main levée'), (10, 'Clôture')], default=0)),
                ('regime', models.CharField(blank=True, max_length=100, null=True)),
                ('bureau', models.CharField(blank=True, max_length=100, null=True)),
                ('code_dossier', models.CharField(blank=True, db_index=True, help_text='Clé de regroupement avec les factures du dossier', max_length=50, null=True)),
                ('tr', models.BooleanField(default=False, verbose_name='TR')),
                ('debours', models.BooleanField(default=False, verbose_name='Débours')),
                ('confirmation_dedouanement', models.BooleanField(default=False, verbose_name='Confirmation de dédouanement')),
                ('created', models.DateTimeField(auto_now_add=True)),
                ('last_modified', models.DateTimeField(auto_now=True)),
                ('utilisateur', models.ForeignKey(help_text="Client propriétaire de l'opération", on_delete=django.db.models.deletion.CASCADE, related_name='operations', to=settings.AUTH_USER_MODEL)),
                ('reserver_par', models.ForeignKey(blank=True, help_text="Agent ayant réservé l'opération", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='operations_reservees', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Opération',
                'verbose_name_plural': 'Opérations',
                'db_table': 'operations_operation',
                'ordering': ['-last_modified'],
            },
        ),
        migrations.CreateModel(
            name='Document',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nom_document', models.CharField(max_length=255)),
                ('fichier', models.FileField(max_length=500, upload_to=operations.models.chemin_document)),
                ('taille_fichier', models.BigIntegerField(blank=True, help_text='Taille en octets', null=True)),
                ('type_fichier', models.CharField(blank=True, default='', help_text='Type MIME', max_length=100)),
                ('est_accepte', models.BooleanField(default=True)),
                ('created', models.DateTimeField(auto_now_add=True)),
                ('operation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='documents', to='operations.operation')),
            ],
            options={
                'db_table': 'operations_document',
                'ordering': ['created', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Commentaire',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('message', models.TextField()),
                ('created', models.DateTimeField(auto_now_add=True)),
                ('operation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='commentaires', to='operations.operation')),
                ('utilisateur', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='commentaires', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'operations_commentaire',
                'ordering': ['created', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Historique',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.TextField()),
                ('created', models.DateTimeField(default=django.utils.timezone.now)),
                ('operation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='historiques', to='operations.operation')),
                ('utilisateur', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='historiques', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'operations_historique',
                'ordering': ['-created', '-id'],
            },
        ),
    ]
