from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Client',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code_client', models.CharField(max_length=50, unique=True)),
                ('nom', models.CharField(max_length=255)),
                ('created', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'dossiers_client',
                'ordering': ['nom'],
            },
        ),
        migrations.CreateModel(
            name='Dossier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code_dossier', models.CharField(max_length=50, unique=True)),
                ('code_client', models.CharField(db_index=True, max_length=50)),
                ('date', models.DateTimeField(blank=True, null=True)),
                ('created', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'dossiers_dossier',
                'ordering': ['code_dossier'],
            },
        ),
        migrations.CreateModel(
            name='Facture',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('indice', models.IntegerField(blank=True, null=True)),
                ('code_facture', models.CharField(blank=True, max_length=50, null=True)),
                ('code_dossier', models.CharField(blank=True, db_index=True, max_length=50, null=True)),
                ('code_client', models.CharField(blank=True, db_index=True, max_length=50, null=True)),
                ('date_echeance', models.DateTimeField(blank=True, null=True)),
                ('date_emission', models.DateTimeField(blank=True, null=True)),
                ('montant_total', models.DecimalField(blank=True, decimal_places=3, max_digits=18, null=True)),
                ('montant_paye', models.DecimalField(blank=True, decimal_places=3, max_digits=18, null=True)),
                ('montant_restant', models.DecimalField(blank=True, decimal_places=3, max_digits=18, null=True)),
                ('devise', models.CharField(blank=True, max_length=10, null=True)),
                ('description', models.TextField(blank=True, null=True)),
                ('chemin_fichier', models.CharField(blank=True, max_length=500, null=True)),
                ('methode_paiement', models.CharField(blank=True, max_length=100, null=True)),
                ('instructions_paiement', models.TextField(blank=True, null=True)),
                ('etat_payement', models.IntegerField(choices=[(0, 'Impayée'), (1, 'Paiement incomplet'), (2, 'Payée')], default=0)),
                ('created', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'dossiers_facture',
                'ordering': ['code_dossier', 'indice', 'id'],
            },
        ),
    ]
