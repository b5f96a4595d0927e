import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Compte',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('telephone', models.CharField(blank=True, default='', help_text='Numéro de téléphone', max_length=15, validators=[django.core.validators.RegexValidator(message='Le numéro de téléphone doit être au format international.', regex='^\\+?1?\\d{8,15}$')])),
                ('email_notif', models.EmailField(blank=True, default='', help_text="Adresse email recevant les notifications d'opérations", max_length=254, validators=[django.core.validators.EmailValidator()])),
                ('type_operation', models.IntegerField(blank=True, choices=[(0, 'Import'), (1, 'Export'), (2, 'MAC')], help_text="Restreint un agent / administrateur à un seul type d'opération", null=True)),
                ('code_client', models.CharField(blank=True, db_index=True, default='', help_text='Code client (comptes clients uniquement), clé de jointure avec les factures', max_length=50)),
                ('a_acces', models.BooleanField(default=True, help_text='Indique si le compte peut se connecter au portail')),
                ('date_creation', models.DateTimeField(default=django.utils.timezone.now, help_text='Date de création du compte')),
                ('user', models.OneToOneField(help_text="Utilisateur Django associé pour l'authentification", on_delete=django.db.models.deletion.CASCADE, related_name='compte', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Compte',
                'verbose_name_plural': 'Comptes',
                'db_table': 'accounts_compte',
                'ordering': ['-date_creation'],
            },
        ),
    ]
