from rest_framework import serializers
from django.contrib.auth import get_user_model

from operations.enums import TypeOperation

from .models import Compte
from .roles import Roles
from .services import IdentityService

User = get_user_model()

# ============================================================================
# SERIALIZERS POUR L'AUTHENTIFICATION
# ============================================================================

class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    motDePasse = serializers.CharField(write_only=True)


# ============================================================================
# SERIALIZERS POUR LA GESTION DES COMPTES
# ============================================================================

class UtilisateurResumeSerializer(serializers.ModelSerializer):
    """Représentation courte d'un utilisateur (listes déroulantes, filtres)"""

    class Meta:
        model = User
        fields = ['id', 'username', 'email']


class CompteSerializer(serializers.ModelSerializer):
    """Serializer pour la lecture des comptes via API REST"""
    username = serializers.CharField(source='user.username', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    user_id = serializers.IntegerField(source='user.id', read_only=True)
    roles = serializers.SerializerMethodField()

    class Meta:
        model = Compte
        fields = [
            'id', 'user_id', 'username', 'email', 'email_notif', 'telephone',
            'type_operation', 'code_client', 'a_acces', 'roles', 'date_creation',
        ]

    def get_roles(self, obj):
        return sorted(IdentityService.get_roles(obj.user))


class CreerCompteSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(choices=[(r, r) for r in Roles.TOUS])
    email_notif = serializers.EmailField(required=False, allow_blank=True)
    telephone = serializers.CharField(max_length=15, required=False, allow_blank=True)
    type_operation = serializers.ChoiceField(choices=TypeOperation.choices, required=False, allow_null=True)
    code_client = serializers.CharField(max_length=50, required=False, allow_blank=True)

    def validate_username(self, value):
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError("Ce nom d'utilisateur est déjà utilisé.")
        return value

    def validate_email(self, value):
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("Un utilisateur avec cet email existe déjà.")
        return value

    def validate(self, data):
        if data['role'] == Roles.CLIENT and not data.get('code_client'):
            raise serializers.ValidationError({'code_client': "Le code client est obligatoire pour un compte client."})
        return data


class ModifierCompteSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150, required=False)
    email = serializers.EmailField(required=False)
    email_notif = serializers.EmailField(required=False, allow_blank=True)
    telephone = serializers.CharField(max_length=15, required=False, allow_blank=True)
    type_operation = serializers.ChoiceField(choices=TypeOperation.choices, required=False, allow_null=True)
    code_client = serializers.CharField(max_length=50, required=False, allow_blank=True)
    a_acces = serializers.BooleanField(required=False)
