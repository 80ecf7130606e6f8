# clientes/serializers.py
from rest_framework import serializers

from core.contacts import normalize_msisdn_br

from .models import Cliente


class ClienteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Cliente
        fields = [
            "id", "nome", "email", "telefone", "data_nascimento", "observacoes",
            "status", "pontos", "convidado", "user", "created_at", "updated_at",
        ]
        read_only_fields = ["pontos", "convidado", "user", "created_at", "updated_at"]

    def validate_telefone(self, value):
        if not value:
            return None
        tel = normalize_msisdn_br(value)
        if not tel:
            raise serializers.ValidationError("Telefone inválido.")
        empresa = self.context.get("empresa")
        qs = Cliente.objects.filter(empresa=empresa, telefone=tel)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if empresa is not None and qs.exists():
            raise serializers.ValidationError("Já existe um cliente com este telefone nesta empresa.")
        return tel


class CadastroClienteSerializer(serializers.Serializer):
    firstName = serializers.CharField(max_length=80)
    lastName = serializers.CharField(max_length=80)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=6)
    phoneNumber = serializers.CharField(required=False, allow_blank=True)
    birthDate = serializers.DateField(required=False, allow_null=True)


class ConviteClienteSerializer(serializers.Serializer):
    nome = serializers.CharField(max_length=120)
    email = serializers.EmailField()
    telefone = serializers.CharField(required=False, allow_blank=True)
    data_nascimento = serializers.DateField(required=False, allow_null=True)
    observacoes = serializers.CharField(required=False, allow_blank=True)
