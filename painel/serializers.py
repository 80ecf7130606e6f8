# painel/serializers.py
from rest_framework import serializers

from .models import ContatoSolicitacao


class ContatoSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContatoSolicitacao
        fields = ["id", "nome", "email", "telefone", "empresa_nome", "mensagem", "status", "created_at"]
        read_only_fields = ["id", "nome", "email", "telefone", "empresa_nome", "mensagem", "created_at"]


class NovoContatoSerializer(serializers.Serializer):
    nome = serializers.CharField(max_length=120, required=False, allow_blank=True)
    email = serializers.CharField(max_length=254, required=False, allow_blank=True)
    telefone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    empresa = serializers.CharField(max_length=120, required=False, allow_blank=True)
    mensagem = serializers.CharField(required=False, allow_blank=True)


class RelatorioQuerySerializer(serializers.Serializer):
    periodo = serializers.ChoiceField(
        choices=["last_month", "last_3_months", "last_year"],
        required=False,
        default="last_month",
    )
