# servicos/serializers.py
from rest_framework import serializers

from .models import Servico


class ServicoSerializer(serializers.ModelSerializer):
    class Meta:
        model = Servico
        fields = ["id", "nome", "categoria", "descricao", "preco", "duracao_min", "ativo", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def validate_preco(self, value):
        if value < 0:
            raise serializers.ValidationError("Preço não pode ser negativo.")
        return value

    def validate_duracao_min(self, value):
        if value <= 0:
            raise serializers.ValidationError("Duração deve ser maior que zero.")
        return value

    def validate_nome(self, value):
        value = value.strip()
        empresa = self.context.get("empresa")
        qs = Servico.objects.filter(empresa=empresa, nome__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Já existe um serviço com este nome.")
        return value
