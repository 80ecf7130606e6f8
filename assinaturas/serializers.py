# assinaturas/serializers.py
from rest_framework import serializers

from .models import (
    AssinaturaEmpresa,
    CupomAdmin,
    Funcionalidade,
    Plano,
    PlanoFuncionalidade,
    PlanoLimite,
    TentativaPagamento,
    TipoDesconto,
    UsoCupom,
)


class FuncionalidadeSerializer(serializers.ModelSerializer):
    class Meta:
        model = Funcionalidade
        fields = ["id", "chave", "nome", "descricao"]


class PlanoFuncionalidadeSerializer(serializers.ModelSerializer):
    chave = serializers.CharField(source="funcionalidade.chave", read_only=True)
    nome = serializers.CharField(source="funcionalidade.nome", read_only=True)

    class Meta:
        model = PlanoFuncionalidade
        fields = ["id", "funcionalidade", "chave", "nome", "limite"]


class PlanoLimiteSerializer(serializers.ModelSerializer):
    class Meta:
        model = PlanoLimite
        fields = ["id", "tipo", "valor"]


class PlanoSerializer(serializers.ModelSerializer):
    funcionalidades = PlanoFuncionalidadeSerializer(source="itens_funcionalidade", many=True, read_only=True)
    limites = PlanoLimiteSerializer(many=True, read_only=True)

    class Meta:
        model = Plano
        fields = ["id", "nome", "descricao", "preco", "duracao_meses", "ativo", "funcionalidades", "limites"]

    def validate_preco(self, value):
        if value < 0:
            raise serializers.ValidationError("Preço não pode ser negativo.")
        return value

    def validate_duracao_meses(self, value):
        if value <= 0:
            raise serializers.ValidationError("Duração deve ser maior que zero.")
        return value


class AssinaturaSerializer(serializers.ModelSerializer):
    plano_nome = serializers.CharField(source="plano.nome", read_only=True)
    empresa_nome = serializers.CharField(source="empresa.nome", read_only=True)

    class Meta:
        model = AssinaturaEmpresa
        fields = ["id", "empresa", "empresa_nome", "plano", "plano_nome", "status", "data_inicio", "data_fim", "created_at"]


class CupomSerializer(serializers.ModelSerializer):
    plano_nome = serializers.CharField(source="plano.nome", read_only=True, default=None)

    class Meta:
        model = CupomAdmin
        fields = [
            "id", "codigo", "tipo_desconto", "valor_desconto", "status", "plano", "plano_nome",
            "periodo_cobranca", "max_usos", "usos_atuais", "validade", "created_at",
        ]
        read_only_fields = ["usos_atuais", "created_at"]

    def validate_codigo(self, value):
        value = value.strip().upper()
        qs = CupomAdmin.objects.filter(codigo=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Já existe um cupom com este código.")
        return value

    def validate(self, attrs):
        tipo = attrs.get("tipo_desconto", getattr(self.instance, "tipo_desconto", TipoDesconto.PERCENTUAL))
        valor = attrs.get("valor_desconto", getattr(self.instance, "valor_desconto", 0))
        if valor < 0 or (tipo == TipoDesconto.PERCENTUAL and valor > 100):
            raise serializers.ValidationError({"valor_desconto": "Valor de desconto inválido."})
        return attrs


class UsoCupomSerializer(serializers.ModelSerializer):
    codigo = serializers.CharField(source="cupom.codigo", read_only=True)
    empresa_nome = serializers.CharField(source="empresa.nome", read_only=True)

    class Meta:
        model = UsoCupom
        fields = ["id", "codigo", "empresa", "empresa_nome", "assinatura", "created_at"]


class TentativaSerializer(serializers.ModelSerializer):
    empresa_nome = serializers.CharField(source="empresa.nome", read_only=True)
    plano_nome = serializers.CharField(source="plano.nome", read_only=True)
    cupom_codigo = serializers.CharField(source="cupom.codigo", read_only=True, default=None)

    class Meta:
        model = TentativaPagamento
        fields = [
            "id", "empresa", "empresa_nome", "plano", "plano_nome", "cupom_codigo", "duracao_meses",
            "valor", "moeda", "status", "referencia_externa", "preference_id", "payment_id",
            "detalhes", "created_at", "updated_at",
        ]


class AssinarSerializer(serializers.Serializer):
    planId = serializers.IntegerField()
    durationMonths = serializers.IntegerField(min_value=1, required=False)
    couponCode = serializers.CharField(required=False, allow_blank=True)
