# financeiro/serializers.py
from rest_framework import serializers

from .models import FechamentoCaixa, FormaPagamento, MovimentoCaixa, PagamentoComissao, Produto, TipoFechamento


class MovimentoSerializer(serializers.ModelSerializer):
    colaborador_nome = serializers.CharField(source="colaborador.nome_completo", read_only=True, default=None)
    usuario_email = serializers.CharField(source="usuario.email", read_only=True, default=None)

    class Meta:
        model = MovimentoCaixa
        fields = [
            "id", "tipo", "forma_pagamento", "valor", "observacoes", "eh_comissao",
            "agendamento", "colaborador", "colaborador_nome", "usuario_email",
            "data_transacao", "created_at",
        ]
        read_only_fields = fields


class NovaTransacaoSerializer(serializers.Serializer):
    tipo = serializers.ChoiceField(choices=["RECEBIMENTO", "DESPESA"])
    valor = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    forma_pagamento = serializers.ChoiceField(choices=FormaPagamento.choices, default=FormaPagamento.DINHEIRO)
    observacoes = serializers.CharField(required=False, allow_blank=True, default="")
    data_transacao = serializers.DateTimeField(required=False)


class FechamentoDiaSerializer(serializers.Serializer):
    notas_100 = serializers.IntegerField(min_value=0, default=0)
    notas_50 = serializers.IntegerField(min_value=0, default=0)
    notas_20 = serializers.IntegerField(min_value=0, default=0)
    outras = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    despesas_produtos = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    despesas_outras = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    observacoes = serializers.CharField(required=False, allow_blank=True, default="")


class FechamentoSerializer(serializers.ModelSerializer):
    class Meta:
        model = FechamentoCaixa
        fields = [
            "id", "tipo", "data_inicio", "data_fim", "total_recebimentos", "total_despesas",
            "saldo", "dinheiro_contado", "cartao_pix_total", "observacoes", "usuario", "created_at",
        ]
        read_only_fields = fields


class FecharPeriodoSerializer(serializers.Serializer):
    tipo = serializers.ChoiceField(choices=TipoFechamento.choices)
    referencia = serializers.DateField(required=False)
    dinheiro_contado = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, default=0)
    observacoes = serializers.CharField(required=False, allow_blank=True, default="")


class PagamentoComissaoSerializer(serializers.ModelSerializer):
    colaborador_nome = serializers.CharField(source="colaborador.nome_completo", read_only=True)

    class Meta:
        model = PagamentoComissao
        fields = ["id", "colaborador", "colaborador_nome", "valor", "forma_pagamento", "observacoes", "pago_por", "created_at"]
        read_only_fields = ["pago_por", "created_at"]


class ProdutoSerializer(serializers.ModelSerializer):
    critico = serializers.BooleanField(read_only=True)

    class Meta:
        model = Produto
        fields = [
            "id", "nome", "descricao", "preco", "custo", "estoque", "estoque_minimo",
            "ativo", "critico", "created_at", "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_nome(self, value):
        value = value.strip()
        qs = Produto.objects.filter(empresa=self.context.get("empresa"), nome__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Já existe um produto com este nome.")
        return value


class VendaProdutoSerializer(serializers.Serializer):
    quantidade = serializers.IntegerField(min_value=1)
    forma_pagamento = serializers.ChoiceField(choices=FormaPagamento.choices, default=FormaPagamento.DINHEIRO)
