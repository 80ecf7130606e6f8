# financeiro/models.py
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class TipoMovimento(models.TextChoices):
    RECEBIMENTO = "RECEBIMENTO", "Recebimento"
    DESPESA = "DESPESA", "Despesa"
    ABERTURA = "ABERTURA", "Abertura"
    FECHAMENTO = "FECHAMENTO", "Fechamento"


class FormaPagamento(models.TextChoices):
    DINHEIRO = "DINHEIRO", "Dinheiro"
    CARTAO_CREDITO = "CARTAO_CREDITO", "Cartão de crédito"
    CARTAO_DEBITO = "CARTAO_DEBITO", "Cartão de débito"
    PIX = "PIX", "Pix"


class MovimentoCaixa(models.Model):
    empresa = models.ForeignKey("empresas.Empresa", on_delete=models.CASCADE, related_name="movimentos")
    usuario = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="movimentos")
    agendamento = models.ForeignKey(
        "agendamentos.Agendamento",
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name="movimentos",
    )
    colaborador = models.ForeignKey(
        "empresas.Colaborador",
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name="movimentos",
    )
    tipo = models.CharField(max_length=12, choices=TipoMovimento.choices)
    forma_pagamento = models.CharField(max_length=16, choices=FormaPagamento.choices, default=FormaPagamento.DINHEIRO)
    valor = models.DecimalField(max_digits=10, decimal_places=2)
    observacoes = models.TextField(blank=True)
    # despesa de comissão gerada na finalização do atendimento
    eh_comissao = models.BooleanField(default=False)
    data_transacao = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-data_transacao"]
        indexes = [
            models.Index(fields=["empresa", "data_transacao"]),
            models.Index(fields=["empresa", "tipo"]),
            models.Index(fields=["colaborador", "eh_comissao"]),
        ]
        constraints = [
            models.CheckConstraint(name="mov_valor_nao_negativo", condition=Q(valor__gte=0)),
        ]

    def __str__(self):
        return f"{self.get_tipo_display()} R$ {self.valor:.2f} ({timezone.localtime(self.data_transacao):%d/%m %H:%M})"


class TipoFechamento(models.TextChoices):
    DIA = "DIA", "Dia"
    SEMANA = "SEMANA", "Semana"
    QUINZENA = "QUINZENA", "Quinzena"
    MES = "MES", "Mês"


class FechamentoCaixa(models.Model):
    empresa = models.ForeignKey("empresas.Empresa", on_delete=models.CASCADE, related_name="fechamentos")
    usuario = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="fechamentos")
    tipo = models.CharField(max_length=10, choices=TipoFechamento.choices, default=TipoFechamento.DIA)
    data_inicio = models.DateField()
    data_fim = models.DateField()
    total_recebimentos = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_despesas = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    saldo = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    dinheiro_contado = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    cartao_pix_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    observacoes = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["empresa", "data_inicio", "data_fim"])]
        constraints = [
            models.UniqueConstraint(
                fields=["empresa", "tipo", "data_inicio", "data_fim"],
                name="uniq_fechamento_por_periodo",
            ),
            models.CheckConstraint(name="fechamento_fim_gte_inicio", condition=Q(data_fim__gte=F("data_inicio"))),
        ]

    def __str__(self):
        return f"{self.get_tipo_display()} {self.data_inicio:%d/%m/%Y}-{self.data_fim:%d/%m/%Y}"


class PagamentoComissao(models.Model):
    empresa = models.ForeignKey("empresas.Empresa", on_delete=models.CASCADE, related_name="pagamentos_comissao")
    colaborador = models.ForeignKey("empresas.Colaborador", on_delete=models.PROTECT, related_name="pagamentos_comissao")
    valor = models.DecimalField(max_digits=10, decimal_places=2)
    forma_pagamento = models.CharField(max_length=16, choices=FormaPagamento.choices, default=FormaPagamento.DINHEIRO)
    observacoes = models.TextField(blank=True)
    pago_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="comissoes_pagas")
    movimento = models.OneToOneField(
        MovimentoCaixa,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name="pagamento_comissao",
    )
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.colaborador} R$ {self.valor:.2f}"


class Produto(models.Model):
    empresa = models.ForeignKey("empresas.Empresa", on_delete=models.CASCADE, related_name="produtos")
    nome = models.CharField(max_length=120)
    descricao = models.TextField(blank=True)
    preco = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    custo = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    estoque = models.PositiveIntegerField(default=0)
    estoque_minimo = models.PositiveIntegerField(default=0)
    ativo = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["nome"]
        constraints = [
            models.UniqueConstraint(fields=["empresa", "nome"], name="uniq_produto_nome_por_empresa"),
        ]

    def __str__(self):
        return self.nome

    @property
    def critico(self) -> bool:
        return self.estoque <= self.estoque_minimo
