# assinaturas/models.py
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone


class Funcionalidade(models.Model):
    chave = models.SlugField(max_length=60, unique=True)
    nome = models.CharField(max_length=120)
    descricao = models.TextField(blank=True)

    class Meta:
        ordering = ["nome"]

    def __str__(self):
        return self.nome


class Plano(models.Model):
    nome = models.CharField(max_length=80, unique=True)
    descricao = models.TextField(blank=True)
    preco = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    duracao_meses = models.PositiveSmallIntegerField(default=1)
    ativo = models.BooleanField(default=True)
    funcionalidades = models.ManyToManyField(Funcionalidade, through="PlanoFuncionalidade", related_name="planos")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["preco", "nome"]

    def __str__(self):
        return self.nome


class PlanoFuncionalidade(models.Model):
    plano = models.ForeignKey(Plano, on_delete=models.CASCADE, related_name="itens_funcionalidade")
    funcionalidade = models.ForeignKey(Funcionalidade, on_delete=models.CASCADE, related_name="itens_plano")
    limite = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        unique_together = [("plano", "funcionalidade")]


class TipoLimite(models.TextChoices):
    COLABORADORES = "collaborators", "Colaboradores"
    SERVICOS = "services", "Serviços"


class PlanoLimite(models.Model):
    plano = models.ForeignKey(Plano, on_delete=models.CASCADE, related_name="limites")
    tipo = models.CharField(max_length=20, choices=TipoLimite.choices)
    # <= 0 significa ilimitado
    valor = models.IntegerField(default=0)

    class Meta:
        unique_together = [("plano", "tipo")]

    def __str__(self):
        return f"{self.plano} {self.tipo}={self.valor}"


class StatusAssinatura(models.TextChoices):
    ACTIVE = "ACTIVE", "Ativa"
    PENDING = "PENDING", "Pendente"
    EXPIRED = "EXPIRED", "Expirada"
    CANCELED = "CANCELED", "Cancelada"


class AssinaturaEmpresa(models.Model):
    empresa = models.ForeignKey("empresas.Empresa", on_delete=models.CASCADE, related_name="assinaturas")
    plano = models.ForeignKey(Plano, on_delete=models.PROTECT, related_name="assinaturas")
    status = models.CharField(max_length=10, choices=StatusAssinatura.choices, default=StatusAssinatura.PENDING)
    data_inicio = models.DateField()
    data_fim = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-data_inicio", "-pk"]
        indexes = [models.Index(fields=["empresa", "status"])]
        constraints = [
            models.CheckConstraint(
                name="assinatura_fim_gte_inicio_or_null",
                condition=Q(data_fim__isnull=True) | Q(data_fim__gte=F("data_inicio")),
            ),
        ]

    def __str__(self):
        return f"{self.empresa} - {self.plano} ({self.status})"


class TipoDesconto(models.TextChoices):
    PERCENTUAL = "PERCENTUAL", "Percentual"
    FIXO = "FIXO", "Valor fixo"


class PeriodoCobranca(models.TextChoices):
    MONTHLY = "MONTHLY", "Mensal"
    YEARLY = "YEARLY", "Anual"


class CupomAdmin(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Ativo"
        INACTIVE = "INACTIVE", "Inativo"

    codigo = models.CharField(max_length=40, unique=True)
    tipo_desconto = models.CharField(max_length=12, choices=TipoDesconto.choices, default=TipoDesconto.PERCENTUAL)
    valor_desconto = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    plano = models.ForeignKey(Plano, on_delete=models.SET_NULL, null=True, blank=True, related_name="cupons")
    periodo_cobranca = models.CharField(max_length=8, choices=PeriodoCobranca.choices, null=True, blank=True)
    max_usos = models.PositiveIntegerField(null=True, blank=True)
    usos_atuais = models.PositiveIntegerField(default=0)
    validade = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["codigo"]

    def __str__(self):
        return self.codigo

    def save(self, *args, **kwargs):
        self.codigo = (self.codigo or "").strip().upper()
        super().save(*args, **kwargs)


class UsoCupom(models.Model):
    cupom = models.ForeignKey(CupomAdmin, on_delete=models.CASCADE, related_name="usos")
    empresa = models.ForeignKey("empresas.Empresa", on_delete=models.CASCADE, related_name="usos_cupom")
    assinatura = models.ForeignKey(AssinaturaEmpresa, on_delete=models.SET_NULL, null=True, blank=True, related_name="usos_cupom")
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        unique_together = [("cupom", "empresa")]
        ordering = ["-created_at"]


class TentativaPagamento(models.Model):
    class Status(models.TextChoices):
        INITIATED = "INITIATED", "Iniciada"
        PREFERENCE_CREATED = "PREFERENCE_CREATED", "Preferência criada"
        APPROVED = "APPROVED", "Aprovada"
        FAILED = "FAILED", "Falhou"

    empresa = models.ForeignKey("empresas.Empresa", on_delete=models.CASCADE, related_name="tentativas_pagamento")
    plano = models.ForeignKey(Plano, on_delete=models.PROTECT, related_name="tentativas_pagamento")
    cupom = models.ForeignKey(CupomAdmin, on_delete=models.SET_NULL, null=True, blank=True, related_name="tentativas_pagamento")
    usuario = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    duracao_meses = models.PositiveSmallIntegerField(default=1)
    valor = models.DecimalField(max_digits=10, decimal_places=2)
    moeda = models.CharField(max_length=3, default="BRL")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.INITIATED)
    referencia_externa = models.CharField(max_length=200, blank=True)
    preference_id = models.CharField(max_length=120, blank=True)
    payment_id = models.CharField(max_length=60, blank=True, db_index=True)
    detalhes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["payment_id"],
                name="uniq_tentativa_payment_id",
                condition=~models.Q(payment_id=""),
            ),
        ]

    def __str__(self):
        return f"{self.empresa} {self.plano} R$ {self.valor:.2f} ({self.status})"
