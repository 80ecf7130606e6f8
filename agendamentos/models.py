# agendamentos/models.py
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q, F
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class StatusAgendamento(models.TextChoices):
    PENDENTE = "PENDENTE", "Pendente"
    CONFIRMADO = "CONFIRMADO", "Confirmado"
    CONCLUIDO = "CONCLUIDO", "Concluído"
    CANCELADO = "CANCELADO", "Cancelado"


# status que ainda podem ser finalizados pelo colaborador
FINALIZAVEIS = (StatusAgendamento.PENDENTE, StatusAgendamento.CONFIRMADO)


class Agendamento(models.Model):
    """
    Evento da agenda: data + hora de início + duração total dos serviços.
    """
    empresa = models.ForeignKey(
        "empresas.Empresa",
        on_delete=models.CASCADE,
        related_name="agendamentos",
    )
    cliente = models.ForeignKey(
        "clientes.Cliente",
        on_delete=models.PROTECT,
        related_name="agendamentos",
    )
    # apelido informado na hora (visitantes usam o cliente coringa)
    cliente_apelido = models.CharField(max_length=120, blank=True)

    colaborador = models.ForeignKey(
        "empresas.Colaborador",
        on_delete=models.PROTECT,
        related_name="agendamentos",
    )

    data = models.DateField()
    hora = models.TimeField()
    duracao_total_min = models.PositiveIntegerField(default=30)
    valor_total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(
        max_length=20,
        choices=StatusAgendamento.choices,
        default=StatusAgendamento.PENDENTE,
    )
    observacoes = models.TextField(null=True, blank=True)

    criado_por = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name="agendamentos_criados",
    )
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["data", "hora"]
        indexes = [
            models.Index(fields=["empresa", "data"]),
            models.Index(fields=["colaborador", "data"]),
            models.Index(fields=["cliente", "data"]),
            models.Index(fields=["status"]),
        ]
        constraints = [
            models.CheckConstraint(
                name="ag_duracao_positiva",
                condition=Q(duracao_total_min__gt=0),
            ),
        ]

    def __str__(self):
        nome = self.cliente_apelido or (self.cliente.nome if self.cliente_id else "—")
        return f"{nome} ({self.data:%d/%m} {self.hora:%H:%M})"

    # ----------------- util -----------------
    @property
    def inicio(self) -> datetime:
        tz = timezone.get_current_timezone()
        return timezone.make_aware(datetime.combine(self.data, self.hora), tz)

    @property
    def fim(self) -> datetime:
        return self.inicio + timedelta(minutes=int(self.duracao_total_min or 0))

    @property
    def rotulo_horario(self) -> str:
        return f"{self.inicio:%H:%M} às {self.fim:%H:%M}"

    # ----------------- regras de negócio -----------------
    def confirmar(self):
        if self.status == StatusAgendamento.CONFIRMADO:
            return self  # idempotente
        if self.status != StatusAgendamento.PENDENTE:
            raise ValueError("Apenas agendamentos PENDENTES podem ser confirmados.")
        self.status = StatusAgendamento.CONFIRMADO
        return self

    def cancelar(self):
        if self.status == StatusAgendamento.CANCELADO:
            return self  # idempotente
        if self.status == StatusAgendamento.CONCLUIDO:
            raise ValueError("Agendamentos concluídos não podem ser cancelados.")
        self.status = StatusAgendamento.CANCELADO
        return self

    def finalizar(self):
        """PENDENTE/CONFIRMADO -> CONCLUIDO."""
        if self.status == StatusAgendamento.CONCLUIDO:
            raise ValueError("Este agendamento já foi finalizado")
        if self.status not in FINALIZAVEIS:
            raise ValueError("Apenas agendamentos pendentes ou confirmados podem ser finalizados.")
        self.status = StatusAgendamento.CONCLUIDO
        return self

    # ----------------- conflito -----------------
    @staticmethod
    def ocupados_no_dia(colaborador, dia, excluir_id: int | None = None):
        """Agendamentos que ocupam a agenda do colaborador no dia (exclui CANCELADO)."""
        qs = Agendamento.objects.filter(colaborador=colaborador, data=dia).exclude(
            status=StatusAgendamento.CANCELADO
        )
        if excluir_id:
            qs = qs.exclude(id=excluir_id)
        return qs


class AgendamentoServico(models.Model):
    agendamento = models.ForeignKey(Agendamento, on_delete=models.CASCADE, related_name="itens")
    servico = models.ForeignKey("servicos.Servico", on_delete=models.PROTECT, related_name="itens_agendados")
    # snapshot de preço/duração no momento da reserva
    preco = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0.00"))
    duracao_min = models.PositiveIntegerField(default=30)

    class Meta:
        unique_together = [("agendamento", "servico")]

    def __str__(self):
        return f"{self.agendamento_id} - {self.servico}"


# ----------------- Jornada / Exceções -----------------
class JornadaTrabalho(models.Model):
    """Intervalos semanais de trabalho (pode haver mais de um por dia)."""
    class Weekday(models.IntegerChoices):
        MON = 0, "Segunda"
        TUE = 1, "Terça"
        WED = 2, "Quarta"
        THU = 3, "Quinta"
        FRI = 4, "Sexta"
        SAT = 5, "Sábado"
        SUN = 6, "Domingo"

    colaborador = models.ForeignKey("empresas.Colaborador", on_delete=models.CASCADE, related_name="jornadas")
    dia_semana = models.IntegerField(choices=Weekday.choices)
    inicio = models.TimeField()
    fim = models.TimeField()
    ativo = models.BooleanField(default=True)

    class Meta:
        ordering = ["colaborador", "dia_semana", "inicio"]
        constraints = [
            models.CheckConstraint(
                name="jornada_fim_gt_inicio",
                condition=Q(fim__gt=F("inicio")),
            ),
        ]

    def __str__(self):
        return f"{self.get_dia_semana_display()} {self.inicio:%H:%M}-{self.fim:%H:%M}"


class ExcecaoAgenda(models.Model):
    """Folga do dia inteiro ou bloqueio parcial de horário."""
    colaborador = models.ForeignKey("empresas.Colaborador", on_delete=models.CASCADE, related_name="excecoes")
    data = models.DateField()
    dia_inteiro = models.BooleanField(default=False)
    inicio = models.TimeField(null=True, blank=True)
    fim = models.TimeField(null=True, blank=True)
    motivo = models.CharField(max_length=140, blank=True)

    class Meta:
        ordering = ["-data", "inicio"]
        indexes = [models.Index(fields=["colaborador", "data"])]
        constraints = [
            models.CheckConstraint(
                name="excecao_dia_inteiro_ou_intervalo",
                condition=Q(dia_inteiro=True) | Q(inicio__isnull=False, fim__isnull=False, fim__gt=F("inicio")),
            ),
        ]

    def __str__(self):
        if self.dia_inteiro:
            return f"{self.colaborador} folga {self.data:%d/%m} ({self.motivo or '—'})"
        return f"{self.colaborador} {self.data:%d/%m} {self.inicio:%H:%M}-{self.fim:%H:%M} ({self.motivo or '—'})"
