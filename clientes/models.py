# clientes/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone


class Cliente(models.Model):
    class Status(models.TextChoices):
        NOVO = "NOVO", "Novo"
        ATIVO = "ATIVO", "Ativo"
        INATIVO = "INATIVO", "Inativo"

    # nulo no auto-cadastro público (cliente ainda sem empresa)
    empresa = models.ForeignKey(
        "empresas.Empresa",
        on_delete=models.CASCADE,
        related_name="clientes",
        null=True, blank=True,
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name="clientes",
    )
    nome = models.CharField(max_length=120)
    email = models.EmailField(blank=True)
    telefone = models.CharField(max_length=20, null=True, blank=True)
    data_nascimento = models.DateField(null=True, blank=True)
    observacoes = models.TextField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.NOVO)
    pontos = models.PositiveIntegerField(default=0)

    # cliente "coringa" usado nos agendamentos de visitantes
    convidado = models.BooleanField(default=False)

    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=["nome"]), models.Index(fields=["empresa", "status"])]
        ordering = ["nome"]
        constraints = [
            models.UniqueConstraint(
                fields=["empresa", "telefone"],
                name="uniq_cliente_por_empresa_telefone",
                condition=~models.Q(telefone__isnull=True) & ~models.Q(telefone=""),
            ),
            models.UniqueConstraint(
                fields=["empresa"],
                name="uniq_cliente_convidado_por_empresa",
                condition=models.Q(convidado=True),
            ),
        ]

    def __str__(self):
        tel = f" ({self.telefone})" if self.telefone else ""
        return f"{self.nome}{tel}"

    def marcar_ativo(self, save=False):
        """Primeiro atendimento concluído tira o cliente de NOVO."""
        if self.status != self.Status.ATIVO:
            self.status = self.Status.ATIVO
            if save:
                self.save(update_fields=["status", "updated_at"])
