# painel/models.py
from django.db import models
from django.utils import timezone


class ContatoSolicitacao(models.Model):
    class Status(models.TextChoices):
        NOVA = "NOVA", "Nova"
        RESPONDIDA = "RESPONDIDA", "Respondida"
        ARQUIVADA = "ARQUIVADA", "Arquivada"

    nome = models.CharField(max_length=120)
    email = models.EmailField()
    telefone = models.CharField(max_length=20, blank=True)
    empresa_nome = models.CharField(max_length=120, blank=True)
    mensagem = models.TextField()
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.NOVA)
    created_at = models.DateTimeField(default=timezone.now, editable=False, db_index=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"[{self.created_at:%d/%m %H:%M}] {self.nome} <{self.email}>"
