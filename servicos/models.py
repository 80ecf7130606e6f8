# servicos/models.py
from decimal import Decimal
from django.db import models


class Servico(models.Model):
    CATEGORIAS = (
        ("cabelo", "Cabelo"),
        ("barba", "Barba"),
        ("unhas", "Unhas"),
        ("estetica", "Estética"),
        ("combo", "Combo"),
        ("outros", "Outros"),
    )

    empresa = models.ForeignKey("empresas.Empresa", on_delete=models.CASCADE, related_name="servicos")
    nome = models.CharField(max_length=120)
    categoria = models.CharField(max_length=20, choices=CATEGORIAS, default="outros")
    preco = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0.00"))
    duracao_min = models.PositiveIntegerField(default=30)
    descricao = models.TextField(null=True, blank=True)
    ativo = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["nome"]
        indexes = [models.Index(fields=["empresa", "ativo"])]
        constraints = [
            models.UniqueConstraint(fields=["empresa", "nome"], name="uniq_servico_nome_por_empresa"),
        ]

    def __str__(self):
        return self.nome
