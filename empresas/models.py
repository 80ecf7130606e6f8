# empresas/models.py
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.text import slugify


class Segmento(models.Model):
    nome = models.CharField(max_length=80, unique=True)
    ativo = models.BooleanField(default=True)

    class Meta:
        ordering = ["nome"]

    def __str__(self):
        return self.nome


class Contrato(models.Model):
    numero = models.CharField(max_length=40, unique=True)
    nome = models.CharField(max_length=120)
    conteudo = models.TextField()
    ativo = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.numero} - {self.nome}"

    @classmethod
    def vigente(cls):
        """Último contrato ativo (é o aceito no cadastro)."""
        return cls.objects.filter(ativo=True).order_by("-created_at", "-pk").first()


class Empresa(models.Model):
    proprietario = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="empresas_proprias",
    )
    nome = models.CharField(max_length=120)
    razao_social = models.CharField(max_length=160, blank=True)
    cnpj = models.CharField(max_length=14, unique=True)
    slug = models.SlugField(max_length=140, unique=True)
    email = models.EmailField(blank=True)
    telefone = models.CharField(max_length=32, blank=True)

    cep = models.CharField(max_length=8, blank=True)
    endereco = models.CharField(max_length=160, blank=True)
    numero = models.CharField(max_length=20, blank=True)
    bairro = models.CharField(max_length=80, blank=True)
    cidade = models.CharField(max_length=80, blank=True)
    estado = models.CharField(max_length=2, blank=True)

    segmento = models.ForeignKey(Segmento, on_delete=models.SET_NULL, null=True, blank=True, related_name="empresas")
    contrato = models.ForeignKey(Contrato, on_delete=models.SET_NULL, null=True, blank=True, related_name="empresas")
    contrato_aceito = models.BooleanField(default=False)

    ativo = models.BooleanField(default=True)
    aprovada = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["nome"]
        indexes = [models.Index(fields=["ativo", "aprovada"])]

    def __str__(self):
        return self.nome

    def save(self, *args, **kwargs):
        if not self.slug:
            base = slugify(self.nome) or "empresa"
            slug, n = base, 2
            while Empresa.objects.filter(slug=slug).exclude(pk=self.pk).exists():
                slug = f"{base}-{n}"
                n += 1
            self.slug = slug
        super().save(*args, **kwargs)

    @property
    def publica(self) -> bool:
        return self.ativo and self.aprovada


class MembershipRole(models.TextChoices):
    PROPRIETARIO = "PROPRIETARIO", "Proprietário"
    ADMIN = "ADMIN", "Admin"
    COLABORADOR = "COLABORADOR", "Colaborador"


GESTORES = (MembershipRole.PROPRIETARIO, MembershipRole.ADMIN)


class Membership(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    empresa = models.ForeignKey(
        Empresa,
        on_delete=models.CASCADE,
        related_name="membros",
    )
    role = models.CharField(
        max_length=16,
        choices=MembershipRole.choices,
        default=MembershipRole.COLABORADOR,
    )
    is_primary = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        unique_together = [("user", "empresa")]
        constraints = [
            models.UniqueConstraint(
                fields=["user"],
                condition=Q(is_primary=True),
                name="uniq_membership_primaria_por_user",
            ),
        ]

    def __str__(self):
        return f"{self.user} @ {self.empresa} ({self.role})"

    @property
    def is_gestor(self) -> bool:
        return self.role in GESTORES


class TipoUsuario(models.TextChoices):
    GLOBAL_ADMIN = "GLOBAL_ADMIN", "Administrador global"
    PROPRIETARIO = "PROPRIETARIO", "Proprietário"
    COLABORADOR = "COLABORADOR", "Colaborador"
    CLIENTE = "CLIENTE", "Cliente"


class PerfilUsuario(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="perfil")
    tipo = models.CharField(max_length=16, choices=TipoUsuario.choices, default=TipoUsuario.CLIENTE)
    nome = models.CharField(max_length=120, blank=True)
    telefone = models.CharField(max_length=20, blank=True)
    senha_temporaria = models.BooleanField(default=False)

    def __str__(self):
        return f"{self.user} ({self.get_tipo_display()})"


class Colaborador(models.Model):
    empresa = models.ForeignKey(Empresa, on_delete=models.CASCADE, related_name="colaboradores")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="colaboracoes",
    )
    nome = models.CharField(max_length=80)
    sobrenome = models.CharField(max_length=80, blank=True)
    email = models.EmailField()
    telefone = models.CharField(max_length=20, blank=True)
    data_admissao = models.DateField(null=True, blank=True)
    percentual_comissao = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    ativo = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["nome", "sobrenome"]
        constraints = [
            models.UniqueConstraint(fields=["empresa", "email"], name="uniq_colaborador_email_por_empresa"),
        ]

    def __str__(self):
        return self.nome_completo

    @property
    def nome_completo(self) -> str:
        return f"{self.nome} {self.sobrenome}".strip()


class TipoComissao(models.TextChoices):
    PERCENT = "PERCENT", "Percentual"
    FIXED = "FIXED", "Valor fixo"


class ColaboradorServico(models.Model):
    """Serviços que o colaborador executa e a comissão de cada um."""
    colaborador = models.ForeignKey(Colaborador, on_delete=models.CASCADE, related_name="servicos")
    servico = models.ForeignKey("servicos.Servico", on_delete=models.CASCADE, related_name="colaboradores")
    tipo_comissao = models.CharField(max_length=8, choices=TipoComissao.choices, default=TipoComissao.PERCENT)
    valor_comissao = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0.00"))
    ativo = models.BooleanField(default=True)

    class Meta:
        unique_together = [("colaborador", "servico")]

    def __str__(self):
        return f"{self.colaborador} - {self.servico}"

    def comissao_sobre(self, preco: Decimal) -> Decimal:
        valor = self.valor_comissao or Decimal("0")
        if self.tipo_comissao == TipoComissao.FIXED:
            return valor.quantize(Decimal("0.01"))
        return (Decimal(preco or 0) * valor / Decimal("100")).quantize(Decimal("0.01"))
