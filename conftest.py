"""Fixtures compartilhadas: empresa aprovada com proprietário, colaborador com
jornada, serviço e clientes de API já autenticados."""

from datetime import time, timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from agendamentos.models import JornadaTrabalho
from clientes.models import Cliente
from core.datas import hoje_local
from empresas.models import Colaborador, ColaboradorServico, Empresa, Membership, MembershipRole, PerfilUsuario, TipoUsuario
from servicos.models import Servico

User = get_user_model()

SENHA = "Senha@Teste123"


@pytest.fixture(autouse=True)
def _sem_integracoes(settings):
    """Nenhum teste fala com Resend/Mercado Pago de verdade."""
    settings.RESEND_API_KEY = ""
    settings.PAYMENT_API_KEY_SECRET = ""
    settings.AGENDA_INTERVALO_SLOT_MIN = 30


@pytest.fixture
def dono(db):
    user = User.objects.create_user(username="dono@teste.com", email="dono@teste.com", password=SENHA)
    PerfilUsuario.objects.create(user=user, tipo=TipoUsuario.PROPRIETARIO, nome="Dono")
    return user


@pytest.fixture
def empresa(dono):
    emp = Empresa.objects.create(
        proprietario=dono,
        nome="Salão Teste",
        cnpj="11222333000181",
        email="contato@salao.com",
        ativo=True,
        aprovada=True,
    )
    # o sinal cria o vínculo só após o commit
    Membership.objects.get_or_create(
        user=dono,
        empresa=emp,
        defaults={"role": MembershipRole.PROPRIETARIO, "is_active": True, "is_primary": True},
    )
    return emp


@pytest.fixture
def colaborador_user(db):
    user = User.objects.create_user(username="colab@teste.com", email="colab@teste.com", password=SENHA)
    PerfilUsuario.objects.create(user=user, tipo=TipoUsuario.COLABORADOR, nome="Ana Lima")
    return user


@pytest.fixture
def colaborador(empresa, colaborador_user):
    return Colaborador.objects.create(
        empresa=empresa,
        user=colaborador_user,
        nome="Ana",
        sobrenome="Lima",
        email="colab@teste.com",
        percentual_comissao=Decimal("10.00"),
    )


@pytest.fixture
def servico(empresa):
    return Servico.objects.create(
        empresa=empresa,
        nome="Corte",
        categoria="cabelo",
        preco=Decimal("50.00"),
        duracao_min=30,
    )


@pytest.fixture
def comissao(colaborador, servico):
    return ColaboradorServico.objects.create(
        colaborador=colaborador,
        servico=servico,
        tipo_comissao="PERCENT",
        valor_comissao=Decimal("40.00"),
    )


@pytest.fixture
def dia_util():
    """Uma semana à frente: sempre futuro e com o mesmo dia da semana de hoje."""
    return hoje_local() + timedelta(days=7)


@pytest.fixture
def jornada(colaborador, dia_util):
    return JornadaTrabalho.objects.create(
        colaborador=colaborador,
        dia_semana=dia_util.weekday(),
        inicio=time(9, 0),
        fim=time(12, 0),
    )


@pytest.fixture
def cliente(empresa):
    return Cliente.objects.create(empresa=empresa, nome="Carlos Souza", telefone="5511999990000", email="carlos@teste.com")


@pytest.fixture
def global_admin(db):
    user = User.objects.create_user(username="admin@teste.com", email="admin@teste.com", password=SENHA)
    PerfilUsuario.objects.create(user=user, tipo=TipoUsuario.GLOBAL_ADMIN, nome="Admin")
    return user


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def dono_client(dono, empresa):
    c = APIClient()
    c.force_authenticate(user=dono)
    return c


@pytest.fixture
def colaborador_client(colaborador):
    c = APIClient()
    c.force_authenticate(user=colaborador.user)
    return c


@pytest.fixture
def admin_client(global_admin):
    c = APIClient()
    c.force_authenticate(user=global_admin)
    return c


@pytest.fixture
def senha():
    return SENHA
