from datetime import time
from decimal import Decimal

import pytest
from django.urls import reverse

from agendamentos.models import Agendamento, AgendamentoServico
from assinaturas.models import AssinaturaEmpresa, Plano, PlanoLimite, StatusAssinatura, TipoLimite
from core.datas import hoje_local
from empresas.models import Empresa
from servicos.models import Servico

pytestmark = pytest.mark.django_db


def _lista(empresa):
    return reverse("api_servicos:list_create", kwargs={"empresa_slug": empresa.slug})


def _detalhe(empresa, pk):
    return reverse("api_servicos:retrieve_update_destroy", kwargs={"empresa_slug": empresa.slug, "pk": pk})


def _plano_com_limite(empresa, servicos: int):
    plano = Plano.objects.create(nome="Básico", preco=Decimal("49.90"))
    PlanoLimite.objects.create(plano=plano, tipo=TipoLimite.SERVICOS, valor=servicos)
    AssinaturaEmpresa.objects.create(
        empresa=empresa, plano=plano, status=StatusAssinatura.ACTIVE, data_inicio=hoje_local(),
    )
    return plano


def test_cria_e_lista_servico(dono_client, empresa):
    resp = dono_client.post(
        _lista(empresa),
        {"nome": "Escova", "categoria": "cabelo", "preco": "40.00", "duracao_min": 45},
        format="json",
    )
    assert resp.status_code == 201, resp.content
    nomes = [s["nome"] for s in dono_client.get(_lista(empresa)).json()]
    assert nomes == ["Escova"]


def test_nome_duplicado_ignora_maiusculas(dono_client, empresa, servico):
    resp = dono_client.post(_lista(empresa), {"nome": "CORTE", "preco": "10.00", "duracao_min": 30}, format="json")
    assert resp.status_code == 400
    assert "nome" in resp.json()


def test_duracao_e_preco_validados(dono_client, empresa):
    resp = dono_client.post(_lista(empresa), {"nome": "X", "preco": "-1", "duracao_min": 0}, format="json")
    assert resp.status_code == 400
    assert {"preco", "duracao_min"} <= set(resp.json())


def test_limite_de_servicos_do_plano(dono_client, empresa, servico):
    _plano_com_limite(empresa, servicos=1)
    resp = dono_client.post(_lista(empresa), {"nome": "Barba", "preco": "30.00", "duracao_min": 20}, format="json")
    assert resp.status_code == 403
    body = resp.json()
    assert body["ok"] is False
    assert body["limit"]["limitReached"] is True
    assert body["limit"]["max"] == 1

    # inativo não conta no limite
    inativo = dono_client.post(
        _lista(empresa), {"nome": "Barba", "preco": "30.00", "duracao_min": 20, "ativo": False}, format="json"
    )
    assert inativo.status_code == 201


def test_excluir_servico_em_uso_desativa(dono_client, empresa, servico, cliente, colaborador, dia_util):
    ag = Agendamento.objects.create(empresa=empresa, cliente=cliente, colaborador=colaborador, data=dia_util, hora=time(9, 0))
    AgendamentoServico.objects.create(agendamento=ag, servico=servico, preco=servico.preco)

    resp = dono_client.delete(_detalhe(empresa, servico.pk))
    assert resp.json() == {"ok": True, "desativado": True}
    servico.refresh_from_db()
    assert servico.ativo is False


def test_excluir_servico_sem_uso_remove(dono_client, empresa, servico):
    resp = dono_client.delete(_detalhe(empresa, servico.pk))
    assert resp.json() == {"ok": True, "desativado": False}
    assert not Servico.objects.filter(pk=servico.pk).exists()


def test_servico_de_outra_empresa_nao_aparece(dono_client, empresa, servico, db):
    outra = Empresa.objects.create(nome="Outra", cnpj="45723174000110")
    alheio = Servico.objects.create(empresa=outra, nome="Alheio", preco=Decimal("1.00"))
    assert dono_client.get(_detalhe(empresa, alheio.pk)).status_code == 404


def test_lista_publica(client, empresa, servico):
    Servico.objects.create(empresa=empresa, nome="Inativo", ativo=False)
    resp = client.get(reverse("public_agenda:servicos", kwargs={"empresa_slug": empresa.slug}))
    assert resp.status_code == 200
    assert [s["nome"] for s in resp.json()["servicos"]] == ["Corte"]
