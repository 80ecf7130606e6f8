from decimal import Decimal

import pytest
from django.urls import reverse

from financeiro.models import FechamentoCaixa, MovimentoCaixa, Produto, TipoMovimento

pytestmark = pytest.mark.django_db


def _url(nome, empresa, **kwargs):
    return reverse(f"api_financeiro:{nome}", kwargs={"empresa_slug": empresa.slug, **kwargs})


def test_caixa_do_dia(dono_client, empresa):
    resp = dono_client.post(_url("transacoes", empresa), {"tipo": "RECEBIMENTO", "valor": "70.00", "forma_pagamento": "PIX"}, format="json")
    assert resp.status_code == 201, resp.content

    caixa = dono_client.get(_url("caixa", empresa)).json()
    assert caixa["fechado"] is False
    assert Decimal(caixa["cartao_pix"]) == Decimal("70.00")
    assert len(caixa["movimentos"]) == 1

    fechar = dono_client.post(_url("caixa", empresa), {"notas_50": 1}, format="json")
    assert fechar.status_code == 201
    assert Decimal(fechar.json()["diferenca"]) == Decimal("50.00")

    de_novo = dono_client.post(_url("caixa", empresa), {"notas_50": 1}, format="json")
    assert de_novo.status_code == 400


def test_colaborador_nao_acessa_financeiro(colaborador_client, empresa):
    assert colaborador_client.get(_url("caixa", empresa)).status_code == 403
    assert colaborador_client.get(_url("comissoes", empresa)).status_code == 403


def test_fechamento_bloqueia_e_reabertura_libera(dono_client, empresa, senha):
    resp = dono_client.post(_url("fechamentos", empresa), {"tipo": "DIA"}, format="json")
    assert resp.status_code == 201, resp.content
    fech_id = resp.json()["fechamento"]["id"]

    bloqueado = dono_client.post(_url("transacoes", empresa), {"tipo": "DESPESA", "valor": "10.00"}, format="json")
    assert bloqueado.status_code == 409
    assert bloqueado.json()["ok"] is False

    senha_errada = dono_client.post(_url("reabrir", empresa, pk=fech_id), {"senha": "x"}, format="json")
    assert senha_errada.status_code == 403

    ok = dono_client.post(_url("reabrir", empresa, pk=fech_id), {"senha": senha}, format="json")
    assert ok.status_code == 200
    assert not FechamentoCaixa.objects.exists()
    assert dono_client.post(_url("transacoes", empresa), {"tipo": "DESPESA", "valor": "10.00"}, format="json").status_code == 201


def test_pagamento_de_comissao(dono_client, empresa, colaborador):
    MovimentoCaixa.objects.create(
        empresa=empresa, colaborador=colaborador, tipo=TipoMovimento.DESPESA, valor=Decimal("25.00"), eh_comissao=True
    )
    pend = dono_client.get(_url("comissoes", empresa)).json()["comissoes"]
    assert Decimal(pend[0]["pendente"]) == Decimal("25.00")

    demais = dono_client.post(_url("pagamentos", empresa), {"colaborador": colaborador.pk, "valor": "30.00"}, format="json")
    assert demais.status_code == 400
    assert demais.json()["pendente"] == "25.00"

    pago = dono_client.post(_url("pagamentos", empresa), {"colaborador": colaborador.pk, "valor": "25.00"}, format="json")
    assert pago.status_code == 201
    assert dono_client.get(_url("comissoes", empresa)).json()["comissoes"] == []


def test_produtos_e_venda(dono_client, empresa):
    resp = dono_client.post(
        _url("produtos", empresa),
        {"nome": "Shampoo", "preco": "30.00", "estoque": 2, "estoque_minimo": 1},
        format="json",
    )
    assert resp.status_code == 201, resp.content
    pid = resp.json()["produto"]["id"]

    duplicado = dono_client.post(_url("produtos", empresa), {"nome": "shampoo", "preco": "10.00"}, format="json")
    assert duplicado.status_code == 400

    venda = dono_client.post(_url("vender", empresa, pk=pid), {"quantidade": 1}, format="json")
    assert venda.status_code == 201
    assert venda.json()["estoque"] == 1

    criticos = dono_client.get(_url("estoque_critico", empresa)).json()["produtos"]
    assert [p["id"] for p in criticos] == [pid]
    assert criticos[0]["critico"] is True

    sem_estoque = dono_client.post(_url("vender", empresa, pk=pid), {"quantidade": 3}, format="json")
    assert sem_estoque.status_code == 400
    assert Produto.objects.get(pk=pid).estoque == 1
