from decimal import Decimal

import pytest

from core.datas import hoje_local
from core.exceptions import AcessoNegado, PeriodoFechado, RegraNegocio
from financeiro.models import FechamentoCaixa, FormaPagamento, MovimentoCaixa, PagamentoComissao, Produto, TipoMovimento
from financeiro.services import (
    comissao_pendente,
    comissoes_pendentes,
    estoque_critico,
    fechar_caixa_dia,
    fechar_periodo,
    pagar_comissao,
    reabrir_fechamento,
    registrar_movimento,
    resumo_caixa_dia,
    vender_produto,
)

pytestmark = pytest.mark.django_db


def test_movimento_em_periodo_fechado_e_recusado(empresa, dono, senha):
    registrar_movimento(empresa, TipoMovimento.RECEBIMENTO, "80.00", usuario=dono)
    fech = fechar_periodo(empresa, dono, "dia", hoje_local())
    assert fech.total_recebimentos == Decimal("80.00")
    assert fech.saldo == Decimal("80.00")

    with pytest.raises(PeriodoFechado):
        registrar_movimento(empresa, TipoMovimento.DESPESA, "10.00", usuario=dono)

    reabrir_fechamento(dono, fech, senha)
    assert not FechamentoCaixa.objects.exists()
    registrar_movimento(empresa, TipoMovimento.DESPESA, "10.00", usuario=dono)
    assert MovimentoCaixa.objects.count() == 2


def test_movimento_invalido(empresa):
    with pytest.raises(RegraNegocio):
        registrar_movimento(empresa, "TRANSFERENCIA", "10.00")
    with pytest.raises(RegraNegocio):
        registrar_movimento(empresa, TipoMovimento.RECEBIMENTO, "-1")
    with pytest.raises(RegraNegocio):
        registrar_movimento(empresa, TipoMovimento.RECEBIMENTO, "abc")


def test_fechar_periodo_duas_vezes(empresa, dono):
    fechar_periodo(empresa, dono, "MES", hoje_local())
    with pytest.raises(RegraNegocio) as exc:
        fechar_periodo(empresa, dono, "MES", hoje_local())
    assert "periodo" in exc.value.extra

    with pytest.raises(RegraNegocio):
        fechar_periodo(empresa, dono, "ANO", hoje_local())


def test_reabrir_exige_proprietario_e_senha(empresa, dono, colaborador, senha):
    fech = fechar_periodo(empresa, dono, "SEMANA", hoje_local())
    with pytest.raises(AcessoNegado):
        reabrir_fechamento(colaborador.user, fech, senha)
    with pytest.raises(AcessoNegado):
        reabrir_fechamento(dono, fech, "errada")
    assert FechamentoCaixa.objects.filter(pk=fech.pk).exists()


def test_fechamento_do_caixa_pela_contagem(empresa, dono):
    registrar_movimento(empresa, TipoMovimento.RECEBIMENTO, "120.00", usuario=dono)
    registrar_movimento(empresa, TipoMovimento.RECEBIMENTO, "30.00", forma_pagamento=FormaPagamento.PIX, usuario=dono)

    res = fechar_caixa_dia(
        empresa,
        dono,
        {"notas_100": 1, "notas_20": 1, "outras": "5.00", "despesas_produtos": "15.00"},
    )
    assert res["dinheiro_contado"] == Decimal("125.00")
    assert res["diferenca"] == Decimal("5.00")
    assert len(res["despesas"]) == 1
    assert res["resumo"]["fechado"] is True
    assert res["resumo"]["cartao_pix"] == Decimal("30.00")
    assert res["resumo"]["despesas"] == Decimal("15.00")

    with pytest.raises(RegraNegocio):
        fechar_caixa_dia(empresa, dono, {})


def test_fechamento_com_cedulas_negativas(empresa, dono):
    with pytest.raises(RegraNegocio):
        fechar_caixa_dia(empresa, dono, {"notas_50": -2})
    assert resumo_caixa_dia(empresa)["fechado"] is False


def test_comissao_paga_ate_o_pendente(empresa, dono, colaborador):
    registrar_movimento(empresa, TipoMovimento.DESPESA, "30.00", colaborador=colaborador, eh_comissao=True)

    with pytest.raises(RegraNegocio) as exc:
        pagar_comissao(empresa, colaborador, "40.00", usuario=dono)
    assert exc.value.extra["pendente"] == "30.00"
    with pytest.raises(RegraNegocio):
        pagar_comissao(empresa, colaborador, "0", usuario=dono)

    pag = pagar_comissao(empresa, colaborador, "20.00", usuario=dono)
    assert pag.movimento.tipo == TipoMovimento.DESPESA
    assert pag.movimento.eh_comissao is False
    assert comissao_pendente(colaborador) == Decimal("10.00")

    pendentes = comissoes_pendentes(empresa)
    assert pendentes == [{
        "colaborador_id": colaborador.pk,
        "nome": "Ana Lima",
        "acumulado": Decimal("30.00"),
        "pago": Decimal("20.00"),
        "pendente": Decimal("10.00"),
    }]

    pagar_comissao(empresa, colaborador, "10.00", usuario=dono)
    assert comissoes_pendentes(empresa) == []
    assert PagamentoComissao.objects.count() == 2


def test_venda_baixa_estoque(empresa, dono):
    produto = Produto.objects.create(empresa=empresa, nome="Pomada", preco=Decimal("25.00"), estoque=3, estoque_minimo=1)

    mov = vender_produto(empresa, produto, 2, usuario=dono)
    assert mov.tipo == TipoMovimento.RECEBIMENTO
    assert mov.valor == Decimal("50.00")
    produto.refresh_from_db()
    assert produto.estoque == 1
    assert list(estoque_critico(empresa)) == [produto]

    with pytest.raises(RegraNegocio) as exc:
        vender_produto(empresa, produto, 5)
    assert exc.value.extra["estoque"] == 1

    with pytest.raises(RegraNegocio):
        vender_produto(empresa, produto, 0)


def test_produto_inativo_nao_vende(empresa):
    produto = Produto.objects.create(empresa=empresa, nome="Gel", preco=Decimal("10.00"), estoque=5, ativo=False)
    with pytest.raises(RegraNegocio):
        vender_produto(empresa, produto, 1)
    assert not estoque_critico(empresa).exists()
