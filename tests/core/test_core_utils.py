from datetime import date

import pytest

from core.contacts import normalize_msisdn_br, normalize_phone
from core.datas import calcular_periodo, intervalo_relatorio, somar_meses, variacao_percentual
from core.validation import cnpj_valido, formatar_cep, formatar_cnpj, somente_digitos


@pytest.mark.parametrize(
    "raw,ok",
    [
        ("11.222.333/0001-81", True),
        ("11222333000181", True),
        ("11222333000182", False),
        ("00000000000000", False),
        ("1122233300018", False),
        ("", False),
        (None, False),
    ],
)
def test_cnpj_valido(raw, ok):
    assert cnpj_valido(raw) is ok


def test_formatacao():
    assert somente_digitos("(11) 9.8888-7777") == "11988887777"
    assert formatar_cnpj("11222333000181") == "11.222.333/0001-81"
    assert formatar_cep("01310100") == "01310-100"
    assert formatar_cep("123") == "123"


def test_normalizacao_telefone_br():
    assert normalize_msisdn_br("(11) 98888-7777") == "5511988887777"
    assert normalize_msisdn_br("+55 11 3333-4444") == "551133334444"
    assert normalize_msisdn_br("0055 11 98888-7777") == "5511988887777"
    assert normalize_msisdn_br("(011) 98765-4321") == "5511987654321"
    assert normalize_msisdn_br("021 3333-4444") == "552133334444"
    assert normalize_msisdn_br("123") is None
    assert normalize_phone("abc") == ""


def test_calcular_periodo_semana_comeca_no_domingo():
    # 2024-05-15 é quarta-feira
    p = calcular_periodo("semana", date(2024, 5, 15))
    assert p.inicio == date(2024, 5, 12)
    assert p.fim == date(2024, 5, 18)


def test_calcular_periodo_domingo_inicia_a_propria_semana():
    p = calcular_periodo("semana", date(2024, 5, 12))
    assert p.inicio == date(2024, 5, 12)


def test_calcular_periodo_quinzena_e_mes():
    assert calcular_periodo("quinzena", date(2024, 2, 10)).fim == date(2024, 2, 15)
    segunda = calcular_periodo("quinzena", date(2024, 2, 20))
    assert (segunda.inicio, segunda.fim) == (date(2024, 2, 16), date(2024, 2, 29))
    mes = calcular_periodo("mes", date(2023, 2, 10))
    assert (mes.inicio, mes.fim) == (date(2023, 2, 1), date(2023, 2, 28))


def test_calcular_periodo_tipo_desconhecido_vira_dia():
    p = calcular_periodo("xpto", date(2024, 1, 3))
    assert p.inicio == p.fim == date(2024, 1, 3)


def test_intervalo_relatorio():
    atual, anterior = intervalo_relatorio("last_month", date(2024, 3, 31))
    assert atual.fim == date(2024, 3, 31)
    assert (atual.fim - atual.inicio).days == 30
    assert anterior.fim == date(2024, 2, 29)
    assert (anterior.fim - anterior.inicio).days == 30

    desconhecido, _ = intervalo_relatorio("sei_la", date(2024, 3, 31))
    assert desconhecido == atual


def test_somar_meses_preserva_fim_do_mes():
    assert somar_meses(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert somar_meses(date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert somar_meses(date(2024, 3, 10), -3) == date(2023, 12, 10)


def test_variacao_percentual():
    assert variacao_percentual(150, 100) == 50.0
    assert variacao_percentual(0, 0) == 0.0
    assert variacao_percentual(10, 0) == 100.0
    assert variacao_percentual(50, 100) == -50.0
