from datetime import date, datetime, time

import pytest

from agendamentos.scheduling import calcular_horarios, parse_horario, rotulo
from core.exceptions import RegraNegocio

DIA = date(2030, 6, 3)
ONTEM = datetime(2030, 6, 2, 8, 0)
MANHA = [{"inicio": time(9, 0), "fim": time(12, 0)}]


def _slots(jornadas=MANHA, excecoes=(), agendamentos=(), duracao=30, agora=ONTEM, dia=DIA):
    return calcular_horarios(dia, jornadas, excecoes, agendamentos, duracao, passo_min=30, agora=agora)


def test_jornada_livre_gera_slots_ate_o_fim():
    assert _slots() == [
        "09:00 às 09:30",
        "09:30 às 10:00",
        "10:00 às 10:30",
        "10:30 às 11:00",
        "11:00 às 11:30",
        "11:30 às 12:00",
    ]


def test_servico_longo_termina_no_fim_da_jornada():
    slots = _slots(duracao=60)
    assert slots[0] == "09:00 às 10:00"
    assert slots[-1] == "11:00 às 12:00"
    assert len(slots) == 5


def test_agendamento_bloqueia_e_pula_para_o_proximo_passo():
    slots = _slots(agendamentos=[{"hora": time(10, 0), "duracao_total_min": 45}])
    assert slots == [
        "09:00 às 09:30",
        "09:30 às 10:00",
        "11:00 às 11:30",
        "11:30 às 12:00",
    ]


def test_agendamentos_encostados_sao_unidos():
    slots = _slots(agendamentos=[
        {"hora": time(9, 0), "duracao_total_min": 30},
        {"hora": time(9, 30), "duracao_total_min": 30},
    ])
    assert slots[0] == "10:00 às 10:30"


def test_excecao_dia_inteiro_zera_o_dia():
    assert _slots(excecoes=[{"dia_inteiro": True, "inicio": None, "fim": None}]) == []


def test_excecao_parcial_ocupa_intervalo():
    slots = _slots(excecoes=[{"dia_inteiro": False, "inicio": time(9, 0), "fim": time(10, 0)}])
    assert slots[0] == "10:00 às 10:30"
    assert len(slots) == 4


def test_hoje_comeca_no_proximo_passo():
    slots = _slots(agora=datetime(2030, 6, 3, 10, 10))
    assert slots == ["10:30 às 11:00", "11:00 às 11:30", "11:30 às 12:00"]


def test_dia_passado_nao_tem_horario():
    assert _slots(agora=datetime(2030, 6, 4, 8, 0)) == []


def test_sem_jornada_ou_duracao_invalida():
    assert _slots(jornadas=[]) == []
    assert _slots(duracao=0) == []


def test_jornadas_sobrepostas_nao_duplicam():
    jornadas = MANHA + [{"inicio": time(11, 0), "fim": time(13, 0)}]
    slots = _slots(jornadas=jornadas)
    assert len(slots) == len(set(slots))
    assert slots[-1] == "12:30 às 13:00"


@pytest.mark.parametrize(
    "valor,esperado",
    [("14:30", time(14, 30)), ("9:05", time(9, 5)), ("14:30 às 15:00", time(14, 30)), (time(8, 0), time(8, 0))],
)
def test_parse_horario(valor, esperado):
    assert parse_horario(valor) == esperado


@pytest.mark.parametrize("valor", ["25:00", "12:75", "abc", "", None])
def test_parse_horario_invalido(valor):
    with pytest.raises(RegraNegocio):
        parse_horario(valor)


def test_rotulo():
    assert rotulo(DIA, time(9, 45), 30) == "09:45 às 10:15"
