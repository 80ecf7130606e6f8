# agendamentos/scheduling.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Mapping, Optional

from django.conf import settings
from django.utils import timezone

from core.exceptions import RegraNegocio

from .models import Agendamento, ExcecaoAgenda, JornadaTrabalho

_RE_HORARIO = re.compile(r"^\s*(\d{1,2}):(\d{2})(?:\s*às\s*\d{1,2}:\d{2})?\s*$")


# ===================== Helpers =====================

def _passo_padrao() -> int:
    return int(getattr(settings, "AGENDA_INTERVALO_SLOT_MIN", 30) or 30)


@dataclass
class Intervalo:
    start: datetime
    end: datetime

    def overlaps(self, other: "Intervalo") -> bool:
        return self.start < other.end and other.start < self.end


def _merge(intervals: List[Intervalo]) -> List[Intervalo]:
    """Junta intervalos sobrepostos ou encostados."""
    if not intervals:
        return []
    intervals = sorted(intervals, key=lambda x: x.start)
    merged = [Intervalo(intervals[0].start, intervals[0].end)]
    for it in intervals[1:]:
        last = merged[-1]
        if it.start <= last.end:
            last.end = max(last.end, it.end)
        else:
            merged.append(Intervalo(it.start, it.end))
    return merged


def _arredondar_para_cima(dt: datetime, passo_min: int) -> datetime:
    """Próximo horário múltiplo do passo (contado a partir da meia-noite)."""
    dt = dt.replace(second=0, microsecond=0) + (timedelta(minutes=1) if dt.second or dt.microsecond else timedelta())
    resto = (dt.hour * 60 + dt.minute) % passo_min
    if resto:
        dt += timedelta(minutes=passo_min - resto)
    return dt


def parse_horario(valor) -> time:
    """Aceita "HH:MM" ou o rótulo do slot "HH:MM às HH:MM"."""
    if isinstance(valor, time):
        return valor.replace(second=0, microsecond=0)
    m = _RE_HORARIO.match(str(valor or ""))
    if not m:
        raise RegraNegocio("Formato de horário inválido.")
    h, mi = int(m.group(1)), int(m.group(2))
    if h > 23 or mi > 59:
        raise RegraNegocio("Formato de horário inválido.")
    return time(h, mi)


def rotulo(dia: date, hora: time, duracao_min: int) -> str:
    ini = datetime.combine(dia, hora)
    return f"{ini:%H:%M} às {ini + timedelta(minutes=duracao_min):%H:%M}"


# ===================== Motor de horários =====================

def calcular_horarios(
    dia: date,
    jornadas: Iterable[Mapping],
    excecoes: Iterable[Mapping],
    agendamentos: Iterable[Mapping],
    duracao_min: int,
    passo_min: Optional[int] = None,
    agora: Optional[datetime] = None,
) -> List[str]:
    """
    Slots livres do dia, no formato "HH:MM às HH:MM".

    jornadas:     [{"inicio": time, "fim": time}, ...] do dia da semana
    excecoes:     [{"dia_inteiro": bool, "inicio": time|None, "fim": time|None}, ...]
    agendamentos: [{"hora": time, "duracao_total_min": int}, ...] (sem cancelados)
    agora:        datetime local sem tz; padrão = agora no fuso do projeto
    """
    passo = int(passo_min or _passo_padrao())
    duracao_min = int(duracao_min or 0)
    if duracao_min <= 0:
        return []

    excecoes = list(excecoes)
    if any(e.get("dia_inteiro") for e in excecoes):
        return []

    if agora is None:
        agora = timezone.localtime().replace(tzinfo=None)
    if dia < agora.date():
        return []
    limite = _arredondar_para_cima(agora, passo) if dia == agora.date() else None

    ocupados: List[Intervalo] = []
    for e in excecoes:
        if e.get("inicio") and e.get("fim"):
            ocupados.append(Intervalo(datetime.combine(dia, e["inicio"]), datetime.combine(dia, e["fim"])))
    for a in agendamentos:
        ini = datetime.combine(dia, a["hora"])
        ocupados.append(Intervalo(ini, ini + timedelta(minutes=int(a["duracao_total_min"] or 0))))
    bloqueados = _merge(ocupados)

    dur = timedelta(minutes=duracao_min)
    step = timedelta(minutes=passo)
    livres = set()
    for j in jornadas:
        cur = datetime.combine(dia, j["inicio"])
        fim = datetime.combine(dia, j["fim"])
        if limite is not None and cur < limite:
            cur = limite
        # fim inclusivo: slot pode terminar exatamente no fim da jornada
        while cur + dur <= fim:
            slot = Intervalo(cur, cur + dur)
            choque = next((b for b in bloqueados if slot.overlaps(b)), None)
            if choque is None:
                livres.add(cur)
                cur += step
            else:
                cur = _arredondar_para_cima(choque.end, passo)

    return [f"{t:%H:%M} às {t + dur:%H:%M}" for t in sorted(livres)]


# ===================== Dados do banco =====================

def dados_agenda(empresa_id, colaborador_id, data: Optional[date], excluir_agendamento_id=None) -> dict:
    """Jornadas do dia da semana, exceções da data e agendamentos ativos."""
    if not (empresa_id and colaborador_id and data):
        raise RegraNegocio("Missing required parameters")

    jornadas = JornadaTrabalho.objects.filter(
        colaborador_id=colaborador_id,
        colaborador__empresa_id=empresa_id,
        dia_semana=data.weekday(),
        ativo=True,
    ).order_by("inicio")
    excecoes = ExcecaoAgenda.objects.filter(
        colaborador_id=colaborador_id,
        colaborador__empresa_id=empresa_id,
        data=data,
    )
    ocupados = Agendamento.ocupados_no_dia(colaborador_id, data, excluir_agendamento_id).filter(empresa_id=empresa_id)

    return {
        "workingSchedules": [
            {"dia_semana": j.dia_semana, "inicio": j.inicio, "fim": j.fim}
            for j in jornadas
        ],
        "exceptions": [
            {"data": e.data, "dia_inteiro": e.dia_inteiro, "inicio": e.inicio, "fim": e.fim, "motivo": e.motivo}
            for e in excecoes
        ],
        "existingAppointments": [
            {"id": a.pk, "hora": a.hora, "duracao_total_min": a.duracao_total_min, "status": a.status}
            for a in ocupados.order_by("hora")
        ],
    }


def horarios_disponiveis(colaborador, data: date, duracao_min: int, excluir_id=None, agora: Optional[datetime] = None) -> List[str]:
    dados = dados_agenda(colaborador.empresa_id, colaborador.pk, data, excluir_id)
    return calcular_horarios(
        data,
        dados["workingSchedules"],
        dados["exceptions"],
        dados["existingAppointments"],
        duracao_min,
        agora=agora,
    )
