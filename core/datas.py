# core/datas.py
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from django.utils import timezone

# chaves aceitas nos relatórios -> dias
JANELAS_RELATORIO = {
    "last_month": 30,
    "last_3_months": 90,
    "last_year": 365,
}


@dataclass(frozen=True)
class Periodo:
    inicio: date
    fim: date

    def contem(self, d: date) -> bool:
        return self.inicio <= d <= self.fim

    def as_dict(self) -> dict:
        return {"inicio": self.inicio.isoformat(), "fim": self.fim.isoformat()}


def hoje_local() -> date:
    return timezone.localdate()


def intervalo_relatorio(chave: str, hoje: Optional[date] = None) -> tuple[Periodo, Periodo]:
    """
    Retorna (atual, anterior) para a janela pedida.
    O período anterior tem o mesmo tamanho e termina no dia antes do atual.
    """
    hoje = hoje or hoje_local()
    dias = JANELAS_RELATORIO.get(chave, JANELAS_RELATORIO["last_month"])
    atual = Periodo(hoje - timedelta(days=dias), hoje)
    fim_anterior = atual.inicio - timedelta(days=1)
    anterior = Periodo(fim_anterior - timedelta(days=dias), fim_anterior)
    return atual, anterior


def calcular_periodo(tipo: str, referencia: Optional[date] = None) -> Periodo:
    """
    Período de fechamento de caixa:
      - dia: a própria data
      - semana: domingo a sábado (semana pt-BR)
      - quinzena: 1..15 ou 16..último dia do mês
      - mes: mês inteiro
    Tipo desconhecido cai em 'dia'.
    """
    ref = referencia or hoje_local()
    tipo = (tipo or "").lower()

    if tipo == "semana":
        # weekday(): 0=segunda ... 6=domingo
        inicio = ref - timedelta(days=(ref.weekday() + 1) % 7)
        return Periodo(inicio, inicio + timedelta(days=6))

    if tipo in ("quinzena", "mes"):
        ultimo = calendar.monthrange(ref.year, ref.month)[1]
        if tipo == "mes":
            return Periodo(ref.replace(day=1), ref.replace(day=ultimo))
        if ref.day <= 15:
            return Periodo(ref.replace(day=1), ref.replace(day=15))
        return Periodo(ref.replace(day=16), ref.replace(day=ultimo))

    return Periodo(ref, ref)


def somar_meses(d: date, meses: int) -> date:
    """Soma meses preservando o dia quando possível (31/01 + 1 -> 28 ou 29/02)."""
    mes_total = d.month - 1 + meses
    ano = d.year + mes_total // 12
    mes = mes_total % 12 + 1
    dia = min(d.day, calendar.monthrange(ano, mes)[1])
    return date(ano, mes, dia)


def variacao_percentual(atual, anterior) -> float:
    if not anterior:
        return 100.0 if atual else 0.0
    return round((float(atual) - float(anterior)) / float(anterior) * 100, 1)
