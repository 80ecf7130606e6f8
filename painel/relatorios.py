# painel/relatorios.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from django.db.models import Count, Sum

from agendamentos.models import Agendamento, AgendamentoServico, StatusAgendamento
from core.datas import Periodo, hoje_local, intervalo_relatorio, somar_meses, variacao_percentual
from financeiro.models import MovimentoCaixa, TipoMovimento

ZERO = Decimal("0.00")
MESES_SERIE = 6


def _movs(empresa, periodo: Periodo):
    return MovimentoCaixa.objects.filter(
        empresa=empresa,
        data_transacao__date__gte=periodo.inicio,
        data_transacao__date__lte=periodo.fim,
    )


def _agendamentos(empresa, periodo: Periodo):
    return Agendamento.objects.filter(empresa=empresa, data__gte=periodo.inicio, data__lte=periodo.fim)


def _metricas(empresa, periodo: Periodo) -> dict:
    movs = _movs(empresa, periodo)
    ags = _agendamentos(empresa, periodo)
    return {
        "faturamento": movs.filter(tipo=TipoMovimento.RECEBIMENTO).aggregate(t=Sum("valor"))["t"] or ZERO,
        "despesas": movs.filter(tipo=TipoMovimento.DESPESA).aggregate(t=Sum("valor"))["t"] or ZERO,
        "agendamentos": ags.exclude(status=StatusAgendamento.CANCELADO).count(),
        "concluidos": ags.filter(status=StatusAgendamento.CONCLUIDO).count(),
    }


def _top_servicos(empresa, periodo: Periodo, limit: int = 8) -> list:
    rows = (
        AgendamentoServico.objects.filter(
            agendamento__empresa=empresa,
            agendamento__data__gte=periodo.inicio,
            agendamento__data__lte=periodo.fim,
        )
        .exclude(agendamento__status=StatusAgendamento.CANCELADO)
        .values("servico_id", "servico__nome")
        .annotate(qtd=Count("id"), total=Sum("preco"))
        .order_by("-qtd", "servico__nome")[:limit]
    )
    return [
        {"servico_id": r["servico_id"], "nome": r["servico__nome"], "quantidade": r["qtd"], "total": r["total"] or ZERO}
        for r in rows
    ]


def _faturamento_por_colaborador(empresa, periodo: Periodo) -> list:
    rows = (
        _movs(empresa, periodo)
        .filter(tipo=TipoMovimento.RECEBIMENTO, colaborador__isnull=False)
        .values("colaborador_id", "colaborador__nome", "colaborador__sobrenome")
        .annotate(total=Sum("valor"), atendimentos=Count("id"))
        .order_by("-total")
    )
    return [
        {
            "colaborador_id": r["colaborador_id"],
            "nome": f"{r['colaborador__nome']} {r['colaborador__sobrenome'] or ''}".strip(),
            "total": r["total"] or ZERO,
            "atendimentos": r["atendimentos"],
        }
        for r in rows
    ]


def _serie_mensal(empresa, hoje: date, meses: int = MESES_SERIE) -> dict:
    """Faturamento dos últimos `meses` meses, incluindo o atual."""
    labels, values = [], []
    atual = hoje.replace(day=1)
    for i in range(meses - 1, -1, -1):
        inicio = somar_meses(atual, -i)
        fim = somar_meses(inicio, 1)
        total = (
            MovimentoCaixa.objects.filter(
                empresa=empresa,
                tipo=TipoMovimento.RECEBIMENTO,
                data_transacao__date__gte=inicio,
                data_transacao__date__lt=fim,
            ).aggregate(t=Sum("valor"))["t"]
            or ZERO
        )
        labels.append(inicio.strftime("%m/%Y"))
        values.append(float(total))
    return {"labels": labels, "values": values}


def dados_relatorio(empresa, periodo: str = "last_month", hoje: Optional[date] = None) -> dict:
    """
    Relatório comparativo: período atual x período anterior de mesmo tamanho,
    ranking de serviços, faturamento por colaborador e série mensal.
    """
    hoje = hoje or hoje_local()
    atual, anterior = intervalo_relatorio(periodo, hoje)
    m_atual = _metricas(empresa, atual)
    m_anterior = _metricas(empresa, anterior)

    return {
        "periodo": periodo,
        "intervalo": atual.as_dict(),
        "intervalo_anterior": anterior.as_dict(),
        "atual": m_atual,
        "anterior": m_anterior,
        "crescimento": {k: variacao_percentual(m_atual[k], m_anterior[k]) for k in m_atual},
        "top_servicos": _top_servicos(empresa, atual),
        "faturamento_colaboradores": _faturamento_por_colaborador(empresa, atual),
        "serie_mensal": _serie_mensal(empresa, hoje),
    }
