# painel/dashboard.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from django.db.models import Count, Sum

from agendamentos.models import Agendamento, StatusAgendamento
from assinaturas.services import status_assinatura
from clientes.models import Cliente
from core.datas import hoje_local
from empresas.models import Colaborador
from financeiro.models import MovimentoCaixa, TipoMovimento
from financeiro.services import estoque_critico

ZERO = Decimal("0.00")


def _month_window(base_date: date):
    """[primeiro dia do mês, primeiro dia do mês seguinte)"""
    start = base_date.replace(day=1)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def _total(qs) -> Decimal:
    return qs.aggregate(total=Sum("valor"))["total"] or ZERO


def _agendamentos_hoje(empresa, hoje: date) -> dict:
    por_status = {s: 0 for s in StatusAgendamento.values}
    for row in Agendamento.objects.filter(empresa=empresa, data=hoje).values("status").annotate(qtd=Count("id")):
        por_status[row["status"]] = row["qtd"]
    return {"total": sum(por_status.values()), "por_status": por_status}


def _proximos(empresa, hoje: date, limit: int = 5) -> list:
    qs = (
        Agendamento.objects.filter(
            empresa=empresa,
            data__gte=hoje,
            status__in=[StatusAgendamento.PENDENTE, StatusAgendamento.CONFIRMADO],
        )
        .select_related("cliente", "colaborador")
        .order_by("data", "hora")[:limit]
    )
    return [
        {
            "id": a.pk,
            "data": a.data,
            "horario": a.rotulo_horario,
            "cliente": a.cliente_apelido or a.cliente.nome,
            "colaborador": a.colaborador.nome_completo,
            "status": a.status,
            "valor_total": a.valor_total,
        }
        for a in qs
    ]


def dados_dashboard(empresa, hoje: Optional[date] = None) -> dict:
    """KPIs da tela inicial da empresa."""
    hoje = hoje or hoje_local()
    start_m, end_m = _month_window(hoje)

    movs = MovimentoCaixa.objects.filter(empresa=empresa)
    recebimentos = movs.filter(tipo=TipoMovimento.RECEBIMENTO)
    mes = {"data_transacao__date__gte": start_m, "data_transacao__date__lt": end_m}

    return {
        "data": hoje,
        "agendamentos_hoje": _agendamentos_hoje(empresa, hoje),
        "faturamento_hoje": _total(recebimentos.filter(data_transacao__date=hoje)),
        "faturamento_mes": _total(recebimentos.filter(**mes)),
        "despesas_mes": _total(movs.filter(tipo=TipoMovimento.DESPESA, **mes)),
        "clientes": Cliente.objects.filter(empresa=empresa, convidado=False).count(),
        "colaboradores": Colaborador.objects.filter(empresa=empresa, ativo=True).count(),
        "proximos_agendamentos": _proximos(empresa, hoje),
        "estoque_critico": estoque_critico(empresa).count(),
        "assinatura": status_assinatura(empresa, hoje),
    }
