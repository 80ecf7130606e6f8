# financeiro/services.py
from __future__ import annotations

import logging
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from core.datas import calcular_periodo, hoje_local
from core.exceptions import AcessoNegado, PeriodoFechado, RegraNegocio
from core.permissions import is_proprietario
from empresas.models import Colaborador

from .models import (
    FechamentoCaixa,
    FormaPagamento,
    MovimentoCaixa,
    PagamentoComissao,
    Produto,
    TipoFechamento,
    TipoMovimento,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
MSG_PERIODO_FECHADO = "Não é possível registrar movimentações em um período já fechado."

# tipo do fechamento -> chave aceita por calcular_periodo
_PERIODOS = {
    TipoFechamento.DIA: "dia",
    TipoFechamento.SEMANA: "semana",
    TipoFechamento.QUINZENA: "quinzena",
    TipoFechamento.MES: "mes",
}

# valor de cada campo de cédulas do formulário de fechamento
_CEDULAS = (("notas_100", 100), ("notas_50", 50), ("notas_20", 20))


def _dec(valor, campo: str = "valor") -> Decimal:
    try:
        return Decimal(str(valor if valor not in (None, "") else 0)).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError):
        raise RegraNegocio(f"Valor inválido para {campo}.")


def _soma(qs) -> Decimal:
    return qs.aggregate(t=Sum("valor"))["t"] or ZERO


def _momento_do_dia(dia: date) -> datetime:
    """Agora, se for hoje; senão fim do dia informado (horário local)."""
    if dia == hoje_local():
        return timezone.now()
    return timezone.make_aware(datetime.combine(dia, time(23, 59)))


def periodo_fechado(empresa, dia: date) -> bool:
    return FechamentoCaixa.objects.filter(empresa=empresa, data_inicio__lte=dia, data_fim__gte=dia).exists()


def registrar_movimento(
    empresa,
    tipo: str,
    valor,
    *,
    forma_pagamento: str = FormaPagamento.DINHEIRO,
    usuario=None,
    agendamento=None,
    colaborador=None,
    observacoes: str = "",
    eh_comissao: bool = False,
    data_transacao: Optional[datetime] = None,
) -> MovimentoCaixa:
    """Única porta de entrada de movimentações: recusa períodos fechados."""
    if tipo not in TipoMovimento.values:
        raise RegraNegocio("Tipo de movimentação inválido.")
    if forma_pagamento not in FormaPagamento.values:
        raise RegraNegocio("Forma de pagamento inválida.")
    valor = _dec(valor)
    if valor < 0:
        raise RegraNegocio("O valor não pode ser negativo.")

    data_transacao = data_transacao or timezone.now()
    if periodo_fechado(empresa, timezone.localdate(data_transacao)):
        raise PeriodoFechado(MSG_PERIODO_FECHADO)

    mov = MovimentoCaixa.objects.create(
        empresa=empresa,
        usuario=usuario,
        agendamento=agendamento,
        colaborador=colaborador,
        tipo=tipo,
        forma_pagamento=forma_pagamento,
        valor=valor,
        observacoes=observacoes or "",
        eh_comissao=eh_comissao,
        data_transacao=data_transacao,
    )
    logger.info("[Caixa] %s R$ %s empresa=%s mov=%s", tipo, valor, empresa.pk, mov.pk)
    return mov


# -------------------------------
# Caixa do dia
# -------------------------------
def resumo_caixa_dia(empresa, dia: Optional[date] = None) -> dict:
    dia = dia or hoje_local()
    movs = MovimentoCaixa.objects.filter(empresa=empresa, data_transacao__date=dia)
    recebimentos = movs.filter(tipo=TipoMovimento.RECEBIMENTO)
    dinheiro = _soma(recebimentos.filter(forma_pagamento=FormaPagamento.DINHEIRO))
    cartao_pix = _soma(recebimentos.exclude(forma_pagamento=FormaPagamento.DINHEIRO))
    return {
        "dia": dia,
        "dinheiro": dinheiro,
        "cartao_pix": cartao_pix,
        "total": dinheiro + cartao_pix,
        "despesas": _soma(movs.filter(tipo=TipoMovimento.DESPESA)),
        "fechado": movs.filter(tipo=TipoMovimento.FECHAMENTO).exists(),
        "movimentos": movs.select_related("colaborador", "usuario").order_by("data_transacao"),
    }


def fechar_caixa_dia(empresa, usuario, form: Mapping, dia: Optional[date] = None) -> dict:
    """
    Fechamento diário pela contagem de cédulas.
    form: notas_100, notas_50, notas_20, outras (valor), despesas_produtos,
          despesas_outras, observacoes
    """
    dia = dia or hoje_local()
    if MovimentoCaixa.objects.filter(empresa=empresa, data_transacao__date=dia, tipo=TipoMovimento.FECHAMENTO).exists():
        raise RegraNegocio("O caixa deste dia já foi fechado.")

    contado = ZERO
    for campo, nota in _CEDULAS:
        try:
            qtd = int(form.get(campo) or 0)
        except (TypeError, ValueError):
            raise RegraNegocio(f"Quantidade inválida em {campo}.")
        if qtd < 0:
            raise RegraNegocio(f"Quantidade inválida em {campo}.")
        contado += Decimal(nota * qtd)
    contado += _dec(form.get("outras"), "outras")

    despesas = {
        "Despesas com produtos": _dec(form.get("despesas_produtos"), "despesas_produtos"),
        "Outras despesas": _dec(form.get("despesas_outras"), "despesas_outras"),
    }
    momento = _momento_do_dia(dia)
    observacoes = (form.get("observacoes") or "").strip()

    with transaction.atomic():
        fechamento = registrar_movimento(
            empresa,
            TipoMovimento.FECHAMENTO,
            contado,
            usuario=usuario,
            observacoes=observacoes or "Fechamento do caixa",
            data_transacao=momento,
        )
        geradas = [
            registrar_movimento(
                empresa,
                TipoMovimento.DESPESA,
                valor,
                usuario=usuario,
                observacoes=descricao,
                data_transacao=momento,
            )
            for descricao, valor in despesas.items()
            if valor > 0
        ]

    resumo = resumo_caixa_dia(empresa, dia)
    return {
        "fechamento": fechamento,
        "despesas": geradas,
        "dinheiro_contado": contado,
        "diferenca": contado - resumo["dinheiro"],
        "resumo": resumo,
    }


# -------------------------------
# Fechamento por período
# -------------------------------
def totais_periodo(empresa, inicio: date, fim: date) -> dict:
    movs = MovimentoCaixa.objects.filter(empresa=empresa, data_transacao__date__range=(inicio, fim))
    recebimentos = movs.filter(tipo=TipoMovimento.RECEBIMENTO)
    total_rec = _soma(recebimentos)
    total_desp = _soma(movs.filter(tipo=TipoMovimento.DESPESA))
    return {
        "total_recebimentos": total_rec,
        "total_despesas": total_desp,
        "saldo": total_rec - total_desp,
        "cartao_pix_total": _soma(recebimentos.exclude(forma_pagamento=FormaPagamento.DINHEIRO)),
    }


def fechar_periodo(
    empresa,
    usuario,
    tipo: str,
    referencia: Optional[date] = None,
    dinheiro_contado=0,
    observacoes: str = "",
) -> FechamentoCaixa:
    tipo = (tipo or "").upper()
    if tipo not in TipoFechamento.values:
        raise RegraNegocio("Tipo de fechamento inválido.")
    periodo = calcular_periodo(_PERIODOS[tipo], referencia)

    with transaction.atomic():
        if FechamentoCaixa.objects.select_for_update().filter(
            empresa=empresa, tipo=tipo, data_inicio=periodo.inicio, data_fim=periodo.fim
        ).exists():
            raise RegraNegocio("Este período já foi fechado.", periodo=periodo.as_dict())

        fechamento = FechamentoCaixa.objects.create(
            empresa=empresa,
            usuario=usuario,
            tipo=tipo,
            data_inicio=periodo.inicio,
            data_fim=periodo.fim,
            dinheiro_contado=_dec(dinheiro_contado, "dinheiro_contado"),
            observacoes=observacoes or "",
            **totais_periodo(empresa, periodo.inicio, periodo.fim),
        )
    logger.info("[Caixa] fechamento %s %s..%s empresa=%s", tipo, periodo.inicio, periodo.fim, empresa.pk)
    return fechamento


def reabrir_fechamento(usuario, fechamento: FechamentoCaixa, senha: str) -> None:
    """Só o proprietário, confirmando a própria senha."""
    if not is_proprietario(usuario, fechamento.empresa):
        raise AcessoNegado("Apenas o proprietário pode reabrir um fechamento.")
    if not senha or not usuario.check_password(senha):
        raise AcessoNegado("Senha incorreta.")
    logger.warning(
        "[Caixa] fechamento %s (%s..%s) reaberto por user=%s",
        fechamento.pk, fechamento.data_inicio, fechamento.data_fim, usuario.pk,
    )
    fechamento.delete()


def transacoes_periodo(empresa, inicio: date, fim: date) -> dict:
    if fim < inicio:
        raise RegraNegocio("Data final anterior à inicial.")
    movs = (
        MovimentoCaixa.objects.filter(empresa=empresa, data_transacao__date__range=(inicio, fim))
        .select_related("colaborador", "usuario", "agendamento")
        .order_by("-data_transacao")
    )
    return {"movimentos": movs, **totais_periodo(empresa, inicio, fim)}


# -------------------------------
# Comissões
# -------------------------------
def _comissao_acumulada(colaborador) -> Decimal:
    return _soma(MovimentoCaixa.objects.filter(
        colaborador=colaborador, tipo=TipoMovimento.DESPESA, eh_comissao=True,
    ))


def _comissao_paga(colaborador) -> Decimal:
    return _soma(PagamentoComissao.objects.filter(colaborador=colaborador))


def comissao_pendente(colaborador) -> Decimal:
    return _comissao_acumulada(colaborador) - _comissao_paga(colaborador)


def comissoes_pendentes(empresa) -> list[dict]:
    acumulado = dict(
        MovimentoCaixa.objects.filter(empresa=empresa, tipo=TipoMovimento.DESPESA, eh_comissao=True, colaborador__isnull=False)
        .values_list("colaborador")
        .annotate(t=Sum("valor"))
    )
    pago = dict(
        PagamentoComissao.objects.filter(empresa=empresa)
        .values_list("colaborador")
        .annotate(t=Sum("valor"))
    )
    out = []
    for colab in Colaborador.objects.filter(pk__in=acumulado.keys()):
        total = acumulado.get(colab.pk) or ZERO
        pagos = pago.get(colab.pk) or ZERO
        pendente = total - pagos
        if pendente > 0:
            out.append({
                "colaborador_id": colab.pk,
                "nome": colab.nome_completo,
                "acumulado": total,
                "pago": pagos,
                "pendente": pendente,
            })
    out.sort(key=lambda r: r["pendente"], reverse=True)
    return out


def pagar_comissao(
    empresa,
    colaborador: Colaborador,
    valor,
    forma_pagamento: str = FormaPagamento.DINHEIRO,
    usuario=None,
    observacoes: str = "",
) -> PagamentoComissao:
    if colaborador.empresa_id != empresa.pk:
        raise RegraNegocio("Colaborador de outra empresa.")
    valor = _dec(valor)
    if valor <= 0:
        raise RegraNegocio("O valor do pagamento deve ser maior que zero.")

    with transaction.atomic():
        Colaborador.objects.select_for_update().filter(pk=colaborador.pk).first()
        pendente = comissao_pendente(colaborador)
        if valor > pendente:
            raise RegraNegocio("Valor maior que a comissão pendente.", pendente=f"{pendente:.2f}")
        mov = registrar_movimento(
            empresa,
            TipoMovimento.DESPESA,
            valor,
            forma_pagamento=forma_pagamento,
            usuario=usuario,
            colaborador=colaborador,
            observacoes=observacoes or f"Pagamento de comissão - {colaborador.nome_completo}",
        )
        pagamento = PagamentoComissao.objects.create(
            empresa=empresa,
            colaborador=colaborador,
            valor=valor,
            forma_pagamento=forma_pagamento,
            observacoes=observacoes or "",
            pago_por=usuario,
            movimento=mov,
        )
    return pagamento


# -------------------------------
# Produtos
# -------------------------------
def vender_produto(empresa, produto: Produto, quantidade, forma_pagamento: str = FormaPagamento.DINHEIRO, usuario=None) -> MovimentoCaixa:
    try:
        quantidade = int(quantidade)
    except (TypeError, ValueError):
        raise RegraNegocio("Quantidade inválida.")
    if quantidade <= 0:
        raise RegraNegocio("Quantidade inválida.")

    with transaction.atomic():
        p = Produto.objects.select_for_update().get(pk=produto.pk, empresa=empresa)
        if not p.ativo:
            raise RegraNegocio("Produto inativo.")
        if p.estoque < quantidade:
            raise RegraNegocio("Estoque insuficiente.", estoque=p.estoque)
        p.estoque -= quantidade
        p.save(update_fields=["estoque", "updated_at"])
        mov = registrar_movimento(
            empresa,
            TipoMovimento.RECEBIMENTO,
            p.preco * quantidade,
            forma_pagamento=forma_pagamento,
            usuario=usuario,
            observacoes=f"Venda: {quantidade}x {p.nome}",
        )
    produto.estoque = p.estoque
    return mov


def estoque_critico(empresa):
    return Produto.objects.filter(empresa=empresa, ativo=True, estoque__lte=F("estoque_minimo")).order_by("estoque", "nome")
