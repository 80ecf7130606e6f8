# agendamentos/services.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from django.db import transaction
from django.utils.dateparse import parse_date

from clientes.models import Cliente
from clientes.services import cliente_convidado_padrao, find_or_create_cliente
from core.exceptions import AcessoNegado, HorarioIndisponivel, NaoEncontrado, RegraNegocio
from core.permissions import is_global_admin, is_gestor, is_membro
from empresas.models import Colaborador, ColaboradorServico, Empresa
from financeiro.models import FormaPagamento, MovimentoCaixa, TipoMovimento
from financeiro.services import registrar_movimento
from servicos.models import Servico

from .models import Agendamento, AgendamentoServico, StatusAgendamento
from .scheduling import horarios_disponiveis, parse_horario, rotulo

logger = logging.getLogger(__name__)

CAMPOS_RESERVA = (
    "clientId",
    "collaboratorId",
    "serviceIds",
    "appointmentDate",
    "appointmentTime",
    "companyId",
    "totalDurationMinutes",
    "totalPriceCalculated",
)
MSG_INDISPONIVEL = "O horário selecionado não está mais disponível. Por favor, escolha outro horário."


def _data(valor) -> date:
    if isinstance(valor, date):
        return valor
    d = parse_date(str(valor or ""))
    if d is None:
        raise RegraNegocio("Data inválida.")
    return d


def _inteiro_positivo(valor, campo: str) -> int:
    try:
        n = int(valor)
    except (TypeError, ValueError):
        raise RegraNegocio(f"{campo} inválido.")
    if n <= 0:
        raise RegraNegocio(f"{campo} inválido.")
    return n


def _decimal(valor, campo: str) -> Decimal:
    try:
        d = Decimal(str(valor))
    except (InvalidOperation, ValueError):
        raise RegraNegocio(f"{campo} inválido.")
    if d < 0:
        raise RegraNegocio(f"{campo} inválido.")
    return d.quantize(Decimal("0.01"))


def _garantir_disponivel(colaborador, dia: date, hora, duracao: int, excluir_id=None) -> None:
    """Revalida o slot com a linha do colaborador travada (chamar dentro de atomic)."""
    Colaborador.objects.select_for_update().filter(pk=colaborador.pk).first()
    slots = horarios_disponiveis(colaborador, dia, duracao, excluir_id)
    pedido = rotulo(dia, hora, duracao)
    if pedido not in slots:
        logger.info("[Agenda] conflito colaborador=%s %s %s", colaborador.pk, dia, pedido)
        raise HorarioIndisponivel(MSG_INDISPONIVEL, requestedSlot=pedido, availableSlots=slots[:5])


def _pode_agendar(usuario, cliente: Cliente, empresa: Empresa) -> bool:
    if usuario is None or not usuario.is_authenticated:
        return False
    if cliente.user_id and cliente.user_id == usuario.pk:
        return True
    return is_membro(usuario, empresa) or is_global_admin(usuario)


def reservar_agendamento(usuario, dados: Mapping, *, visitante: bool = False) -> Agendamento:
    """
    Reserva com revalidação do horário dentro da transação.
    visitante=True: agendamento público (sem usuário), só para clientes da empresa.
    """
    faltando = [c for c in CAMPOS_RESERVA if dados.get(c) in (None, "", [])]
    if faltando:
        raise RegraNegocio("Missing required fields", missing=faltando)

    empresa = Empresa.objects.filter(pk=dados["companyId"], ativo=True).first()
    if empresa is None:
        raise NaoEncontrado("Empresa não encontrada.")

    cliente = Cliente.objects.filter(pk=dados["clientId"]).first()
    if cliente is None or (cliente.empresa_id and cliente.empresa_id != empresa.pk):
        raise NaoEncontrado("Cliente não encontrado.")

    if visitante:
        if cliente.empresa_id != empresa.pk:
            raise AcessoNegado("Agendamento público apenas para clientes da empresa.")
    elif not _pode_agendar(usuario, cliente, empresa):
        raise AcessoNegado("Você não tem permissão para agendar para este cliente.")

    colaborador = Colaborador.objects.filter(pk=dados["collaboratorId"], empresa=empresa, ativo=True).first()
    if colaborador is None:
        raise NaoEncontrado("Colaborador não encontrado.")

    try:
        ids = {int(i) for i in dados["serviceIds"]}
    except (TypeError, ValueError):
        raise RegraNegocio("Serviço inválido ou inativo.")
    servicos = list(Servico.objects.filter(pk__in=ids, empresa=empresa, ativo=True))
    if len(servicos) != len(ids):
        raise RegraNegocio("Serviço inválido ou inativo.")

    dia = _data(dados["appointmentDate"])
    hora = parse_horario(dados["appointmentTime"])
    duracao = _inteiro_positivo(dados["totalDurationMinutes"], "totalDurationMinutes")
    valor = _decimal(dados["totalPriceCalculated"], "totalPriceCalculated")

    with transaction.atomic():
        _garantir_disponivel(colaborador, dia, hora, duracao)
        ag = Agendamento.objects.create(
            empresa=empresa,
            cliente=cliente,
            cliente_apelido=(dados.get("clientNickname") or "").strip()[:120],
            colaborador=colaborador,
            data=dia,
            hora=hora,
            duracao_total_min=duracao,
            valor_total=valor,
            observacoes=dados.get("observations") or None,
            criado_por=None if visitante else usuario,
        )
        AgendamentoServico.objects.bulk_create([
            AgendamentoServico(agendamento=ag, servico=s, preco=s.preco, duracao_min=s.duracao_min)
            for s in servicos
        ])

    logger.info("[Agenda] agendamento %s criado (%s %s) empresa=%s", ag.pk, dia, hora, empresa.pk)
    return ag


def reservar_como_visitante(empresa: Empresa, dados: Mapping) -> Agendamento:
    """
    Página pública: nome do visitante + serviços; totais calculados pelos serviços.
    Com telefone, o agendamento vai para o cadastro do cliente (encontrado ou criado);
    sem telefone, para o cliente coringa com o nome como apelido.
    """
    nome = dados.get("clientNickname") or dados.get("name")
    ids = dados.get("serviceIds") or []
    servicos = list(Servico.objects.filter(pk__in=ids, empresa=empresa, ativo=True))

    with transaction.atomic():
        if dados.get("clientPhone"):
            if not (nome or "").strip():
                raise RegraNegocio("Name is required")
            cliente = find_or_create_cliente(empresa, nome, dados["clientPhone"])
            cliente_id, apelido = cliente.pk, ""
        else:
            convidado = cliente_convidado_padrao(empresa, nome)
            cliente_id, apelido = convidado["clientId"], convidado["clientNickname"]

        payload = {
            **dados,
            "companyId": empresa.pk,
            "clientId": cliente_id,
            "clientNickname": apelido,
            "totalDurationMinutes": dados.get("totalDurationMinutes") or sum(s.duracao_min for s in servicos),
            "totalPriceCalculated": dados.get("totalPriceCalculated") or sum((s.preco for s in servicos), Decimal("0")),
        }
        if not payload["totalPriceCalculated"]:
            # serviços gratuitos continuam válidos
            payload["totalPriceCalculated"] = "0.00"
        return reservar_agendamento(None, payload, visitante=True)


# -------------------------------
# Mudanças de status / edição
# -------------------------------
def _pode_gerir(usuario, ag: Agendamento) -> bool:
    if is_gestor(usuario, ag.empresa) or is_global_admin(usuario):
        return True
    return bool(ag.colaborador.user_id and ag.colaborador.user_id == usuario.pk)


def confirmar_agendamento(usuario, ag: Agendamento) -> Agendamento:
    if not _pode_gerir(usuario, ag):
        raise AcessoNegado("Sem permissão para alterar este agendamento.")
    try:
        ag.confirmar()
    except ValueError as e:
        raise RegraNegocio(str(e))
    ag.save(update_fields=["status", "updated_at"])
    return ag


def cancelar_agendamento(usuario, ag: Agendamento) -> Agendamento:
    dono = bool(ag.cliente.user_id and ag.cliente.user_id == usuario.pk)
    if not (dono or _pode_gerir(usuario, ag)):
        raise AcessoNegado("Sem permissão para cancelar este agendamento.")
    try:
        ag.cancelar()
    except ValueError as e:
        raise RegraNegocio(str(e))
    ag.save(update_fields=["status", "updated_at"])
    logger.info("[Agenda] agendamento %s cancelado por user=%s", ag.pk, usuario.pk)
    return ag


def editar_agendamento(usuario, ag: Agendamento, dados: Mapping) -> Agendamento:
    """Remarca data/hora/colaborador revalidando a agenda (ignorando o próprio agendamento)."""
    if not _pode_gerir(usuario, ag):
        raise AcessoNegado("Sem permissão para alterar este agendamento.")
    if ag.status in (StatusAgendamento.CONCLUIDO, StatusAgendamento.CANCELADO):
        raise RegraNegocio("Agendamentos concluídos ou cancelados não podem ser editados.")

    colaborador = ag.colaborador
    novo_id = _inteiro_positivo(dados["collaboratorId"], "collaboratorId") if dados.get("collaboratorId") else None
    if novo_id and novo_id != ag.colaborador_id:
        colaborador = Colaborador.objects.filter(pk=novo_id, empresa=ag.empresa, ativo=True).first()
        if colaborador is None:
            raise NaoEncontrado("Colaborador não encontrado.")

    dia = _data(dados["appointmentDate"]) if dados.get("appointmentDate") else ag.data
    hora = parse_horario(dados["appointmentTime"]) if dados.get("appointmentTime") else ag.hora
    mudou_agenda = (colaborador.pk, dia, hora) != (ag.colaborador_id, ag.data, ag.hora)

    with transaction.atomic():
        if mudou_agenda:
            _garantir_disponivel(colaborador, dia, hora, ag.duracao_total_min, excluir_id=ag.pk)
        ag.colaborador = colaborador
        ag.data = dia
        ag.hora = hora
        if "observations" in dados:
            ag.observacoes = dados.get("observations") or None
        ag.save()
    return ag


# -------------------------------
# Finalização + comissão
# -------------------------------
def finalizar_por_colaborador(usuario, agendamento_id, colaborador_id) -> dict:
    colaborador = Colaborador.objects.filter(pk=colaborador_id).first()
    if colaborador is None or colaborador.user_id != usuario.pk:
        raise AcessoNegado("Colaborador não vinculado ao usuário.")

    with transaction.atomic():
        ag = (
            Agendamento.objects.select_for_update()
            .select_related("empresa", "cliente")
            .filter(pk=agendamento_id, colaborador=colaborador)
            .first()
        )
        if ag is None:
            raise NaoEncontrado("Agendamento não encontrado.")
        try:
            ag.finalizar()
        except ValueError as e:
            raise RegraNegocio(str(e))
        ag.save(update_fields=["status", "updated_at"])

        config = {
            cs.servico_id: cs
            for cs in ColaboradorServico.objects.filter(colaborador=colaborador, ativo=True)
        }
        detalhes = []
        total = Decimal("0.00")
        for item in ag.itens.select_related("servico"):
            cs = config.get(item.servico_id)
            valor = cs.comissao_sobre(item.preco) if cs else Decimal("0.00")
            total += valor
            detalhes.append({
                "serviceId": item.servico_id,
                "serviceName": item.servico.nome,
                "price": f"{item.preco:.2f}",
                "commissionType": cs.tipo_comissao if cs else None,
                "commissionValue": f"{cs.valor_comissao:.2f}" if cs else "0.00",
                "commission": f"{valor:.2f}",
            })

        nome_cliente = ag.cliente_apelido or ag.cliente.nome
        if not MovimentoCaixa.objects.filter(agendamento=ag, tipo=TipoMovimento.RECEBIMENTO).exists():
            registrar_movimento(
                ag.empresa,
                TipoMovimento.RECEBIMENTO,
                ag.valor_total,
                forma_pagamento=FormaPagamento.DINHEIRO,
                usuario=usuario,
                agendamento=ag,
                colaborador=colaborador,
                observacoes=f"Atendimento - {nome_cliente}",
            )
        if total > 0:
            registrar_movimento(
                ag.empresa,
                TipoMovimento.DESPESA,
                total,
                usuario=usuario,
                agendamento=ag,
                colaborador=colaborador,
                observacoes=f"Comissão - {colaborador.nome_completo}",
                eh_comissao=True,
            )

        if not ag.cliente.convidado:
            ag.cliente.marcar_ativo(save=True)

    logger.info("[Agenda] agendamento %s finalizado; comissão R$ %s", ag.pk, total)
    return {
        "success": True,
        "message": "Agendamento finalizado com sucesso.",
        "commission": f"{total:.2f}",
        "commissionDetails": detalhes,
    }


def agenda_da_empresa(empresa, dia: Optional[date] = None, colaborador_id=None, status: Optional[str] = None):
    qs = Agendamento.objects.filter(empresa=empresa).select_related("cliente", "colaborador").prefetch_related("itens__servico")
    if dia:
        qs = qs.filter(data=dia)
    if colaborador_id:
        qs = qs.filter(colaborador_id=colaborador_id)
    if status and status in StatusAgendamento.values:
        qs = qs.filter(status=status)
    return qs.order_by("data", "hora")


def notificacoes_empresa(empresa, limite: int = 10) -> list[dict]:
    """Últimos agendamentos pendentes e cancelados da empresa, mais recentes primeiro."""
    itens = []
    for st, tipo in ((StatusAgendamento.PENDENTE, "PENDING_APPOINTMENT"), (StatusAgendamento.CANCELADO, "CANCELLED_APPOINTMENT")):
        for ag in agenda_da_empresa(empresa, status=st).order_by("-created_at")[:limite]:
            cliente = ag.cliente_apelido or (ag.cliente.nome if ag.cliente_id else "") or "Cliente"
            colab = ag.colaborador.nome or "Colaborador"
            quando = f"{ag.data:%d/%m/%Y}"
            if st == StatusAgendamento.PENDENTE:
                msg = f"Novo agendamento de {cliente} com {colab} em {quando} às {ag.hora:%H:%M}."
                prefixo = "pending"
            else:
                msg = f"Agendamento de {cliente} com {colab} em {quando} foi CANCELADO."
                prefixo = "cancelled"
            itens.append({
                "id": f"{prefixo}-{ag.pk}",
                "type": tipo,
                "message": msg,
                "date": ag.created_at,
                "appointmentId": ag.pk,
            })
    itens.sort(key=lambda n: n["date"], reverse=True)
    return itens
