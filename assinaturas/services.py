# assinaturas/services.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F

from core.datas import hoje_local, somar_meses
from core.emails import email_ativacao_whatsapp
from core.exceptions import LimiteAtingido, NaoEncontrado, PagamentoErro, RegraNegocio
from empresas.models import Empresa

from . import mercadopago
from .models import (
    AssinaturaEmpresa,
    CupomAdmin,
    PeriodoCobranca,
    Plano,
    PlanoFuncionalidade,
    PlanoLimite,
    StatusAssinatura,
    TentativaPagamento,
    TipoDesconto,
    TipoLimite,
    UsoCupom,
)

logger = logging.getLogger(__name__)

CHAVE_WHATSAPP = "whatsapp"
VALOR_MINIMO = Decimal("0.50")
CENTAVOS = Decimal("0.01")

MSG_VALOR_MINIMO = "O valor mínimo para pagamento é R$ 0,50. Por favor, ajuste o valor do plano ou cupom."


def _centavos(valor) -> Decimal:
    return Decimal(valor).quantize(CENTAVOS, rounding=ROUND_HALF_UP)


# =====================================================
# Status / funcionalidades / limites
# =====================================================

def _ordem_fim():
    # sem data_fim = vitalícia, fica na frente
    return F("data_fim").desc(nulls_first=True)


def assinatura_vigente(empresa, hoje: Optional[date] = None) -> Optional[AssinaturaEmpresa]:
    hoje = hoje or hoje_local()
    qs = AssinaturaEmpresa.objects.filter(empresa=empresa, status=StatusAssinatura.ACTIVE).select_related("plano")
    for sub in qs.order_by(_ordem_fim(), "-pk"):
        if sub.data_fim is None or sub.data_fim >= hoje:
            return sub
    return None


def status_assinatura(empresa, hoje: Optional[date] = None) -> dict:
    """
    active / expiring_soon (faltando <= ASSINATURA_AVISO_DIAS) / expired / no_subscription.
    """
    hoje = hoje or hoje_local()
    sub = (
        AssinaturaEmpresa.objects.filter(
            empresa=empresa,
            status__in=[StatusAssinatura.ACTIVE, StatusAssinatura.EXPIRED],
        )
        .select_related("plano")
        .order_by(_ordem_fim(), "-pk")
        .first()
    )
    if sub is None:
        return {"status": "no_subscription", "plano": None, "data_fim": None, "dias_restantes": None}

    base = {"plano": sub.plano.nome, "plano_id": sub.plano_id, "data_fim": sub.data_fim}
    if sub.data_fim is None:
        return {"status": "active", "dias_restantes": None, **base}

    dias = (sub.data_fim - hoje).days
    if dias < 0 or sub.status == StatusAssinatura.EXPIRED:
        status = "expired"
    elif dias <= getattr(settings, "ASSINATURA_AVISO_DIAS", 3):
        status = "expiring_soon"
    else:
        status = "active"
    return {"status": status, "dias_restantes": max(dias, 0), **base}


def tem_funcionalidade(empresa, chave: str, hoje: Optional[date] = None) -> tuple[bool, Optional[int]]:
    """(possui, limite) conforme o plano da assinatura vigente."""
    sub = assinatura_vigente(empresa, hoje)
    if sub is None:
        return False, None
    item = PlanoFuncionalidade.objects.filter(plano=sub.plano, funcionalidade__chave=chave).first()
    if item is None:
        return False, None
    return True, item.limite


def contar_uso(empresa, tipo: str) -> int:
    if tipo == TipoLimite.COLABORADORES:
        return empresa.colaboradores.filter(ativo=True).count()
    if tipo == TipoLimite.SERVICOS:
        return empresa.servicos.filter(ativo=True).count()
    raise ValueError(f"Tipo de limite desconhecido: {tipo}")


def verificar_limite(empresa, tipo: str, hoje: Optional[date] = None) -> dict:
    atual = contar_uso(empresa, tipo)
    sub = assinatura_vigente(empresa, hoje)
    maximo = None
    if sub is not None:
        maximo = PlanoLimite.objects.filter(plano=sub.plano, tipo=tipo).values_list("valor", flat=True).first()

    if not maximo or maximo <= 0:
        return {
            "current": atual,
            "max": None,
            "percentage": 0,
            "limitReached": False,
            "nearLimit": False,
            "unlimited": True,
        }

    pct = int((Decimal(atual) * 100 / Decimal(maximo)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    atingido = atual >= maximo
    return {
        "current": atual,
        "max": maximo,
        "percentage": pct,
        "limitReached": atingido,
        "nearLimit": pct >= getattr(settings, "LIMITE_AVISO_PERCENTUAL", 80) and not atingido,
        "unlimited": False,
    }


def exigir_limite(empresa, tipo: str) -> dict:
    info = verificar_limite(empresa, tipo)
    if info["limitReached"]:
        rotulo = TipoLimite(tipo).label.lower()
        raise LimiteAtingido(
            f"Limite de {rotulo} do plano atingido ({info['current']}/{info['max']}). Faça upgrade do plano.",
            limit=info,
        )
    return info


# =====================================================
# Cupons
# =====================================================

def validar_cupom(codigo: str, empresa, plano: Plano, duracao_meses: int, hoje: Optional[date] = None) -> CupomAdmin:
    hoje = hoje or hoje_local()
    cupom = CupomAdmin.objects.filter(codigo=(codigo or "").strip().upper()).first()
    if cupom is None:
        raise NaoEncontrado("Cupom não encontrado.")
    if cupom.status != CupomAdmin.Status.ACTIVE:
        raise RegraNegocio("Cupom inativo.")
    if cupom.validade and cupom.validade < hoje:
        raise RegraNegocio("Cupom expirado.")
    if cupom.max_usos is not None and cupom.usos_atuais >= cupom.max_usos:
        raise RegraNegocio("Cupom esgotado.")
    if cupom.plano_id and cupom.plano_id != plano.pk:
        raise RegraNegocio("Este cupom não é válido para o plano selecionado.")
    if cupom.periodo_cobranca == PeriodoCobranca.YEARLY and duracao_meses < 12:
        raise RegraNegocio("Este cupom é válido apenas para planos anuais.")
    if cupom.periodo_cobranca == PeriodoCobranca.MONTHLY and duracao_meses != 1:
        raise RegraNegocio("Este cupom é válido apenas para planos mensais.")
    if UsoCupom.objects.filter(cupom=cupom, empresa=empresa).exists():
        raise RegraNegocio("Este cupom já foi utilizado por esta empresa.")
    return cupom


def aplicar_desconto(preco, cupom: CupomAdmin) -> Decimal:
    preco = Decimal(preco)
    valor = Decimal(cupom.valor_desconto)
    if cupom.tipo_desconto == TipoDesconto.PERCENTUAL:
        if valor < 0 or valor > 100:
            raise RegraNegocio("Percentual de desconto inválido.")
        final = preco * (Decimal("1") - valor / Decimal("100"))
    else:
        final = max(Decimal("0"), preco - valor)
    return _centavos(final)


def registrar_uso_cupom(cupom: CupomAdmin, empresa, assinatura=None) -> UsoCupom:
    uso, created = UsoCupom.objects.get_or_create(
        cupom=cupom,
        empresa=empresa,
        defaults={"assinatura": assinatura},
    )
    if created:
        CupomAdmin.objects.filter(pk=cupom.pk).update(usos_atuais=F("usos_atuais") + 1)
    return uso


# =====================================================
# Ativação / checkout
# =====================================================

def _avisar_whatsapp(empresa, plano: Plano):
    if PlanoFuncionalidade.objects.filter(plano=plano, funcionalidade__chave=CHAVE_WHATSAPP).exists():
        email_ativacao_whatsapp(empresa.nome, plano.nome)


def ativar_ou_estender(empresa, plano: Plano, meses: int, hoje: Optional[date] = None) -> AssinaturaEmpresa:
    """
    Estende a assinatura ativa a partir do fim atual (ou de hoje, se já venceu);
    sem assinatura ativa, promove a pendente ou cria uma nova.
    """
    hoje = hoje or hoje_local()
    atual = (
        AssinaturaEmpresa.objects.select_for_update()
        .filter(empresa=empresa, status=StatusAssinatura.ACTIVE)
        .order_by(_ordem_fim(), "-pk")
        .first()
    )
    if atual is not None:
        base = atual.data_fim if atual.data_fim and atual.data_fim >= hoje else hoje
        atual.plano = plano
        atual.data_fim = somar_meses(base, meses)
        atual.save(update_fields=["plano", "data_fim", "updated_at"])
        sub = atual
    else:
        sub = AssinaturaEmpresa.objects.filter(empresa=empresa, status=StatusAssinatura.PENDING).first()
        if sub is None:
            sub = AssinaturaEmpresa(empresa=empresa)
        sub.plano = plano
        sub.status = StatusAssinatura.ACTIVE
        sub.data_inicio = hoje
        sub.data_fim = somar_meses(hoje, meses)
        sub.save()

    logger.info("[Assinatura] empresa=%s plano=%s ativa até %s", empresa.pk, plano.pk, sub.data_fim)
    _avisar_whatsapp(empresa, plano)
    return sub


def montar_preferencia(plano: Plano, meses: int, valor: Decimal, referencia: str, com_cupom: bool) -> dict:
    titulo = f"Assinatura: {plano.nome} ({meses} meses)"
    if com_cupom:
        titulo += " - Desconto Aplicado"
    base = settings.SITE_URL
    payload = {
        "items": [
            {
                "id": str(plano.pk),
                "title": titulo,
                "quantity": 1,
                "currency_id": "BRL",
                "unit_price": float(valor),
            }
        ],
        "external_reference": referencia,
        "back_urls": {
            "success": f"{base}/planos?status=success",
            "failure": f"{base}/planos?status=failure",
            "pending": f"{base}/planos?status=pending",
        },
        "auto_return": "approved",
    }
    if getattr(settings, "MERCADOPAGO_NOTIFICATION_URL", ""):
        payload["notification_url"] = settings.MERCADOPAGO_NOTIFICATION_URL
    return payload


def assinar(
    empresa,
    plano: Plano,
    duracao_meses: int,
    cupom_codigo: Optional[str] = None,
    usuario=None,
    hoje: Optional[date] = None,
) -> dict:
    """
    Aplica cupom (opcional) e:
      - valor final <= 0: ativa/estende na hora;
      - senão: cria tentativa de pagamento + preferência no Mercado Pago.
    """
    hoje = hoje or hoje_local()
    if not plano.ativo:
        raise RegraNegocio("Plano indisponível.")
    try:
        duracao_meses = int(duracao_meses)
    except (TypeError, ValueError):
        raise RegraNegocio("Duração inválida.")
    if duracao_meses <= 0:
        raise RegraNegocio("Duração inválida.")
    if plano.preco < 0:
        raise RegraNegocio("Preço do plano inválido.")

    cupom = validar_cupom(cupom_codigo, empresa, plano, duracao_meses, hoje) if cupom_codigo else None
    valor = aplicar_desconto(plano.preco, cupom) if cupom else _centavos(plano.preco)
    # cupom dá um mês de bônus
    meses = duracao_meses + (1 if cupom else 0)

    if valor <= 0:
        with transaction.atomic():
            sub = ativar_ou_estender(empresa, plano, meses, hoje)
            if cupom:
                registrar_uso_cupom(cupom, empresa, sub)
        return {
            "activated": True,
            "subscriptionId": sub.pk,
            "endDate": sub.data_fim.isoformat() if sub.data_fim else None,
            "finalPrice": "0.00",
        }

    if valor < VALOR_MINIMO:
        raise RegraNegocio(MSG_VALOR_MINIMO)

    with transaction.atomic():
        pendente = AssinaturaEmpresa.objects.filter(empresa=empresa, status=StatusAssinatura.PENDING).first()
        if pendente is None:
            AssinaturaEmpresa.objects.create(
                empresa=empresa, plano=plano, status=StatusAssinatura.PENDING, data_inicio=hoje,
            )
        elif pendente.plano_id != plano.pk:
            pendente.plano = plano
            pendente.save(update_fields=["plano", "updated_at"])

        tentativa = TentativaPagamento.objects.create(
            empresa=empresa,
            plano=plano,
            cupom=cupom,
            usuario=usuario,
            duracao_meses=meses,
            valor=valor,
        )
        tentativa.referencia_externa = (
            f"{empresa.pk}_{plano.pk}_{meses}_{cupom.pk if cupom else 'none'}_{tentativa.pk}"
        )
        tentativa.save(update_fields=["referencia_externa", "updated_at"])

    payload = montar_preferencia(plano, meses, valor, tentativa.referencia_externa, cupom is not None)
    try:
        pref = mercadopago.criar_preferencia(payload)
    except PagamentoErro as e:
        tentativa.status = TentativaPagamento.Status.FAILED
        tentativa.detalhes = {"erro": e.mensagem}
        tentativa.save(update_fields=["status", "detalhes", "updated_at"])
        raise

    tentativa.status = TentativaPagamento.Status.PREFERENCE_CREATED
    tentativa.preference_id = str(pref.get("id") or "")
    tentativa.save(update_fields=["status", "preference_id", "updated_at"])
    return {
        "activated": False,
        "preferenceId": pref.get("id"),
        "initPoint": pref.get("init_point"),
        "finalPrice": f"{valor:.2f}",
    }


def parse_referencia(ref: str) -> dict:
    """
    `{empresa}_{plano}_{meses}_{cupom|none}_{tentativa}`.
    Referências antigas só com `{empresa}_{plano}` também são aceitas.
    """
    partes = (ref or "").split("_")
    try:
        empresa_id, plano_id = int(partes[0]), int(partes[1])
        meses = int(partes[2]) if len(partes) > 2 else None
        cupom_id = int(partes[3]) if len(partes) > 3 and partes[3] != "none" else None
        tentativa_id = int(partes[4]) if len(partes) > 4 else None
    except (IndexError, ValueError):
        raise RegraNegocio("Invalid external reference format")
    return {
        "empresa_id": empresa_id,
        "plano_id": plano_id,
        "meses": meses,
        "cupom_id": cupom_id,
        "tentativa_id": tentativa_id,
    }


def processar_webhook(payload: dict, hoje: Optional[date] = None) -> dict:
    tipo = payload.get("type") or payload.get("topic")
    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    payment_id = data.get("id")
    if tipo != "payment" or not payment_id:
        return {"received": True, "message": "Non-payment notification type received or missing data ID."}

    pagamento = mercadopago.buscar_pagamento(str(payment_id))
    status = pagamento.get("status")
    if status != "approved":
        return {"received": True, "message": f"Payment status is {status}, not approved."}

    ref = pagamento.get("external_reference")
    if not ref:
        raise RegraNegocio("Missing external reference")
    dados = parse_referencia(ref)

    plano = Plano.objects.filter(pk=dados["plano_id"]).first()
    if plano is None:
        raise NaoEncontrado("Plan not found")
    if not Empresa.objects.filter(pk=dados["empresa_id"]).exists():
        raise NaoEncontrado("Company not found")

    try:
        with transaction.atomic():
            # notificações repetidas do mesmo pagamento passam uma de cada vez
            empresa = Empresa.objects.select_for_update().get(pk=dados["empresa_id"])
            tentativa = None
            if dados["tentativa_id"]:
                tentativa = (
                    TentativaPagamento.objects.select_for_update()
                    .filter(pk=dados["tentativa_id"], empresa=empresa)
                    .first()
                )
            if tentativa is not None and tentativa.status == TentativaPagamento.Status.APPROVED:
                # outro pagamento para a mesma preferência vira uma tentativa nova
                tentativa = None
            ja = TentativaPagamento.objects.filter(
                payment_id=str(payment_id), status=TentativaPagamento.Status.APPROVED
            ).exists()
            if ja:
                logger.info("[Webhook] pagamento %s já processado", payment_id)
                return {"received": True, "message": "Payment already processed."}

            sub = ativar_ou_estender(empresa, plano, dados["meses"] or plano.duracao_meses, hoje)

            if tentativa is None:
                tentativa = TentativaPagamento(
                    empresa=empresa,
                    plano=plano,
                    duracao_meses=dados["meses"] or plano.duracao_meses,
                    valor=_centavos(pagamento.get("transaction_amount") or 0),
                    referencia_externa=ref,
                )
            tentativa.status = TentativaPagamento.Status.APPROVED
            tentativa.payment_id = str(payment_id)
            tentativa.detalhes = {"status": status, "status_detail": pagamento.get("status_detail")}
            tentativa.save()

            if dados["cupom_id"]:
                cupom = CupomAdmin.objects.filter(pk=dados["cupom_id"]).first()
                if cupom is not None:
                    registrar_uso_cupom(cupom, empresa, sub)
    except IntegrityError:
        # payment_id é único: outra notificação já gravou este pagamento
        logger.info("[Webhook] pagamento %s já registrado por outra notificação", payment_id)
        return {"received": True, "message": "Payment already processed."}

    logger.info("[Webhook] pagamento %s aprovado: empresa=%s assinatura=%s", payment_id, empresa.pk, sub.pk)
    return {"success": True, "subscriptionId": sub.pk, "status": status}


def expirar_assinaturas(hoje: Optional[date] = None) -> int:
    hoje = hoje or hoje_local()
    return AssinaturaEmpresa.objects.filter(
        status=StatusAssinatura.ACTIVE,
        data_fim__lt=hoje,
    ).update(status=StatusAssinatura.EXPIRED)
