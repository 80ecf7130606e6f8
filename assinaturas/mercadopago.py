# assinaturas/mercadopago.py
import logging
from typing import Any, Mapping

import requests
from django.conf import settings

from core.exceptions import PagamentoErro

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = getattr(settings, "OUTBOUND_HTTP_TIMEOUT", 8)


def _headers() -> dict:
    token = getattr(settings, "PAYMENT_API_KEY_SECRET", "")
    if not token:
        raise PagamentoErro("Serviço de pagamento não configurado.")
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }


def _erro_provedor(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.reason or f"HTTP {resp.status_code}"
    return data.get("message") or data.get("error") or f"HTTP {resp.status_code}"


def criar_preferencia(payload: Mapping[str, Any]) -> dict:
    """
    POST /checkout/preferences. Retorna o JSON da preferência (id, init_point...).
    Erro de rede/HTTP vira PagamentoErro.
    """
    url = f"{settings.MERCADOPAGO_API_URL}/checkout/preferences"
    try:
        resp = requests.post(url, json=dict(payload), headers=_headers(), timeout=DEFAULT_TIMEOUT)
    except requests.RequestException as e:
        logger.exception("[MercadoPago] falha de rede ao criar preferência: %s", e)
        raise PagamentoErro("Não foi possível contatar o serviço de pagamento.") from e

    if not resp.ok:
        msg = _erro_provedor(resp)
        logger.error("[MercadoPago] preferência recusada (%s): %s", resp.status_code, msg)
        raise PagamentoErro(f"Erro do Mercado Pago: {msg}")

    data = resp.json()
    logger.info("[MercadoPago] preferência %s criada (ref=%s)", data.get("id"), payload.get("external_reference"))
    return data


def buscar_pagamento(payment_id: str) -> dict:
    """GET /v1/payments/{id}."""
    url = f"{settings.MERCADOPAGO_API_URL}/v1/payments/{payment_id}"
    try:
        resp = requests.get(url, headers=_headers(), timeout=DEFAULT_TIMEOUT)
    except requests.RequestException as e:
        logger.exception("[MercadoPago] falha de rede ao consultar pagamento %s: %s", payment_id, e)
        raise PagamentoErro("Não foi possível consultar o pagamento.") from e

    if not resp.ok:
        msg = _erro_provedor(resp)
        logger.error("[MercadoPago] consulta do pagamento %s falhou (%s): %s", payment_id, resp.status_code, msg)
        raise PagamentoErro(f"Erro do Mercado Pago: {msg}")
    return resp.json()
