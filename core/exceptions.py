# core/exceptions.py
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class RegraNegocio(Exception):
    """Violação de regra de negócio; vira resposta JSON na API."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, mensagem: str, **extra):
        super().__init__(mensagem)
        self.mensagem = mensagem
        self.extra = extra

    def as_payload(self) -> dict:
        payload = {"ok": False, "error": self.mensagem}
        payload.update(self.extra)
        return payload


class AcessoNegado(RegraNegocio):
    status_code = status.HTTP_403_FORBIDDEN


class NaoEncontrado(RegraNegocio):
    status_code = status.HTTP_404_NOT_FOUND


class PeriodoFechado(RegraNegocio):
    status_code = status.HTTP_409_CONFLICT


class LimiteAtingido(RegraNegocio):
    status_code = status.HTTP_403_FORBIDDEN


class HorarioIndisponivel(RegraNegocio):
    status_code = status.HTTP_409_CONFLICT


class PagamentoErro(RegraNegocio):
    status_code = status.HTTP_502_BAD_GATEWAY


def api_exception_handler(exc, context):
    """Handler do DRF: trata as regras de negócio e delega o resto."""
    if isinstance(exc, RegraNegocio):
        view = context.get("view")
        logger.info("[API] %s em %s: %s", type(exc).__name__, type(view).__name__, exc.mensagem)
        return Response(exc.as_payload(), status=exc.status_code)
    return exception_handler(exc, context)
