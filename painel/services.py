# painel/services.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping

from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db.models import Sum

from assinaturas.models import AssinaturaEmpresa, StatusAssinatura, TentativaPagamento
from core.emails import email_contato
from core.exceptions import RegraNegocio
from empresas.models import Empresa

from .models import ContatoSolicitacao

logger = logging.getLogger(__name__)


def registrar_contato(dados: Mapping) -> dict:
    """Formulário público "fale conosco": grava e avisa o admin global."""
    nome = (dados.get("nome") or "").strip()
    email = (dados.get("email") or "").strip().lower()
    mensagem = (dados.get("mensagem") or "").strip()
    faltando = [c for c, v in (("nome", nome), ("email", email), ("mensagem", mensagem)) if not v]
    if faltando:
        raise RegraNegocio("Nome, e-mail e mensagem são obrigatórios.", missing=faltando)
    try:
        validate_email(email)
    except ValidationError:
        raise RegraNegocio("E-mail inválido.")

    contato = ContatoSolicitacao.objects.create(
        nome=nome[:120],
        email=email,
        telefone=(dados.get("telefone") or "").strip()[:20],
        empresa_nome=(dados.get("empresa") or dados.get("empresa_nome") or "").strip()[:120],
        mensagem=mensagem,
    )
    enviado = email_contato(
        contato.nome, contato.email, contato.telefone, contato.empresa_nome, contato.mensagem, apos_commit=False
    )
    logger.info("[Contato] solicitação=%s email_enviado=%s", contato.pk, enviado)
    return {"contato": contato, "emailSent": enviado}


def resumo_admin_global() -> dict:
    empresas = Empresa.objects.all()
    receita = (
        TentativaPagamento.objects.filter(status=TentativaPagamento.Status.APPROVED)
        .aggregate(t=Sum("valor"))["t"]
        or Decimal("0.00")
    )
    return {
        "empresas": {
            "total": empresas.count(),
            "ativas": empresas.filter(ativo=True, aprovada=True).count(),
            "pendentes_aprovacao": empresas.filter(aprovada=False).count(),
        },
        "assinaturas_ativas": AssinaturaEmpresa.objects.filter(status=StatusAssinatura.ACTIVE).count(),
        "receita_pagamentos": receita,
        "contatos_novos": ContatoSolicitacao.objects.filter(status=ContatoSolicitacao.Status.NOVA).count(),
    }
