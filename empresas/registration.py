# empresas/registration.py
from __future__ import annotations

import logging
from typing import Mapping

from django.contrib.auth import get_user_model
from django.db import transaction

from core.contacts import normalize_phone
from core.emails import email_aviso_nova_empresa, email_cadastro_empresa
from core.exceptions import RegraNegocio
from core.validation import cnpj_valido, somente_digitos

from .models import (
    Contrato,
    Empresa,
    Membership,
    MembershipRole,
    PerfilUsuario,
    Segmento,
    TipoUsuario,
)

logger = logging.getLogger(__name__)

CAMPOS_OBRIGATORIOS = ("email", "password", "companyName", "cnpj", "segmentType")


def _segmento(valor) -> Segmento:
    seg = None
    if str(valor).isdigit():
        seg = Segmento.objects.filter(pk=int(valor), ativo=True).first()
    if seg is None:
        seg = Segmento.objects.filter(nome__iexact=str(valor).strip(), ativo=True).first()
    if seg is None:
        raise RegraNegocio("Segmento inválido.")
    return seg


def registrar_empresa_e_usuario(dados: Mapping) -> dict:
    """
    Cadastro público: cria usuário proprietário + empresa + vínculo primário.
    Tudo ou nada; e-mails saem só após o commit.
    """
    faltando = [c for c in CAMPOS_OBRIGATORIOS if not dados.get(c)]
    if faltando:
        raise RegraNegocio("Missing required data for user or company.", missing=faltando)

    email = str(dados["email"]).strip().lower()
    cnpj = somente_digitos(dados["cnpj"])
    if not cnpj_valido(cnpj):
        raise RegraNegocio("CNPJ inválido.")

    contrato = Contrato.vigente()
    if contrato is None:
        raise RegraNegocio("Nenhum contrato ativo encontrado. Não é possível cadastrar a empresa.")

    User = get_user_model()
    if User.objects.filter(email__iexact=email).exists():
        raise RegraNegocio("Já existe um usuário cadastrado com este e-mail.")
    if Empresa.objects.filter(cnpj=cnpj).exists():
        raise RegraNegocio("Já existe uma empresa cadastrada com este CNPJ.")

    segmento = _segmento(dados["segmentType"])
    nome_usuario = f"{dados.get('firstName') or ''} {dados.get('lastName') or ''}".strip()

    with transaction.atomic():
        user = User.objects.create_user(
            username=email,
            email=email,
            password=dados["password"],
            first_name=(dados.get("firstName") or "")[:150],
            last_name=(dados.get("lastName") or "")[:150],
        )
        PerfilUsuario.objects.update_or_create(
            user=user,
            defaults={
                "tipo": TipoUsuario.PROPRIETARIO,
                "nome": nome_usuario,
                "telefone": normalize_phone(dados.get("phoneNumber")),
            },
        )
        empresa = Empresa.objects.create(
            proprietario=user,
            nome=str(dados["companyName"]).strip(),
            razao_social=(dados.get("razaoSocial") or "").strip(),
            cnpj=cnpj,
            email=(dados.get("companyEmail") or email).strip().lower(),
            telefone=normalize_phone(dados.get("companyPhoneNumber")),
            cep=somente_digitos(dados.get("zipCode"))[:8],
            endereco=(dados.get("address") or "").strip(),
            numero=(dados.get("number") or "").strip(),
            bairro=(dados.get("neighborhood") or "").strip(),
            cidade=(dados.get("city") or "").strip(),
            estado=(dados.get("state") or "").strip().upper()[:2],
            segmento=segmento,
            contrato=contrato,
            contrato_aceito=True,
            ativo=True,
        )
        Membership.objects.filter(user=user, is_primary=True).update(is_primary=False)
        membership, _ = Membership.objects.update_or_create(
            user=user,
            empresa=empresa,
            defaults={"role": MembershipRole.PROPRIETARIO, "is_active": True, "is_primary": True},
        )

        email_cadastro_empresa(nome_usuario or email, email, empresa.nome)
        email_aviso_nova_empresa(empresa.nome, cnpj, email)

    logger.info("[Cadastro] empresa %s (%s) criada por %s", empresa.pk, empresa.slug, user.pk)
    return {"user": user, "empresa": empresa, "membership": membership}
