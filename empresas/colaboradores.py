# empresas/colaboradores.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping

from django.contrib.auth import get_user_model
from django.db import transaction

from assinaturas.models import TipoLimite
from assinaturas.services import exigir_limite
from core.contacts import normalize_phone
from core.emails import email_boas_vindas_colaborador
from core.exceptions import RegraNegocio

from .models import (
    Colaborador,
    ColaboradorServico,
    Membership,
    MembershipRole,
    PerfilUsuario,
    TipoComissao,
    TipoUsuario,
)
from .utils import gerar_senha_temporaria

logger = logging.getLogger(__name__)

CAMPOS_OBRIGATORIOS = ("firstName", "lastName", "email", "phoneNumber", "hireDate")


def convidar_colaborador(empresa, dados: Mapping, por=None) -> dict:
    """
    Cria o colaborador e o acesso dele:
      - reaproveita usuário existente pelo e-mail;
      - senão cria usuário com senha temporária (troca obrigatória no 1º login).
    Respeita o limite de colaboradores do plano.
    """
    faltando = [c for c in CAMPOS_OBRIGATORIOS if not dados.get(c)]
    if faltando:
        raise RegraNegocio("Missing required collaborator data", missing=faltando)

    email = str(dados["email"]).strip().lower()
    if Colaborador.objects.filter(empresa=empresa, email__iexact=email).exists():
        raise RegraNegocio("Já existe um colaborador com este e-mail nesta empresa.")

    ativo = dados.get("status", "ativo") not in ("inativo", False)
    if ativo:
        exigir_limite(empresa, TipoLimite.COLABORADORES)

    User = get_user_model()
    senha = None
    with transaction.atomic():
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            senha = gerar_senha_temporaria()
            user = User.objects.create_user(
                username=email,
                email=email,
                password=senha,
                first_name=str(dados["firstName"])[:150],
                last_name=str(dados["lastName"])[:150],
            )
            PerfilUsuario.objects.create(
                user=user,
                tipo=TipoUsuario.COLABORADOR,
                nome=f"{dados['firstName']} {dados['lastName']}".strip(),
                telefone=normalize_phone(dados.get("phoneNumber")),
                senha_temporaria=True,
            )

        colaborador = Colaborador.objects.create(
            empresa=empresa,
            user=user,
            nome=str(dados["firstName"]).strip(),
            sobrenome=str(dados["lastName"]).strip(),
            email=email,
            telefone=normalize_phone(dados.get("phoneNumber")),
            data_admissao=dados["hireDate"],
            percentual_comissao=Decimal(str(dados.get("commissionPercentage") or 0)),
            ativo=ativo,
        )

        # admin convidado por proprietário; padrão é colaborador
        role = dados.get("role") or MembershipRole.COLABORADOR
        if role not in MembershipRole.values:
            raise RegraNegocio("Papel inválido.")
        mem, created = Membership.objects.get_or_create(
            user=user,
            empresa=empresa,
            defaults={"role": role, "is_active": ativo},
        )
        if not created and mem.role == MembershipRole.COLABORADOR and role != mem.role:
            mem.role = role
            mem.save(update_fields=["role"])

        email_boas_vindas_colaborador(colaborador.nome_completo, email, empresa.nome, senha)

    logger.info("[Colaborador] %s criado na empresa %s por %s", colaborador.pk, empresa.pk, getattr(por, "pk", None))
    if senha:
        mensagem = "Convite enviado com sucesso para o novo colaborador."
    else:
        mensagem = "Colaborador vinculado ao usuário existente."
    return {"colaborador": colaborador, "mensagem": mensagem, "novo_usuario": senha is not None}


def definir_servico(colaborador: Colaborador, servico, tipo_comissao=TipoComissao.PERCENT, valor_comissao=0, ativo=True):
    if servico.empresa_id != colaborador.empresa_id:
        raise RegraNegocio("Serviço de outra empresa.")
    if tipo_comissao not in TipoComissao.values:
        raise RegraNegocio("Tipo de comissão inválido.")
    valor = Decimal(str(valor_comissao or 0))
    if valor < 0 or (tipo_comissao == TipoComissao.PERCENT and valor > 100):
        raise RegraNegocio("Valor de comissão inválido.")
    obj, _ = ColaboradorServico.objects.update_or_create(
        colaborador=colaborador,
        servico=servico,
        defaults={"tipo_comissao": tipo_comissao, "valor_comissao": valor, "ativo": ativo},
    )
    return obj
