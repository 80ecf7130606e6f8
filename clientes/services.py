# clientes/services.py
from __future__ import annotations

import logging
from typing import Mapping, Optional

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q

from core.contacts import normalize_msisdn_br
from core.emails import email_cadastro_cliente, email_convite_cliente
from core.exceptions import RegraNegocio
from empresas.models import PerfilUsuario, TipoUsuario
from empresas.utils import gerar_senha_temporaria

from .models import Cliente

logger = logging.getLogger(__name__)

MSG_EMAIL_DUPLICADO = "Já existe um usuário cadastrado com este e-mail. Por favor, use outro e-mail."
NOME_CONVIDADO = "Cliente convidado"


def cliente_convidado_padrao(empresa, nome: str) -> dict:
    """
    Cliente "coringa" da empresa para agendamentos sem cadastro.
    O nome digitado pelo visitante vai como apelido no agendamento.
    """
    nome = (nome or "").strip()
    if not nome:
        raise RegraNegocio("Name is required")

    cliente = Cliente.objects.filter(empresa=empresa, convidado=True).first()
    if cliente is None:
        try:
            with transaction.atomic():
                cliente = Cliente.objects.create(
                    empresa=empresa,
                    nome=NOME_CONVIDADO,
                    convidado=True,
                    observacoes="Cliente padrão para agendamentos de visitantes",
                )
        except IntegrityError:
            # outro request criou ao mesmo tempo
            cliente = Cliente.objects.get(empresa=empresa, convidado=True)
    return {"clientId": cliente.pk, "clientNickname": nome}


def find_or_create_cliente(empresa, nome: Optional[str] = None, telefone: Optional[str] = None) -> Cliente:
    """
    Resolve o cliente da empresa pelo telefone (exato, depois pelos últimos
    8 dígitos em cadastros antigos), depois pelo nome; senão cria.
    O telefone encontrado por sufixo é regravado já normalizado.
    """
    tel = normalize_msisdn_br(telefone)
    nome = (nome or "").strip()
    qs = Cliente.objects.filter(empresa=empresa, convidado=False)

    cliente = None
    if tel:
        cliente = qs.filter(telefone=tel).first() or qs.filter(telefone__endswith=tel[-8:]).first()
    if cliente is None and nome:
        por_nome = qs.filter(nome__iexact=nome)
        if tel:
            por_nome = por_nome.filter(Q(telefone__isnull=True) | Q(telefone="") | Q(telefone__endswith=tel[-4:]))
        cliente = por_nome.first()

    if cliente is None:
        cliente = Cliente.objects.create(empresa=empresa, nome=nome or tel or "Cliente", telefone=tel)
        logger.info("[Cliente] cliente %s criado para empresa=%s", cliente.pk, empresa.pk)
        return cliente

    campos = []
    if tel and cliente.telefone != tel:
        cliente.telefone = tel
        campos.append("telefone")
    if nome and not cliente.nome:
        cliente.nome = nome
        campos.append("nome")
    if campos:
        cliente.save(update_fields=campos + ["updated_at"])
    return cliente


def _nome_completo(dados: Mapping) -> str:
    return f"{(dados.get('firstName') or '').strip()} {(dados.get('lastName') or '').strip()}".strip()


def cadastrar_cliente(dados: Mapping) -> dict:
    """Auto-cadastro público: usuário + perfil CLIENTE + cliente sem empresa."""
    faltando = [c for c in ("firstName", "lastName", "email", "password") if not dados.get(c)]
    if faltando:
        raise RegraNegocio("Missing required fields", missing=faltando)

    email = str(dados["email"]).strip().lower()
    User = get_user_model()
    if User.objects.filter(email__iexact=email).exists():
        raise RegraNegocio(MSG_EMAIL_DUPLICADO)

    nome = _nome_completo(dados)
    telefone = normalize_msisdn_br(dados.get("phoneNumber"))
    with transaction.atomic():
        user = User.objects.create_user(
            username=email,
            email=email,
            password=dados["password"],
            first_name=str(dados["firstName"]).strip()[:150],
            last_name=str(dados["lastName"]).strip()[:150],
        )
        PerfilUsuario.objects.create(user=user, tipo=TipoUsuario.CLIENTE, nome=nome, telefone=telefone or "")
        cliente = Cliente.objects.create(
            empresa=None,
            user=user,
            nome=nome,
            email=email,
            telefone=telefone,
            data_nascimento=dados.get("birthDate") or None,
        )

    enviado = email_cadastro_cliente(nome, email, apos_commit=False)
    logger.info("[Cliente] auto-cadastro user=%s cliente=%s email_enviado=%s", user.pk, cliente.pk, enviado)
    return {
        "message": "Cadastro realizado com sucesso!",
        "emailSent": enviado,
        "emailError": None if enviado else "Não foi possível enviar o e-mail de boas-vindas.",
        "cliente": cliente,
    }


def convidar_cliente(empresa, dados: Mapping) -> dict:
    """Gestor cria o acesso do cliente com senha temporária e envia por e-mail."""
    nome = (dados.get("nome") or _nome_completo(dados)).strip()
    email = str(dados.get("email") or "").strip().lower()
    if not nome or not email:
        raise RegraNegocio("Nome e e-mail são obrigatórios.")

    User = get_user_model()
    if User.objects.filter(email__iexact=email).exists():
        raise RegraNegocio(MSG_EMAIL_DUPLICADO)

    telefone = normalize_msisdn_br(dados.get("telefone") or dados.get("phoneNumber"))
    if telefone and Cliente.objects.filter(empresa=empresa, telefone=telefone).exists():
        raise RegraNegocio("Já existe um cliente com este telefone nesta empresa.")

    senha = gerar_senha_temporaria()
    with transaction.atomic():
        user = User.objects.create_user(username=email, email=email, password=senha)
        PerfilUsuario.objects.create(
            user=user,
            tipo=TipoUsuario.CLIENTE,
            nome=nome,
            telefone=telefone or "",
            senha_temporaria=True,
        )
        cliente = Cliente.objects.create(
            empresa=empresa,
            user=user,
            nome=nome,
            email=email,
            telefone=telefone,
            data_nascimento=dados.get("data_nascimento") or None,
            observacoes=dados.get("observacoes") or None,
        )

    enviado = email_convite_cliente(nome, email, empresa.nome, senha, apos_commit=False)
    logger.info("[Cliente] convite empresa=%s cliente=%s", empresa.pk, cliente.pk)
    return {"cliente": cliente, "emailSent": enviado}


def reenviar_convite(cliente: Cliente) -> bool:
    if not cliente.user_id or not cliente.email:
        raise RegraNegocio("Cliente sem acesso cadastrado.")
    senha = gerar_senha_temporaria()
    with transaction.atomic():
        user = cliente.user
        user.set_password(senha)
        user.save(update_fields=["password"])
        PerfilUsuario.objects.update_or_create(
            user=user,
            defaults={"senha_temporaria": True},
            create_defaults={"tipo": TipoUsuario.CLIENTE, "nome": cliente.nome, "senha_temporaria": True},
        )
    empresa_nome = cliente.empresa.nome if cliente.empresa_id else ""
    return email_convite_cliente(cliente.nome, cliente.email, empresa_nome, senha, apos_commit=False)
