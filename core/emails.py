# core/emails.py
import logging
from html import escape
from typing import Iterable, Optional, Union

import requests
from django.conf import settings
from django.db import transaction

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = getattr(settings, "OUTBOUND_HTTP_TIMEOUT", 8)


def _post_resend(payload: dict) -> bool:
    api_key = getattr(settings, "RESEND_API_KEY", "")
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    try:
        resp = requests.post(settings.RESEND_API_URL, json=payload, headers=headers, timeout=DEFAULT_TIMEOUT)
        resp.raise_for_status()
        logger.info("[Email] '%s' enviado para %s", payload.get("subject"), payload.get("to"))
        return True
    except requests.RequestException as e:
        # não vazar api_key nos logs
        logger.exception("[Email] falha ao enviar '%s' para %s: %s", payload.get("subject"), payload.get("to"), e)
        return False


def enviar_email(
    para: Union[str, Iterable[str]],
    assunto: str,
    html: str,
    *,
    apos_commit: bool = True,
) -> bool:
    """
    Envia e-mail pela API do Resend.
    - Sem RESEND_API_KEY: só registra aviso e retorna False.
    - apos_commit=True: agenda o envio para depois do commit da transação atual
      (retorna True indicando que foi agendado).
    - apos_commit=False: envia na hora e retorna o resultado real; quem precisa
      informar emailSent chama assim, fora de transação.
    """
    if not getattr(settings, "RESEND_API_KEY", ""):
        logger.warning("[Email] RESEND_API_KEY não configurada; '%s' não enviado", assunto)
        return False

    destinatarios = [para] if isinstance(para, str) else list(para)
    payload = {
        "from": settings.EMAIL_FROM,
        "to": destinatarios,
        "subject": assunto,
        "html": html,
    }

    if apos_commit:
        transaction.on_commit(lambda: _post_resend(payload))
        return True
    return _post_resend(payload)


# -------------------------------
# Templates (HTML simples, inline)
# -------------------------------
def _layout(titulo: str, corpo: str) -> str:
    return (
        "<!DOCTYPE html><html><head><meta charset='utf-8'></head>"
        "<body style='font-family: Arial, sans-serif; line-height: 1.6; color: #333;'>"
        f"<div style='max-width: 600px; margin: 0 auto; padding: 20px;'><h2>{escape(titulo)}</h2>"
        f"{corpo}"
        "<p style='margin-top: 30px; font-size: 12px; color: #666;'>© TipoAgenda</p>"
        "</div></body></html>"
    )


def _link_login() -> str:
    return f"{settings.SITE_URL}/login"


def email_cadastro_empresa(nome: str, email: str, empresa: str) -> bool:
    corpo = (
        f"<p>Olá {escape(nome)},</p>"
        f"<p>A empresa <strong>{escape(empresa)}</strong> foi cadastrada com sucesso.</p>"
        "<p>Seu cadastro será analisado e você receberá um aviso quando a empresa for aprovada.</p>"
        f"<p><a href='{_link_login()}'>Acessar sistema</a></p>"
    )
    return enviar_email(email, "Cadastro realizado - TipoAgenda", _layout("Bem-vindo ao TipoAgenda!", corpo))


def email_aviso_nova_empresa(empresa: str, cnpj: str, email_responsavel: str) -> bool:
    corpo = (
        "<p>Uma nova empresa se cadastrou e aguarda aprovação.</p>"
        f"<p><strong>Empresa:</strong> {escape(empresa)}<br>"
        f"<strong>CNPJ:</strong> {escape(cnpj)}<br>"
        f"<strong>Responsável:</strong> {escape(email_responsavel)}</p>"
    )
    return enviar_email(settings.GLOBAL_ADMIN_EMAIL, "Nova empresa cadastrada", _layout("Nova empresa", corpo))


def email_boas_vindas_colaborador(nome: str, email: str, empresa: str, senha_temporaria: Optional[str]) -> bool:
    credenciais = (
        f"<p><strong>E-mail:</strong> {escape(email)}<br><strong>Senha temporária:</strong> {escape(senha_temporaria)}</p>"
        "<p>No primeiro acesso você deverá trocar a senha.</p>"
        if senha_temporaria
        else "<p>Use o seu acesso atual para entrar.</p>"
    )
    corpo = (
        f"<p>Olá {escape(nome)},</p>"
        f"<p>Você foi adicionado(a) como colaborador(a) da empresa <strong>{escape(empresa)}</strong>.</p>"
        f"{credenciais}<p><a href='{_link_login()}'>Acessar sistema</a></p>"
    )
    return enviar_email(email, f"Bem-vindo(a) à equipe {empresa}", _layout("Bem-vindo(a)!", corpo))


def email_convite_cliente(nome: str, email: str, empresa: str, senha_temporaria: str, *, apos_commit: bool = True) -> bool:
    corpo = (
        f"<p>Olá {escape(nome)},</p>"
        f"<p><strong>{escape(empresa)}</strong> criou um acesso para você agendar online.</p>"
        f"<p><strong>E-mail:</strong> {escape(email)}<br><strong>Senha temporária:</strong> {escape(senha_temporaria)}</p>"
        f"<p><a href='{_link_login()}'>Acessar sistema</a></p>"
    )
    return enviar_email(email, f"Seu acesso em {empresa}", _layout("Convite", corpo), apos_commit=apos_commit)


def email_cadastro_cliente(nome: str, email: str, *, apos_commit: bool = True) -> bool:
    corpo = (
        f"<p>Olá {escape(nome)},</p>"
        "<p>Seu cadastro foi realizado com sucesso. Use o e-mail abaixo e a senha escolhida no cadastro:</p>"
        f"<p><strong>E-mail:</strong> {escape(email)}</p>"
        f"<p><a href='{_link_login()}'>Acessar sistema</a></p>"
    )
    return enviar_email(email, "Bem-vindo ao TipoAgenda - Cadastro Realizado", _layout("Bem-vindo ao TipoAgenda!", corpo), apos_commit=apos_commit)


def email_contato(nome: str, email: str, telefone: str, empresa: str, mensagem: str, *, apos_commit: bool = True) -> bool:
    corpo = (
        f"<p><strong>Nome:</strong> {escape(nome)}<br>"
        f"<strong>E-mail:</strong> {escape(email)}<br>"
        f"<strong>Telefone:</strong> {escape(telefone or '-')}<br>"
        f"<strong>Empresa:</strong> {escape(empresa or '-')}</p>"
        f"<p>{escape(mensagem)}</p>"
    )
    return enviar_email(settings.GLOBAL_ADMIN_EMAIL, f"Solicitação de contato - {nome}", _layout("Nova solicitação de contato", corpo), apos_commit=apos_commit)


def email_ativacao_whatsapp(empresa: str, plano: str) -> bool:
    corpo = (
        f"<p>A empresa <strong>{escape(empresa)}</strong> ativou o plano <strong>{escape(plano)}</strong>,"
        " que inclui mensagens de WhatsApp.</p><p>Configure o provedor para esta empresa.</p>"
    )
    return enviar_email(settings.GLOBAL_ADMIN_EMAIL, f"Plano com WhatsApp ativado - {empresa}", _layout("Ativação de WhatsApp", corpo))


def email_redefinicao_senha(nome: str, email: str, link: str) -> bool:
    corpo = (
        f"<p>Olá {escape(nome)},</p>"
        "<p>Recebemos um pedido para redefinir a sua senha. Use o link abaixo para escolher uma nova:</p>"
        f"<p><a href='{escape(link)}'>Redefinir senha</a></p>"
        "<p>Se você não fez o pedido, ignore este e-mail.</p>"
    )
    return enviar_email(email, "Redefinição de senha - TipoAgenda", _layout("Redefinição de senha", corpo), apos_commit=False)
