# empresas/recuperacao.py
from __future__ import annotations

import logging
from urllib.parse import urlencode

from django.conf import settings
from django.contrib.auth import get_user_model, password_validation
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework.authtoken.models import Token

from core.emails import email_redefinicao_senha
from core.exceptions import RegraNegocio

from .models import PerfilUsuario

logger = logging.getLogger(__name__)

MSG_INSTRUCOES = "Se o e-mail estiver cadastrado, enviaremos as instruções de redefinição de senha."
MSG_LINK_INVALIDO = "Link de redefinição inválido ou expirado."


def link_redefinicao(user) -> str:
    params = urlencode({
        "uid": urlsafe_base64_encode(force_bytes(user.pk)),
        "token": default_token_generator.make_token(user),
    })
    return f"{settings.SITE_URL}/reset-password?{params}"


def solicitar_redefinicao(email: str) -> dict:
    """
    Envia o link de redefinição. A resposta é a mesma exista ou não o e-mail,
    para não revelar quem tem cadastro.
    """
    email = (email or "").strip().lower()
    if not email:
        raise RegraNegocio("E-mail é obrigatório.")

    User = get_user_model()
    user = User.objects.filter(email__iexact=email, is_active=True).first()
    if user is None:
        logger.info("[Senha] redefinição pedida para e-mail sem cadastro")
        return {"message": MSG_INSTRUCOES}

    nome = user.get_full_name() or email
    enviado = email_redefinicao_senha(nome, user.email, link_redefinicao(user))
    logger.info("[Senha] link de redefinição user=%s email_enviado=%s", user.pk, enviado)
    return {"message": MSG_INSTRUCOES}


def _usuario_do_uid(uidb64: str):
    User = get_user_model()
    try:
        pk = force_str(urlsafe_base64_decode(uidb64 or ""))
        return User.objects.get(pk=pk)
    except (TypeError, ValueError, OverflowError, User.DoesNotExist):
        return None


def confirmar_redefinicao(uidb64: str, token: str, senha: str, confirmacao: str):
    user = _usuario_do_uid(uidb64)
    if user is None or not default_token_generator.check_token(user, token or ""):
        raise RegraNegocio(MSG_LINK_INVALIDO)
    if not senha or len(senha) < 6:
        raise RegraNegocio("A nova senha deve ter pelo menos 6 caracteres.")
    if senha != confirmacao:
        raise RegraNegocio("As senhas não coincidem.")
    try:
        password_validation.validate_password(senha, user)
    except ValidationError as e:
        raise RegraNegocio(" ".join(e.messages))

    with transaction.atomic():
        # a troca de hash invalida o token usado
        user.set_password(senha)
        user.save(update_fields=["password"])
        PerfilUsuario.objects.filter(user=user).update(senha_temporaria=False)
        Token.objects.filter(user=user).delete()
    logger.info("[Senha] senha redefinida user=%s", user.pk)
    return user
