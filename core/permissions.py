# core/permissions.py
from typing import Optional

from empresas.models import (
    Colaborador,
    GESTORES,
    Membership,
    MembershipRole,
    PerfilUsuario,
    TipoUsuario,
)


def _autenticado(user) -> bool:
    return bool(user and user.is_authenticated)


def tipo_usuario(user) -> Optional[str]:
    if not _autenticado(user):
        return None
    perfil = PerfilUsuario.objects.filter(user=user).values_list("tipo", flat=True).first()
    return perfil


def is_global_admin(user) -> bool:
    if not _autenticado(user):
        return False
    return user.is_superuser or tipo_usuario(user) == TipoUsuario.GLOBAL_ADMIN


def role_for(user, empresa) -> Optional[str]:
    if not _autenticado(user) or not empresa:
        return None
    return (
        Membership.objects.filter(user=user, empresa=empresa, is_active=True)
        .values_list("role", flat=True)
        .first()
    )


def is_proprietario(user, empresa) -> bool:
    if not _autenticado(user) or not empresa:
        return False
    if getattr(empresa, "proprietario_id", None) == user.id:
        return True
    return role_for(user, empresa) == MembershipRole.PROPRIETARIO


def is_gestor(user, empresa) -> bool:
    """Proprietário ou admin da empresa."""
    return is_proprietario(user, empresa) or role_for(user, empresa) in GESTORES


def is_membro(user, empresa) -> bool:
    return role_for(user, empresa) is not None


def colaborador_do_usuario(user, empresa) -> Optional[Colaborador]:
    if not _autenticado(user) or not empresa:
        return None
    return Colaborador.objects.filter(user=user, empresa=empresa, ativo=True).first()


def papeis(user, empresa=None) -> dict:
    """Resumo de papéis do usuário (usado pelo endpoint /me)."""
    tipo = tipo_usuario(user)
    role = role_for(user, empresa)
    return {
        "tipo": tipo,
        "is_global_admin": is_global_admin(user),
        "is_proprietario": is_proprietario(user, empresa) if empresa else tipo == TipoUsuario.PROPRIETARIO,
        "is_admin": role == MembershipRole.ADMIN,
        "is_colaborador": role == MembershipRole.COLABORADOR,
        "is_cliente": tipo == TipoUsuario.CLIENTE,
    }
