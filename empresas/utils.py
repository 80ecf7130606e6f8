# empresas/utils.py
import secrets
import string

from django.db import transaction

from .models import Membership, MembershipRole

_ALFABETO = string.ascii_letters + string.digits


def gerar_senha_temporaria(tamanho: int = 10) -> str:
    return "".join(secrets.choice(_ALFABETO) for _ in range(tamanho))


def get_default_membership_for(user):
    """Membership primária; senão a primeira ativa (PROPRIETARIO > ADMIN > COLABORADOR)."""
    qs = Membership.objects.select_related("empresa").filter(user=user, is_active=True)
    mem = qs.filter(is_primary=True).first()
    if mem:
        return mem
    ordem = {MembershipRole.PROPRIETARIO: 0, MembershipRole.ADMIN: 1, MembershipRole.COLABORADOR: 2}
    return min(qs, key=lambda m: (ordem.get(m.role, 9), m.pk), default=None)


def empresa_primaria(user):
    mem = get_default_membership_for(user)
    return mem.empresa if mem else None


@transaction.atomic
def definir_empresa_primaria(user, empresa) -> Membership:
    mem = Membership.objects.select_for_update().get(user=user, empresa=empresa, is_active=True)
    Membership.objects.filter(user=user, is_primary=True).exclude(pk=mem.pk).update(is_primary=False)
    if not mem.is_primary:
        mem.is_primary = True
        mem.save(update_fields=["is_primary"])
    return mem
