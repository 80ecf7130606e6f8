# empresas/signals.py
from __future__ import annotations

from django.db import transaction
from django.db.models.signals import post_save, pre_delete
from django.dispatch import receiver

from .models import (
    Colaborador,
    Empresa,
    Membership,
    MembershipRole,
)

# ============================================================
# Helpers
# ============================================================

def _update_instance_fields(instance, **fields):
    """
    Atualiza apenas campos alterados, evitando loops de sinal e saves desnecessários.
    """
    to_update = {k: v for k, v in fields.items() if getattr(instance, k, object()) != v}
    if to_update:
        for k, v in to_update.items():
            setattr(instance, k, v)
        instance.save(update_fields=list(to_update.keys()))
        return True
    return False


# ============================================================
# 1) Ao criar uma Empresa, garanta a membership PROPRIETARIO
# ============================================================

@receiver(post_save, sender=Empresa)
def ensure_owner_membership(sender, instance: Empresa, created: bool, **kwargs):
    if not created or not instance.proprietario_id:
        return

    def _do():
        Membership.objects.get_or_create(
            user_id=instance.proprietario_id,
            empresa=instance,
            defaults={"role": MembershipRole.PROPRIETARIO, "is_active": True},
        )

    # Se a criação vier dentro de transação, só cria após commit.
    transaction.on_commit(_do)


# ============================================================
# 2) Colaborador -> Membership (COLABORADOR)
#    - espelha colaborador.ativo em membership.is_active
#    - NUNCA mexe em PROPRIETARIO / ADMIN
# ============================================================

@receiver(post_save, sender=Colaborador)
def sync_membership_from_colaborador(sender, instance: Colaborador, created: bool, **kwargs):
    if not instance.user_id:
        return

    m = Membership.objects.filter(user_id=instance.user_id, empresa_id=instance.empresa_id).first()
    if m is None:
        Membership.objects.create(
            user_id=instance.user_id,
            empresa_id=instance.empresa_id,
            role=MembershipRole.COLABORADOR,
            is_active=instance.ativo,
        )
        return

    if m.role == MembershipRole.COLABORADOR:
        _update_instance_fields(m, is_active=instance.ativo)


@receiver(pre_delete, sender=Colaborador)
def delete_membership_when_colaborador_deleted(sender, instance: Colaborador, **kwargs):
    """Remove a Membership associada SOMENTE se for COLABORADOR."""
    if not instance.user_id:
        return
    Membership.objects.filter(
        user_id=instance.user_id,
        empresa_id=instance.empresa_id,
        role=MembershipRole.COLABORADOR,
    ).delete()
