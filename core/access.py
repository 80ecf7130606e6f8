# core/access.py
from __future__ import annotations
from functools import wraps
from typing import Callable, Optional
from django.http import HttpRequest, JsonResponse
from django.shortcuts import get_object_or_404
from django.contrib.auth.views import redirect_to_login
from rest_framework import permissions

from empresas.models import Empresa, Membership
from core.permissions import is_global_admin, is_gestor, is_proprietario


def _wants_json(request: HttpRequest) -> bool:
    xrw = (request.headers.get("X-Requested-With") or "").lower()
    accept = (request.headers.get("Accept") or "").lower()
    return xrw == "xmlhttprequest" or "application/json" in accept


def get_membership(user, empresa) -> Optional[Membership]:
    if not (user and user.is_authenticated and empresa):
        return None
    return Membership.objects.filter(user=user, empresa=empresa, is_active=True).first()


def require_empresa_member(view: Callable) -> Callable:
    """Confere login + associação à empresa do empresa_slug; injeta request.empresa."""
    @wraps(view)
    def _wrapped(request: HttpRequest, empresa_slug: str, *args, **kwargs):
        if not request.user.is_authenticated:
            if _wants_json(request):
                return JsonResponse({"ok": False, "error": "unauthorized"}, status=401)
            return redirect_to_login(request.get_full_path())
        empresa = get_object_or_404(Empresa, slug=empresa_slug)
        mem = get_membership(request.user, empresa)
        if not mem and not is_global_admin(request.user):
            return JsonResponse({"ok": False, "error": "forbidden"}, status=403)
        request.empresa = empresa
        request.membership = mem
        return view(request, empresa_slug, *args, **kwargs)
    return _wrapped


# -------------------------------
# Permissões DRF
# -------------------------------
class IsEmpresaMember(permissions.BasePermission):
    """
    Usuário autenticado e membro ativo da empresa do `empresa_slug` da rota.
    Admin global enxerga qualquer empresa.
    """
    message = "Sem acesso a esta empresa."

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        slug = view.kwargs.get("empresa_slug")
        if not slug:
            return False
        empresa = get_object_or_404(Empresa, slug=slug)
        request.empresa = empresa
        request.membership = get_membership(request.user, empresa)
        return bool(request.membership) or is_global_admin(request.user)


class IsEmpresaGestor(IsEmpresaMember):
    message = "Apenas proprietário ou admin da empresa."

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return is_gestor(request.user, request.empresa) or is_global_admin(request.user)


class IsProprietario(IsEmpresaMember):
    message = "Apenas o proprietário da empresa."

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return is_proprietario(request.user, request.empresa)


class IsGlobalAdmin(permissions.BasePermission):
    message = "Apenas administradores globais."

    def has_permission(self, request, view):
        return is_global_admin(request.user)
