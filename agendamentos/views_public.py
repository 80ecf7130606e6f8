# agendamentos/views_public.py
from __future__ import annotations

from calendar import monthrange
from datetime import date
from typing import List, Optional

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_GET

from core.exceptions import RegraNegocio
from empresas.models import Colaborador, Empresa
from servicos.models import Servico

from .scheduling import horarios_disponiveis


def _safe_int(s: str | None) -> Optional[int]:
    try:
        return int((s or "").strip())
    except ValueError:
        return None


def _ids(raw: str | None) -> List[int]:
    return [i for i in (_safe_int(p) for p in (raw or "").split(",")) if i]


@require_GET
def horarios_publicos(request, empresa_slug):
    """
    Disponibilidade pública em JSON.

    - Dias com vaga no mês:
      GET ?mode=days&colaborador=<id>&servicos=1,2&year=YYYY&month=MM
      -> { "days": [1,5,12,...] }

    - Slots de um dia:
      GET ?colaborador=<id>&servicos=1,2&date=YYYY-MM-DD
      -> { "slots": ["09:00 às 09:30", ...] }
    """
    empresa = get_object_or_404(Empresa, slug=empresa_slug, ativo=True, aprovada=True)

    colab_id = _safe_int(request.GET.get("colaborador"))
    if not colab_id:
        return JsonResponse({"error": "colaborador requerido"}, status=400)
    colaborador = get_object_or_404(Colaborador, pk=colab_id, empresa=empresa, ativo=True)

    ids = _ids(request.GET.get("servicos"))
    if not ids:
        return JsonResponse({"error": "servicos requerido"}, status=400)
    servicos = list(Servico.objects.filter(pk__in=ids, empresa=empresa, ativo=True))
    if len(servicos) != len(set(ids)):
        return JsonResponse({"error": "Serviço inválido ou inativo"}, status=400)
    duracao = sum(s.duracao_min for s in servicos)

    mode = (request.GET.get("mode") or "").strip().lower()
    if mode == "days":
        year = _safe_int(request.GET.get("year"))
        month = _safe_int(request.GET.get("month"))
        if not year or not month or not 1 <= month <= 12:
            return JsonResponse({"error": "year e month são requeridos"}, status=400)
        _, last_day = monthrange(year, month)
        today = timezone.localdate()
        days_out: List[int] = []
        for d in range(1, last_day + 1):
            dt = date(year, month, d)
            if dt < today:
                continue
            if horarios_disponiveis(colaborador, dt, duracao):
                days_out.append(d)
        return JsonResponse({"days": days_out})

    date_str = (request.GET.get("date") or "").strip()
    if not date_str:
        return JsonResponse({"error": "date requerido (YYYY-MM-DD)"}, status=400)
    try:
        dt = date.fromisoformat(date_str)
    except ValueError:
        return JsonResponse({"error": "date inválido"}, status=400)

    try:
        slots = horarios_disponiveis(colaborador, dt, duracao)
    except RegraNegocio as e:
        return JsonResponse({"error": e.mensagem}, status=e.status_code)
    return JsonResponse({"slots": slots, "duracao_min": duracao})
