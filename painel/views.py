# painel/views.py
import logging

from django.http import HttpResponse, JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET

from core.access import require_empresa_member
from core.permissions import is_gestor

from .backup import backup_json

logger = logging.getLogger(__name__)


@require_GET
@require_empresa_member
def backup_download(request, empresa_slug: str):
    """Baixa o backup JSON da empresa (proprietário/admin)."""
    if not is_gestor(request.user, request.empresa):
        return JsonResponse({"ok": False, "error": "forbidden"}, status=403)
    conteudo = backup_json(request.empresa)
    nome = f"backup-{request.empresa.slug}-{timezone.localdate():%Y%m%d}.json"
    resp = HttpResponse(conteudo, content_type="application/json; charset=utf-8")
    resp["Content-Disposition"] = f'attachment; filename="{nome}"'
    logger.info("[Backup] empresa=%s user=%s", request.empresa.pk, request.user.pk)
    return resp
