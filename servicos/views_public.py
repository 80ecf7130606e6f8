# servicos/views_public.py
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET

from empresas.models import Empresa

from .models import Servico


@require_GET
def servicos_publicos(request, empresa_slug):
    """GET /pub/<empresa_slug>/servicos/ -> serviços ativos (opcional ?categoria=)."""
    empresa = get_object_or_404(Empresa, slug=empresa_slug, ativo=True, aprovada=True)
    qs = Servico.objects.filter(empresa=empresa, ativo=True)
    categoria = (request.GET.get("categoria") or "").strip()
    if categoria:
        qs = qs.filter(categoria=categoria)
    return JsonResponse({
        "servicos": [
            {
                "id": s.id,
                "nome": s.nome,
                "categoria": s.categoria,
                "preco": f"{s.preco:.2f}",
                "duracao_min": s.duracao_min,
                "descricao": s.descricao or "",
            }
            for s in qs.order_by("nome")
        ]
    })
