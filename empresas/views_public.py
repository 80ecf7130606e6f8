# empresas/views_public.py
from __future__ import annotations

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET

from servicos.models import Servico

from .models import Colaborador, Empresa


def _empresa_publica(empresa_slug: str) -> Empresa:
    return get_object_or_404(Empresa, slug=empresa_slug, ativo=True, aprovada=True)


def _servicos_da_empresa(empresa: Empresa):
    return Servico.objects.filter(empresa=empresa, ativo=True).order_by("nome")


def _colaboradores_da_empresa(empresa: Empresa, servico_id: int | None = None):
    qs = Colaborador.objects.filter(empresa=empresa, ativo=True)
    if servico_id:
        qs = qs.filter(servicos__servico_id=servico_id, servicos__ativo=True)
    return qs.distinct().order_by("nome")


@require_GET
def empresa_publica(request, empresa_slug):
    """
    Dados da página pública de agendamento:
      GET /pub/<empresa_slug>/            -> empresa + serviços + colaboradores
      GET /pub/<empresa_slug>/?servico=ID -> colaboradores que fazem o serviço
    """
    empresa = _empresa_publica(empresa_slug)
    servico_id = (request.GET.get("servico") or "").strip()
    servico_id = int(servico_id) if servico_id.isdigit() else None

    return JsonResponse({
        "empresa": {
            "nome": empresa.nome,
            "slug": empresa.slug,
            "telefone": empresa.telefone,
            "endereco": ", ".join(p for p in (empresa.endereco, empresa.numero, empresa.bairro) if p),
            "cidade": empresa.cidade,
            "estado": empresa.estado,
            "segmento": empresa.segmento.nome if empresa.segmento_id else None,
        },
        "servicos": [
            {
                "id": s.id,
                "nome": s.nome,
                "categoria": s.categoria,
                "preco": f"{s.preco:.2f}",
                "duracao_min": s.duracao_min,
                "descricao": s.descricao or "",
            }
            for s in _servicos_da_empresa(empresa)
        ],
        "colaboradores": [
            {"id": c.id, "nome": c.nome_completo}
            for c in _colaboradores_da_empresa(empresa, servico_id)
        ],
    })


@require_GET
def empresas_publicas(request):
    """Lista de empresas ativas/aprovadas (seleção de empresa pelo cliente)."""
    qs = Empresa.objects.filter(ativo=True, aprovada=True).select_related("segmento").order_by("nome")
    busca = (request.GET.get("q") or "").strip()
    if busca:
        qs = qs.filter(nome__icontains=busca)
    return JsonResponse({
        "empresas": [
            {
                "nome": e.nome,
                "slug": e.slug,
                "cidade": e.cidade,
                "segmento": e.segmento.nome if e.segmento_id else None,
            }
            for e in qs[:100]
        ]
    })
