# core/middleware.py
from django.urls import Resolver404, resolve
from django.utils.deprecation import MiddlewareMixin

from empresas.models import Empresa


class EmpresaContextMiddleware(MiddlewareMixin):
    """
    Disponibiliza request.empresa / request.empresa_slug a partir do
    `empresa_slug` da rota. Não faz checagem de acesso (isso fica nas views).
    """

    def process_request(self, request):
        request.empresa = None
        request.empresa_slug = None

        try:
            match = resolve(request.path_info)
        except Resolver404:
            return

        slug = match.kwargs.get("empresa_slug")
        request.empresa_slug = slug
        if slug:
            request.empresa = Empresa.objects.filter(slug=slug).first()
