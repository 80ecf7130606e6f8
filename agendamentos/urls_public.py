# agendamentos/urls_public.py
from django.urls import path

from clientes.api_views import ClienteConvidadoView
from servicos.views_public import servicos_publicos

from . import api_views, views_public

app_name = "public_agenda"

urlpatterns = [
    path("<slug:empresa_slug>/servicos/", servicos_publicos, name="servicos"),
    path("<slug:empresa_slug>/horarios/", views_public.horarios_publicos, name="horarios"),
    path("<slug:empresa_slug>/convidado/", ClienteConvidadoView.as_view(), name="convidado"),
    path("<slug:empresa_slug>/agendar/", api_views.ReservaVisitanteView.as_view(), name="agendar"),
]
