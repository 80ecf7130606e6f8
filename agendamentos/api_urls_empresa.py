# agendamentos/api_urls_empresa.py
from django.urls import path

from . import api_views

app_name = "api_agenda_empresa"

urlpatterns = [
    path("", api_views.AgendaEmpresaView.as_view(), name="agenda"),
    path("minha-agenda/", api_views.MinhaAgendaView.as_view(), name="minha_agenda"),
    path("notificacoes/", api_views.NotificacoesView.as_view(), name="notificacoes"),
    path("colaboradores/<int:colab_id>/jornadas/", api_views.JornadaListView.as_view(), name="jornadas"),
    path("colaboradores/<int:colab_id>/jornadas/<int:pk>/", api_views.JornadaDetailView.as_view(), name="jornada_detail"),
    path("colaboradores/<int:colab_id>/excecoes/", api_views.ExcecaoListView.as_view(), name="excecoes"),
    path("colaboradores/<int:colab_id>/excecoes/<int:pk>/", api_views.ExcecaoDetailView.as_view(), name="excecao_detail"),
]
