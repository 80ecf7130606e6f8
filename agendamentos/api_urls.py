# agendamentos/api_urls.py
from django.urls import path

from . import api_views

app_name = "api_agendamentos"

urlpatterns = [
    path("reservar/", api_views.ReservarAgendamentoView.as_view(), name="reservar"),
    path("dados-agenda/", api_views.DadosAgendaView.as_view(), name="dados_agenda"),
    path("horarios/", api_views.HorariosDisponiveisView.as_view(), name="horarios"),
    path("finalizar/", api_views.FinalizarAgendamentoView.as_view(), name="finalizar"),
    path("meus/", api_views.MeusAgendamentosView.as_view(), name="meus"),
    path("<int:pk>/", api_views.AgendamentoDetailView.as_view(), name="detail"),
    path("<int:pk>/confirmar/", api_views.ConfirmarAgendamentoView.as_view(), name="confirmar"),
    path("<int:pk>/cancelar/", api_views.CancelarAgendamentoView.as_view(), name="cancelar"),
]
