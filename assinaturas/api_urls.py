# assinaturas/api_urls.py
from django.urls import path

from . import api_views

app_name = "api_assinatura"

urlpatterns = [
    path("", api_views.StatusAssinaturaView.as_view(), name="status"),
    path("limites/", api_views.LimitesView.as_view(), name="limites"),
    path("funcionalidades/<slug:chave>/", api_views.FuncionalidadeEmpresaView.as_view(), name="funcionalidade"),
    path("cupom/validar/", api_views.ValidarCupomView.as_view(), name="validar_cupom"),
    path("assinar/", api_views.AssinarView.as_view(), name="assinar"),
    path("historico/", api_views.HistoricoAssinaturasView.as_view(), name="historico"),
]
