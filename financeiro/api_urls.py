# financeiro/api_urls.py
from django.urls import path

from . import api_views

app_name = "api_financeiro"

urlpatterns = [
    path("caixa/", api_views.CaixaDiaView.as_view(), name="caixa"),
    path("transacoes/", api_views.TransacoesView.as_view(), name="transacoes"),
    path("fechamentos/", api_views.FechamentoListView.as_view(), name="fechamentos"),
    path("fechamentos/<int:pk>/reabrir/", api_views.ReabrirFechamentoView.as_view(), name="reabrir"),
    path("comissoes/", api_views.ComissoesPendentesView.as_view(), name="comissoes"),
    path("comissoes/pagamentos/", api_views.PagamentoComissaoView.as_view(), name="pagamentos"),
    path("produtos/", api_views.ProdutoListView.as_view(), name="produtos"),
    path("produtos/criticos/", api_views.EstoqueCriticoView.as_view(), name="estoque_critico"),
    path("produtos/<int:pk>/", api_views.ProdutoDetailView.as_view(), name="produto_detail"),
    path("produtos/<int:pk>/vender/", api_views.VendaProdutoView.as_view(), name="vender"),
]
