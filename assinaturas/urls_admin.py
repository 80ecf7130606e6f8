# assinaturas/urls_admin.py
from django.urls import path

from . import api_views

app_name = "admin_assinaturas"

urlpatterns = [
    path("planos/", api_views.PlanoAdminListCreate.as_view(), name="planos"),
    path("planos/<int:pk>/", api_views.PlanoAdminDetail.as_view(), name="plano_detail"),
    path("planos/<int:pk>/limites/", api_views.PlanoLimitesView.as_view(), name="plano_limites"),
    path("planos/<int:pk>/funcionalidades/", api_views.PlanoFuncionalidadesView.as_view(), name="plano_funcionalidades"),
    path(
        "planos/<int:pk>/funcionalidades/<int:func_id>/",
        api_views.PlanoFuncionalidadeDeleteView.as_view(),
        name="plano_funcionalidade_delete",
    ),
    path("funcionalidades/", api_views.FuncionalidadeAdminListCreate.as_view(), name="funcionalidades"),
    path("funcionalidades/<int:pk>/", api_views.FuncionalidadeAdminDetail.as_view(), name="funcionalidade_detail"),
    path("cupons/", api_views.CupomAdminListCreate.as_view(), name="cupons"),
    path("cupons/relatorio/", api_views.RelatorioCuponsView.as_view(), name="cupons_relatorio"),
    path("cupons/<int:pk>/", api_views.CupomAdminDetail.as_view(), name="cupom_detail"),
    path("pagamentos/", api_views.TentativasPagamentoView.as_view(), name="pagamentos"),
    path("assinaturas/", api_views.AssinaturasAdminView.as_view(), name="assinaturas"),
]
