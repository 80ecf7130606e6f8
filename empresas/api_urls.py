# empresas/api_urls.py
from django.urls import path
from . import api_views as views

app_name = "api_empresas"

urlpatterns = [
    path("", views.EmpresaDetailView.as_view(), name="detail"),
    path("colaboradores/", views.ColaboradorListView.as_view(), name="colaboradores"),
    path("colaboradores/<int:pk>/", views.ColaboradorDetailView.as_view(), name="colaborador"),
    path("colaboradores/<int:pk>/servicos/", views.ColaboradorServicosView.as_view(), name="colaborador_servicos"),
    path(
        "colaboradores/<int:pk>/servicos/<int:servico_id>/",
        views.ColaboradorServicoDeleteView.as_view(),
        name="colaborador_servico",
    ),
]
