# empresas/urls_auth.py
from django.urls import path
from . import api_views as views

app_name = "auth"

urlpatterns = [
    path("login/",  views.LoginView.as_view(),  name="login"),
    path("logout/", views.LogoutView.as_view(), name="logout"),
    path("me/",     views.MeView.as_view(),     name="me"),
    path("senha/",  views.TrocarSenhaView.as_view(), name="password_change"),
    path("senha/esqueci/",    views.RedefinicaoSenhaView.as_view(),     name="password_reset"),
    path("senha/redefinir/",  views.ConfirmarRedefinicaoView.as_view(), name="password_reset_confirm"),

    # Cadastro público
    path("registro/empresa/", views.RegistroEmpresaView.as_view(), name="registro_empresa"),
    path("segmentos/",        views.SegmentoListView.as_view(),    name="segmentos"),
    path("contrato/",         views.ContratoVigenteView.as_view(), name="contrato_vigente"),

    # Empresas do usuário
    path("empresas/", views.MinhasEmpresasView.as_view(), name="minhas_empresas"),
    path("empresas/<slug:empresa_slug>/primaria/", views.EmpresaPrimariaView.as_view(), name="empresa_primaria"),
]
