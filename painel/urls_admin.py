# painel/urls_admin.py
from django.urls import path

from . import api_views

app_name = "admin_painel"

urlpatterns = [
    path("resumo/", api_views.ResumoAdminView.as_view(), name="resumo"),
    path("contatos/", api_views.ContatoAdminList.as_view(), name="contatos"),
    path("contatos/<int:pk>/", api_views.ContatoAdminDetail.as_view(), name="contato_detail"),
]
