# painel/api_urls.py
from django.urls import path

from . import api_views, views

app_name = "api_painel"

urlpatterns = [
    path("dashboard/", api_views.DashboardView.as_view(), name="dashboard"),
    path("relatorios/", api_views.RelatorioView.as_view(), name="relatorios"),
    path("backup/", views.backup_download, name="backup"),
]
