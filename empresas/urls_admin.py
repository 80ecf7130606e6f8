# empresas/urls_admin.py
from django.urls import path
from . import api_views as views

app_name = "admin_empresas"

urlpatterns = [
    path("", views.AdminEmpresaListView.as_view(), name="list"),
    path("<int:pk>/", views.AdminEmpresaDetailView.as_view(), name="detail"),
]
