# empresas/urls_public.py
from django.urls import path
from . import views_public

app_name = "public"

urlpatterns = [
    path("empresas/", views_public.empresas_publicas, name="empresas"),
    path("<slug:empresa_slug>/", views_public.empresa_publica, name="empresa"),
]
