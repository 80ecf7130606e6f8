# core/urls.py
from django.contrib import admin
from django.urls import include, path
from django.conf import settings
from django.conf.urls.static import static

from assinaturas import api_views as assinaturas_views
from clientes import api_views as clientes_views
from painel import api_views as painel_views

urlpatterns = [
    path("admin/", admin.site.urls),

    # -------- PÚBLICO --------
    path("pub/", include("empresas.urls_public")),
    path("pub/", include("agendamentos.urls_public")),
    path("api/planos/", assinaturas_views.PlanosPublicosView.as_view(), name="planos_publicos"),
    path("api/contato/", painel_views.ContatoView.as_view(), name="contato"),
    path("api/webhooks/mercadopago/", assinaturas_views.MercadoPagoWebhookView.as_view(), name="webhook_mercadopago"),

    # -------- AUTENTICAÇÃO --------
    path("api/auth/registro/cliente/", clientes_views.CadastroClienteView.as_view(), name="registro_cliente"),
    path("api/auth/", include("empresas.urls_auth")),

    # -------- ADMIN GLOBAL --------
    path("api/admin/empresas/", include("empresas.urls_admin")),
    path("api/admin/painel/", include("painel.urls_admin")),
    path("api/admin/", include("assinaturas.urls_admin")),

    # -------- AGENDAMENTOS (empresa no corpo/querystring) --------
    path("api/agendamentos/", include("agendamentos.api_urls")),

    # -------- Tudo com empresa_slug --------
    path("api/<slug:empresa_slug>/clientes/", include("clientes.api_urls")),
    path("api/<slug:empresa_slug>/servicos/", include("servicos.api_urls")),
    path("api/<slug:empresa_slug>/agenda/", include("agendamentos.api_urls_empresa")),
    path("api/<slug:empresa_slug>/financeiro/", include("financeiro.api_urls")),
    path("api/<slug:empresa_slug>/assinatura/", include("assinaturas.api_urls")),
    path("api/<slug:empresa_slug>/painel/", include("painel.api_urls")),
    path("api/<slug:empresa_slug>/", include("empresas.api_urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=getattr(settings, "STATIC_ROOT", None))
