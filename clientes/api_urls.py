# clientes/api_urls.py
from django.urls import path

from . import api_views

app_name = "api_clientes"

urlpatterns = [
    path("", api_views.ClienteListView.as_view(), name="list"),
    path("convite/", api_views.ConviteClienteView.as_view(), name="convite"),
    path("<int:pk>/", api_views.ClienteDetailView.as_view(), name="detail"),
    path("<int:pk>/reenviar-convite/", api_views.ReenviarConviteView.as_view(), name="reenviar_convite"),
]
