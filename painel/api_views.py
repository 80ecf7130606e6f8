# painel/api_views.py
from __future__ import annotations

import logging

from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.access import IsEmpresaGestor, IsEmpresaMember, IsGlobalAdmin

from .dashboard import dados_dashboard
from .models import ContatoSolicitacao
from .relatorios import dados_relatorio
from .serializers import ContatoSerializer, NovoContatoSerializer, RelatorioQuerySerializer
from .services import registrar_contato, resumo_admin_global

logger = logging.getLogger(__name__)


# -------------------------------
# Empresa
# -------------------------------
class DashboardView(APIView):
    permission_classes = [IsEmpresaMember]

    def get(self, request, empresa_slug: str):
        return Response({"ok": True, **dados_dashboard(request.empresa)})


class RelatorioView(APIView):
    """?periodo=last_month|last_3_months|last_year"""
    permission_classes = [IsEmpresaGestor]

    def get(self, request, empresa_slug: str):
        ser = RelatorioQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        return Response({"ok": True, **dados_relatorio(request.empresa, ser.validated_data["periodo"])})


# -------------------------------
# Público
# -------------------------------
class ContatoView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = NovoContatoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        res = registrar_contato(ser.validated_data)
        return Response(
            {"ok": True, "message": "Solicitação enviada com sucesso!", "emailSent": res["emailSent"]},
            status=status.HTTP_201_CREATED,
        )


# -------------------------------
# Admin global
# -------------------------------
class ResumoAdminView(APIView):
    permission_classes = [IsGlobalAdmin]

    def get(self, request):
        return Response({"ok": True, **resumo_admin_global()})


class ContatoAdminList(generics.ListAPIView):
    permission_classes = [IsGlobalAdmin]
    serializer_class = ContatoSerializer
    pagination_class = None

    def get_queryset(self):
        qs = ContatoSolicitacao.objects.all()
        st = (self.request.query_params.get("status") or "").upper()
        if st in ContatoSolicitacao.Status.values:
            qs = qs.filter(status=st)
        return qs


class ContatoAdminDetail(generics.RetrieveUpdateAPIView):
    permission_classes = [IsGlobalAdmin]
    serializer_class = ContatoSerializer
    queryset = ContatoSolicitacao.objects.all()
