# clientes/api_views.py
from __future__ import annotations

from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.access import IsEmpresaGestor, IsEmpresaMember
from empresas.models import Empresa

from .models import Cliente
from .serializers import CadastroClienteSerializer, ClienteSerializer, ConviteClienteSerializer
from .services import cadastrar_cliente, cliente_convidado_padrao, convidar_cliente, reenviar_convite


class ClienteListView(APIView):
    """
    GET  -> clientes da empresa (?q=, ?status=)
    POST -> cadastro simples (sem acesso); gestor
    """
    permission_classes = [IsEmpresaMember]

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsEmpresaGestor()]
        return super().get_permissions()

    def get(self, request, empresa_slug: str):
        qs = Cliente.objects.filter(empresa=request.empresa, convidado=False)
        q = (request.query_params.get("q") or "").strip()
        if q:
            qs = qs.filter(Q(nome__icontains=q) | Q(telefone__icontains=q) | Q(email__icontains=q))
        status_ = (request.query_params.get("status") or "").strip().upper()
        if status_ in Cliente.Status.values:
            qs = qs.filter(status=status_)
        return Response({"ok": True, "clientes": ClienteSerializer(qs, many=True).data})

    def post(self, request, empresa_slug: str):
        ser = ClienteSerializer(data=request.data, context={"empresa": request.empresa})
        ser.is_valid(raise_exception=True)
        cliente = ser.save(empresa=request.empresa)
        return Response({"ok": True, "cliente": ClienteSerializer(cliente).data}, status=status.HTTP_201_CREATED)


class ClienteDetailView(APIView):
    permission_classes = [IsEmpresaGestor]

    def _get(self, request, pk):
        return get_object_or_404(Cliente, pk=pk, empresa=request.empresa)

    def get(self, request, empresa_slug: str, pk: int):
        return Response({"ok": True, "cliente": ClienteSerializer(self._get(request, pk)).data})

    def patch(self, request, empresa_slug: str, pk: int):
        cliente = self._get(request, pk)
        ser = ClienteSerializer(cliente, data=request.data, partial=True, context={"empresa": request.empresa})
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response({"ok": True, "cliente": ser.data})

    def delete(self, request, empresa_slug: str, pk: int):
        cliente = self._get(request, pk)
        if cliente.agendamentos.exists():
            # histórico preservado; só inativa
            cliente.status = Cliente.Status.INATIVO
            cliente.save(update_fields=["status", "updated_at"])
            return Response({"ok": True, "inativado": True})
        cliente.delete()
        return Response({"ok": True, "inativado": False})


class ConviteClienteView(APIView):
    permission_classes = [IsEmpresaGestor]

    def post(self, request, empresa_slug: str):
        ser = ConviteClienteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        res = convidar_cliente(request.empresa, ser.validated_data)
        return Response(
            {"ok": True, "cliente": ClienteSerializer(res["cliente"]).data, "emailSent": res["emailSent"]},
            status=status.HTTP_201_CREATED,
        )


class ReenviarConviteView(APIView):
    permission_classes = [IsEmpresaGestor]

    def post(self, request, empresa_slug: str, pk: int):
        cliente = get_object_or_404(Cliente, pk=pk, empresa=request.empresa)
        return Response({"ok": True, "emailSent": reenviar_convite(cliente)})


# -------------------------------
# Público
# -------------------------------
class CadastroClienteView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        ser = CadastroClienteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        res = cadastrar_cliente(ser.validated_data)
        return Response(
            {
                "ok": True,
                "message": res["message"],
                "emailSent": res["emailSent"],
                "emailError": res["emailError"],
            },
            status=status.HTTP_201_CREATED,
        )


class ClienteConvidadoView(APIView):
    """Cliente padrão da empresa para o agendamento de visitantes."""
    permission_classes = [permissions.AllowAny]

    def post(self, request, empresa_slug: str):
        empresa = get_object_or_404(Empresa, slug=empresa_slug, ativo=True, aprovada=True)
        return Response({"ok": True, **cliente_convidado_padrao(empresa, request.data.get("name") or request.data.get("nome"))})
