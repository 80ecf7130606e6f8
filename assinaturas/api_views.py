# assinaturas/api_views.py
from __future__ import annotations

import logging

from django.db.models import Count
from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.access import IsEmpresaGestor, IsEmpresaMember, IsGlobalAdmin
from core.exceptions import RegraNegocio
from core.validation import id_param

from .models import (
    AssinaturaEmpresa,
    CupomAdmin,
    Funcionalidade,
    Plano,
    PlanoFuncionalidade,
    PlanoLimite,
    TentativaPagamento,
    TipoLimite,
    UsoCupom,
)
from .serializers import (
    AssinarSerializer,
    AssinaturaSerializer,
    CupomSerializer,
    FuncionalidadeSerializer,
    PlanoFuncionalidadeSerializer,
    PlanoLimiteSerializer,
    PlanoSerializer,
    TentativaSerializer,
    UsoCupomSerializer,
)
from .services import (
    aplicar_desconto,
    assinar,
    processar_webhook,
    status_assinatura,
    tem_funcionalidade,
    validar_cupom,
    verificar_limite,
)

logger = logging.getLogger(__name__)


# -------------------------------
# Público
# -------------------------------
class PlanosPublicosView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        qs = Plano.objects.filter(ativo=True).prefetch_related("itens_funcionalidade__funcionalidade", "limites")
        return Response({"ok": True, "planos": PlanoSerializer(qs, many=True).data})


class MercadoPagoWebhookView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        payload = request.data if isinstance(request.data, dict) else {}
        # notificações antigas chegam por querystring (?topic=payment&id=...)
        if not payload and request.query_params.get("id"):
            payload = {"type": request.query_params.get("topic"), "data": {"id": request.query_params.get("id")}}
        logger.info("[Webhook] notificação recebida: type=%s", payload.get("type") or payload.get("topic"))
        return Response(processar_webhook(payload))


# -------------------------------
# Empresa
# -------------------------------
class StatusAssinaturaView(APIView):
    permission_classes = [IsEmpresaMember]

    def get(self, request, empresa_slug: str):
        return Response({"ok": True, **status_assinatura(request.empresa)})


class LimitesView(APIView):
    permission_classes = [IsEmpresaMember]

    def get(self, request, empresa_slug: str):
        tipo = request.query_params.get("tipo")
        if tipo:
            if tipo not in TipoLimite.values:
                raise RegraNegocio("Tipo de limite inválido.")
            return Response({"ok": True, tipo: verificar_limite(request.empresa, tipo)})
        return Response({"ok": True, **{t: verificar_limite(request.empresa, t) for t in TipoLimite.values}})


class FuncionalidadeEmpresaView(APIView):
    permission_classes = [IsEmpresaMember]

    def get(self, request, empresa_slug: str, chave: str):
        possui, limite = tem_funcionalidade(request.empresa, chave)
        return Response({"ok": True, "feature": chave, "hasFeature": possui, "limit": limite})


class ValidarCupomView(APIView):
    permission_classes = [IsEmpresaGestor]

    def post(self, request, empresa_slug: str):
        ser = AssinarSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        plano = get_object_or_404(Plano, pk=d["planId"], ativo=True)
        duracao = d.get("durationMonths") or plano.duracao_meses
        cupom = validar_cupom(d.get("couponCode"), request.empresa, plano, duracao)
        return Response({
            "ok": True,
            "coupon": CupomSerializer(cupom).data,
            "originalPrice": f"{plano.preco:.2f}",
            "finalPrice": f"{aplicar_desconto(plano.preco, cupom):.2f}",
            "bonusMonths": 1,
        })


class AssinarView(APIView):
    """Aplica cupom e ativa na hora (valor zero) ou gera a preferência de pagamento."""
    permission_classes = [IsEmpresaGestor]

    def post(self, request, empresa_slug: str):
        ser = AssinarSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        plano = get_object_or_404(Plano, pk=d["planId"])
        res = assinar(
            request.empresa,
            plano,
            d.get("durationMonths") or plano.duracao_meses,
            cupom_codigo=(d.get("couponCode") or "").strip() or None,
            usuario=request.user,
        )
        return Response({"ok": True, **res})


class HistoricoAssinaturasView(APIView):
    permission_classes = [IsEmpresaGestor]

    def get(self, request, empresa_slug: str):
        qs = AssinaturaEmpresa.objects.filter(empresa=request.empresa).select_related("plano", "empresa")
        return Response({"ok": True, "assinaturas": AssinaturaSerializer(qs, many=True).data})


# -------------------------------
# Admin global
# -------------------------------
class _AdminGlobal:
    permission_classes = [IsGlobalAdmin]
    pagination_class = None


class PlanoAdminListCreate(_AdminGlobal, generics.ListCreateAPIView):
    serializer_class = PlanoSerializer
    queryset = Plano.objects.prefetch_related("itens_funcionalidade__funcionalidade", "limites")


class PlanoAdminDetail(_AdminGlobal, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = PlanoSerializer
    queryset = Plano.objects.all()

    def perform_destroy(self, instance):
        if instance.assinaturas.exists():
            # plano com histórico: só desativa
            instance.ativo = False
            instance.save(update_fields=["ativo"])
            return
        instance.delete()


class PlanoLimitesView(_AdminGlobal, APIView):
    """PUT {"limites": [{"tipo": "collaborators", "valor": 5}, ...]} substitui os limites."""

    def get(self, request, pk: int):
        plano = get_object_or_404(Plano, pk=pk)
        return Response({"ok": True, "limites": PlanoLimiteSerializer(plano.limites.all(), many=True).data})

    def put(self, request, pk: int):
        plano = get_object_or_404(Plano, pk=pk)
        ser = PlanoLimiteSerializer(data=request.data.get("limites") or [], many=True)
        ser.is_valid(raise_exception=True)
        for item in ser.validated_data:
            PlanoLimite.objects.update_or_create(plano=plano, tipo=item["tipo"], defaults={"valor": item["valor"]})
        return Response({"ok": True, "limites": PlanoLimiteSerializer(plano.limites.all(), many=True).data})


class PlanoFuncionalidadesView(_AdminGlobal, APIView):
    def get(self, request, pk: int):
        plano = get_object_or_404(Plano, pk=pk)
        qs = plano.itens_funcionalidade.select_related("funcionalidade")
        return Response({"ok": True, "funcionalidades": PlanoFuncionalidadeSerializer(qs, many=True).data})

    def post(self, request, pk: int):
        plano = get_object_or_404(Plano, pk=pk)
        ser = PlanoFuncionalidadeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        item, _ = PlanoFuncionalidade.objects.update_or_create(
            plano=plano,
            funcionalidade=ser.validated_data["funcionalidade"],
            defaults={"limite": ser.validated_data.get("limite")},
        )
        return Response({"ok": True, "funcionalidade": PlanoFuncionalidadeSerializer(item).data}, status=status.HTTP_201_CREATED)


class PlanoFuncionalidadeDeleteView(_AdminGlobal, APIView):
    def delete(self, request, pk: int, func_id: int):
        get_object_or_404(PlanoFuncionalidade, plano_id=pk, funcionalidade_id=func_id).delete()
        return Response({"ok": True})


class FuncionalidadeAdminListCreate(_AdminGlobal, generics.ListCreateAPIView):
    serializer_class = FuncionalidadeSerializer
    queryset = Funcionalidade.objects.all()


class FuncionalidadeAdminDetail(_AdminGlobal, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = FuncionalidadeSerializer
    queryset = Funcionalidade.objects.all()


class CupomAdminListCreate(_AdminGlobal, generics.ListCreateAPIView):
    serializer_class = CupomSerializer
    queryset = CupomAdmin.objects.select_related("plano")


class CupomAdminDetail(_AdminGlobal, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = CupomSerializer
    queryset = CupomAdmin.objects.all()


class RelatorioCuponsView(_AdminGlobal, APIView):
    def get(self, request):
        cupons = CupomAdmin.objects.annotate(total_usos=Count("usos")).order_by("-total_usos", "codigo")
        usos = UsoCupom.objects.select_related("cupom", "empresa")
        codigo = (request.query_params.get("codigo") or "").strip().upper()
        if codigo:
            usos = usos.filter(cupom__codigo=codigo)
        return Response({
            "ok": True,
            "cupons": [
                {"id": c.pk, "codigo": c.codigo, "status": c.status, "usos": c.total_usos, "max_usos": c.max_usos}
                for c in cupons
            ],
            "usos": UsoCupomSerializer(usos[:500], many=True).data,
        })


class TentativasPagamentoView(_AdminGlobal, generics.ListAPIView):
    serializer_class = TentativaSerializer

    def get_queryset(self):
        qs = TentativaPagamento.objects.select_related("empresa", "plano", "cupom")
        status_ = (self.request.query_params.get("status") or "").upper()
        if status_ in TentativaPagamento.Status.values:
            qs = qs.filter(status=status_)
        return qs


class AssinaturasAdminView(_AdminGlobal, generics.ListAPIView):
    serializer_class = AssinaturaSerializer

    def get_queryset(self):
        qs = AssinaturaEmpresa.objects.select_related("empresa", "plano")
        empresa = id_param(self.request.query_params.get("empresa"), "empresa")
        if empresa:
            qs = qs.filter(empresa_id=empresa)
        return qs
