# empresas/api_views.py
from __future__ import annotations

import logging

from django.contrib.auth import authenticate, get_user_model
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status
from rest_framework.authtoken.models import Token
from rest_framework.response import Response
from rest_framework.views import APIView

from assinaturas.models import TipoLimite
from assinaturas.services import exigir_limite
from core.access import IsEmpresaGestor, IsEmpresaMember, IsGlobalAdmin
from core.permissions import papeis
from servicos.models import Servico

from .colaboradores import convidar_colaborador, definir_servico
from .models import Colaborador, ColaboradorServico, Contrato, Empresa, Membership, PerfilUsuario, Segmento
from .recuperacao import confirmar_redefinicao, solicitar_redefinicao
from .registration import registrar_empresa_e_usuario
from .serializers import (
    ColaboradorSerializer,
    ColaboradorServicoSerializer,
    ContratoSerializer,
    ConviteColaboradorSerializer,
    EmpresaSerializer,
    LoginSerializer,
    RegistroEmpresaSerializer,
    SegmentoSerializer,
    TrocarSenhaSerializer,
)
from .utils import definir_empresa_primaria, empresa_primaria

logger = logging.getLogger(__name__)


# -------------------------------
# Cadastro público
# -------------------------------
class SegmentoListView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        qs = Segmento.objects.filter(ativo=True)
        return Response({"ok": True, "segmentos": SegmentoSerializer(qs, many=True).data})


class ContratoVigenteView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        contrato = Contrato.vigente()
        if contrato is None:
            return Response({"ok": False, "error": "Nenhum contrato ativo."}, status=status.HTTP_404_NOT_FOUND)
        return Response({"ok": True, "contrato": ContratoSerializer(contrato).data})


class RegistroEmpresaView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        ser = RegistroEmpresaSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        res = registrar_empresa_e_usuario(ser.validated_data)
        return Response(
            {
                "ok": True,
                "message": "Empresa cadastrada com sucesso. Verifique seu e-mail.",
                "userId": res["user"].pk,
                "empresa": EmpresaSerializer(res["empresa"]).data,
            },
            status=status.HTTP_201_CREATED,
        )


# -------------------------------
# Autenticação
# -------------------------------
def _payload_usuario(user) -> dict:
    perfil = PerfilUsuario.objects.filter(user=user).first()
    empresa = empresa_primaria(user)
    return {
        "id": user.pk,
        "email": user.email,
        "nome": (perfil.nome if perfil and perfil.nome else user.get_full_name()) or user.email,
        "senha_temporaria": bool(perfil and perfil.senha_temporaria),
        "empresa_primaria": EmpresaSerializer(empresa).data if empresa else None,
        **papeis(user, empresa),
    }


class LoginView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        ser = LoginSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        email = ser.validated_data["email"].strip().lower()
        User = get_user_model()
        candidato = User.objects.filter(email__iexact=email).first()
        user = None
        if candidato is not None:
            user = authenticate(request, username=candidato.get_username(), password=ser.validated_data["password"])
        if user is None:
            return Response({"ok": False, "error": "E-mail ou senha inválidos."}, status=status.HTTP_400_BAD_REQUEST)
        token, _ = Token.objects.get_or_create(user=user)
        logger.info("[Auth] login user=%s", user.pk)
        return Response({"ok": True, "token": token.key, "user": _payload_usuario(user)})


class LogoutView(APIView):
    def post(self, request):
        Token.objects.filter(user=request.user).delete()
        return Response({"ok": True})


class MeView(APIView):
    def get(self, request):
        return Response({"ok": True, "user": _payload_usuario(request.user)})


class TrocarSenhaView(APIView):
    def post(self, request):
        ser = TrocarSenhaSerializer(data=request.data, context={"user": request.user})
        ser.is_valid(raise_exception=True)
        user = request.user
        user.set_password(ser.validated_data["nova_senha"])
        user.save(update_fields=["password"])
        PerfilUsuario.objects.filter(user=user).update(senha_temporaria=False)
        # token antigo deixa de valer
        Token.objects.filter(user=user).delete()
        token = Token.objects.create(user=user)
        return Response({"ok": True, "message": "Senha alterada com sucesso.", "token": token.key})


class RedefinicaoSenhaView(APIView):
    """Pedido de link de redefinição (esqueci a senha)."""
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        res = solicitar_redefinicao(request.data.get("email"))
        return Response({"ok": True, **res})


class ConfirmarRedefinicaoView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        d = request.data
        confirmar_redefinicao(d.get("uid"), d.get("token"), d.get("password"), d.get("confirmPassword"))
        return Response({"ok": True, "message": "Senha redefinida com sucesso. Faça login com a nova senha."})


# -------------------------------
# Empresas do usuário
# -------------------------------
class MinhasEmpresasView(APIView):
    def get(self, request):
        mems = Membership.objects.filter(user=request.user, is_active=True).select_related("empresa")
        return Response({
            "ok": True,
            "empresas": [
                {**EmpresaSerializer(m.empresa).data, "role": m.role, "is_primary": m.is_primary}
                for m in mems
            ],
        })


class EmpresaPrimariaView(APIView):
    def post(self, request, empresa_slug: str):
        empresa = get_object_or_404(Empresa, slug=empresa_slug)
        if not Membership.objects.filter(user=request.user, empresa=empresa, is_active=True).exists():
            return Response({"ok": False, "error": "forbidden"}, status=status.HTTP_403_FORBIDDEN)
        definir_empresa_primaria(request.user, empresa)
        return Response({"ok": True, "empresa": empresa.slug})


class EmpresaDetailView(APIView):
    permission_classes = [IsEmpresaMember]

    def get_permissions(self):
        if self.request.method in ("PUT", "PATCH"):
            return [IsEmpresaGestor()]
        return super().get_permissions()

    def get(self, request, empresa_slug: str):
        return Response({"ok": True, "empresa": EmpresaSerializer(request.empresa).data})

    def patch(self, request, empresa_slug: str):
        ser = EmpresaSerializer(request.empresa, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response({"ok": True, "empresa": ser.data})


# -------------------------------
# Colaboradores
# -------------------------------
class ColaboradorListView(APIView):
    permission_classes = [IsEmpresaMember]

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsEmpresaGestor()]
        return super().get_permissions()

    def get(self, request, empresa_slug: str):
        qs = Colaborador.objects.filter(empresa=request.empresa)
        if request.query_params.get("ativos") == "1":
            qs = qs.filter(ativo=True)
        return Response({"ok": True, "colaboradores": ColaboradorSerializer(qs, many=True).data})

    def post(self, request, empresa_slug: str):
        ser = ConviteColaboradorSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        res = convidar_colaborador(request.empresa, ser.validated_data, por=request.user)
        return Response(
            {
                "ok": True,
                "message": res["mensagem"],
                "colaborador": ColaboradorSerializer(res["colaborador"]).data,
            },
            status=status.HTTP_201_CREATED,
        )


class ColaboradorDetailView(APIView):
    permission_classes = [IsEmpresaGestor]

    def _get(self, request, pk):
        return get_object_or_404(Colaborador, pk=pk, empresa=request.empresa)

    def get(self, request, empresa_slug: str, pk: int):
        return Response({"ok": True, "colaborador": ColaboradorSerializer(self._get(request, pk)).data})

    def patch(self, request, empresa_slug: str, pk: int):
        colab = self._get(request, pk)
        ser = ColaboradorSerializer(colab, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        if ser.validated_data.get("ativo") and not colab.ativo:
            exigir_limite(request.empresa, TipoLimite.COLABORADORES)
        ser.save()
        return Response({"ok": True, "colaborador": ser.data})

    def delete(self, request, empresa_slug: str, pk: int):
        # desativa; histórico de agendamentos/comissões continua apontando para ele
        colab = self._get(request, pk)
        colab.ativo = False
        colab.save(update_fields=["ativo"])
        return Response({"ok": True})


class ColaboradorServicosView(APIView):
    permission_classes = [IsEmpresaMember]

    def get_permissions(self):
        if self.request.method != "GET":
            return [IsEmpresaGestor()]
        return super().get_permissions()

    def get(self, request, empresa_slug: str, pk: int):
        colab = get_object_or_404(Colaborador, pk=pk, empresa=request.empresa)
        qs = colab.servicos.select_related("servico")
        return Response({"ok": True, "servicos": ColaboradorServicoSerializer(qs, many=True).data})

    def post(self, request, empresa_slug: str, pk: int):
        colab = get_object_or_404(Colaborador, pk=pk, empresa=request.empresa)
        ser = ColaboradorServicoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        servico = get_object_or_404(Servico, pk=ser.validated_data["servico"].pk, empresa=request.empresa)
        obj = definir_servico(
            colab,
            servico,
            tipo_comissao=ser.validated_data.get("tipo_comissao", "PERCENT"),
            valor_comissao=ser.validated_data.get("valor_comissao", 0),
            ativo=ser.validated_data.get("ativo", True),
        )
        return Response({"ok": True, "servico": ColaboradorServicoSerializer(obj).data}, status=status.HTTP_201_CREATED)


class ColaboradorServicoDeleteView(APIView):
    permission_classes = [IsEmpresaGestor]

    def delete(self, request, empresa_slug: str, pk: int, servico_id: int):
        obj = get_object_or_404(
            ColaboradorServico,
            colaborador_id=pk,
            colaborador__empresa=request.empresa,
            servico_id=servico_id,
        )
        obj.delete()
        return Response({"ok": True})


# -------------------------------
# Admin global
# -------------------------------
class AdminEmpresaListView(APIView):
    permission_classes = [IsGlobalAdmin]

    def get(self, request):
        qs = Empresa.objects.select_related("segmento", "proprietario")
        if request.query_params.get("pendentes") == "1":
            qs = qs.filter(aprovada=False)
        busca = (request.query_params.get("q") or "").strip()
        if busca:
            qs = qs.filter(nome__icontains=busca)
        return Response({"ok": True, "empresas": EmpresaSerializer(qs, many=True).data})


class AdminEmpresaDetailView(APIView):
    permission_classes = [IsGlobalAdmin]

    def patch(self, request, pk: int):
        empresa = get_object_or_404(Empresa, pk=pk)
        campos = []
        for campo in ("ativo", "aprovada"):
            if campo in request.data:
                setattr(empresa, campo, str(request.data[campo]).lower() in ("1", "true"))
                campos.append(campo)
        if campos:
            empresa.save(update_fields=campos)
            logger.info("[Admin] empresa %s atualizada: %s", empresa.pk, {c: getattr(empresa, c) for c in campos})
        return Response({"ok": True, "empresa": EmpresaSerializer(empresa).data})
