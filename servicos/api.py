# servicos/api.py
from django.db.models.deletion import ProtectedError
from rest_framework import generics, permissions
from rest_framework.response import Response

from assinaturas.models import TipoLimite
from assinaturas.services import exigir_limite
from core.access import IsEmpresaGestor, IsEmpresaMember

from .models import Servico
from .serializers import ServicoSerializer


class _EmpresaScoped:
    serializer_class = ServicoSerializer
    permission_classes = [IsEmpresaMember]

    def get_permissions(self):
        if self.request.method not in permissions.SAFE_METHODS:
            return [IsEmpresaGestor()]
        return super().get_permissions()

    def get_queryset(self):
        qs = Servico.objects.filter(empresa=self.request.empresa)
        if self.request.query_params.get("ativos") == "1":
            qs = qs.filter(ativo=True)
        return qs

    def get_serializer_context(self):
        ctx = super().get_serializer_context()
        ctx["empresa"] = getattr(self.request, "empresa", None)
        return ctx


class ServicoListCreate(_EmpresaScoped, generics.ListCreateAPIView):
    pagination_class = None

    def perform_create(self, serializer):
        if serializer.validated_data.get("ativo", True):
            exigir_limite(self.request.empresa, TipoLimite.SERVICOS)
        serializer.save(empresa=self.request.empresa)


class ServicoRetrieveUpdateDestroy(_EmpresaScoped, generics.RetrieveUpdateDestroyAPIView):
    def perform_update(self, serializer):
        if serializer.validated_data.get("ativo") and not serializer.instance.ativo:
            exigir_limite(self.request.empresa, TipoLimite.SERVICOS)
        serializer.save()

    def destroy(self, request, *args, **kwargs):
        servico = self.get_object()
        try:
            servico.delete()
        except ProtectedError:
            # já usado em agendamentos: só desativa
            servico.ativo = False
            servico.save(update_fields=["ativo", "updated_at"])
            return Response({"ok": True, "desativado": True})
        return Response({"ok": True, "desativado": False})
