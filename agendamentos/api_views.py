# agendamentos/api_views.py
from __future__ import annotations

from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from clientes.models import Cliente
from core.access import IsEmpresaGestor, IsEmpresaMember
from core.exceptions import AcessoNegado, RegraNegocio
from core.permissions import colaborador_do_usuario, is_global_admin, is_membro
from core.validation import id_param
from empresas.models import Colaborador, Empresa

from .models import Agendamento, ExcecaoAgenda, JornadaTrabalho
from .scheduling import dados_agenda, horarios_disponiveis
from .serializers import (
    AgendamentoSerializer,
    ExcecaoSerializer,
    JornadaSerializer,
    ReservaSerializer,
    ReservaVisitanteSerializer,
)
from .services import (
    agenda_da_empresa,
    cancelar_agendamento,
    confirmar_agendamento,
    editar_agendamento,
    finalizar_por_colaborador,
    notificacoes_empresa,
    reservar_agendamento,
    reservar_como_visitante,
)


def _data_param(request, nome="data"):
    raw = (request.query_params.get(nome) or "").strip()
    if not raw:
        return None
    d = parse_date(raw)
    if d is None:
        raise RegraNegocio("Data inválida.")
    return d


# -------------------------------
# Reserva / disponibilidade (corpo traz a empresa)
# -------------------------------
class ReservarAgendamentoView(APIView):
    def post(self, request):
        ser = ReservaSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ag = reservar_agendamento(request.user, ser.validated_data)
        return Response({"ok": True, "appointment": AgendamentoSerializer(ag).data}, status=status.HTTP_201_CREATED)


class DadosAgendaView(APIView):
    """Jornadas, exceções e agendamentos do colaborador na data."""
    def get(self, request):
        qp = request.query_params
        data = _data_param(request, "date")
        res = dados_agenda(
            id_param(qp.get("companyId"), "companyId"),
            id_param(qp.get("collaboratorId"), "collaboratorId"),
            data,
            id_param(qp.get("excludeAppointmentId"), "excludeAppointmentId"),
        )
        return Response(res)


class HorariosDisponiveisView(APIView):
    def get(self, request):
        qp = request.query_params
        data = _data_param(request, "date")
        colab_id = id_param(qp.get("collaboratorId"), "collaboratorId")
        if not (colab_id and data and qp.get("duration")):
            raise RegraNegocio("Missing required parameters")
        colaborador = get_object_or_404(Colaborador, pk=colab_id, ativo=True)
        try:
            duracao = int(qp.get("duration"))
        except ValueError:
            raise RegraNegocio("Duração inválida.")
        slots = horarios_disponiveis(colaborador, data, duracao, id_param(qp.get("excludeAppointmentId"), "excludeAppointmentId"))
        return Response({"slots": slots})


class FinalizarAgendamentoView(APIView):
    def post(self, request):
        ag_id = id_param(request.data.get("appointmentId"), "appointmentId")
        colab_id = id_param(request.data.get("collaboratorId"), "collaboratorId")
        if not (ag_id and colab_id):
            raise RegraNegocio("Missing required parameters")
        return Response(finalizar_por_colaborador(request.user, ag_id, colab_id))


class MeusAgendamentosView(APIView):
    """Agendamentos do cliente logado (todas as empresas)."""
    def get(self, request):
        clientes = Cliente.objects.filter(user=request.user)
        qs = (
            Agendamento.objects.filter(cliente__in=clientes)
            .select_related("cliente", "colaborador", "empresa")
            .prefetch_related("itens__servico")
            .order_by("-data", "-hora")
        )
        return Response({"ok": True, "agendamentos": AgendamentoSerializer(qs, many=True).data})


class AgendamentoDetailView(APIView):
    def _get(self, request, pk):
        ag = get_object_or_404(Agendamento.objects.select_related("empresa", "cliente", "colaborador"), pk=pk)
        dono = ag.cliente.user_id == request.user.pk
        if not (dono or is_membro(request.user, ag.empresa) or is_global_admin(request.user)):
            raise AcessoNegado("Sem acesso a este agendamento.")
        return ag

    def get(self, request, pk: int):
        return Response({"ok": True, "appointment": AgendamentoSerializer(self._get(request, pk)).data})

    def patch(self, request, pk: int):
        ag = editar_agendamento(request.user, self._get(request, pk), request.data)
        return Response({"ok": True, "appointment": AgendamentoSerializer(ag).data})


class ConfirmarAgendamentoView(APIView):
    def post(self, request, pk: int):
        ag = get_object_or_404(Agendamento, pk=pk)
        confirmar_agendamento(request.user, ag)
        return Response({"ok": True, "status": ag.status})


class CancelarAgendamentoView(APIView):
    def post(self, request, pk: int):
        ag = get_object_or_404(Agendamento.objects.select_related("cliente"), pk=pk)
        cancelar_agendamento(request.user, ag)
        return Response({"ok": True, "status": ag.status})


# -------------------------------
# Público (visitante)
# -------------------------------
class ReservaVisitanteView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request, empresa_slug: str):
        empresa = get_object_or_404(Empresa, slug=empresa_slug, ativo=True, aprovada=True)
        ser = ReservaVisitanteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ag = reservar_como_visitante(empresa, ser.validated_data)
        return Response(
            {"ok": True, "appointment": {"id": ag.pk, "data": ag.data, "horario": ag.rotulo_horario}},
            status=status.HTTP_201_CREATED,
        )


# -------------------------------
# Agenda da empresa
# -------------------------------
class AgendaEmpresaView(APIView):
    permission_classes = [IsEmpresaMember]

    def get(self, request, empresa_slug: str):
        qs = agenda_da_empresa(
            request.empresa,
            dia=_data_param(request),
            colaborador_id=id_param(request.query_params.get("colaborador"), "colaborador"),
            status=(request.query_params.get("status") or "").upper() or None,
        )
        return Response({"ok": True, "agendamentos": AgendamentoSerializer(qs, many=True).data})


class MinhaAgendaView(APIView):
    """Agenda do colaborador logado nesta empresa."""
    permission_classes = [IsEmpresaMember]

    def get(self, request, empresa_slug: str):
        colab = colaborador_do_usuario(request.user, request.empresa)
        if colab is None:
            return Response({"ok": False, "error": "Usuário não é colaborador desta empresa."}, status=status.HTTP_404_NOT_FOUND)
        qs = agenda_da_empresa(request.empresa, dia=_data_param(request), colaborador_id=colab.pk)
        return Response({
            "ok": True,
            "colaborador": {"id": colab.pk, "nome": colab.nome_completo},
            "agendamentos": AgendamentoSerializer(qs, many=True).data,
        })


class NotificacoesView(APIView):
    """Novos agendamentos pendentes e cancelamentos recentes da empresa."""
    permission_classes = [IsEmpresaGestor]

    def get(self, request, empresa_slug: str):
        itens = notificacoes_empresa(request.empresa)
        return Response({"ok": True, "notifications": itens, "unreadCount": len(itens)})


# -------------------------------
# Jornadas / exceções do colaborador
# -------------------------------
class _ColaboradorScoped(APIView):
    permission_classes = [IsEmpresaMember]

    def get_permissions(self):
        if self.request.method not in permissions.SAFE_METHODS:
            return [IsEmpresaGestor()]
        return super().get_permissions()

    def _colaborador(self, request, colab_id):
        return get_object_or_404(Colaborador, pk=colab_id, empresa=request.empresa)


class JornadaListView(_ColaboradorScoped):
    def get(self, request, empresa_slug: str, colab_id: int):
        colab = self._colaborador(request, colab_id)
        return Response({"ok": True, "jornadas": JornadaSerializer(colab.jornadas.all(), many=True).data})

    def post(self, request, empresa_slug: str, colab_id: int):
        colab = self._colaborador(request, colab_id)
        ser = JornadaSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ser.save(colaborador=colab)
        return Response({"ok": True, "jornada": ser.data}, status=status.HTTP_201_CREATED)


class JornadaDetailView(_ColaboradorScoped):
    def _get(self, request, colab_id, pk):
        return get_object_or_404(JornadaTrabalho, pk=pk, colaborador=self._colaborador(request, colab_id))

    def patch(self, request, empresa_slug: str, colab_id: int, pk: int):
        ser = JornadaSerializer(self._get(request, colab_id, pk), data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response({"ok": True, "jornada": ser.data})

    def delete(self, request, empresa_slug: str, colab_id: int, pk: int):
        self._get(request, colab_id, pk).delete()
        return Response({"ok": True})


class ExcecaoListView(_ColaboradorScoped):
    def get(self, request, empresa_slug: str, colab_id: int):
        colab = self._colaborador(request, colab_id)
        qs = colab.excecoes.all()
        desde = _data_param(request, "desde")
        if desde:
            qs = qs.filter(data__gte=desde)
        return Response({"ok": True, "excecoes": ExcecaoSerializer(qs, many=True).data})

    def post(self, request, empresa_slug: str, colab_id: int):
        colab = self._colaborador(request, colab_id)
        ser = ExcecaoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ser.save(colaborador=colab)
        return Response({"ok": True, "excecao": ser.data}, status=status.HTTP_201_CREATED)


class ExcecaoDetailView(_ColaboradorScoped):
    def _get(self, request, colab_id, pk):
        return get_object_or_404(ExcecaoAgenda, pk=pk, colaborador=self._colaborador(request, colab_id))

    def patch(self, request, empresa_slug: str, colab_id: int, pk: int):
        ser = ExcecaoSerializer(self._get(request, colab_id, pk), data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response({"ok": True, "excecao": ser.data})

    def delete(self, request, empresa_slug: str, colab_id: int, pk: int):
        self._get(request, colab_id, pk).delete()
        return Response({"ok": True})
