# financeiro/api_views.py
from __future__ import annotations

from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.access import IsEmpresaGestor, IsProprietario
from core.datas import hoje_local
from core.exceptions import RegraNegocio
from core.validation import id_param
from empresas.models import Colaborador

from .models import FechamentoCaixa, PagamentoComissao, Produto
from .serializers import (
    FechamentoDiaSerializer,
    FechamentoSerializer,
    FecharPeriodoSerializer,
    MovimentoSerializer,
    NovaTransacaoSerializer,
    PagamentoComissaoSerializer,
    ProdutoSerializer,
    VendaProdutoSerializer,
)
from .services import (
    comissoes_pendentes,
    estoque_critico,
    fechar_caixa_dia,
    fechar_periodo,
    pagar_comissao,
    reabrir_fechamento,
    registrar_movimento,
    resumo_caixa_dia,
    transacoes_periodo,
    vender_produto,
)


def _data(request, nome, padrao=None):
    raw = (request.query_params.get(nome) or "").strip()
    if not raw:
        return padrao
    d = parse_date(raw)
    if d is None:
        raise RegraNegocio("Data inválida.")
    return d


def _resumo_payload(resumo: dict) -> dict:
    return {
        "dia": resumo["dia"],
        "dinheiro": resumo["dinheiro"],
        "cartao_pix": resumo["cartao_pix"],
        "total": resumo["total"],
        "despesas": resumo["despesas"],
        "fechado": resumo["fechado"],
        "movimentos": MovimentoSerializer(resumo["movimentos"], many=True).data,
    }


# -------------------------------
# Caixa
# -------------------------------
class CaixaDiaView(APIView):
    permission_classes = [IsEmpresaGestor]

    def get(self, request, empresa_slug: str):
        resumo = resumo_caixa_dia(request.empresa, _data(request, "data", hoje_local()))
        return Response({"ok": True, **_resumo_payload(resumo)})

    def post(self, request, empresa_slug: str):
        ser = FechamentoDiaSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        res = fechar_caixa_dia(request.empresa, request.user, ser.validated_data, _data(request, "data"))
        return Response(
            {
                "ok": True,
                "message": "Caixa fechado com sucesso.",
                "dinheiro_contado": res["dinheiro_contado"],
                "diferenca": res["diferenca"],
                "resumo": _resumo_payload(res["resumo"]),
            },
            status=status.HTTP_201_CREATED,
        )


class TransacoesView(APIView):
    permission_classes = [IsEmpresaGestor]

    def get(self, request, empresa_slug: str):
        hoje = hoje_local()
        inicio = _data(request, "inicio", hoje.replace(day=1))
        fim = _data(request, "fim", hoje)
        res = transacoes_periodo(request.empresa, inicio, fim)
        return Response({
            "ok": True,
            "inicio": inicio,
            "fim": fim,
            "total_recebimentos": res["total_recebimentos"],
            "total_despesas": res["total_despesas"],
            "saldo": res["saldo"],
            "cartao_pix_total": res["cartao_pix_total"],
            "movimentos": MovimentoSerializer(res["movimentos"], many=True).data,
        })

    def post(self, request, empresa_slug: str):
        ser = NovaTransacaoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        mov = registrar_movimento(
            request.empresa,
            d["tipo"],
            d["valor"],
            forma_pagamento=d["forma_pagamento"],
            usuario=request.user,
            observacoes=d.get("observacoes", ""),
            data_transacao=d.get("data_transacao"),
        )
        return Response({"ok": True, "movimento": MovimentoSerializer(mov).data}, status=status.HTTP_201_CREATED)


# -------------------------------
# Fechamentos
# -------------------------------
class FechamentoListView(APIView):
    permission_classes = [IsEmpresaGestor]

    def get(self, request, empresa_slug: str):
        qs = FechamentoCaixa.objects.filter(empresa=request.empresa)
        return Response({"ok": True, "fechamentos": FechamentoSerializer(qs, many=True).data})

    def post(self, request, empresa_slug: str):
        ser = FecharPeriodoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        fech = fechar_periodo(
            request.empresa,
            request.user,
            d["tipo"],
            d.get("referencia"),
            d.get("dinheiro_contado", 0),
            d.get("observacoes", ""),
        )
        return Response({"ok": True, "fechamento": FechamentoSerializer(fech).data}, status=status.HTTP_201_CREATED)


class ReabrirFechamentoView(APIView):
    permission_classes = [IsProprietario]

    def post(self, request, empresa_slug: str, pk: int):
        fech = get_object_or_404(FechamentoCaixa, pk=pk, empresa=request.empresa)
        reabrir_fechamento(request.user, fech, request.data.get("senha") or "")
        return Response({"ok": True, "message": "Período reaberto."})


# -------------------------------
# Comissões
# -------------------------------
class ComissoesPendentesView(APIView):
    permission_classes = [IsEmpresaGestor]

    def get(self, request, empresa_slug: str):
        return Response({"ok": True, "comissoes": comissoes_pendentes(request.empresa)})


class PagamentoComissaoView(APIView):
    permission_classes = [IsEmpresaGestor]

    def get(self, request, empresa_slug: str):
        qs = PagamentoComissao.objects.filter(empresa=request.empresa).select_related("colaborador")
        colab = id_param(request.query_params.get("colaborador"), "colaborador")
        if colab:
            qs = qs.filter(colaborador_id=colab)
        return Response({"ok": True, "pagamentos": PagamentoComissaoSerializer(qs, many=True).data})

    def post(self, request, empresa_slug: str):
        ser = PagamentoComissaoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        colaborador = get_object_or_404(Colaborador, pk=d["colaborador"].pk, empresa=request.empresa)
        pag = pagar_comissao(
            request.empresa,
            colaborador,
            d["valor"],
            d.get("forma_pagamento", "DINHEIRO"),
            request.user,
            d.get("observacoes", ""),
        )
        return Response({"ok": True, "pagamento": PagamentoComissaoSerializer(pag).data}, status=status.HTTP_201_CREATED)


# -------------------------------
# Produtos / estoque
# -------------------------------
class ProdutoListView(APIView):
    permission_classes = [IsEmpresaGestor]

    def get(self, request, empresa_slug: str):
        qs = Produto.objects.filter(empresa=request.empresa)
        return Response({"ok": True, "produtos": ProdutoSerializer(qs, many=True).data})

    def post(self, request, empresa_slug: str):
        ser = ProdutoSerializer(data=request.data, context={"empresa": request.empresa})
        ser.is_valid(raise_exception=True)
        ser.save(empresa=request.empresa)
        return Response({"ok": True, "produto": ser.data}, status=status.HTTP_201_CREATED)


class ProdutoDetailView(APIView):
    permission_classes = [IsEmpresaGestor]

    def _get(self, request, pk):
        return get_object_or_404(Produto, pk=pk, empresa=request.empresa)

    def patch(self, request, empresa_slug: str, pk: int):
        ser = ProdutoSerializer(self._get(request, pk), data=request.data, partial=True, context={"empresa": request.empresa})
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response({"ok": True, "produto": ser.data})

    def delete(self, request, empresa_slug: str, pk: int):
        self._get(request, pk).delete()
        return Response({"ok": True})


class VendaProdutoView(APIView):
    permission_classes = [IsEmpresaGestor]

    def post(self, request, empresa_slug: str, pk: int):
        produto = get_object_or_404(Produto, pk=pk, empresa=request.empresa)
        ser = VendaProdutoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        mov = vender_produto(
            request.empresa,
            produto,
            ser.validated_data["quantidade"],
            ser.validated_data["forma_pagamento"],
            request.user,
        )
        return Response(
            {"ok": True, "movimento": MovimentoSerializer(mov).data, "estoque": produto.estoque},
            status=status.HTTP_201_CREATED,
        )


class EstoqueCriticoView(APIView):
    permission_classes = [IsEmpresaGestor]

    def get(self, request, empresa_slug: str):
        return Response({"ok": True, "produtos": ProdutoSerializer(estoque_critico(request.empresa), many=True).data})
