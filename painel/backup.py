# painel/backup.py
from __future__ import annotations

import json

from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

from agendamentos.models import Agendamento, AgendamentoServico
from clientes.models import Cliente
from empresas.models import Colaborador, ColaboradorServico
from financeiro.models import FechamentoCaixa, MovimentoCaixa, PagamentoComissao, Produto
from servicos.models import Servico

VERSAO_BACKUP = 1


def _linhas(qs, *campos):
    return list(qs.order_by("pk").values(*campos))


def backup_empresa(empresa) -> dict:
    """Snapshot dos dados operacionais da empresa (sem usuários e senhas)."""
    return {
        "versao": VERSAO_BACKUP,
        "gerado_em": timezone.now(),
        "empresa": {
            "id": empresa.pk,
            "nome": empresa.nome,
            "razao_social": empresa.razao_social,
            "cnpj": empresa.cnpj,
            "slug": empresa.slug,
            "email": empresa.email,
            "telefone": empresa.telefone,
        },
        "clientes": _linhas(
            Cliente.objects.filter(empresa=empresa),
            "id", "nome", "email", "telefone", "data_nascimento", "observacoes", "status", "pontos", "convidado", "created_at",
        ),
        "servicos": _linhas(
            Servico.objects.filter(empresa=empresa),
            "id", "nome", "categoria", "preco", "duracao_min", "descricao", "ativo",
        ),
        "colaboradores": _linhas(
            Colaborador.objects.filter(empresa=empresa),
            "id", "nome", "sobrenome", "email", "telefone", "data_admissao", "percentual_comissao", "ativo",
        ),
        "colaborador_servicos": _linhas(
            ColaboradorServico.objects.filter(colaborador__empresa=empresa),
            "id", "colaborador_id", "servico_id", "tipo_comissao", "valor_comissao", "ativo",
        ),
        "agendamentos": _linhas(
            Agendamento.objects.filter(empresa=empresa),
            "id", "cliente_id", "cliente_apelido", "colaborador_id", "data", "hora",
            "duracao_total_min", "valor_total", "status", "observacoes", "created_at",
        ),
        "agendamento_servicos": _linhas(
            AgendamentoServico.objects.filter(agendamento__empresa=empresa),
            "id", "agendamento_id", "servico_id", "preco", "duracao_min",
        ),
        "movimentos": _linhas(
            MovimentoCaixa.objects.filter(empresa=empresa),
            "id", "tipo", "forma_pagamento", "valor", "observacoes", "eh_comissao",
            "agendamento_id", "colaborador_id", "data_transacao",
        ),
        "fechamentos": _linhas(
            FechamentoCaixa.objects.filter(empresa=empresa),
            "id", "tipo", "data_inicio", "data_fim", "total_recebimentos", "total_despesas",
            "saldo", "dinheiro_contado", "cartao_pix_total", "observacoes", "created_at",
        ),
        "pagamentos_comissao": _linhas(
            PagamentoComissao.objects.filter(empresa=empresa),
            "id", "colaborador_id", "valor", "forma_pagamento", "observacoes", "created_at",
        ),
        "produtos": _linhas(
            Produto.objects.filter(empresa=empresa),
            "id", "nome", "descricao", "preco", "custo", "estoque", "estoque_minimo", "ativo",
        ),
    }


def backup_json(empresa) -> str:
    return json.dumps(backup_empresa(empresa), cls=DjangoJSONEncoder, ensure_ascii=False, indent=2)
