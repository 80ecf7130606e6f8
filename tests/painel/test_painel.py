import json
from datetime import time, timedelta
from decimal import Decimal

import pytest
import requests
from django.urls import reverse
from django.utils import timezone

from agendamentos.models import Agendamento, AgendamentoServico, StatusAgendamento
from clientes.services import cliente_convidado_padrao
from core.datas import hoje_local
from financeiro.models import MovimentoCaixa, TipoMovimento
from painel.dashboard import dados_dashboard
from painel.models import ContatoSolicitacao
from painel.relatorios import dados_relatorio

pytestmark = pytest.mark.django_db


def _atendimento(empresa, cliente, colaborador, servico, dia, status=StatusAgendamento.PENDENTE):
    ag = Agendamento.objects.create(
        empresa=empresa, cliente=cliente, colaborador=colaborador, data=dia, hora=time(9, 0),
        duracao_total_min=30, valor_total=servico.preco, status=status,
    )
    AgendamentoServico.objects.create(agendamento=ag, servico=servico, preco=servico.preco, duracao_min=30)
    return ag


def _mov(empresa, tipo, valor, quando=None, colaborador=None):
    return MovimentoCaixa.objects.create(
        empresa=empresa, tipo=tipo, valor=Decimal(valor), colaborador=colaborador,
        data_transacao=quando or timezone.now(),
    )


def test_dashboard(empresa, cliente, colaborador, servico):
    hoje = hoje_local()
    cliente_convidado_padrao(empresa, "Visitante")
    _atendimento(empresa, cliente, colaborador, servico, hoje)
    _mov(empresa, TipoMovimento.RECEBIMENTO, "50.00")
    _mov(empresa, TipoMovimento.DESPESA, "12.50")

    dados = dados_dashboard(empresa, hoje)
    assert dados["agendamentos_hoje"]["total"] == 1
    assert dados["agendamentos_hoje"]["por_status"][StatusAgendamento.PENDENTE] == 1
    assert dados["faturamento_hoje"] == Decimal("50.00")
    assert dados["faturamento_mes"] == Decimal("50.00")
    assert dados["despesas_mes"] == Decimal("12.50")
    assert dados["clientes"] == 1
    assert dados["colaboradores"] == 1
    assert dados["proximos_agendamentos"][0]["horario"] == "09:00 às 09:30"
    assert dados["assinatura"]["status"] == "no_subscription"


def test_dashboard_api_para_membros(colaborador_client, api_client, empresa):
    url = reverse("api_painel:dashboard", kwargs={"empresa_slug": empresa.slug})
    resp = colaborador_client.get(url)
    assert resp.status_code == 200
    assert resp.json()["estoque_critico"] == 0
    assert api_client.get(url).status_code in (401, 403)


def test_relatorio_compara_com_periodo_anterior(empresa, cliente, colaborador, servico):
    hoje = hoje_local()
    agora = timezone.now()
    _atendimento(empresa, cliente, colaborador, servico, hoje, status=StatusAgendamento.CONCLUIDO)
    _atendimento(empresa, cliente, colaborador, servico, hoje - timedelta(days=1), status=StatusAgendamento.CANCELADO)
    _mov(empresa, TipoMovimento.RECEBIMENTO, "100.00", agora, colaborador=colaborador)
    _mov(empresa, TipoMovimento.RECEBIMENTO, "50.00", agora - timedelta(days=40))

    rel = dados_relatorio(empresa, "last_month", hoje)
    assert rel["intervalo"]["fim"] == hoje.isoformat()
    assert rel["atual"]["faturamento"] == Decimal("100.00")
    assert rel["anterior"]["faturamento"] == Decimal("50.00")
    assert rel["crescimento"]["faturamento"] == 100.0
    assert rel["atual"]["agendamentos"] == 1
    assert rel["atual"]["concluidos"] == 1

    assert rel["top_servicos"] == [
        {"servico_id": servico.pk, "nome": "Corte", "quantidade": 1, "total": Decimal("50.00")},
    ]
    assert rel["faturamento_colaboradores"][0]["nome"] == "Ana Lima"
    assert len(rel["serie_mensal"]["labels"]) == 6
    assert rel["serie_mensal"]["labels"][-1] == hoje.strftime("%m/%Y")
    assert rel["serie_mensal"]["values"][-1] >= 100.0


def test_relatorio_api_so_para_gestor(dono_client, colaborador_client, empresa):
    url = reverse("api_painel:relatorios", kwargs={"empresa_slug": empresa.slug})
    resp = dono_client.get(url, {"periodo": "last_year"})
    assert resp.status_code == 200
    assert resp.json()["periodo"] == "last_year"
    assert dono_client.get(url, {"periodo": "semana"}).status_code == 400
    assert colaborador_client.get(url).status_code == 403


def test_backup_da_empresa(client, dono, empresa, cliente, servico):
    client.force_login(dono)
    resp = client.get(reverse("api_painel:backup", kwargs={"empresa_slug": empresa.slug}))
    assert resp.status_code == 200
    assert resp["Content-Disposition"].startswith(f'attachment; filename="backup-{empresa.slug}-')

    dados = json.loads(resp.content)
    assert dados["empresa"]["cnpj"] == empresa.cnpj
    assert [c["nome"] for c in dados["clientes"]] == ["Carlos Souza"]
    assert dados["servicos"][0]["preco"] == "50.00"


def test_backup_negado_para_colaborador_e_anonimo(client, colaborador, empresa):
    url = reverse("api_painel:backup", kwargs={"empresa_slug": empresa.slug})
    assert client.get(url, HTTP_ACCEPT="application/json").status_code == 401

    client.force_login(colaborador.user)
    assert client.get(url).status_code == 403


def test_formulario_de_contato(api_client):
    url = reverse("contato")
    resp = api_client.post(
        url,
        {"nome": "Maria", "email": "Maria@Exemplo.com", "empresa": "Studio M", "mensagem": "Quero conhecer os planos."},
        format="json",
    )
    assert resp.status_code == 201
    assert resp.json() == {"ok": True, "message": "Solicitação enviada com sucesso!", "emailSent": False}
    contato = ContatoSolicitacao.objects.get()
    assert contato.email == "maria@exemplo.com"
    assert contato.empresa_nome == "Studio M"

    faltando = api_client.post(url, {"nome": "Maria"}, format="json")
    assert faltando.status_code == 400
    assert faltando.json()["missing"] == ["email", "mensagem"]

    invalido = api_client.post(url, {"nome": "Maria", "email": "maria", "mensagem": "oi"}, format="json")
    assert invalido.json()["error"] == "E-mail inválido."


def test_resumo_e_contatos_do_admin_global(admin_client, dono_client, empresa):
    ContatoSolicitacao.objects.create(nome="João", email="joao@teste.com", mensagem="Olá")

    resumo = admin_client.get(reverse("admin_painel:resumo"))
    assert resumo.status_code == 200
    body = resumo.json()
    assert body["empresas"] == {"total": 1, "ativas": 1, "pendentes_aprovacao": 0}
    assert body["contatos_novos"] == 1
    assert dono_client.get(reverse("admin_painel:resumo")).status_code == 403

    lista = admin_client.get(reverse("admin_painel:contatos"), {"status": "nova"}).json()
    assert len(lista) == 1

    resp = admin_client.patch(
        reverse("admin_painel:contato_detail", kwargs={"pk": lista[0]["id"]}),
        {"status": "RESPONDIDA", "nome": "Outro"},
        format="json",
    )
    assert resp.status_code == 200
    contato = ContatoSolicitacao.objects.get()
    assert contato.status == ContatoSolicitacao.Status.RESPONDIDA
    assert contato.nome == "João"


def test_contato_informa_falha_do_email(api_client, settings, monkeypatch):
    settings.RESEND_API_KEY = "re_test"

    def falha(*args, **kwargs):
        raise requests.Timeout("resend lento")

    monkeypatch.setattr("requests.post", falha)
    resp = api_client.post(
        reverse("contato"),
        {"nome": "Maria", "email": "maria@exemplo.com", "mensagem": "Quero conhecer os planos."},
        format="json",
    )
    assert resp.status_code == 201
    assert resp.json()["emailSent"] is False
    assert ContatoSolicitacao.objects.count() == 1
