from datetime import time

import pytest
import requests
from django.contrib.auth import get_user_model
from django.urls import reverse

from agendamentos.models import Agendamento
from clientes.models import Cliente
from clientes.services import (
    MSG_EMAIL_DUPLICADO,
    NOME_CONVIDADO,
    cadastrar_cliente,
    cliente_convidado_padrao,
    convidar_cliente,
    find_or_create_cliente,
)
from core.exceptions import RegraNegocio
from empresas.models import PerfilUsuario, TipoUsuario

pytestmark = pytest.mark.django_db

User = get_user_model()


def _url(empresa, name="api_clientes:list", **kw):
    return reverse(name, kwargs={"empresa_slug": empresa.slug, **kw})


def test_lista_filtra_por_busca_e_esconde_convidado(dono_client, empresa, cliente):
    Cliente.objects.create(empresa=empresa, nome="Beatriz Costa", telefone="5511988881111")
    cliente_convidado_padrao(empresa, "Visitante")

    todos = dono_client.get(_url(empresa)).json()["clientes"]
    assert {c["nome"] for c in todos} == {"Carlos Souza", "Beatriz Costa"}

    busca = dono_client.get(_url(empresa), {"q": "beatriz"}).json()["clientes"]
    assert [c["nome"] for c in busca] == ["Beatriz Costa"]


def test_cria_cliente_normaliza_telefone(dono_client, empresa):
    resp = dono_client.post(_url(empresa), {"nome": "Paula", "telefone": "(21) 99999-0000"}, format="json")
    assert resp.status_code == 201, resp.content
    assert resp.json()["cliente"]["telefone"] == "5521999990000"


def test_telefone_duplicado_na_empresa(dono_client, empresa, cliente):
    resp = dono_client.post(_url(empresa), {"nome": "Outro", "telefone": "11 99999-0000"}, format="json")
    assert resp.status_code == 400
    assert "telefone" in resp.json()


def test_colaborador_apenas_le(colaborador_client, empresa, cliente):
    assert colaborador_client.get(_url(empresa)).status_code == 200
    assert colaborador_client.post(_url(empresa), {"nome": "X"}, format="json").status_code == 403


def test_excluir_cliente_com_agendamento_apenas_inativa(dono_client, empresa, cliente, colaborador, dia_util):
    Agendamento.objects.create(empresa=empresa, cliente=cliente, colaborador=colaborador, data=dia_util, hora=time(9, 0))
    resp = dono_client.delete(_url(empresa, "api_clientes:detail", pk=cliente.pk))
    assert resp.json() == {"ok": True, "inativado": True}
    cliente.refresh_from_db()
    assert cliente.status == Cliente.Status.INATIVO


def test_convite_cliente_cria_acesso_temporario(dono_client, empresa):
    resp = dono_client.post(
        _url(empresa, "api_clientes:convite"),
        {"nome": "Rita Alves", "email": "Rita@Teste.com", "telefone": "11955554444"},
        format="json",
    )
    assert resp.status_code == 201, resp.content
    user = User.objects.get(email="rita@teste.com")
    perfil = PerfilUsuario.objects.get(user=user)
    assert perfil.tipo == TipoUsuario.CLIENTE
    assert perfil.senha_temporaria is True
    cli = Cliente.objects.get(user=user)
    assert cli.empresa == empresa
    assert cli.telefone == "5511955554444"


def test_convite_email_duplicado(dono_client, empresa, dono):
    resp = dono_client.post(
        _url(empresa, "api_clientes:convite"),
        {"nome": "Fulano", "email": dono.email},
        format="json",
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == MSG_EMAIL_DUPLICADO


def test_auto_cadastro_publico(api_client):
    resp = api_client.post(
        reverse("registro_cliente"),
        {"firstName": "Lucas", "lastName": "Mendes", "email": "lucas@teste.com", "password": "Senha@Teste123"},
        format="json",
    )
    assert resp.status_code == 201, resp.content
    body = resp.json()
    assert body["message"] == "Cadastro realizado com sucesso!"
    # sem RESEND_API_KEY nos testes
    assert body["emailSent"] is False
    cli = Cliente.objects.get(email="lucas@teste.com")
    assert cli.empresa is None
    assert cli.nome == "Lucas Mendes"

    dup = api_client.post(
        reverse("registro_cliente"),
        {"firstName": "Lucas", "lastName": "M", "email": "lucas@teste.com", "password": "Senha@Teste123"},
        format="json",
    )
    assert dup.status_code == 400
    assert dup.json()["error"] == MSG_EMAIL_DUPLICADO


def test_cliente_convidado_e_unico_por_empresa(empresa):
    a = cliente_convidado_padrao(empresa, " João ")
    b = cliente_convidado_padrao(empresa, "Maria")
    assert a["clientId"] == b["clientId"]
    assert a["clientNickname"] == "João"
    assert Cliente.objects.get(pk=a["clientId"]).nome == NOME_CONVIDADO

    with pytest.raises(RegraNegocio, match="Name is required"):
        cliente_convidado_padrao(empresa, "  ")


def test_endpoint_publico_de_convidado(api_client, empresa):
    url = reverse("public_agenda:convidado", kwargs={"empresa_slug": empresa.slug})
    resp = api_client.post(url, {"name": "Visitante"}, format="json")
    assert resp.status_code == 200
    assert resp.json()["clientNickname"] == "Visitante"


def test_find_or_create_por_telefone_exato_e_sufixo(empresa, cliente):
    assert find_or_create_cliente(empresa, "Outro Nome", "+55 (11) 99999-0000") == cliente

    antigo = Cliente.objects.create(empresa=empresa, nome="Bia", telefone="87654321")
    achado = find_or_create_cliente(empresa, None, "11 98765-4321")
    assert achado == antigo
    antigo.refresh_from_db()
    assert antigo.telefone == "5511987654321"


def test_find_or_create_por_nome_ou_cria(empresa):
    sem_tel = Cliente.objects.create(empresa=empresa, nome="Joana Dias")
    achado = find_or_create_cliente(empresa, "joana dias", "11977776666")
    assert achado == sem_tel
    sem_tel.refresh_from_db()
    assert sem_tel.telefone == "5511977776666"

    novo = find_or_create_cliente(empresa, "Pedro", "21955554444")
    assert novo.pk != sem_tel.pk
    assert novo.telefone == "5521955554444"
    assert novo.empresa == empresa
    assert novo.convidado is False


class _RespostaResend:
    status_code = 200

    def raise_for_status(self):
        return None


def _falha_resend(*args, **kwargs):
    raise requests.ConnectionError("resend fora do ar")


def test_auto_cadastro_informa_falha_real_do_email(db, settings, monkeypatch):
    settings.RESEND_API_KEY = "re_test"
    monkeypatch.setattr("requests.post", _falha_resend)

    res = cadastrar_cliente({"firstName": "Rita", "lastName": "Alves", "email": "rita@teste.com", "password": "Senha@Teste123"})
    assert res["emailSent"] is False
    assert res["emailError"] == "Não foi possível enviar o e-mail de boas-vindas."
    assert Cliente.objects.filter(email="rita@teste.com").exists()


def test_auto_cadastro_informa_email_enviado(db, settings, monkeypatch):
    settings.RESEND_API_KEY = "re_test"
    enviados = []

    def fake_post(url, json=None, **kwargs):
        enviados.append(json["to"])
        return _RespostaResend()

    monkeypatch.setattr("requests.post", fake_post)

    res = cadastrar_cliente({"firstName": "Rita", "lastName": "Alves", "email": "rita@teste.com", "password": "Senha@Teste123"})
    assert res["emailSent"] is True
    assert res["emailError"] is None
    assert enviados == [["rita@teste.com"]]


def test_convite_informa_falha_do_email(empresa, settings, monkeypatch):
    settings.RESEND_API_KEY = "re_test"
    monkeypatch.setattr("requests.post", _falha_resend)

    res = convidar_cliente(empresa, {"nome": "Beto", "email": "beto@teste.com"})
    assert res["emailSent"] is False
    assert res["cliente"].user.perfil.senha_temporaria is True
