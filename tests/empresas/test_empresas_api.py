import re

import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse

from empresas.models import Colaborador, Contrato, Empresa, Membership, MembershipRole, PerfilUsuario, Segmento, TipoUsuario
from empresas.registration import registrar_empresa_e_usuario
from core.exceptions import RegraNegocio

pytestmark = pytest.mark.django_db

User = get_user_model()


@pytest.fixture
def segmento():
    return Segmento.objects.create(nome="Beleza")


@pytest.fixture
def contrato():
    return Contrato.objects.create(numero="2024-01", nome="Termos de uso", conteudo="...")


def _dados_cadastro(segmento, **extra):
    dados = {
        "firstName": "Maria",
        "lastName": "Silva",
        "email": "Maria@Exemplo.com",
        "password": "Senha@Forte123",
        "companyName": "Studio Maria",
        "cnpj": "11.222.333/0001-81",
        "segmentType": str(segmento.pk),
        "companyPhoneNumber": "(11) 98888-7777",
        "state": "sp",
    }
    dados.update(extra)
    return dados


def test_registro_empresa_cria_usuario_empresa_e_vinculo(api_client, segmento, contrato):
    resp = api_client.post(reverse("auth:registro_empresa"), _dados_cadastro(segmento), format="json")
    assert resp.status_code == 201, resp.content

    user = User.objects.get(email="maria@exemplo.com")
    empresa = Empresa.objects.get(cnpj="11222333000181")
    assert empresa.proprietario == user
    assert empresa.slug == "studio-maria"
    assert empresa.aprovada is False
    assert empresa.contrato == contrato and empresa.contrato_aceito
    assert empresa.telefone == "5511988887777"
    assert empresa.estado == "SP"
    mem = Membership.objects.get(user=user, empresa=empresa)
    assert mem.role == MembershipRole.PROPRIETARIO
    assert mem.is_primary
    assert PerfilUsuario.objects.get(user=user).tipo == TipoUsuario.PROPRIETARIO


def test_registro_sem_contrato_ativo_falha(segmento):
    with pytest.raises(RegraNegocio, match="contrato"):
        registrar_empresa_e_usuario(_dados_cadastro(segmento, cnpj="11222333000181"))
    assert not User.objects.filter(email="maria@exemplo.com").exists()


def test_registro_campos_faltando(segmento, contrato):
    with pytest.raises(RegraNegocio) as exc:
        registrar_empresa_e_usuario({"email": "x@y.com"})
    assert "password" in exc.value.extra["missing"]


def test_registro_cnpj_duplicado(api_client, segmento, contrato, empresa):
    resp = api_client.post(
        reverse("auth:registro_empresa"),
        _dados_cadastro(segmento, email="outra@exemplo.com"),
        format="json",
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Já existe uma empresa cadastrada com este CNPJ."


def test_login_retorna_token_e_papeis(api_client, dono, empresa):
    resp = api_client.post(
        reverse("auth:login"), {"email": "DONO@teste.com", "password": "Senha@Teste123"}, format="json"
    )
    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["ok"] is True
    assert body["token"]
    assert body["user"]["empresa_primaria"]["slug"] == empresa.slug

    me = api_client.get(reverse("auth:me"), HTTP_AUTHORIZATION=f"Token {body['token']}")
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "dono@teste.com"


def test_login_senha_errada(api_client, dono):
    resp = api_client.post(reverse("auth:login"), {"email": "dono@teste.com", "password": "errada"}, format="json")
    assert resp.status_code == 400
    assert resp.json()["ok"] is False


def test_convidar_colaborador_cria_usuario_com_senha_temporaria(dono_client, empresa):
    url = reverse("api_empresas:colaboradores", kwargs={"empresa_slug": empresa.slug})
    resp = dono_client.post(
        url,
        {
            "firstName": "João",
            "lastName": "Pereira",
            "email": "joao@teste.com",
            "phoneNumber": "11977776666",
            "hireDate": "2024-01-10",
            "commissionPercentage": "15.00",
        },
        format="json",
    )
    assert resp.status_code == 201, resp.content
    colab = Colaborador.objects.get(email="joao@teste.com")
    assert colab.user is not None
    assert colab.user.perfil.senha_temporaria is True
    assert Membership.objects.get(user=colab.user, empresa=empresa).role == MembershipRole.COLABORADOR

    dup = dono_client.post(
        url,
        {
            "firstName": "João",
            "lastName": "Pereira",
            "email": "JOAO@teste.com",
            "phoneNumber": "11977776666",
            "hireDate": "2024-01-10",
        },
        format="json",
    )
    assert dup.status_code == 400


def test_colaborador_nao_convida(colaborador_client, empresa):
    url = reverse("api_empresas:colaboradores", kwargs={"empresa_slug": empresa.slug})
    resp = colaborador_client.post(url, {}, format="json")
    assert resp.status_code == 403


def test_estranho_nao_ve_empresa(api_client, empresa, db):
    outro = User.objects.create_user(username="x@x.com", email="x@x.com", password="Senha@Teste123")
    api_client.force_authenticate(user=outro)
    resp = api_client.get(reverse("api_empresas:detail", kwargs={"empresa_slug": empresa.slug}))
    assert resp.status_code == 403


def test_admin_global_aprova_empresa(admin_client, empresa):
    empresa.aprovada = False
    empresa.save(update_fields=["aprovada"])

    pendentes = admin_client.get(reverse("admin_empresas:list"), {"pendentes": "1"})
    assert [e["slug"] for e in pendentes.json()["empresas"]] == [empresa.slug]

    resp = admin_client.patch(reverse("admin_empresas:detail", kwargs={"pk": empresa.pk}), {"aprovada": True}, format="json")
    assert resp.status_code == 200
    empresa.refresh_from_db()
    assert empresa.aprovada is True


def test_dono_nao_acessa_admin_global(dono_client):
    assert dono_client.get(reverse("admin_empresas:list")).status_code == 403


def test_pagina_publica_so_para_empresa_aprovada(client, empresa, servico, colaborador):
    resp = client.get(reverse("public:empresa", kwargs={"empresa_slug": empresa.slug}))
    assert resp.status_code == 200
    body = resp.json()
    assert body["servicos"][0]["nome"] == "Corte"
    assert body["colaboradores"][0]["nome"] == "Ana Lima"

    empresa.aprovada = False
    empresa.save(update_fields=["aprovada"])
    assert client.get(reverse("public:empresa", kwargs={"empresa_slug": empresa.slug})).status_code == 404


class _RespostaResend:
    def raise_for_status(self):
        return None


@pytest.fixture
def caixa_de_saida(settings, monkeypatch):
    settings.RESEND_API_KEY = "re_test"
    enviados = []

    def fake_post(url, json=None, **kwargs):
        enviados.append(json)
        return _RespostaResend()

    monkeypatch.setattr("requests.post", fake_post)
    return enviados


def _uid_token(html):
    m = re.search(r"uid=([\w-]+)&amp;token=([\w-]+)", html)
    return m.group(1), m.group(2)


def test_esqueci_a_senha_e_redefinicao(api_client, dono, caixa_de_saida):
    resp = api_client.post(reverse("auth:password_reset"), {"email": "Dono@Teste.com"}, format="json")
    assert resp.status_code == 200
    assert len(caixa_de_saida) == 1
    assert caixa_de_saida[0]["to"] == ["dono@teste.com"]
    uid, token = _uid_token(caixa_de_saida[0]["html"])

    url = reverse("auth:password_reset_confirm")
    diferente = api_client.post(
        url, {"uid": uid, "token": token, "password": "NovaSenha@2024", "confirmPassword": "Outra@2024"}, format="json"
    )
    assert diferente.status_code == 400
    assert diferente.json()["error"] == "As senhas não coincidem."

    ok = api_client.post(
        url, {"uid": uid, "token": token, "password": "NovaSenha@2024", "confirmPassword": "NovaSenha@2024"}, format="json"
    )
    assert ok.status_code == 200, ok.content
    login = api_client.post(reverse("auth:login"), {"email": "dono@teste.com", "password": "NovaSenha@2024"}, format="json")
    assert login.status_code == 200

    # o link vale uma vez só
    de_novo = api_client.post(
        url, {"uid": uid, "token": token, "password": "Mais1@Senha", "confirmPassword": "Mais1@Senha"}, format="json"
    )
    assert de_novo.status_code == 400
    assert de_novo.json()["error"] == "Link de redefinição inválido ou expirado."


def test_esqueci_a_senha_nao_revela_email(api_client, dono, caixa_de_saida):
    existe = api_client.post(reverse("auth:password_reset"), {"email": "dono@teste.com"}, format="json").json()
    nao_existe = api_client.post(reverse("auth:password_reset"), {"email": "ninguem@teste.com"}, format="json").json()
    assert existe == nao_existe
    assert len(caixa_de_saida) == 1

    vazio = api_client.post(reverse("auth:password_reset"), {}, format="json")
    assert vazio.status_code == 400


def test_redefinicao_com_uid_invalido(api_client):
    resp = api_client.post(
        reverse("auth:password_reset_confirm"),
        {"uid": "!!", "token": "x", "password": "NovaSenha@2024", "confirmPassword": "NovaSenha@2024"},
        format="json",
    )
    assert resp.status_code == 400
