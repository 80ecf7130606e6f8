from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction
from django.urls import reverse

from assinaturas.models import AssinaturaEmpresa, CupomAdmin, Plano, PlanoLimite, StatusAssinatura, TentativaPagamento, TipoLimite, UsoCupom
from assinaturas.services import assinar
from core.datas import hoje_local, somar_meses

pytestmark = pytest.mark.django_db


class FakeResponse:
    def __init__(self, data, status_code=200):
        self._data = data
        self.status_code = status_code
        self.ok = status_code < 400
        self.reason = "OK"

    def json(self):
        return self._data


@pytest.fixture
def plano(db):
    return Plano.objects.create(nome="Pro", preco=Decimal("99.90"), duracao_meses=1)


@pytest.fixture
def checkout(settings, monkeypatch, empresa, plano):
    """Tentativa com preferência criada e o Mercado Pago respondendo aprovado."""
    settings.PAYMENT_API_KEY_SECRET = "token-teste"
    monkeypatch.setattr("requests.post", lambda *a, **k: FakeResponse({"id": "pref-1", "init_point": "https://mp.test"}, 201))
    assinar(empresa, plano, 1)
    tentativa = TentativaPagamento.objects.get()

    consultas = []

    def fake_get(url, headers=None, timeout=None):
        consultas.append(url)
        return FakeResponse({
            "id": 555,
            "status": "approved",
            "status_detail": "accredited",
            "external_reference": tentativa.referencia_externa,
            "transaction_amount": 99.9,
        })

    monkeypatch.setattr("requests.get", fake_get)
    return tentativa, consultas


def _notificar(client, payment_id="555"):
    return client.post(
        reverse("webhook_mercadopago"),
        {"type": "payment", "data": {"id": payment_id}},
        format="json",
    )


def test_webhook_aprovado_ativa_assinatura(api_client, empresa, checkout):
    tentativa, consultas = checkout
    resp = _notificar(api_client)
    assert resp.status_code == 200, resp.content
    body = resp.json()
    assert body["success"] is True
    assert consultas[0].endswith("/v1/payments/555")

    sub = AssinaturaEmpresa.objects.get(pk=body["subscriptionId"])
    assert sub.status == StatusAssinatura.ACTIVE
    assert sub.data_fim == somar_meses(hoje_local(), 1)
    tentativa.refresh_from_db()
    assert tentativa.status == TentativaPagamento.Status.APPROVED
    assert tentativa.payment_id == "555"


def test_webhook_repetido_nao_estende_duas_vezes(api_client, empresa, checkout):
    _notificar(api_client)
    fim = AssinaturaEmpresa.objects.get(empresa=empresa, status=StatusAssinatura.ACTIVE).data_fim

    resp = _notificar(api_client)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Payment already processed."
    assert AssinaturaEmpresa.objects.get(empresa=empresa, status=StatusAssinatura.ACTIVE).data_fim == fim


def test_webhook_registra_uso_do_cupom(api_client, settings, monkeypatch, empresa, plano):
    settings.PAYMENT_API_KEY_SECRET = "token-teste"
    cupom = CupomAdmin.objects.create(codigo="DEZ", valor_desconto=Decimal("10"))
    monkeypatch.setattr("requests.post", lambda *a, **k: FakeResponse({"id": "pref-2", "init_point": "https://mp.test"}, 201))
    assinar(empresa, plano, 1, cupom_codigo="DEZ")
    ref = TentativaPagamento.objects.get().referencia_externa
    monkeypatch.setattr(
        "requests.get",
        lambda *a, **k: FakeResponse({"status": "approved", "external_reference": ref, "transaction_amount": 89.91}),
    )

    assert _notificar(api_client, "777").status_code == 200
    sub = AssinaturaEmpresa.objects.get(empresa=empresa, status=StatusAssinatura.ACTIVE)
    assert sub.data_fim == somar_meses(hoje_local(), 2)
    assert UsoCupom.objects.filter(cupom=cupom, empresa=empresa, assinatura=sub).exists()


def test_webhook_ignora_outros_eventos(api_client, settings, monkeypatch):
    resp = api_client.post(reverse("webhook_mercadopago"), {"type": "merchant_order", "data": {"id": "1"}}, format="json")
    assert resp.status_code == 200
    assert resp.json()["received"] is True

    settings.PAYMENT_API_KEY_SECRET = "token-teste"
    monkeypatch.setattr("requests.get", lambda *a, **k: FakeResponse({"status": "pending"}))
    resp = _notificar(api_client, "888")
    assert resp.json()["message"] == "Payment status is pending, not approved."
    assert not AssinaturaEmpresa.objects.exists()


def test_webhook_com_referencia_invalida(api_client, settings, monkeypatch):
    settings.PAYMENT_API_KEY_SECRET = "token-teste"
    monkeypatch.setattr("requests.get", lambda *a, **k: FakeResponse({"status": "approved", "external_reference": "x"}))
    resp = _notificar(api_client, "999")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid external reference format"


def test_planos_publicos(api_client, plano):
    Plano.objects.create(nome="Antigo", preco=Decimal("10.00"), ativo=False)
    PlanoLimite.objects.create(plano=plano, tipo=TipoLimite.COLABORADORES, valor=3)
    resp = api_client.get(reverse("planos_publicos"))
    assert resp.status_code == 200
    planos = resp.json()["planos"]
    assert [p["nome"] for p in planos] == ["Pro"]


def test_assinar_pela_api(dono_client, colaborador_client, empresa, plano):
    CupomAdmin.objects.create(codigo="GRATIS", valor_desconto=Decimal("100"))
    url = reverse("api_assinatura:assinar", kwargs={"empresa_slug": empresa.slug})

    assert colaborador_client.post(url, {"planId": plano.pk, "couponCode": "GRATIS"}, format="json").status_code == 403

    resp = dono_client.post(url, {"planId": plano.pk, "couponCode": "GRATIS"}, format="json")
    assert resp.status_code == 200, resp.content
    assert resp.json()["activated"] is True

    status_url = reverse("api_assinatura:status", kwargs={"empresa_slug": empresa.slug})
    st = colaborador_client.get(status_url).json()
    assert st["status"] == "active"
    assert st["plano"] == "Pro"


def test_validar_cupom_pela_api(dono_client, empresa, plano):
    CupomAdmin.objects.create(codigo="DEZ", valor_desconto=Decimal("10"))
    url = reverse("api_assinatura:validar_cupom", kwargs={"empresa_slug": empresa.slug})
    resp = dono_client.post(url, {"planId": plano.pk, "couponCode": "dez"}, format="json")
    assert resp.status_code == 200
    assert resp.json()["finalPrice"] == "89.91"

    invalido = dono_client.post(url, {"planId": plano.pk, "couponCode": "NADA"}, format="json")
    assert invalido.status_code == 404


def test_sem_credencial_de_pagamento_responde_502(dono_client, empresa, plano):
    url = reverse("api_assinatura:assinar", kwargs={"empresa_slug": empresa.slug})
    resp = dono_client.post(url, {"planId": plano.pk}, format="json")
    assert resp.status_code == 502
    assert resp.json()["ok"] is False


def test_limites_da_empresa(colaborador_client, empresa, servico):
    url = reverse("api_assinatura:limites", kwargs={"empresa_slug": empresa.slug})
    body = colaborador_client.get(url).json()
    assert body["services"]["current"] == 1
    assert body["collaborators"]["unlimited"] is True
    assert colaborador_client.get(url, {"tipo": "planets"}).status_code == 400


def test_admin_global_gerencia_planos_e_cupons(admin_client, dono_client, plano):
    url = reverse("admin_assinaturas:planos")
    assert dono_client.get(url).status_code == 403

    resp = admin_client.post(url, {"nome": "Premium", "preco": "199.90", "duracao_meses": 1}, format="json")
    assert resp.status_code == 201, resp.content
    novo = resp.json()["id"]

    limites = admin_client.put(
        reverse("admin_assinaturas:plano_limites", kwargs={"pk": novo}),
        {"limites": [{"tipo": "collaborators", "valor": 10}, {"tipo": "services", "valor": 0}]},
        format="json",
    )
    assert limites.status_code == 200, limites.content
    assert PlanoLimite.objects.filter(plano_id=novo).count() == 2

    cupom = admin_client.post(
        reverse("admin_assinaturas:cupons"),
        {"codigo": "natal", "tipo_desconto": "PERCENTUAL", "valor_desconto": "150"},
        format="json",
    )
    assert cupom.status_code == 400
    cupom = admin_client.post(
        reverse("admin_assinaturas:cupons"),
        {"codigo": "natal", "tipo_desconto": "PERCENTUAL", "valor_desconto": "15"},
        format="json",
    )
    assert cupom.status_code == 201
    assert cupom.json()["codigo"] == "NATAL"


def test_plano_com_historico_so_desativa(admin_client, empresa, plano):
    AssinaturaEmpresa.objects.create(empresa=empresa, plano=plano, status=StatusAssinatura.EXPIRED, data_inicio=hoje_local())
    resp = admin_client.delete(reverse("admin_assinaturas:plano_detail", kwargs={"pk": plano.pk}))
    assert resp.status_code == 204
    plano.refresh_from_db()
    assert plano.ativo is False


def test_webhook_concorrente_gravado_antes_nao_estende(api_client, empresa, plano, checkout):
    # outra notificação do pagamento 555 gravou primeiro, ainda sem aprovar
    TentativaPagamento.objects.create(
        empresa=empresa,
        plano=plano,
        valor=Decimal("99.90"),
        status=TentativaPagamento.Status.PREFERENCE_CREATED,
        payment_id="555",
    )

    resp = _notificar(api_client)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Payment already processed."
    assert not AssinaturaEmpresa.objects.filter(empresa=empresa, status=StatusAssinatura.ACTIVE).exists()
    tentativa, _ = checkout
    tentativa.refresh_from_db()
    assert tentativa.status != TentativaPagamento.Status.APPROVED


def test_payment_id_unico_quando_preenchido(empresa, plano):
    TentativaPagamento.objects.create(empresa=empresa, plano=plano, valor=Decimal("1.00"))
    TentativaPagamento.objects.create(empresa=empresa, plano=plano, valor=Decimal("1.00"))
    TentativaPagamento.objects.create(empresa=empresa, plano=plano, valor=Decimal("1.00"), payment_id="900")
    with pytest.raises(IntegrityError), transaction.atomic():
        TentativaPagamento.objects.create(empresa=empresa, plano=plano, valor=Decimal("1.00"), payment_id="900")


def test_novo_pagamento_da_mesma_preferencia_gera_outra_tentativa(api_client, empresa, checkout):
    _notificar(api_client, "555")
    resp = _notificar(api_client, "556")
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    aprovadas = TentativaPagamento.objects.filter(status=TentativaPagamento.Status.APPROVED)
    assert sorted(aprovadas.values_list("payment_id", flat=True)) == ["555", "556"]
    sub = AssinaturaEmpresa.objects.get(empresa=empresa, status=StatusAssinatura.ACTIVE)
    assert sub.data_fim == somar_meses(somar_meses(hoje_local(), 1), 1)
