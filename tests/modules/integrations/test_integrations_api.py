# tests/modules/integrations/test_integrations_api.py
import json
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient

from backoffice.main import create_app

pytestmark = pytest.mark.asyncio

FRETE_PAYLOAD = {
    "cepOrigem": "01001000",
    "cepDestino": "20040020",
    "peso": 1.5,
    "comprimento": 20,
    "altura": 10,
    "largura": 15,
    "diametro": 0,
    "servico": "04014",
}


# --- Correios ---
async def test_frete_returns_carrier_payload(test_client: AsyncClient, upstream):
    carrier_payload = {"Servicos": {"cServico": {"Codigo": "04014", "Valor": "32,50", "PrazoEntrega": "3"}}}
    upstream.replies["correios.test"] = httpx.Response(200, json=carrier_payload)

    response = await test_client.post("/integrations/frete", json=FRETE_PAYLOAD)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == carrier_payload
    params = upstream.requests[0].url.params
    assert upstream.requests[0].method == "GET"
    assert params["nCdServico"] == "04014"
    assert params["sCepOrigem"] == "01001000"
    assert params["sCepDestino"] == "20040020"
    assert params["nCdFormato"] == "1"
    assert params["sCdMaoPropria"] == "N"
    assert params["nVlValorDeclarado"] == "0"
    assert params["sCdAvisoRecebimento"] == "N"
    assert params["StrRetorno"] == "json"


@pytest.mark.parametrize(
    "reply",
    [httpx.Response(503, text="indisponível"), httpx.ConnectError("sem rede"), httpx.Response(200, text="<html>")],
)
async def test_frete_upstream_failure(test_client: AsyncClient, upstream, reply):
    upstream.replies["correios.test"] = reply

    response = await test_client.post("/integrations/frete", json=FRETE_PAYLOAD)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Erro ao calcular frete"}


async def test_frete_invalid_payload(test_client: AsyncClient, upstream):
    response = await test_client.post("/integrations/frete", json={"cepOrigem": "01001000"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"].startswith("Parâmetros inválidos")
    assert upstream.requests == []


# --- Stripe ---
async def test_payment_intent_returns_client_secret(test_client: AsyncClient, upstream):
    upstream.replies["stripe.test"] = httpx.Response(200, json={"id": "pi_1", "client_secret": "pi_1_secret_abc"})

    response = await test_client.post("/integrations/pagamentos/intent", json={"amount": 1990, "currency": "brl"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"clientSecret": "pi_1_secret_abc"}
    request = upstream.requests[0]
    assert request.url.path == "/v1/payment_intents"
    assert request.headers["Authorization"] == "Bearer sk_test_123"
    form = parse_qs(request.content.decode())
    assert form["amount"] == ["1990"]
    assert form["currency"] == ["brl"]
    assert form["payment_method_types[]"] == ["card"]


async def test_payment_intent_forwards_payment_method_types(test_client: AsyncClient, upstream):
    upstream.replies["stripe.test"] = httpx.Response(200, json={"id": "pi_2", "client_secret": "s"})

    await test_client.post(
        "/integrations/pagamentos/intent",
        json={"amount": 500, "currency": "brl", "paymentMethodTypes": ["card", "boleto"]},
    )

    form = parse_qs(upstream.requests[0].content.decode())
    assert form["payment_method_types[]"] == ["card", "boleto"]


async def test_payment_intent_declined(test_client: AsyncClient, upstream):
    upstream.replies["stripe.test"] = httpx.Response(
        402, json={"error": {"type": "card_error", "message": "Your card was declined."}}
    )

    response = await test_client.post("/integrations/pagamentos/intent", json={"amount": 1990, "currency": "brl"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Erro ao criar pagamento"}


@pytest.mark.parametrize(
    "reply",
    [
        httpx.Response(200, json=["pi_1_secret_abc"]),
        httpx.Response(200, json="pi_1_secret_abc"),
        httpx.Response(200, json={"id": "pi_1"}),
    ],
)
async def test_payment_intent_unexpected_success_body(test_client: AsyncClient, upstream, reply):
    upstream.replies["stripe.test"] = reply

    response = await test_client.post("/integrations/pagamentos/intent", json={"amount": 1990, "currency": "brl"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Erro ao criar pagamento"}


async def test_payment_intent_without_secret_key(settings_factory, mongo_db, upstream):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    app = create_app(settings_factory(STRIPE_SECRET_KEY=None), database=mongo_db, http_client=http_client)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.post("/integrations/pagamentos/intent", json={"amount": 1990, "currency": "brl"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Erro ao criar pagamento"}
    assert upstream.requests == []
    await http_client.aclose()


# --- ERP ---
@pytest.mark.parametrize("body", [{}, {"entity": "produtos"}, {"data": [{"name": "A"}]}, {"entity": "produtos", "data": []}])
async def test_erp_sync_missing_params(test_client: AsyncClient, body):
    response = await test_client.post("/integrations/erp/sync", json=body)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Parâmetros inválidos"}


async def test_erp_sync_unknown_entity(test_client: AsyncClient):
    response = await test_client.post("/integrations/erp/sync", json={"entity": "clientes", "data": [{"id": "1"}]})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Entidade desconhecida"}


async def test_erp_sync_produtos_upserts_by_name(test_client: AsyncClient, mongo_db):
    await mongo_db["produtos"].insert_one({"name": "A", "cost": 10, "sku": "A-1"})

    response = await test_client.post(
        "/integrations/erp/sync",
        json={"entity": "produtos", "data": [{"name": "A", "cost": 12}, {"name": "B", "cost": 3}]},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Sincronização realizada com sucesso", "entity": "produtos", "synced": 2}
    produtos = {p["name"]: p for p in await mongo_db["produtos"].find({}).to_list(None)}
    assert len(produtos) == 2
    assert produtos["A"]["cost"] == 12
    assert produtos["A"]["sku"] == "A-1"
    assert produtos["B"]["cost"] == 3


async def test_erp_sync_pedidos_fires_update_audit(test_client: AsyncClient, mongo_db, store):
    created = await test_client.post("/pedidos", json={"items": [{"productName": "A", "quantity": 1}]})
    pedido_id = created.json()["id"]

    response = await test_client.post(
        "/integrations/erp/sync", json={"entity": "pedidos", "data": {"id": pedido_id, "status": "entregue"}}
    )
    await store.drain()

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["synced"] == 1
    audit = await mongo_db["audit_logs"].find_one({"action": "update_pedido"})
    assert audit["pedidoId"] == pedido_id
    assert audit["before"]["status"] == "criado"
    assert audit["after"]["status"] == "entregue"


@pytest.mark.parametrize(
    "fields",
    [
        {"items": [{"productName": "A", "quantity": 1.5, "totalPrice": 7.5}]},
        {"items": [{"quantity": 1}]},
        {"items": "camiseta"},
        {"total": -10},
        {"status": None},
    ],
)
async def test_erp_sync_pedidos_rejects_invalid_fields(test_client: AsyncClient, mongo_db, store, fields):
    created = await test_client.post("/pedidos", json={"items": [{"productName": "A", "quantity": 1, "unitPrice": 5}]})
    pedido_id = created.json()["id"]

    response = await test_client.post(
        "/integrations/erp/sync", json={"entity": "pedidos", "data": {"id": pedido_id, **fields}}
    )
    await store.drain()

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"].startswith("Parâmetros inválidos: ")
    pedido = await mongo_db["pedidos"].find_one({})
    assert pedido["items"] == [{"productName": "A", "quantity": 1, "unitPrice": 5.0, "totalPrice": 5.0}]
    assert pedido["status"] == "criado"
    assert await mongo_db["audit_logs"].count_documents({"action": "update_pedido"}) == 0
    assert (await test_client.get("/analytics/metricas")).status_code == status.HTTP_200_OK


async def test_erp_sync_produtos_rejects_invalid_cost(test_client: AsyncClient, mongo_db):
    response = await test_client.post(
        "/integrations/erp/sync", json={"entity": "produtos", "data": [{"name": "A", "cost": -1}]}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"].startswith("Parâmetros inválidos: ")
    assert await mongo_db["produtos"].count_documents({}) == 0


async def test_erp_sync_unknown_pedido(test_client: AsyncClient, mongo_db):
    response = await test_client.post(
        "/integrations/erp/sync",
        json={"entity": "pedidos", "data": [{"id": "64b7f0c2a1b2c3d4e5f60718", "status": "entregue"}]},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "64b7f0c2a1b2c3d4e5f60718" in response.json()["error"]


async def test_erp_sync_store_failure(test_client: AsyncClient, failing_collections):
    failing_collections.add("produtos")

    response = await test_client.post("/integrations/erp/sync", json={"entity": "produtos", "data": [{"name": "A"}]})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Erro interno"}


# --- NFe ---
@pytest.mark.parametrize("body", [{}, {"pedidoId": "p1"}, {"dadosNFe": {"valor": 10}}, {"pedidoId": "p1", "dadosNFe": {}}])
async def test_nfe_missing_data(test_client: AsyncClient, upstream, body):
    response = await test_client.post("/integrations/nfe", json=body)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Dados inválidos para emissão"}
    assert upstream.requests == []


async def test_nfe_emission_success(test_client: AsyncClient, upstream, store):
    upstream.replies["nfe.test"] = httpx.Response(201, json={"id": "nfe-1", "status": "Processing"})

    response = await test_client.post(
        "/integrations/nfe", json={"pedidoId": "pedido-1", "dadosNFe": {"valor": 129.8, "cliente": "Maria"}}
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "message": "NFe emitida com sucesso"}
    request = upstream.requests[0]
    assert request.headers["Authorization"] == "Bearer nfe-token"
    assert json.loads(request.content) == {"valor": 129.8, "cliente": "Maria"}

    nota = await store.get("notas_fiscais", "pedido-1")
    assert nota.data["status"] == "emitida"
    assert nota.data["response"] == {"id": "nfe-1", "status": "Processing"}


async def test_nfe_provider_failure(test_client: AsyncClient, upstream, store):
    upstream.replies["nfe.test"] = httpx.Response(500, json={"message": "falha"})

    response = await test_client.post("/integrations/nfe", json={"pedidoId": "pedido-1", "dadosNFe": {"valor": 1}})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Erro ao emitir NFe"}
    assert await store.get("notas_fiscais", "pedido-1") is None


async def test_health(test_client: AsyncClient):
    response = await test_client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}
