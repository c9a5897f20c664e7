# backoffice/modules/integrations/routers.py

from typing import Any

from fastapi import APIRouter, Depends
from loguru import logger

from backoffice.core.context import AppContext, get_context
from backoffice.models.integrations import (
    ErpSyncRequest,
    ErpSyncResponse,
    FreteRequest,
    NFeRequest,
    NFeResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
)
from backoffice.modules.pedidos.repository import PedidoRepository, get_pedido_repository
from backoffice.services.correios_service import CorreiosService
from backoffice.services.erp_service import ErpSyncService
from backoffice.services.nfe_service import NFeService
from backoffice.services.stripe_service import StripeService

integrations_router = APIRouter(prefix="/integrations", tags=["Integrações"])


# --- Dependências ---
def get_correios_service(context: AppContext = Depends(get_context)) -> CorreiosService:
    return CorreiosService(context.http_client, context.settings)


def get_stripe_service(context: AppContext = Depends(get_context)) -> StripeService:
    return StripeService(context.http_client, context.settings)


def get_erp_service(
    context: AppContext = Depends(get_context),
    pedido_repo: PedidoRepository = Depends(get_pedido_repository),
) -> ErpSyncService:
    return ErpSyncService(context.store, pedido_repo, context.settings.PRODUTOS_COLLECTION)


def get_nfe_service(context: AppContext = Depends(get_context)) -> NFeService:
    return NFeService(context.http_client, context.store, context.settings)


# --- Endpoints ---
@integrations_router.post("/frete", summary="Calcula frete e prazo nos Correios")
async def calculate_frete_endpoint(
    frete_in: FreteRequest,
    correios: CorreiosService = Depends(get_correios_service),
) -> Any:
    return await correios.calculate_frete(frete_in)


@integrations_router.post(
    "/pagamentos/intent",
    response_model=PaymentIntentResponse,
    response_model_by_alias=True,
    summary="Cria um PaymentIntent na Stripe",
)
async def create_payment_intent_endpoint(
    payment_in: PaymentIntentRequest,
    stripe: StripeService = Depends(get_stripe_service),
):
    client_secret = await stripe.create_payment_intent(
        payment_in.amount, payment_in.currency, payment_in.payment_method_types
    )
    return PaymentIntentResponse(client_secret=client_secret)


@integrations_router.post("/erp/sync", response_model=ErpSyncResponse, summary="Recebe dados do ERP")
async def erp_sync_endpoint(
    sync_in: ErpSyncRequest,
    erp: ErpSyncService = Depends(get_erp_service),
):
    logger.info(f"Endpoint: sync ERP para entidade '{sync_in.entity}'")
    return await erp.sync(sync_in.entity, sync_in.data)


@integrations_router.post("/nfe", response_model=NFeResponse, summary="Emite NFe de um pedido")
async def emitir_nfe_endpoint(
    nfe_in: NFeRequest,
    nfe: NFeService = Depends(get_nfe_service),
):
    return await nfe.emitir(nfe_in.pedido_id, nfe_in.dados_nfe)
