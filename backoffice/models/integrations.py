# backoffice/models/integrations.py

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class IntegrationModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Correios ---
class FreteRequest(IntegrationModel):
    cep_origem: str = Field(..., min_length=8, max_length=9)
    cep_destino: str = Field(..., min_length=8, max_length=9)
    peso: float = Field(..., gt=0, description="Peso em kg")
    comprimento: float = Field(..., gt=0, description="cm")
    altura: float = Field(..., ge=0, description="cm")
    largura: float = Field(..., gt=0, description="cm")
    diametro: float = Field(0, ge=0, description="cm")
    servico: str = Field(..., description="Código do serviço. Ex: 04014 (SEDEX), 04510 (PAC)")


# --- Stripe ---
class PaymentIntentRequest(IntegrationModel):
    amount: int = Field(..., gt=0, description="Valor na menor unidade da moeda (centavos)")
    currency: str = Field(..., min_length=3, max_length=3)
    payment_method_types: Optional[List[str]] = None


class PaymentIntentResponse(IntegrationModel):
    client_secret: str


# --- ERP ---
class ErpSyncRequest(BaseModel):
    # Obrigatoriedade validada no serviço para responder com a mensagem do contrato
    entity: Optional[str] = None
    data: Optional[Any] = None


class ErpSyncResponse(BaseModel):
    message: str
    entity: str
    synced: int


# --- NFe ---
class NFeRequest(IntegrationModel):
    pedido_id: Optional[str] = None
    dados_nfe: Optional[Dict[str, Any]] = Field(None, alias="dadosNFe")


class NFeResponse(BaseModel):
    success: bool
    message: str
