# backoffice/modules/pedidos/validation.py

from fastapi import Request
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from backoffice.core.exceptions import ValidationError
from backoffice.models.pedidos import PedidoCreate

MISSING_ITEMS_MESSAGE = "Pedido inválido: itens são obrigatórios"


async def validate_pedido(request: Request) -> PedidoCreate:
    """
    Dependência de validação do POST /pedidos. Rejeita com 400 antes de
    qualquer escrita quando `items` falta, não é lista ou está vazio.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    items = payload.get("items") if isinstance(payload, dict) else None
    if not isinstance(items, list) or not items:
        logger.warning("Pedido rejeitado: payload sem itens")
        raise ValidationError(MISSING_ITEMS_MESSAGE)

    try:
        return PedidoCreate.model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        logger.warning(f"Pedido rejeitado: {location}: {first['msg']}")
        raise ValidationError(f"Pedido inválido: {location}: {first['msg']}") from e


def _inline_refs(node, definitions):
    if isinstance(node, dict):
        ref = node.get("$ref")
        if ref is not None:
            return _inline_refs(definitions[ref.rsplit("/", 1)[-1]], definitions)
        return {key: _inline_refs(value, definitions) for key, value in node.items()}
    if isinstance(node, list):
        return [_inline_refs(value, definitions) for value in node]
    return node


def pedido_request_body() -> dict:
    """
    Corpo do POST /pedidos para o OpenAPI. A rota lê o JSON cru em
    `validate_pedido`, então o FastAPI não gera o requestBody sozinho.
    """
    schema = PedidoCreate.model_json_schema(by_alias=True)
    definitions = schema.pop("$defs", {})
    return {
        "required": True,
        "content": {"application/json": {"schema": _inline_refs(schema, definitions)}},
    }
