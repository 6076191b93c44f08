"""Handlers for REST API calls to list and configure models."""

import asyncio
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError

from authentication import get_auth_dependency
from authentication.interface import AuthTuple
from authorization.middleware import authorize
from configuration import configuration
from log import get_logger
from models.config import Action
from models.requests import ModelConfigUpdateRequest
from models.responses import (
    ModelConfigDeleteResponse,
    ModelConfigResponse,
    ModelsResponse,
    NotFoundResponse,
    UnauthorizedResponse,
)
from utils.endpoints import check_configuration_loaded, database_error, get_gateway

logger = get_logger("app.endpoints.handlers")
router = APIRouter(tags=["models"])


models_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "models": [
            {
                "id": "gpt-4.1",
                "tier": None,
                "daily_limit": None,
                "is_enabled": True,
                "is_default": True,
                "custom_label": "GPT-4.1",
                "sort_order": 0,
            },
        ]
    },
    401: {
        "description": "Unauthorized: Invalid or missing Bearer token",
        "model": UnauthorizedResponse,
    },
    500: {"detail": {"response": "Database operation failed", "cause": "..."}},
}

model_delete_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "model_id": "claude-opus-4",
        "success": True,
        "response": "Model configuration deleted successfully",
    },
    404: {
        "detail": {
            "response": "Model not found",
            "cause": "Model with ID claude-opus-4 does not exist.",
        }
    },
}


@router.get("/models", responses=models_responses)
@authorize(Action.GET_MODELS)
async def models_endpoint_handler(
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
) -> ModelsResponse:
    """
    Handle requests to the /models endpoint.

    Returns:
        ModelsResponse: Enabled models ordered by their sort order.
    """
    # Used only by the middleware
    _ = auth

    # Nothing interesting in the request
    _ = request

    check_configuration_loaded(configuration)
    store = get_gateway().model_config_store
    try:
        models = await asyncio.to_thread(store.list_models, True)
    except SQLAlchemyError as e:
        raise database_error("list models", e) from e
    return ModelsResponse(
        models=[ModelConfigResponse.model_validate(model) for model in models]
    )


@router.get("/admin/models", responses=models_responses)
@authorize(Action.MANAGE_MODELS)
async def admin_models_endpoint_handler(
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
) -> ModelsResponse:
    """Return all configured models including the disabled ones."""
    # Used only by the middleware
    _ = auth

    # Nothing interesting in the request
    _ = request

    check_configuration_loaded(configuration)
    store = get_gateway().model_config_store
    try:
        models = await asyncio.to_thread(store.list_models, False)
    except SQLAlchemyError as e:
        raise database_error("list models", e) from e
    return ModelsResponse(
        models=[ModelConfigResponse.model_validate(model) for model in models]
    )


@router.put("/admin/models/{model_id:path}")
@authorize(Action.MANAGE_MODELS)
async def update_model_endpoint_handler(
    model_id: str,
    update_request: ModelConfigUpdateRequest,
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
) -> ModelConfigResponse:
    """
    Create or update configuration of one model.

    Only fields present in the request body are changed. Setting
    `is_default` clears the flag on all other models.
    """
    # Used only by the middleware
    _ = auth

    # Nothing interesting in the request
    _ = request

    check_configuration_loaded(configuration)
    store = get_gateway().model_config_store
    changes = update_request.changes()
    logger.info("Updating model %s: %s", model_id, sorted(changes))
    try:
        model_config = await asyncio.to_thread(store.upsert, model_id, changes)
    except SQLAlchemyError as e:
        raise database_error("update model configuration", e) from e
    return ModelConfigResponse.model_validate(model_config)


@router.delete("/admin/models/{model_id:path}", responses=model_delete_responses)
@authorize(Action.MANAGE_MODELS)
async def delete_model_endpoint_handler(
    model_id: str,
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
) -> ModelConfigDeleteResponse:
    """Delete configuration of one model, the model falls back to defaults."""
    # Used only by the middleware
    _ = auth

    # Nothing interesting in the request
    _ = request

    check_configuration_loaded(configuration)
    store = get_gateway().model_config_store
    try:
        deleted = await asyncio.to_thread(store.delete, model_id)
    except SQLAlchemyError as e:
        raise database_error("delete model configuration", e) from e
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NotFoundResponse(resource="model", resource_id=model_id).dump_detail(),
        )
    return ModelConfigDeleteResponse(
        model_id=model_id,
        success=True,
        response="Model configuration deleted successfully",
    )
