"""Handlers for REST API calls that manage the credential pool."""

import asyncio
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError

import constants
from authentication import get_auth_dependency
from authentication.interface import AuthTuple
from authorization.middleware import authorize
from configuration import configuration
from credentials.device_flow import DeviceFlowStatus
from credentials.errors import CredentialNotFoundError, DeviceFlowError
from log import get_logger, short_id
from models.config import Action
from models.requests import CredentialEnrollRequest, CredentialTestRequest
from models.responses import (
    CredentialDeleteResponse,
    CredentialResponse,
    CredentialsListResponse,
    CredentialTestResponse,
    CredentialTestsResponse,
    DeviceFlowPollResponse,
    DeviceFlowStartResponse,
    ForbiddenResponse,
    NotFoundResponse,
    UnauthorizedResponse,
    UpstreamErrorResponse,
)
from utils.endpoints import check_configuration_loaded, database_error, get_gateway

logger = get_logger("app.endpoints.handlers")
router = APIRouter(prefix="/admin/credentials", tags=["credentials"])


credentials_list_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "credentials": [
            {
                "id": "a6bd1f5e-0a3f-4f6b-9a51-21fb2d8f3d6b",
                "label": "@octocat",
                "status": "alive",
                "last_tested_at": "2025-01-01T00:00:00Z",
                "last_used_at": "2025-01-01T00:10:00Z",
                "use_count": 42,
                "created_at": "2024-12-24T12:00:00Z",
            }
        ]
    },
    401: {
        "description": "Unauthorized: Invalid or missing Bearer token",
        "model": UnauthorizedResponse,
    },
    403: {
        "description": "User is not authorized",
        "model": ForbiddenResponse,
    },
    500: {"detail": {"response": "Database operation failed", "cause": "..."}},
}

credential_delete_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "credential_id": "a6bd1f5e-0a3f-4f6b-9a51-21fb2d8f3d6b",
        "success": True,
        "response": "Credential deleted successfully",
    },
    404: {
        "description": "Credential does not exist",
        "model": NotFoundResponse,
    },
}

credential_test_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "results": [
            {
                "credential_id": "a6bd1f5e-0a3f-4f6b-9a51-21fb2d8f3d6b",
                "label": "@octocat",
                "valid": True,
                "status": "alive",
                "sku": "copilot_for_individuals_subscriber",
                "error": None,
            }
        ]
    },
    404: {
        "description": "Credential does not exist",
        "model": NotFoundResponse,
    },
}

device_flow_responses: dict[int | str, dict[str, Any]] = {
    502: {
        "description": "GitHub device flow request failed",
        "model": UpstreamErrorResponse,
    },
}


def _not_found(credential_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=NotFoundResponse(
            resource="credential", resource_id=credential_id
        ).dump_detail(),
    )


def _device_flow_failed(error: DeviceFlowError) -> HTTPException:
    logger.error("Device flow failed: %s", error)
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=UpstreamErrorResponse(upstream="GitHub", cause=str(error)).dump_detail(),
    )


@router.get("", responses=credentials_list_responses)
@authorize(Action.MANAGE_CREDENTIALS)
async def list_credentials_endpoint_handler(
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
) -> CredentialsListResponse:
    """
    Handle request to list all enrolled credentials.

    Secrets are never part of the response.
    """
    # Used only by the middleware
    _ = auth

    # Nothing interesting in the request
    _ = request

    check_configuration_loaded(configuration)
    store = get_gateway().credential_store
    try:
        credentials = await asyncio.to_thread(store.list_all)
    except SQLAlchemyError as e:
        raise database_error("list credentials", e) from e
    return CredentialsListResponse(
        credentials=[CredentialResponse.model_validate(c) for c in credentials]
    )


@router.post("", responses=credentials_list_responses)
@authorize(Action.MANAGE_CREDENTIALS)
async def enroll_credential_endpoint_handler(
    enroll_request: CredentialEnrollRequest,
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
) -> CredentialResponse:
    """
    Enroll new credential into the pool.

    The credential is validated by one token exchange. A credential rejected
    by the upstream is still stored, with status dead.
    """
    # Used only by the middleware
    _ = auth

    # Nothing interesting in the request
    _ = request

    check_configuration_loaded(configuration)
    health_monitor = get_gateway().health_monitor
    try:
        credential = await health_monitor.enroll(
            enroll_request.label, enroll_request.secret.get_secret_value()
        )
    except SQLAlchemyError as e:
        raise database_error("enroll credential", e) from e

    logger.info(
        "Enrolled credential %s (%s) as %s",
        short_id(credential.id),
        credential.label,
        credential.status,
    )
    return CredentialResponse.model_validate(credential)


@router.delete("/{credential_id}", responses=credential_delete_responses)
@authorize(Action.MANAGE_CREDENTIALS)
async def delete_credential_endpoint_handler(
    credential_id: str,
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
) -> CredentialDeleteResponse:
    """Remove credential from the pool together with its cached token."""
    # Used only by the middleware
    _ = auth

    # Nothing interesting in the request
    _ = request

    check_configuration_loaded(configuration)
    gateway = get_gateway()
    try:
        deleted = await asyncio.to_thread(
            gateway.credential_store.delete, credential_id
        )
    except SQLAlchemyError as e:
        raise database_error("delete credential", e) from e
    if not deleted:
        raise _not_found(credential_id)

    gateway.rotation_manager.forget(credential_id)
    logger.info("Deleted credential %s", short_id(credential_id))
    return CredentialDeleteResponse(
        credential_id=credential_id,
        success=True,
        response="Credential deleted successfully",
    )


@router.post("/test", responses=credential_test_responses)
@authorize(Action.MANAGE_CREDENTIALS)
async def test_credentials_endpoint_handler(
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
    test_request: Optional[CredentialTestRequest] = None,
) -> CredentialTestsResponse:
    """
    Test one credential or, without ID, all of them.

    A credential rejected by the upstream becomes dead, a credential that
    produced a token becomes alive again.
    """
    # Used only by the middleware
    _ = auth

    # Nothing interesting in the request
    _ = request

    check_configuration_loaded(configuration)
    health_monitor = get_gateway().health_monitor
    try:
        if test_request is not None and test_request.id is not None:
            results = [await health_monitor.test(test_request.id)]
        else:
            results = await health_monitor.test_all()
    except CredentialNotFoundError as e:
        raise _not_found(e.credential_id) from e
    except SQLAlchemyError as e:
        raise database_error("test credentials", e) from e

    return CredentialTestsResponse(
        results=[CredentialTestResponse.model_validate(r) for r in results]
    )


@router.post("/device-flow", responses=device_flow_responses)
@authorize(Action.MANAGE_CREDENTIALS)
async def start_device_flow_endpoint_handler(
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
) -> DeviceFlowStartResponse:
    """
    Start GitHub device flow.

    The administrator visits `verification_uri`, enters `user_code` and then
    polls the device flow endpoint with `device_code`.
    """
    # Used only by the middleware
    _ = auth

    # Nothing interesting in the request
    _ = request

    check_configuration_loaded(configuration)
    try:
        device_code = await get_gateway().device_flow.start()
    except DeviceFlowError as e:
        raise _device_flow_failed(e) from e
    return DeviceFlowStartResponse.model_validate(device_code)


@router.get("/device-flow", responses=device_flow_responses)
@authorize(Action.MANAGE_CREDENTIALS)
async def poll_device_flow_endpoint_handler(
    request: Request,
    auth: Annotated[AuthTuple, Depends(get_auth_dependency())],
    device_code: Annotated[str, Query(min_length=1)],
    label: Annotated[Optional[str], Query()] = None,
) -> DeviceFlowPollResponse:
    """
    Poll GitHub once for the device flow outcome.

    Once the user authorizes the device the access token is enrolled as new
    credential labelled with the GitHub login of its owner.
    """
    # Used only by the middleware
    _ = auth

    # Nothing interesting in the request
    _ = request

    check_configuration_loaded(configuration)
    gateway = get_gateway()
    try:
        poll = await gateway.device_flow.poll(device_code)
    except DeviceFlowError as e:
        raise _device_flow_failed(e) from e

    if poll.status != DeviceFlowStatus.AUTHORIZED or poll.access_token is None:
        return DeviceFlowPollResponse(status=poll.status.value, error=poll.error)

    login = await gateway.device_flow.fetch_login(poll.access_token)
    credential_label = (
        f"@{login}" if login else label or constants.DEFAULT_CREDENTIAL_LABEL
    )
    try:
        credential = await gateway.health_monitor.enroll(
            credential_label, poll.access_token
        )
    except SQLAlchemyError as e:
        raise database_error("enroll credential", e) from e

    logger.info(
        "Enrolled credential %s (%s) through device flow",
        short_id(credential.id),
        credential.label,
    )
    return DeviceFlowPollResponse(
        status=poll.status.value,
        credential=CredentialResponse.model_validate(credential),
    )
