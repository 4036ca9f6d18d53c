"""
API key routes.

Management (caller's own keys; API-key callers also need MANAGE_KEYS):
    POST   /api/auth/api-keys            — create; the key is returned once (WRITE)
    GET    /api/auth/api-keys            — list, no key values (READ)
    GET    /api/auth/api-keys/{key_id}   — one of the caller's keys (READ)
    DELETE /api/auth/api-keys/{key_id}   — soft-revoke (DELETE)

Verification (READ):
    POST   /api/api-keys/verify          — resolve the presented key to its owner
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, Response, status

from dependencies import (
    get_api_key_service,
    get_user_service,
    require_capability,
    require_key_management,
)
from schemas.dto.requests.api_key import CreateApiKeyRequest
from schemas.dto.responses.api_key import ApiKeyCreatedResponse, ApiKeyResponse
from schemas.dto.responses.auth import UserResponse
from schemas.dto.responses.common import AUTH_ERROR_RESPONSES, ErrorResponse
from services.api_key_service import ApiKeyService
from services.authentication import Principal
from services.user_service import UserService
from shared.permissions import Capability

router = APIRouter(prefix="/api/auth/api-keys", tags=["api-keys"])
verify_router = APIRouter(prefix="/api/api-keys", tags=["api-keys"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "API key not found"}}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiKeyCreatedResponse,
    responses=AUTH_ERROR_RESPONSES,
)
async def create_api_key(
    body: CreateApiKeyRequest,
    principal: Principal = Depends(require_key_management(Capability.WRITE)),
    api_keys: ApiKeyService = Depends(get_api_key_service),
) -> ApiKeyCreatedResponse:
    doc, key = await api_keys.generate(
        principal.user_id,
        body.name,
        body.permission,
        timedelta(days=body.expires_in_days),
    )
    return ApiKeyCreatedResponse.from_created(doc, key)


@router.get("", response_model=list[ApiKeyResponse], responses=AUTH_ERROR_RESPONSES)
async def list_api_keys(
    principal: Principal = Depends(require_key_management(Capability.READ)),
    api_keys: ApiKeyService = Depends(get_api_key_service),
) -> list[ApiKeyResponse]:
    docs = await api_keys.list(principal.user_id)
    return [ApiKeyResponse.from_doc(doc) for doc in docs]


@router.get(
    "/{key_id}",
    response_model=ApiKeyResponse,
    responses={**AUTH_ERROR_RESPONSES, **_NOT_FOUND},
)
async def get_api_key(
    key_id: str,
    principal: Principal = Depends(require_key_management(Capability.READ)),
    api_keys: ApiKeyService = Depends(get_api_key_service),
) -> ApiKeyResponse:
    doc = await api_keys.get(principal.user_id, key_id)
    return ApiKeyResponse.from_doc(doc)


@router.delete(
    "/{key_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**AUTH_ERROR_RESPONSES, **_NOT_FOUND},
)
async def revoke_api_key(
    key_id: str,
    principal: Principal = Depends(require_key_management(Capability.DELETE)),
    api_keys: ApiKeyService = Depends(get_api_key_service),
) -> Response:
    await api_keys.revoke(principal.user_id, key_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@verify_router.post("/verify", response_model=UserResponse, responses=AUTH_ERROR_RESPONSES)
async def verify_api_key(
    principal: Principal = Depends(require_capability(Capability.READ)),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await users.get_profile(principal.user_id)
    return UserResponse.from_doc(user)
