"""FastAPI router for user account CRUD and activation endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path

from user_accounts.application.dto.user_models import ApiResponse, UserRequest, UserResponse
from user_accounts.application.services.user_service import UserService


# Ids outside the BIGINT range can never exist in the store.
UserIdPath = Annotated[int, Path(ge=-(2**63), le=2**63 - 1)]


def build_user_router(*, user_service: UserService) -> APIRouter:
    """Build router exposing the user account API under `/api/users`."""

    router = APIRouter(prefix="/api/users", tags=["users"])

    @router.get("", response_model=ApiResponse[list[UserResponse]])
    async def list_users() -> ApiResponse[list[UserResponse]]:
        users = await user_service.list_users()
        return ApiResponse[list[UserResponse]](
            success=True,
            message="Users retrieved successfully",
            data=users,
        )

    # Declared before `/{user_id}` so the literal segment wins the match.
    @router.get("/active", response_model=ApiResponse[list[UserResponse]])
    async def list_active_users() -> ApiResponse[list[UserResponse]]:
        users = await user_service.list_active_users()
        return ApiResponse[list[UserResponse]](
            success=True,
            message="Active users retrieved successfully",
            data=users,
        )

    @router.get("/{user_id}", response_model=ApiResponse[UserResponse])
    async def get_user(user_id: UserIdPath) -> ApiResponse[UserResponse]:
        user = await user_service.get_user(user_id=user_id)
        return ApiResponse[UserResponse](
            success=True,
            message="User retrieved successfully",
            data=user,
        )

    @router.post("", status_code=201, response_model=ApiResponse[UserResponse])
    async def create_user(payload: UserRequest) -> ApiResponse[UserResponse]:
        user = await user_service.create_user(payload=payload)
        return ApiResponse[UserResponse](
            success=True,
            message="User created successfully",
            data=user,
        )

    @router.put("/{user_id}", response_model=ApiResponse[UserResponse])
    async def update_user(
        user_id: UserIdPath,
        payload: UserRequest,
    ) -> ApiResponse[UserResponse]:
        user = await user_service.update_user(user_id=user_id, payload=payload)
        return ApiResponse[UserResponse](
            success=True,
            message="User updated successfully",
            data=user,
        )

    @router.delete("/{user_id}", response_model=ApiResponse[None])
    async def delete_user(user_id: UserIdPath) -> ApiResponse[None]:
        await user_service.delete_user(user_id=user_id)
        return ApiResponse[None](success=True, message="User deleted successfully")

    @router.patch("/{user_id}/deactivate", response_model=ApiResponse[UserResponse])
    async def deactivate_user(user_id: UserIdPath) -> ApiResponse[UserResponse]:
        user = await user_service.deactivate_user(user_id=user_id)
        return ApiResponse[UserResponse](
            success=True,
            message="User deactivated successfully",
            data=user,
        )

    @router.patch("/{user_id}/activate", response_model=ApiResponse[UserResponse])
    async def activate_user(user_id: UserIdPath) -> ApiResponse[UserResponse]:
        user = await user_service.activate_user(user_id=user_id)
        return ApiResponse[UserResponse](
            success=True,
            message="User activated successfully",
            data=user,
        )

    return router
