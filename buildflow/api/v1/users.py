"""
User API Endpoints.

Implements:
- POST /api/v1/users - Create a user with its contact
- GET /api/v1/users - List users
- GET /api/v1/users/{username} - Get a user by username
- DELETE /api/v1/users/{user_id} - Delete a user (the contact is kept)
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from buildflow.models import get_db
from buildflow.domain.dto import CreateUserRequest, CreateUserResponse, UserDto
from buildflow.domain.exceptions import UserNotFoundError
from buildflow.domain.services import UserService

router = APIRouter()


@router.post(
    "",
    response_model=CreateUserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
def create_user(request: CreateUserRequest, db: Session = Depends(get_db)):
    """Create a user and its contact. Username defaults to the contact email."""
    return UserService(db).create_user(request)


@router.get("", response_model=List[UserDto], summary="List users")
def list_users(db: Session = Depends(get_db)):
    return UserService(db).get_all_user_dtos()


@router.get("/{username}", response_model=UserDto, summary="Get a user by username")
def get_user(username: str, db: Session = Depends(get_db)):
    user = UserService(db).get_user_dto_by_username(username)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User '{username}' not found"
        )
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a user")
def delete_user(user_id: UUID, db: Session = Depends(get_db)):
    service = UserService(db)
    user = service.find_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    service.delete(user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
