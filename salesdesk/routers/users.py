from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from salesdesk.core.database import get_db
from salesdesk.core.errors import AuthError, store_failure_message
from salesdesk.services import auth as auth_service
from salesdesk.services import queries

router = APIRouter(prefix="/users", tags=["users"])


class UserRead(BaseModel):
    id: int
    username: str
    firstname: str
    lastname: str
    email: str


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    firstname: str = Field(..., min_length=1, max_length=100)
    lastname: str = Field(..., min_length=1, max_length=100)
    email_add: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("username", "firstname", "lastname")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Must not be blank")
        return value


class LoginPayload(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    auth: bool
    msg: str


@router.get("", response_model=List[UserRead])
def list_users(db: Session = Depends(get_db)):
    with store_failure_message("Unable to retrieve users. Please try again later."):
        users = queries.select_all_users(db)
    # password_hash stays server side
    return [
        {
            "id": user.id,
            "username": user.username,
            "firstname": user.firstname,
            "lastname": user.lastname,
            "email": user.email,
        }
        for user in users
    ]


@router.post("")
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    with store_failure_message("Unable to create new user. Please try again later."):
        user_id = auth_service.register(
            db,
            username=payload.username,
            firstname=payload.firstname,
            lastname=payload.lastname,
            email=str(payload.email_add),
            password=payload.password,
        )
    return {"msg": f"Successfully created new user with ID {user_id}"}


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginPayload, db: Session = Depends(get_db)):
    with store_failure_message("Internal server error"):
        result = auth_service.login(db, username=payload.username, password=payload.password)
    return result.to_response()


@router.post("/token")
def token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """Used by the Swagger UI "Authorize" button (form fields username/password)."""
    with store_failure_message("Internal server error"):
        result = auth_service.login(db, username=form_data.username, password=form_data.password)
    if not result.authenticated:
        raise AuthError("Invalid credentials")
    return {"access_token": result.message, "token_type": "bearer"}
