from typing import Annotated, List

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field

from storefront.auth.passwords import MAX_PASSWORD_BYTES
from storefront.auth.permissions import Permission


def _check_password_length(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


Password = Annotated[str, Field(min_length=1), AfterValidator(_check_password_length)]


class Identity(BaseModel):
    """The acting user of a request, as resolved from its session token."""

    model_config = ConfigDict(from_attributes=True, frozen=True)
    id: int
    email: str
    name: str = ""
    permissions: List[str] = []


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    email: str
    name: str
    permissions: List[str]


class SignupIn(BaseModel):
    email: EmailStr
    password: Password
    name: str = ""


class SigninIn(BaseModel):
    email: EmailStr
    password: str


class RequestResetIn(BaseModel):
    email: EmailStr


class ResetPasswordIn(BaseModel):
    reset_token: str
    password: Password
    confirm_password: str


class PermissionsIn(BaseModel):
    permissions: List[Permission]


class MessageOut(BaseModel):
    message: str
