from typing import Optional

from chatrelay.schemas.base import CamelModel, RequestModel


# Request fields are optional so a missing field is answered
# with 400 "Missing fields" rather than a schema error.
class SignupRequest(RequestModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None


class LoginRequest(RequestModel):
    username_or_email: Optional[str] = None
    password: Optional[str] = None


class SignupResponse(CamelModel):
    message: str = "User created"
    user_id: str


class LoginResponse(CamelModel):
    message: str = "Login successful"
    user_id: str
    username: str
    email: str
    phone: Optional[str] = None
