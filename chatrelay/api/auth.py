from fastapi import APIRouter, Depends, status

from chatrelay.api.deps import get_auth_service
from chatrelay.schemas.user_schema import LoginRequest, LoginResponse, SignupRequest, SignupResponse
from chatrelay.services.auth_service import AuthService
from chatrelay.utils.logger import get_logger

logger = get_logger("chatrelay.api.auth")

router = APIRouter(tags=["auth"])


# ------ Signup -----
@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, auth: AuthService = Depends(get_auth_service)):
    logger.info("Signup attempt", extra={"username": body.username})
    user_id = await auth.signup(body.username, body.email, body.password, body.phone)
    return SignupResponse(user_id=user_id)


# ------ Login -----
@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    user = await auth.login(body.username_or_email, body.password)
    return LoginResponse(
        user_id=user.id,
        username=user.username,
        email=user.email,
        phone=user.phone,
    )
