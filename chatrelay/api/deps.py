from fastapi import Depends, Request

from chatrelay.core.database import Database
from chatrelay.services.auth_service import AuthService
from chatrelay.services.health import HealthReporter
from chatrelay.services.ollama_client import GenerationClient
from chatrelay.services.user_store import UserStore


# Handles opened in the app lifespan live on app.state
def get_db(request: Request) -> Database:
    return request.app.state.db


def get_generation_client(request: Request) -> GenerationClient:
    return request.app.state.generation_client


def get_user_store(db: Database = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_auth_service(request: Request, store: UserStore = Depends(get_user_store)) -> AuthService:
    return AuthService(store, bcrypt_rounds=request.app.state.settings.BCRYPT_ROUNDS)


def get_health_reporter(client: GenerationClient = Depends(get_generation_client)) -> HealthReporter:
    return HealthReporter(client)
