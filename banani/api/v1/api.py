from fastapi import APIRouter
from banani.routes import auth, users, entries, payments

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(entries.router)
api_router.include_router(payments.router)
