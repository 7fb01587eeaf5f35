from fastapi import APIRouter

from sara.api.routers import roles, auth, users, properties, contracts

api_router = APIRouter()

api_router.include_router(roles.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(properties.router)
api_router.include_router(contracts.router)
