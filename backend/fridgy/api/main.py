from fastapi import APIRouter

from fridgy.api.routes import (
    analyses,
    analyze,
    login,
    notifications,
    recipes,
    shopping_lists,
    users,
    utils,
)

api_router = APIRouter()
api_router.include_router(login.router)
api_router.include_router(users.router)
api_router.include_router(utils.router)
api_router.include_router(analyze.router)
api_router.include_router(analyses.router)
api_router.include_router(recipes.router)
api_router.include_router(shopping_lists.router)
api_router.include_router(notifications.router)
