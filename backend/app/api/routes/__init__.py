from fastapi import APIRouter

from app.api.routes import briefs, health, questions, wizard

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(questions.router, prefix="/questions", tags=["questions"])
api_router.include_router(wizard.router, prefix="/wizard", tags=["wizard"])
api_router.include_router(briefs.router, prefix="/briefs", tags=["briefs"])
