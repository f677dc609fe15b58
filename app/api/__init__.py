from fastapi import APIRouter
from .routes import scores, leaderboard, simulations

api_router = APIRouter()

api_router.include_router(scores.router, prefix="/scores", tags=["scores"])
api_router.include_router(leaderboard.router, prefix="/leaderboard", tags=["leaderboard"])
api_router.include_router(simulations.router, prefix="/simulations", tags=["simulations"])
