import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lifemanager.config import APP_NAME
from lifemanager.database import init_db
from lifemanager.routes.habit_routes import router as habit_router

logger = logging.getLogger(__name__)


def create_app(initialize_db: bool = True) -> FastAPI:
    if initialize_db:
        init_db()

    app = FastAPI(title=APP_NAME)

    @app.get("/api/v1/health-check")
    def health():
        return {"status": "ok", "message": "Backend is alive!"}

    # Configure CORS for the mobile client
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(habit_router)
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("lifemanager.main:create_app", factory=True, host="0.0.0.0", port=8000, reload=True)
