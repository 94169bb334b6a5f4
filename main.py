import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import errors
import notifier
from auth import auth_router
from config import settings
from database import init_db
from expense import expense_router
from project import project_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    # Background work queue for budget notifications
    notifier.start()
    logger.info("Budget notifier started")
    yield
    notifier.shutdown()


app = FastAPI(title="Shared Project Budgets API", lifespan=lifespan)

allowed_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
errors.init_app(app)

app.include_router(auth_router, prefix="/user", tags=["authentication"])
app.include_router(project_router, prefix="/project", tags=["projects"])
app.include_router(expense_router, prefix="/expense", tags=["expenses"])


@app.get("/")
def home():
    return {"ok": True, "message": "Welcome to the Shared Project Budgets API"}


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8000)
