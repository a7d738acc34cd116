# ipd_billing/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ipd_billing.core.config import settings
from ipd_billing.core.logging_setup import setup_logging
from ipd_billing.api.exception_handlers import register_exception_handlers
from ipd_billing.api.router import api_router

setup_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)


# Health
@app.get("/")
def root():
    return {"message": "IPD billing API running", "version": "v1"}
