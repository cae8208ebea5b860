# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
# Importamos los routers de la capa de infraestructura
from app.infrastructure.api.routers import documents_router
from app.infrastructure.persistence.database import Base, engine

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logging.info("Tablas verificadas. API lista.")
    yield


app = FastAPI(
    title="API de Documentos Comerciales",
    description="Cotizaciones, órdenes de compra y órdenes de servicio con sus ítems.",
    version="1.0.0-DDD",
    lifespan=lifespan,
)

# Configuración de CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Los errores de formato del cuerpo se reportan como 400, igual que los de dominio
    errors = [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"detail": {"error": "ValidationError", "message": "Solicitud inválida", "errors": jsonable_encoder(errors)}},
    )


app.include_router(documents_router.router)


@app.get("/", tags=["Health Check"])
def read_root():
    return {"status": "ok", "message": "API de documentos comerciales"}
