# config.py
import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()

# --- CONFIGURACIÓN DE BASE DE DATOS ---
# URL de SQLAlchemy. En producción apunta al PostgreSQL (proxy de Cloud SQL).
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./documentos.db")

# Tiempo máximo (segundos) que una operación de almacenamiento puede esperar
# por un bloqueo, una conexión del pool o una sentencia.
STORAGE_TIMEOUT_SECONDS = float(os.getenv("STORAGE_TIMEOUT_SECONDS", "10"))

# --- CONFIGURACIÓN TRIBUTARIA ---
# Tasa del IGV aplicada cuando el documento no indica otra
IGV_RATE = Decimal(os.getenv("IGV_RATE", "0.18"))

# --- CONFIGURACIÓN DE LA API ---
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(funcName)s] - %(message)s'
