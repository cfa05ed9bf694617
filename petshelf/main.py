from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .config import get_settings
from .db import create_client, init_db
from .exceptions import RecordNotFoundError, StorageError, UnsafeDeleteError
from .routers import pets
import logging

settings = get_settings()

# Configurar logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Una sola conexión por proceso, creada aquí y compartida vía app.state
    client = create_client(settings)
    app.state.db = await init_db(client, settings)
    logger.info(f"Conectado a MongoDB, base '{settings.db_name}'")
    try:
        yield
    finally:
        client.close()
        app.state.db = None


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Configuración de CORS según entorno
if settings.env == "dev":
    cors_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    cors_regex = r"https?://(localhost|127\.0\.0\.1)(:\d+)?"
else:
    frontend_url = settings.frontend_base_url
    cors_origins = [frontend_url] if frontend_url else []
    cors_regex = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_origin_regex=cors_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin"],
)


# ---------- Errores del repositorio -> HTTP ----------

@app.exception_handler(RecordNotFoundError)
async def record_not_found_handler(request: Request, exc: RecordNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"success": False, "error": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"success": False, "error": str(exc)})


@app.exception_handler(UnsafeDeleteError)
async def unsafe_delete_handler(request: Request, exc: UnsafeDeleteError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"success": False, "error": str(exc)})


@app.get("/health")
async def health():
    return {"status": "ok", "env": settings.env}

# Routers
app.include_router(pets.router, prefix="/pets", tags=["pets"])
