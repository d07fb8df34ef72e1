import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lumina.database.mongodb import ensure_indexes, ping
from lumina.routes.chat_routes import router as chat_router
from lumina.routes.conversation_routes import router as conversation_router
from lumina.routes.fuel_routes import router as fuel_router
from lumina.services.container import Services, build_services
from lumina.utils.settings import Settings, load_settings

# Logging setup
logger = logging.getLogger("main")
logging.basicConfig(level=logging.INFO)


# ---------- Startup: build service handles once ----------
@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.services is None:
        app.state.services = build_services(app.state.settings)
        ensure_indexes(app.state.services.store.db)
        logger.info("Service handles initialized.")
    yield


def create_app(services: Optional[Services] = None, settings: Optional[Settings] = None) -> FastAPI:
    app = FastAPI(title="Lumina AI", version="1.0.0", lifespan=lifespan)
    app.state.services = services
    app.state.settings = settings or (services.settings if services else None) or load_settings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app.state.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------- Errors are returned as {"error": ...} ----------
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{where}: {first.get('msg', 'invalid request')}" if where else first.get("msg", "invalid request")
        return JSONResponse(status_code=400, content={"error": message})

    # ---------- Routers ----------
    app.include_router(chat_router)
    app.include_router(conversation_router)
    app.include_router(fuel_router)

    # ---------- Root health check ----------
    @app.get("/")
    def root():
        return {"message": "Lumina AI is running"}

    @app.get("/health")
    def health_check(request: Request):
        svc = request.app.state.services
        if svc is None:
            raise HTTPException(status_code=500, detail="Health check failed")
        db_ok = ping(svc.store.db)
        return {
            "status": "OK" if db_ok else "degraded",
            "database": "connected" if db_ok else "not connected",
            "ledger": "configured" if svc.ledger is not None else "missing",
        }

    return app


app = create_app(settings=load_settings())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("lumina.main:app", host="0.0.0.0", port=8000)
