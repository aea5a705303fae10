from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shopledger.api.health import router as health_router
from shopledger.api.routes_auth import router as auth_router
from shopledger.api.routes_catalogue import router as catalogue_router
from shopledger.api.routes_categories import router as categories_router
from shopledger.api.routes_dashboard import router as dashboard_router
from shopledger.api.routes_purchases import router as purchases_router
from shopledger.api.routes_sales import router as sales_router
from shopledger.api.routes_storefront import router as storefront_router
from shopledger.config import settings
from shopledger.db import init_db
from shopledger.utils.log import get_logger

log = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup; RESET_DB=1 drops and recreates the schema
    init_db()
    yield


app = FastAPI(title="Shopledger - Inventory & POS Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = {"success": False}
    if isinstance(exc.detail, dict):
        body.update(exc.detail)
    else:
        body["message"] = exc.detail
    return JSONResponse(body, status_code=exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg')}" if where else str(first.get("msg", "Invalid input"))
    return JSONResponse(
        {"success": False, "message": message, "errors": jsonable_errors(errors)},
        status_code=400,
    )


def jsonable_errors(errors):
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        {"success": False, "message": f"Internal server error: {type(exc).__name__}"},
        status_code=500,
    )


app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(auth_router)

app.include_router(catalogue_router)

app.include_router(categories_router)

app.include_router(storefront_router)

app.include_router(purchases_router)

app.include_router(sales_router)

app.include_router(dashboard_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("shopledger.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
