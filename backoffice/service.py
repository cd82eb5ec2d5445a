"""FastAPI application exposing authentication and order endpoints."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from fastapi import APIRouter, Body, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .auth import AuthService
from .config import Settings, load_settings
from .database import Database
from .errors import BackofficeError, InternalError
from .models import Number
from .orders import OrderFields, OrderService
from .security import TokenIssuer

logger = logging.getLogger("backoffice.service")

ModelT = TypeVar("ModelT", bound=BaseModel)


class LoginRequest(BaseModel):
    """Credentials are compared as submitted; non-string values simply never match."""

    email: Any = None
    password: Any = None


class SignupRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    email: Optional[str] = None
    password: Optional[str] = None


class OrderPayload(BaseModel):
    """Order fields in the camelCase shape used by the front-end."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, allow_inf_nan=False)

    customer_name: Optional[str] = Field(default=None, alias="customerName")
    product_name: Optional[str] = Field(default=None, alias="productName")
    quantity: Optional[Number] = None
    price: Optional[Number] = None

    def to_fields(self) -> OrderFields:
        return OrderFields(
            customer_name=self.customer_name,
            product_name=self.product_name,
            quantity=self.quantity,
            price=self.price,
        )


def _parse_body(model: Type[ModelT], body: Any) -> ModelT:
    """Validate a JSON body against ``model``; a missing or non-object body counts as empty."""

    if not isinstance(body, dict):
        body = {}
    return model.model_validate(body)


def _error_content(exc: BackofficeError, *, envelope: bool = False) -> Dict[str, object]:
    content: Dict[str, object] = {exc.field: exc.message}
    if envelope:
        content = {"success": False, **content}
    return content


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg", "Invalid value"))
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BackofficeError)
    async def handle_backoffice_error(request: Request, exc: BackofficeError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_error_content(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": _describe_validation_error(exc)},
        )


def build_auth_router(auth: AuthService) -> APIRouter:
    router = APIRouter()

    @router.post("/login")
    async def login(payload: Any = Body(default=None)) -> JSONResponse:
        credentials = _parse_body(LoginRequest, payload)
        try:
            token = await auth.login_admin(credentials.email, credentials.password)
        except BackofficeError as exc:
            return JSONResponse(status_code=exc.status_code, content=_error_content(exc, envelope=True))
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"success": True, "message": "Login successful", "token": token.token},
        )

    @router.post("/signup")
    async def signup(payload: Any = Body(default=None)) -> JSONResponse:
        try:
            request = _parse_body(SignupRequest, payload)
            await auth.signup(request.email, request.password)
        except ValidationError as exc:
            logger.warning("Signup rejected: %s", exc.errors()[0].get("msg", "invalid body"))
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=_error_content(InternalError(), envelope=True),
            )
        except BackofficeError as exc:
            return JSONResponse(status_code=exc.status_code, content=_error_content(exc, envelope=True))
        return JSONResponse(status_code=status.HTTP_200_OK, content={"success": True})

    @router.post("/logout")
    async def logout(response: Response) -> Dict[str, str]:
        await auth.logout()
        response.delete_cookie("token")
        return {"message": "Logged out successfully"}

    return router


def build_orders_router(orders: OrderService) -> APIRouter:
    router = APIRouter()

    @router.post("/orders", status_code=status.HTTP_201_CREATED)
    async def create_order(payload: Any = Body(default=None)) -> Dict[str, object]:
        try:
            fields = _parse_body(OrderPayload, payload).to_fields()
        except ValidationError as exc:
            logger.warning("Order rejected: %s", exc.errors()[0].get("msg", "invalid body"))
            raise InternalError("Failed to create order", field="error") from exc
        order = await orders.create_order(fields)
        return order.to_dict()

    @router.get("/orders")
    async def list_orders() -> List[Dict[str, object]]:
        return [order.to_dict() for order in await orders.list_orders()]

    @router.put("/orders/{order_id}")
    async def update_order(order_id: str, payload: Optional[OrderPayload] = None) -> Dict[str, object]:
        changes = payload.to_fields() if payload is not None else OrderFields()
        order = await orders.update_order(order_id, changes)
        return order.to_dict()

    @router.delete("/orders/{order_id}")
    async def delete_order(order_id: str) -> Dict[str, str]:
        await orders.delete_order(order_id)
        return {"message": "Order deleted successfully"}

    return router


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    token_issuer: TokenIssuer | None = None,
    collaborators: Mapping[str, APIRouter] | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application for the backoffice service.

    ``collaborators`` maps a route group name (``"suppliers"``,
    ``"inventory"``...) to a router that is mounted under ``/api/<name>``.
    """

    settings = settings or load_settings()

    db = database or Database(settings.database_path)
    db.initialize()

    tokens = token_issuer or TokenIssuer(settings.jwt_secret, ttl=settings.token_ttl)
    auth_service = AuthService(settings, db, tokens)
    order_service = OrderService(db)

    app = FastAPI(
        title="Backoffice API",
        version="0.1.0",
        description="Admin login, self-service signup and order management.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.state.settings = settings
    app.state.database = db
    app.state.token_issuer = tokens
    app.state.auth_service = auth_service
    app.state.order_service = order_service

    register_exception_handlers(app)

    @app.get("/api/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    app.include_router(build_auth_router(auth_service), prefix="/api")
    app.include_router(build_orders_router(order_service), prefix="/api")

    for name, router in (collaborators or {}).items():
        prefix = "/api/" + name.strip("/")
        app.include_router(router, prefix=prefix)
        logger.info("Mounted route group %s", prefix)

    return app


__all__ = [
    "LoginRequest",
    "OrderPayload",
    "SignupRequest",
    "build_auth_router",
    "build_orders_router",
    "create_app",
    "register_exception_handlers",
]
