"""HTTP mapping for marketplace errors Protean's handlers do not cover."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace.shared.errors import ConflictError, RoutingError


async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": exc.messages})


async def routing_error_handler(request: Request, exc: RoutingError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc)})


def register_marketplace_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ConflictError, conflict_error_handler)
    app.add_exception_handler(RoutingError, routing_error_handler)
