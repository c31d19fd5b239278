"""Router package - registers every API router and the /ws channel on the FastAPI app."""

from fastapi import FastAPI

from rigwatch.routers import (
    auth,
    prices,
    rigs,
    portfolio,
    exchanges,
    payments,
    ws as ws_router,
)


def register_all_routers(app: FastAPI):
    app.include_router(auth.router)
    app.include_router(prices.router)
    app.include_router(rigs.router)
    app.include_router(portfolio.router)
    app.include_router(exchanges.router)
    app.include_router(payments.router)
    ws_router.register(app)
