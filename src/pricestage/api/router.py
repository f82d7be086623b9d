"""Aggregate all API routers."""

from fastapi import APIRouter

from . import catalogue, pricing, system

api_router = APIRouter()
api_router.include_router(pricing.router)
api_router.include_router(catalogue.router)
api_router.include_router(system.router)
