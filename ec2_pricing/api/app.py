# ec2_pricing/api/app.py

"""REST API over EC2 pricing, price history, savings and alerts."""

import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from ec2_pricing.config.reference_data import INSTANCE_SPECS, RI_TERMS
from ec2_pricing.config.settings import Settings, is_valid_region
from ec2_pricing.services.pricing_service import PricingService
from ec2_pricing.services.savings_calculator import calculate_savings
from ec2_pricing.services.scheduler import PriceUpdateScheduler

logger = logging.getLogger("ec2_pricing.api")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ApiError(Exception):
    """An error surfaced to the client verbatim with a status code."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


# ── Request bodies ───────────────────────────────────────
# Every field is optional so missing input maps to our own 400s.


class SavingsRequest(BaseModel):
    instanceType: str | None = None
    region: str | None = None
    os: str | None = None
    hours: float | None = None
    riTerm: str = "1yr"
    riPayment: str = "no_upfront"


class AlertCreateRequest(BaseModel):
    instanceType: str | None = None
    region: str | None = None
    os: str | None = None
    priceType: str | None = None
    threshold: float | str | None = None
    email: str | None = None


class AlertUpdateRequest(BaseModel):
    threshold: float | str | None = None
    active: bool | None = None


def _missing(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _missing_threshold(value: object) -> bool:
    """Zero, like an absent value, counts as not supplied."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return _missing(value)


def _parse_alert_id(raw: str) -> int:
    """Alert ids are positive integers; anything else cannot exist."""
    if not (raw.isascii() and raw.isdigit()):
        raise ApiError(404, "Price alert not found")
    return int(raw)


def _parse_threshold(raw: float | str) -> float:
    try:
        threshold = float(raw)
    except (TypeError, ValueError):
        raise ApiError(400, "Invalid threshold") from None
    if threshold <= 0:
        raise ApiError(400, "Invalid threshold")
    return threshold


def _require_region(region: str) -> None:
    if not is_valid_region(region):
        raise ApiError(400, "Invalid region")


def get_service(request: Request) -> PricingService:
    """Resolve the process-wide PricingService from app state."""
    service: PricingService = request.app.state.service
    return service


def create_app(
    service: PricingService,
    scheduler: PriceUpdateScheduler | None = None,
) -> FastAPI:
    """Build the API around an injected service (and optional poller)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if scheduler is not None:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                await scheduler.stop()

    app = FastAPI(
        title="AWS EC2 Pricing Tool",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error handlers ───────────────────────────────────

    @app.exception_handler(ApiError)
    async def _api_error(
        _request: Request, exc: ApiError,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code, content={"error": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(
        _request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        logger.debug("Rejected request body: %s", exc.errors())
        return JSONResponse(
            status_code=400, content={"error": "Invalid request body"},
        )

    @app.exception_handler(Exception)
    async def _unhandled(
        request: Request, exc: Exception,
    ) -> JSONResponse:
        logger.error(
            "Unhandled error on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500, content={"error": "Something went wrong!"},
        )

    # ── Health ───────────────────────────────────────────

    @app.get("/")
    def health() -> dict[str, str]:
        return {
            "status": "ok",
            "message": "AWS Pricing Tool API is running",
        }

    # ── Pricing ──────────────────────────────────────────

    @app.get("/api/regions")
    def regions(
        svc: PricingService = Depends(get_service),
    ) -> list[dict[str, str]]:
        return svc.list_regions()

    @app.get("/api/instances/{region}")
    def instances(
        region: str,
        svc: PricingService = Depends(get_service),
    ) -> list[dict[str, Any]]:
        _require_region(region)
        try:
            data = svc.get_instances(region)
        except Exception:
            logger.error(
                "Error getting instances for %s", region, exc_info=True,
            )
            raise ApiError(500, "Failed to fetch pricing data") from None
        return [i.to_dict() for i in data]

    @app.get("/api/price-history/{region}/{instance_type}")
    def price_history(
        region: str,
        instance_type: str,
        days: int = Query(default=Settings.HISTORY_DEFAULT_DAYS),
        os: str = Query(default="Linux"),
        svc: PricingService = Depends(get_service),
    ) -> list[dict[str, Any]]:
        _require_region(region)
        if os not in Settings.SUPPORTED_OS:
            raise ApiError(400, "Invalid OS")
        if not 1 <= days <= Settings.HISTORY_MAX_DAYS:
            raise ApiError(400, "Invalid days")
        try:
            history = svc.get_price_history(
                region, instance_type, days, os,
            )
        except Exception:
            logger.error(
                "Error getting price history for %s in %s",
                instance_type,
                region,
                exc_info=True,
            )
            raise ApiError(500, "Failed to fetch price history") from None
        return [p.to_dict() for p in history]

    @app.post("/api/calculate-savings")
    def savings(body: SavingsRequest) -> dict[str, Any]:
        if (
            _missing(body.instanceType)
            or _missing(body.region)
            or _missing(body.os)
            or not body.hours
        ):
            raise ApiError(400, "Missing required parameters")
        try:
            return calculate_savings(
                str(body.instanceType),
                str(body.region),
                str(body.os),
                body.hours,
                ri_term=body.riTerm,
                ri_payment=body.riPayment,
            )
        except ValueError as exc:
            raise ApiError(400, str(exc)) from None

    @app.get("/api/instance-specs/{instance_type}")
    def instance_specs(instance_type: str) -> dict[str, Any]:
        return INSTANCE_SPECS.get(instance_type, {})

    @app.get("/api/reserved-terms")
    def reserved_terms() -> dict[str, Any]:
        return RI_TERMS

    @app.get("/api/export/{region}")
    def export(
        region: str,
        fmt: str | None = Query(default=None, alias="format"),
        svc: PricingService = Depends(get_service),
    ) -> Response:
        _require_region(region)
        try:
            result = svc.export_instances(region, fmt)
        except Exception:
            logger.error(
                "Error exporting data for %s", region, exc_info=True,
            )
            raise ApiError(500, "Failed to export data") from None
        headers = {}
        if result.filename:
            headers["Content-Disposition"] = (
                f"attachment; filename={result.filename}"
            )
        return Response(
            content=result.body,
            media_type=result.media_type,
            headers=headers,
        )

    # ── Alerts ───────────────────────────────────────────

    @app.post("/api/price-alerts", status_code=201)
    def create_alert(
        body: AlertCreateRequest,
        svc: PricingService = Depends(get_service),
    ) -> dict[str, Any]:
        required = (
            body.instanceType, body.region, body.os,
            body.priceType, body.email,
        )
        if (
            any(_missing(value) for value in required)
            or _missing_threshold(body.threshold)
        ):
            raise ApiError(400, "Missing required fields")
        if not _EMAIL_RE.match(str(body.email)):
            raise ApiError(400, "Invalid email format")
        _require_region(str(body.region))
        if body.os not in Settings.SUPPORTED_OS:
            raise ApiError(400, "Invalid OS")
        if body.priceType not in Settings.PRICE_TYPES:
            raise ApiError(400, "Invalid price type")
        threshold = _parse_threshold(body.threshold)  # type: ignore[arg-type]

        try:
            alert = svc.create_alert(
                str(body.instanceType),
                str(body.region),
                str(body.os),
                str(body.priceType),
                threshold,
                str(body.email),
            )
        except Exception:
            logger.error("Error creating price alert", exc_info=True)
            raise ApiError(500, "Failed to create price alert") from None
        return alert.to_dict()

    @app.get("/api/price-alerts")
    def list_alerts(
        email: str | None = Query(default=None),
        svc: PricingService = Depends(get_service),
    ) -> list[dict[str, Any]]:
        if _missing(email):
            raise ApiError(400, "Email is required")
        try:
            alerts = svc.list_alerts(str(email))
        except Exception:
            logger.error("Error getting price alerts", exc_info=True)
            raise ApiError(500, "Failed to get price alerts") from None
        return [a.to_dict() for a in alerts]

    @app.put("/api/price-alerts/{alert_id}")
    def update_alert(
        alert_id: str,
        body: AlertUpdateRequest,
        svc: PricingService = Depends(get_service),
    ) -> dict[str, Any]:
        key = _parse_alert_id(alert_id)
        threshold = (
            None if body.threshold is None
            else _parse_threshold(body.threshold)
        )
        try:
            alert = svc.update_alert(
                key, threshold=threshold, active=body.active,
            )
        except Exception:
            logger.error("Error updating price alert", exc_info=True)
            raise ApiError(500, "Failed to update price alert") from None
        if alert is None:
            raise ApiError(404, "Price alert not found")
        return alert.to_dict()

    @app.delete("/api/price-alerts/{alert_id}")
    def delete_alert(
        alert_id: str,
        svc: PricingService = Depends(get_service),
    ) -> dict[str, bool]:
        key = _parse_alert_id(alert_id)
        try:
            deleted = svc.delete_alert(key)
        except Exception:
            logger.error("Error deleting price alert", exc_info=True)
            raise ApiError(500, "Failed to delete price alert") from None
        if not deleted:
            raise ApiError(404, "Price alert not found")
        return {"success": True}

    return app
