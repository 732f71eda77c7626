# ec2_pricing/client/api_client.py

"""HTTP client for the pricing REST API, used by the dashboard."""

import logging
from typing import Any

from curl_cffi import requests as curl_requests

from ec2_pricing.config.settings import Settings

logger = logging.getLogger("ec2_pricing.client")


class ApiClientError(Exception):
    """A failed API call, carrying the server's error message."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class PricingApiClient:
    """Thin wrapper mapping each REST endpoint to a method."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        session: Any = None,
    ) -> None:
        self.base_url = (base_url or Settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout or Settings.REQUEST_TIMEOUT
        self.session = session or curl_requests.Session()

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self.session.close()

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s params=%s", method, url, params)
        resp = self.session.request(
            method,
            url,
            params=params,
            json=json_body,
            timeout=self.timeout,
        )
        if resp.status_code >= 400:
            try:
                message = str(resp.json().get("error", resp.text))
            except ValueError:
                message = resp.text
            logger.warning(
                "%s %s failed with HTTP %d: %s",
                method,
                url,
                resp.status_code,
                message,
            )
            raise ApiClientError(resp.status_code, message)
        return resp

    # ── Pricing ──────────────────────────────────────────

    def get_regions(self) -> list[dict[str, str]]:
        """GET /regions."""
        result: list[dict[str, str]] = self._request(
            "GET", "/regions"
        ).json()
        return result

    def get_instances(self, region: str) -> list[dict[str, Any]]:
        """GET /instances/{region}."""
        result: list[dict[str, Any]] = self._request(
            "GET", f"/instances/{region}"
        ).json()
        return result

    def get_price_history(
        self,
        region: str,
        instance_type: str,
        days: int = 30,
        os_name: str = "Linux",
    ) -> list[dict[str, Any]]:
        """GET /price-history/{region}/{instance_type}."""
        result: list[dict[str, Any]] = self._request(
            "GET",
            f"/price-history/{region}/{instance_type}",
            params={"days": days, "os": os_name},
        ).json()
        return result

    def calculate_savings(
        self,
        instance_type: str,
        region: str,
        os_name: str,
        hours: float,
        ri_term: str = "1yr",
        ri_payment: str = "no_upfront",
    ) -> dict[str, Any]:
        """POST /calculate-savings."""
        result: dict[str, Any] = self._request(
            "POST",
            "/calculate-savings",
            json_body={
                "instanceType": instance_type,
                "region": region,
                "os": os_name,
                "hours": hours,
                "riTerm": ri_term,
                "riPayment": ri_payment,
            },
        ).json()
        return result

    def get_instance_specs(self, instance_type: str) -> dict[str, Any]:
        """GET /instance-specs/{instance_type}."""
        result: dict[str, Any] = self._request(
            "GET", f"/instance-specs/{instance_type}"
        ).json()
        return result

    def get_reserved_terms(self) -> dict[str, Any]:
        """GET /reserved-terms."""
        result: dict[str, Any] = self._request(
            "GET", "/reserved-terms"
        ).json()
        return result

    def export_csv(self, region: str) -> str:
        """GET /export/{region}?format=csv, returned as text."""
        text: str = self._request(
            "GET", f"/export/{region}", params={"format": "csv"},
        ).text
        return text

    # ── Alerts ───────────────────────────────────────────

    def create_alert(
        self,
        instance_type: str,
        region: str,
        os_name: str,
        price_type: str,
        threshold: float,
        email: str,
    ) -> dict[str, Any]:
        """POST /price-alerts."""
        result: dict[str, Any] = self._request(
            "POST",
            "/price-alerts",
            json_body={
                "instanceType": instance_type,
                "region": region,
                "os": os_name,
                "priceType": price_type,
                "threshold": threshold,
                "email": email,
            },
        ).json()
        return result

    def get_alerts(self, email: str) -> list[dict[str, Any]]:
        """GET /price-alerts?email=."""
        result: list[dict[str, Any]] = self._request(
            "GET", "/price-alerts", params={"email": email},
        ).json()
        return result

    def update_alert(
        self,
        alert_id: int,
        threshold: float | None = None,
        active: bool | None = None,
    ) -> dict[str, Any]:
        """PUT /price-alerts/{id}."""
        body: dict[str, Any] = {}
        if threshold is not None:
            body["threshold"] = threshold
        if active is not None:
            body["active"] = active
        result: dict[str, Any] = self._request(
            "PUT", f"/price-alerts/{alert_id}", json_body=body,
        ).json()
        return result

    def delete_alert(self, alert_id: int) -> bool:
        """DELETE /price-alerts/{id}."""
        result: dict[str, Any] = self._request(
            "DELETE", f"/price-alerts/{alert_id}"
        ).json()
        return bool(result.get("success"))
