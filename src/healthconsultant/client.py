"""
UsageClient SDK — sync client for the HealthConsultant usage API.

Used by the chat, image-analysis and report services to gate interactions
on the caller's plan and to meter usage on their behalf.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass
class ClientInteractionLimit:
    """Current-month standing returned by get_interaction_limit()."""

    current_month: int = 0
    limit: Optional[int] = None
    remaining: Optional[int] = None
    has_unlimited: bool = False
    code: str = ""


@dataclass
class ClientInteractionResult:
    """Result of request_interaction() call."""

    can_interact: bool
    remaining_interactions: Optional[int] = None
    limit: Optional[int] = None
    current_month: int = 0
    has_unlimited: bool = False
    message: str = ""
    code: str = ""


class UsageClient:
    """
    Synchronous HTTP client for HealthConsultant.

    Sends the caller's session token as a bearer credential on every call.
    """

    def __init__(
        self,
        server_url: str = "http://localhost:8080",
        session_token: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        retry_backoff_base: float = 0.5,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.server_url = server_url.rstrip("/")
        self.session_token = session_token
        self.max_retries = max_retries
        self.retry_backoff_base = retry_backoff_base
        headers = {}
        if session_token:
            headers["Authorization"] = f"Bearer {session_token}"
        self._http = httpx.Client(
            base_url=self.server_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    def _request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> tuple[int, dict[str, Any]]:
        """Central HTTP method with retry and structured error handling.

        GETs are retried on timeouts, transport errors and 5xx. POSTs spend
        quota or increment counters, so they are retried only when the
        connection was never established. A 429 is a quota answer, not
        back-pressure, and is returned to the caller as is.

        Returns (status_code, parsed JSON) on a response, or (0, error dict)
        when no response was obtained.
        """
        idempotent = method == "get"
        last_error = None
        for attempt in range(self.max_retries):
            can_retry = attempt < self.max_retries - 1
            try:
                resp = getattr(self._http, method)(path, **kwargs)
                if resp.status_code >= 500:
                    last_error = f"HTTP {resp.status_code}"
                    if idempotent and can_retry:
                        time.sleep(self.retry_backoff_base * (2 ** attempt))
                        continue
                    return resp.status_code, {
                        "error": f"Server error: {resp.status_code}",
                        "code": "SERVER_ERROR",
                    }
                if resp.status_code >= 400 and resp.status_code != 429:
                    body = self._json_or_empty(resp)
                    return resp.status_code, {
                        "error": body.get("message") or f"Client error: {resp.status_code}",
                        "code": body.get("code", "CLIENT_ERROR"),
                    }
                return resp.status_code, resp.json()
            except (httpx.ConnectError, httpx.ConnectTimeout) as e:
                # Never reached the server; safe to resend any method.
                last_error = str(e) or type(e).__name__
            except httpx.TimeoutException:
                last_error = "timeout"
                if not idempotent:
                    return 0, self._unconfirmed(last_error)
            except httpx.HTTPError as e:
                last_error = str(e)
                if not idempotent:
                    return 0, self._unconfirmed(last_error)
            except json.JSONDecodeError:
                return 0, {"error": "Invalid JSON response", "code": "JSON_ERROR"}
            if can_retry:
                time.sleep(self.retry_backoff_base * (2 ** attempt))

        return 0, {
            "error": f"All {self.max_retries} retries exhausted: {last_error}",
            "code": "CONNECTION_ERROR",
        }

    @staticmethod
    def _unconfirmed(error: str) -> dict[str, Any]:
        """Error for a write that may have been applied before the failure."""
        return {
            "error": f"Request may have been applied, not retried: {error}",
            "code": "CONNECTION_ERROR",
        }

    @staticmethod
    def _json_or_empty(resp: httpx.Response) -> dict[str, Any]:
        try:
            body = resp.json()
        except json.JSONDecodeError:
            return {}
        return body if isinstance(body, dict) else {}

    # ── Interaction limit ──

    def get_interaction_limit(self) -> ClientInteractionLimit:
        """Current month's count and the plan ceiling."""
        _, data = self._request("get", "/usage/interaction-limit")
        if "error" in data:
            return ClientInteractionLimit(code=data.get("code", "ERROR"))
        return ClientInteractionLimit(
            current_month=data.get("currentMonth", 0),
            limit=data.get("limit"),
            remaining=data.get("remaining"),
            has_unlimited=data.get("hasUnlimited", False),
        )

    def request_interaction(self, interaction_type: str = "chat") -> ClientInteractionResult:
        """Ask to spend one interaction. Denials come back with can_interact=False."""
        status, data = self._request(
            "post", "/usage/interaction-limit",
            json={"interactionType": interaction_type},
        )
        if "error" in data:
            return ClientInteractionResult(
                can_interact=False,
                message=data.get("error", ""),
                code=data.get("code", "ERROR"),
            )
        if status == 429:
            return ClientInteractionResult(
                can_interact=False,
                remaining_interactions=data.get("remainingInteractions", 0),
                limit=data.get("limit"),
                message=data.get("message", ""),
                code="QUOTA_EXCEEDED",
            )
        return ClientInteractionResult(
            can_interact=data.get("canInteract", True),
            remaining_interactions=data.get("remainingInteractions"),
            limit=data.get("limit"),
            current_month=data.get("currentMonth", 0),
            has_unlimited=data.get("hasUnlimited", False),
        )

    # ── Metering ──

    def record_interaction(self, prompts: int = 1) -> bool:
        """Best-effort metering after the interaction already happened.

        Never raises; a failure is logged and reported as False.
        """
        try:
            _, data = self._request("post", "/usage/record", json={"prompts": prompts})
        except Exception:
            logger.exception("Usage record call failed")
            return False
        if "error" in data:
            logger.warning(
                "Usage record rejected",
                extra={"code": data.get("code"), "error": data.get("error")},
            )
            return False
        return True

    # ── Admin ──

    def admin_usage(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> dict[str, Any]:
        """Global stats and raw records. Requires an admin session."""
        params = {}
        if start_date:
            params["startDate"] = start_date
        if end_date:
            params["endDate"] = end_date
        _, data = self._request("get", "/admin/usage", params=params)
        return data

    def close(self) -> None:
        """Close the HTTP client."""
        self._http.close()
