"""HTTP client for the claims backend."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..models.claim import ClaimInfo
from ..models.results import CheckResult, DecisionResult, RPAResult, UploadResult
from ..utils.config import Config
from ..utils.errors import (
    BackendHTTPError,
    BackendResponseError,
    BackendTimeoutError,
    BackendTransportError,
    RPANotAvailableError,
    handle_backend_error,
)

logger = logging.getLogger(__name__)

DEFAULT_RPA_PATH = "/claims/{claim_id}/rpa"
LEGACY_RPA_PATH = "/claims/{claim_id}/simulate-rpa"


class ClaimsApiClient:
    """
    Typed wrapper around the claims backend REST API.

    Every method either returns a normalised view model or raises a
    ClaimsIntakeError subclass:

    - non-2xx status -> BackendHTTPError
    - no response at all -> BackendTransportError (possible CORS / network issue)
    - timeout -> BackendTimeoutError
    - body is not JSON -> BackendResponseError

    ``ping_backend`` is the exception: it reports liveness as a boolean.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        ping_timeout: float = 5.0,
        rpa_path: str = DEFAULT_RPA_PATH,
        http_client: Optional[httpx.Client] = None
    ):
        """
        Initialize the client.

        Args:
            base_url: Backend base URL (shown to the user on transport errors)
            timeout: Request timeout in seconds
            ping_timeout: Timeout for the liveness probe in seconds
            rpa_path: RPA endpoint template with a ``{claim_id}`` placeholder
            http_client: Optional pre-built httpx client (tests inject one)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.ping_timeout = ping_timeout
        self.rpa_path = rpa_path
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(base_url=self.base_url, timeout=timeout)

        logger.info(f"Initialized ClaimsApiClient: base_url={self.base_url}, timeout={timeout}s")

    @classmethod
    def from_config(cls, config: Config) -> "ClaimsApiClient":
        return cls(
            base_url=config.api.base_url,
            timeout=config.api.timeout,
            ping_timeout=config.api.ping_timeout,
            rpa_path=config.api.rpa_path,
        )

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "ClaimsApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        timeout: Optional[float] = None,
        **kwargs: Any
    ) -> httpx.Response:
        """Send a request, translating httpx failures into wizard errors."""
        effective_timeout = timeout or self.timeout
        logger.debug(f"{method} {path} ({operation})")
        try:
            return self._http.request(method, path, timeout=effective_timeout, **kwargs)
        except httpx.TimeoutException as e:
            handle_backend_error(
                BackendTimeoutError.timed_out(operation, effective_timeout, e), operation, logger
            )
        except httpx.TransportError as e:
            handle_backend_error(
                BackendTransportError.unreachable(operation, self.base_url, e), operation, logger
            )

    def _ensure_success(self, response: httpx.Response, operation: str, path: str) -> None:
        if response.is_success:
            return
        handle_backend_error(
            BackendHTTPError.from_response(
                operation,
                response.status_code,
                response.reason_phrase,
                url=f"{self.base_url}{path}",
            ),
            operation,
            logger,
        )

    def _json(self, response: httpx.Response, operation: str) -> Dict[str, Any]:
        """Decode a JSON object body, surfacing a snippet of anything else."""
        try:
            data = response.json()
        except ValueError as e:
            handle_backend_error(
                BackendResponseError.invalid_json(operation, response.text, e), operation, logger
            )
        if not isinstance(data, dict):
            handle_backend_error(
                BackendResponseError.invalid_json(operation, response.text), operation, logger
            )
        return data

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def create_claim(self, info: ClaimInfo) -> str:
        """
        Create a claim and return its backend-assigned identifier.

        Args:
            info: Form details for the new claim

        Returns:
            Claim identifier
        """
        operation = "create claim"
        path = "/claims"
        response = self._request(operation, "POST", path, json=info.to_payload())
        self._ensure_success(response, operation, path)
        data = self._json(response, operation)

        claim_id = data.get("claimId") or data.get("claim_id") or data.get("id")
        if not claim_id:
            handle_backend_error(
                BackendResponseError.missing_field(operation, "claimId", response.text),
                operation,
                logger,
            )
        logger.info(f"Created claim {claim_id}")
        return str(claim_id)

    def upload_file(
        self,
        claim_id: str,
        filename: str,
        content: bytes,
        kind: str,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """
        Upload one image or document as multipart form data.

        Args:
            claim_id: Claim to attach the file to
            filename: Original file name
            content: File bytes
            kind: "image" or "document"
            content_type: Optional MIME type

        Returns:
            UploadResult with any detector/extract payloads the backend produced
        """
        operation = f"upload {filename}"
        path = f"/claims/{claim_id}/upload"
        file_tuple = (filename, content, content_type or "application/octet-stream")
        response = self._request(
            operation, "POST", path, files={"file": file_tuple}, data={"type": kind}
        )
        self._ensure_success(response, operation, path)
        return UploadResult.from_payload(self._json(response, operation), filename, kind)

    def check_claim(self, claim_id: str) -> CheckResult:
        """Ask the backend whether the claim has every required field."""
        operation = "check claim"
        path = f"/claims/{claim_id}/check"
        response = self._request(operation, "GET", path)
        self._ensure_success(response, operation, path)
        return CheckResult.from_payload(self._json(response, operation))

    def get_decision(self, claim_id: str) -> DecisionResult:
        """Run the backend decision engine for the claim."""
        operation = "get decision"
        path = f"/claims/{claim_id}/decision"
        response = self._request(operation, "POST", path)
        self._ensure_success(response, operation, path)
        return DecisionResult.from_payload(self._json(response, operation))

    def execute_rpa(self, claim_id: str) -> RPAResult:
        """
        Run the RPA flow for the claim.

        Raises:
            RPANotAvailableError: If the backend answers 404
        """
        operation = "execute RPA"
        path = self.rpa_path.format(claim_id=claim_id)
        response = self._request(operation, "POST", path)
        if response.status_code == 404:
            handle_backend_error(RPANotAvailableError.for_claim(claim_id), operation, logger)
        self._ensure_success(response, operation, path)
        return RPAResult.from_payload(self._json(response, operation))

    def ping_backend(self) -> bool:
        """Return True if GET /ping answers with {"status": "ok"}."""
        try:
            response = self._http.get("/ping", timeout=self.ping_timeout)
        except httpx.HTTPError as e:
            logger.debug(f"Ping failed: {e}")
            return False

        if not response.is_success:
            return False
        try:
            data = response.json()
        except ValueError:
            return False
        return isinstance(data, dict) and data.get("status") == "ok"
