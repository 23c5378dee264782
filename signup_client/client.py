"""
HTTP client for the signup API.

Usage:
    with SignupClient("https://bossnet-dev.oberstrolex.synology.me") as client:
        form = client.open_form()
        ...  # the user fills in the form
        client.register(form, {"clan_nickname": "[BN]Frag", "email": "...", ...})
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import httpx

from signup_client.precheck import PrecheckResult, precheck_submission

logger = logging.getLogger(__name__)

HONEYPOT_FIELDS = ("website", "phone", "address")


class SignupClientError(Exception):
    """Submission refused, either by the local precheck or by the service."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[List[str]] = None,
        consent: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or []
        self.consent = consent
        super().__init__(message)

    @classmethod
    def from_precheck(cls, result: PrecheckResult) -> "SignupClientError":
        return cls(
            message="Bitte Eingaben prüfen.",
            details=[message for _, message in result.errors],
            consent=result.message_for("consent"),
        )

    @classmethod
    def from_response(cls, response: httpx.Response) -> "SignupClientError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            message=body.get("error") or f"HTTP {response.status_code}",
            status_code=response.status_code,
            details=body.get("details") or [],
            consent=body.get("consent"),
        )


@dataclass
class SignupForm:
    """A form instance. ``loaded_at`` is when it became interactive (epoch seconds)."""

    loaded_at: float = field(default_factory=time.time)

    @property
    def form_load_time_ms(self) -> int:
        return int(self.loaded_at * 1000)


class SignupClient:
    def __init__(
        self,
        base_url: str = "http://localhost:5177",
        *,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def __enter__(self) -> "SignupClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def open_form(self) -> SignupForm:
        return SignupForm()

    def build_payload(self, form: SignupForm, submission: Mapping[str, Any]) -> Dict[str, Any]:
        payload = {k: v for k, v in submission.items() if k not in HONEYPOT_FIELDS}
        payload.update({name: "" for name in HONEYPOT_FIELDS})
        payload["formLoadTime"] = form.form_load_time_ms
        return payload

    def register(
        self,
        form: SignupForm,
        submission: Mapping[str, Any],
        *,
        precheck: bool = True,
    ) -> Dict[str, Any]:
        """
        Submit ``submission`` and return the service's success body.

        Raises:
            SignupClientError: The precheck failed (no request sent) or the
                service answered with an error status.
        """
        if precheck:
            result = precheck_submission(submission)
            if not result.ok:
                raise SignupClientError.from_precheck(result)

        response = self._http.post("/api/register", json=self.build_payload(form, submission))
        if response.status_code != 200:
            error = SignupClientError.from_response(response)
            logger.info(f"Registration refused ({error.status_code}): {error.message}")
            raise error
        return response.json()

    def list_participants(self, token: Optional[str] = None) -> List[Dict[str, Any]]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        response = self._http.get("/api/registrations", headers=headers)
        if response.status_code != 200:
            raise SignupClientError.from_response(response)
        return response.json()

    def health(self) -> Dict[str, Any]:
        response = self._http.get("/api/health")
        if response.status_code != 200:
            raise SignupClientError.from_response(response)
        return response.json()
