import json
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

import requests

from siteverify.errors import DecodeError, InvalidInput, NetworkError, ReadError
from siteverify.validators import extract_token, remote_host

SITEVERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"
DEFAULT_TIMEOUT = 5


class Transport(Protocol):
    """Anything that can POST a form and hand back a closeable response."""

    def post(self, url: str, data: dict, timeout: float, stream: bool) -> Any: ...


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Decoded answer of the siteverify endpoint."""

    success: bool = False
    challenge_ts: datetime | None = None
    hostname: str = ""
    error_codes: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "VerificationResult":
        """
        Build a result from a decoded JSON document.

        Unknown keys are ignored, missing or null keys keep their defaults.
        A bare JSON null decodes to an empty result.
        Keys present with the wrong type raise DecodeError.
        """
        if payload is None:
            return cls()
        if not isinstance(payload, dict):
            raise DecodeError(
                f"Invalid response from Recaptcha service: expected a JSON object, "
                f"got {type(payload).__name__}"
            )

        success = payload.get("success")
        if success is None:
            success = False
        elif not isinstance(success, bool):
            raise DecodeError("Invalid response from Recaptcha service: 'success' is not a boolean")

        hostname = payload.get("hostname")
        if hostname is None:
            hostname = ""
        elif not isinstance(hostname, str):
            raise DecodeError("Invalid response from Recaptcha service: 'hostname' is not a string")

        error_codes = payload.get("error-codes")
        if error_codes is None:
            error_codes = []
        elif not isinstance(error_codes, list) or not all(
            isinstance(code, str) for code in error_codes
        ):
            raise DecodeError(
                "Invalid response from Recaptcha service: 'error-codes' is not a list of strings"
            )

        return cls(
            success=success,
            challenge_ts=_parse_timestamp(payload.get("challenge_ts")),
            hostname=hostname,
            error_codes=tuple(error_codes),
        )

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "challenge_ts": self.challenge_ts.isoformat() if self.challenge_ts else None,
            "hostname": self.hostname,
            "error-codes": list(self.error_codes),
        }


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodeError("Invalid response from Recaptcha service: 'challenge_ts' is not a string")

    try:
        if value[10:11] not in ("T", "t"):
            raise ValueError("missing 'T' date/time separator")
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            raise ValueError("missing timezone offset")
    except ValueError as exc:
        raise DecodeError(
            f"Invalid response from Recaptcha service: bad 'challenge_ts' {value!r}: {exc}"
        ) from exc
    return parsed


class Recaptcha:
    """
    Server-side verification of reCAPTCHA 2.0 responses.

    The verifier only holds the site secret, so one instance can be shared
    between threads and requests.
    """

    def __init__(self, secret: str, timeout: float = DEFAULT_TIMEOUT):
        self._secret = secret
        self._timeout = timeout

    @property
    def secret(self) -> str:
        return self._secret

    @property
    def timeout(self) -> float:
        return self._timeout

    def verify(self, request, client: Transport | None = None) -> VerificationResult:
        """
        Verify the CAPTCHA answer carried by ``request``.

        ``client`` is any object with a requests-style ``post``. When it is
        omitted a throwaway ``requests.Session`` is used for this call only.

        Raises InvalidInput, NetworkError, ReadError or DecodeError.
        """
        if request is None:
            raise InvalidInput("HTTP request is None")

        token = extract_token(request)
        if not token:
            raise InvalidInput("No captcha response found in request body")

        payload = {
            "secret": self._secret,
            "response": token,
            "remoteip": remote_host(getattr(request, "remote_addr", None)),
        }

        if client is None:
            with requests.Session() as session:
                return self._siteverify(session, payload)

        return self._siteverify(client, payload)

    def _siteverify(self, client: Transport, payload: dict) -> VerificationResult:
        try:
            resp = client.post(
                SITEVERIFY_URL,
                data=payload,
                timeout=self._timeout,
                stream=True,
            )
        except (requests.RequestException, OSError) as exc:
            raise NetworkError(f"Could not connect to Recaptcha service: {exc}") from exc

        with closing(resp):
            try:
                body = resp.content
            except (requests.RequestException, OSError) as exc:
                raise ReadError(
                    f"Could not read response from Recaptcha service: {exc}"
                ) from exc

            try:
                data = json.loads(body)
            except ValueError as exc:
                raise DecodeError(f"Invalid response from Recaptcha service: {exc}") from exc

        return VerificationResult.from_payload(data)
