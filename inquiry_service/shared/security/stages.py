"""Concrete admission stages and the per-route-class chains built from them."""

import asyncio
import logging
import random
from typing import Dict, Sequence

from fastapi import Request
from pydantic import ValidationError

from inquiry_service.shared.admin.auth import AdminSessionGate, decode_token
from inquiry_service.shared.contact.schemas import REQUIRED_FIELDS, ContactRequest
from inquiry_service.shared.security.injection_filter import scan_request
from inquiry_service.shared.security.ip_reputation import IPReputationTracker
from inquiry_service.shared.security.pipeline import (
    AdmissionPipeline,
    Rejection,
    Stage,
    get_client_ip,
    read_json_body,
)
from inquiry_service.shared.security.rate_limit import RateLimiter

HONEYPOT_FIELDS = ("website", "url", "homepage", "captcha", "bot_field")


class RequestSizeStage(Stage):
    name = "request_size"

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes

    def _too_large(self) -> Rejection:
        return Rejection(413, {
            "error": "Payload too large",
            "message": f"Request body must not exceed {self.max_bytes // 1024} KB.",
        })

    async def check(self, request: Request) -> None:
        try:
            content_length = int(request.headers.get("content-length", "0"))
        except ValueError:
            content_length = 0
        if content_length > self.max_bytes:
            raise self._too_large()

        # Chunked uploads carry no Content-Length; stop reading at the ceiling
        chunks = []
        received = 0
        async for chunk in request.stream():
            received += len(chunk)
            if received > self.max_bytes:
                raise self._too_large()
            chunks.append(chunk)
        # later stages read the body through request.body()
        request._body = b"".join(chunks)


class InjectionFilterStage(Stage):
    name = "injection_filter"

    async def check(self, request: Request) -> None:
        body = await read_json_body(request)
        query = [value for _, value in request.query_params.multi_items()]
        if scan_request(body, query, dict(request.path_params)):
            logging.warning(f"[Security] Potential SQL injection attempt from IP: {get_client_ip(request)}")
            raise Rejection(400, {
                "error": "Invalid input",
                "message": "Request contains invalid characters.",
            })


class ReputationStage(Stage):
    name = "reputation"

    def __init__(self, tracker: IPReputationTracker):
        self.tracker = tracker

    async def check(self, request: Request) -> None:
        client_ip = get_client_ip(request)
        if not self.tracker.admit(client_ip):
            logging.warning(f"[Security] Blocked IP attempted access: {client_ip}")
            raise Rejection(403, {
                "error": "Forbidden",
                "message": "Your IP address has been blocked due to suspicious activity.",
            })


class RateLimitStage(Stage):
    def __init__(self, limiter: RateLimiter):
        self.limiter = limiter
        self.name = f"rate_limit:{limiter.name}"

    async def check(self, request: Request) -> None:
        retry_after = self.limiter.hit(get_client_ip(request))
        if retry_after is not None:
            raise Rejection(
                429,
                {
                    "error": self.limiter.error,
                    "message": self.limiter.message,
                    "retryAfter": retry_after,
                },
                headers={"Retry-After": str(retry_after)},
            )

    def on_admitted(self, request: Request) -> None:
        if self.limiter.skip_successful_requests:
            self.limiter.release(get_client_ip(request))


class HoneypotStage(Stage):
    """Pretends to accept submissions that filled in a field humans never see."""

    name = "honeypot"

    def __init__(self, fields: Sequence[str] = HONEYPOT_FIELDS):
        self.fields = tuple(fields)

    async def check(self, request: Request) -> None:
        body = await read_json_body(request)
        if not isinstance(body, dict):
            return
        if any(body.get(field) for field in self.fields):
            logging.warning(f"[Security] Honeypot triggered from IP: {get_client_ip(request)}")
            raise Rejection(200, {"success": True, "message": "Form submitted successfully"})


class ContactValidationStage(Stage):
    """Validates and sanitizes the contact payload; the result lands on request.state.contact."""

    name = "contact_validation"

    async def check(self, request: Request) -> None:
        body = await read_json_body(request)
        if not isinstance(body, dict) or not all(body.get(field) for field in REQUIRED_FIELDS):
            raise Rejection(400, {
                "error": "Validation failed",
                "message": "Full name, email, and event type are required.",
            })

        try:
            request.state.contact = ContactRequest.model_validate(body)
        except ValidationError as e:
            first = e.errors()[0]
            message = str(first.get("msg", "Invalid input")).replace("Value error, ", "", 1)
            raise Rejection(400, {
                "error": "Invalid input",
                "message": message,
                "field": ".".join(str(part) for part in first.get("loc", ())),
            })


class ResponseDelayStage(Stage):
    """Random 0..max_delay_ms pause before credentials are compared."""

    name = "response_delay"

    def __init__(self, max_delay_ms: int, sleep=asyncio.sleep):
        self.max_delay_ms = max_delay_ms
        self._sleep = sleep

    async def check(self, request: Request) -> None:
        if self.max_delay_ms > 0:
            await self._sleep(random.randint(0, self.max_delay_ms) / 1000)


class AdminCredentialStage(Stage):
    """Checks a username/password body; the issued token lands on request.state.admin_token."""

    name = "admin_credentials"

    def __init__(self, gate: AdminSessionGate):
        self.gate = gate

    async def check(self, request: Request) -> None:
        body = await read_json_body(request)
        username = body.get("username") if isinstance(body, dict) else None
        password = body.get("password") if isinstance(body, dict) else None
        if not username or not password:
            raise Rejection(400, {"error": "Username and password required"})

        token = None
        if isinstance(username, str) and isinstance(password, str):
            token = self.gate.login(username, password)
        if token is None:
            logging.warning(f"[Security] Failed admin login from IP: {get_client_ip(request)}")
            raise Rejection(401, {"error": "Invalid credentials"})

        request.state.admin_token = token


class AdminTokenStage(Stage):
    """Requires `Authorization: Basic <token>` matching the configured admin credentials."""

    name = "admin_token"

    def __init__(self, gate: AdminSessionGate):
        self.gate = gate

    async def check(self, request: Request) -> None:
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Basic "):
            raise Rejection(401, {"error": "Unauthorized", "message": "Authentication required."})

        token = auth_header[len("Basic "):].strip()
        if decode_token(token) is None:
            raise Rejection(401, {"error": "Unauthorized", "message": "Invalid authentication format."})

        if not self.gate.authenticate(token):
            logging.warning(f"[Security] Invalid admin token from IP: {get_client_ip(request)}")
            raise Rejection(401, {"error": "Unauthorized", "message": "Invalid credentials."})


def build_pipelines(
    settings,
    limiters: Dict[str, RateLimiter],
    tracker: IPReputationTracker,
    gate: AdminSessionGate,
) -> Dict[str, AdmissionPipeline]:
    """
    Build the chain for each route class.

    public:      request size, reputation, api limit, injection filter
    contact:     public, contact limit, honeypot, validation
    admin_login: public, login limit, random delay, credential check
    admin:       public, login limit, random delay, token check

    Reputation and the api limit come before anything that parses the body,
    so requests rejected as hostile or malformed are still counted.
    """
    public_stages = [
        RequestSizeStage(settings.MAX_REQUEST_BYTES),
        ReputationStage(tracker),
        RateLimitStage(limiters["api"]),
    ]
    if settings.SQL_INJECTION_FILTER:
        public_stages.append(InjectionFilterStage())
    public = AdmissionPipeline("public", public_stages)

    login_limit = RateLimitStage(limiters["admin_login"])
    delay = ResponseDelayStage(settings.ADMIN_RESPONSE_DELAY_MS)

    return {
        "public": public,
        "contact": public.extend(
            "contact",
            RateLimitStage(limiters["contact"]),
            HoneypotStage(),
            ContactValidationStage(),
        ),
        "admin_login": public.extend("admin_login", login_limit, delay, AdminCredentialStage(gate)),
        "admin": public.extend("admin", login_limit, delay, AdminTokenStage(gate)),
    }
