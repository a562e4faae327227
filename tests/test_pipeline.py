"""
Tests for the admission pipeline and its stages.
"""

import asyncio
import json

import pytest
from starlette.requests import Request

from conftest import ADMIN_PASSWORD, ADMIN_USERNAME, contact_payload, make_request, make_settings
from inquiry_service.shared.admin.auth import AdminSessionGate, encode_token
from inquiry_service.shared.security.ip_reputation import IPReputationTracker
from inquiry_service.shared.security.pipeline import (
    AdmissionPipeline,
    Rejection,
    Stage,
    get_client_ip,
    read_json_body,
)
from inquiry_service.shared.security.rate_limit import RateLimiter, build_rate_limiters
from inquiry_service.shared.security.stages import (
    AdminCredentialStage,
    AdminTokenStage,
    ContactValidationStage,
    HoneypotStage,
    InjectionFilterStage,
    RateLimitStage,
    ReputationStage,
    RequestSizeStage,
    ResponseDelayStage,
    build_pipelines,
)


def run(coro):
    return asyncio.run(coro)


def json_request(payload, **kwargs):
    return make_request(json.dumps(payload).encode(), **kwargs)


def chunked_request(chunks, reads):
    """A JSON request without Content-Length whose body arrives in `chunks`."""
    scope = make_request(headers={"content-type": "application/json"}).scope
    pending = list(chunks)

    async def receive():
        reads.append(1)
        body = pending.pop(0)
        return {"type": "http.request", "body": body, "more_body": bool(pending)}

    return Request(scope, receive)


def rejection_of(stage, request) -> Rejection:
    with pytest.raises(Rejection) as exc_info:
        run(stage.check(request))
    return exc_info.value


class RecordingStage(Stage):
    def __init__(self, name, log, reject=False):
        self.name = name
        self.log = log
        self.reject = reject

    async def check(self, request):
        self.log.append(("check", self.name))
        if self.reject:
            raise Rejection(418, {"error": self.name})

    def on_admitted(self, request):
        self.log.append(("admitted", self.name))


class TestAdmissionPipeline:
    """Tests for chain ordering and termination."""

    def test_runs_every_stage_in_order(self):
        log = []
        pipeline = AdmissionPipeline("p", [RecordingStage("a", log), RecordingStage("b", log)])
        run(pipeline.admit(make_request()))
        assert log == [("check", "a"), ("check", "b"), ("admitted", "a"), ("admitted", "b")]

    def test_stops_at_first_rejection(self):
        log = []
        pipeline = AdmissionPipeline(
            "p",
            [RecordingStage("a", log), RecordingStage("b", log, reject=True), RecordingStage("c", log)],
        )
        with pytest.raises(Rejection) as exc_info:
            run(pipeline.admit(make_request()))
        assert exc_info.value.status_code == 418
        assert exc_info.value.body == {"error": "b"}
        assert log == [("check", "a"), ("check", "b")]

    def test_extend_leaves_base_untouched(self):
        log = []
        base = AdmissionPipeline("base", [RecordingStage("a", log)])
        extended = base.extend("more", RecordingStage("b", log))
        assert base.stage_names == ["a"]
        assert extended.stage_names == ["a", "b"]
        assert extended.name == "more"


class TestBuildPipelines:
    """Tests for the per-route-class chains."""

    def make(self, **overrides):
        settings = make_settings(**overrides)
        return build_pipelines(
            settings,
            build_rate_limiters(),
            IPReputationTracker(),
            AdminSessionGate(ADMIN_USERNAME, ADMIN_PASSWORD),
        )

    def test_chain_order(self):
        pipelines = self.make()
        public = ["request_size", "reputation", "rate_limit:api", "injection_filter"]
        assert pipelines["public"].stage_names == public
        assert pipelines["contact"].stage_names == public + [
            "rate_limit:contact", "honeypot", "contact_validation",
        ]
        assert pipelines["admin_login"].stage_names == public + [
            "rate_limit:admin_login", "response_delay", "admin_credentials",
        ]
        assert pipelines["admin"].stage_names == public + [
            "rate_limit:admin_login", "response_delay", "admin_token",
        ]

    def test_injection_filter_can_be_disabled(self):
        pipelines = self.make(SQL_INJECTION_FILTER=False)
        assert "injection_filter" not in pipelines["contact"].stage_names


class TestRequestHelpers:
    """Tests for client address and body helpers."""

    def test_client_ip_ignores_forwarded_header_by_default(self):
        request = make_request(headers={"X-Forwarded-For": "198.51.100.9"})
        assert get_client_ip(request) == "203.0.113.7"

    def test_client_ip_uses_first_forwarded_hop_when_trusted(self):
        request = make_request(
            headers={"X-Forwarded-For": "198.51.100.9, 10.0.0.1"},
            settings=make_settings(TRUST_PROXY_HEADERS=True),
        )
        assert get_client_ip(request) == "198.51.100.9"

    def test_client_ip_without_client(self):
        assert get_client_ip(make_request(client=None)) == "unknown"

    def test_read_json_body(self):
        assert run(read_json_body(json_request({"a": 1}))) == {"a": 1}
        assert run(read_json_body(make_request())) == {}
        assert run(read_json_body(make_request(b"a=1", headers={"content-type": "text/plain"}))) == {}

    def test_read_json_body_rejects_malformed_json(self):
        with pytest.raises(Rejection) as exc_info:
            run(read_json_body(make_request(b"{not json")))
        assert exc_info.value.status_code == 400


class TestStages:
    """Tests for individual stages."""

    def test_request_size_declared_length(self):
        request = make_request(b"{}", headers={"content-length": "5000"})
        rejection = rejection_of(RequestSizeStage(1024), request)
        assert rejection.status_code == 413
        assert rejection.body["error"] == "Payload too large"

    def test_request_size_actual_length(self):
        request = make_request(b'{"a": "' + b"x" * 2000 + b'"}')
        assert rejection_of(RequestSizeStage(1024), request).status_code == 413
        run(RequestSizeStage(4096).check(make_request(b'{"a": "' + b"x" * 2000 + b'"}')))

    def test_request_size_stops_reading_chunked_body(self):
        reads = []
        request = chunked_request([b"x" * 1024] * 10000, reads)
        rejection = rejection_of(RequestSizeStage(4096), request)
        assert rejection.status_code == 413
        assert len(reads) == 5

    def test_request_size_keeps_chunked_body_for_later_stages(self):
        reads = []
        request = chunked_request([b'{"fullName": ', b'"Priya Sharma"}'], reads)
        run(RequestSizeStage(4096).check(request))
        assert run(read_json_body(request)) == {"fullName": "Priya Sharma"}
        assert len(reads) == 2

    def test_injection_filter(self):
        rejection = rejection_of(InjectionFilterStage(), json_request({"fullName": "x; DROP TABLE"}))
        assert rejection.status_code == 400
        assert rejection.body == {"error": "Invalid input", "message": "Request contains invalid characters."}

    def test_injection_filter_checks_query_and_path(self):
        assert rejection_of(InjectionFilterStage(), make_request(query_string=b"q=a%27b")).status_code == 400
        assert rejection_of(InjectionFilterStage(), make_request(path_params={"id": "1--"})).status_code == 400
        run(InjectionFilterStage().check(json_request(contact_payload())))

    def test_reputation_stage_rejects_blocked(self, clock):
        tracker = IPReputationTracker(burst_max_requests=1, clock=clock)
        stage = ReputationStage(tracker)
        run(stage.check(make_request()))
        run(stage.check(make_request()))
        rejection = rejection_of(stage, make_request())
        assert rejection.status_code == 403
        assert rejection.body["error"] == "Forbidden"

    def test_rate_limit_stage(self, clock):
        limiter = RateLimiter("t", 1, 60, message="wait", error="Too many", clock=clock)
        stage = RateLimitStage(limiter)
        run(stage.check(make_request()))
        rejection = rejection_of(stage, make_request())
        assert rejection.status_code == 429
        assert rejection.body == {"error": "Too many", "message": "wait", "retryAfter": 61}
        assert rejection.headers == {"Retry-After": "61"}

    def test_rate_limit_stage_releases_successful_requests(self, clock):
        limiter = RateLimiter("t", 1, 60, message="wait", skip_successful_requests=True, clock=clock)
        stage = RateLimitStage(limiter)
        for _ in range(3):
            request = make_request()
            run(stage.check(request))
            stage.on_admitted(request)

    def test_honeypot(self):
        rejection = rejection_of(HoneypotStage(), json_request(contact_payload(website="http://spam.test")))
        assert rejection.status_code == 200
        assert rejection.body == {"success": True, "message": "Form submitted successfully"}
        run(HoneypotStage().check(json_request(contact_payload(website=""))))

    def test_contact_validation_requires_fields(self):
        rejection = rejection_of(ContactValidationStage(), json_request(contact_payload(eventType="")))
        assert rejection.status_code == 400
        assert rejection.body == {
            "error": "Validation failed",
            "message": "Full name, email, and event type are required.",
        }

    def test_contact_validation_reports_field(self):
        rejection = rejection_of(ContactValidationStage(), json_request(contact_payload(email="nobody")))
        assert rejection.body == {
            "error": "Invalid input",
            "message": "Please provide a valid email address.",
            "field": "email",
        }

    def test_contact_validation_stores_result(self):
        request = json_request(contact_payload())
        run(ContactValidationStage().check(request))
        assert request.state.contact.email == "priya.sharma@example.com"

    def test_response_delay_is_bounded(self):
        waits = []

        async def fake_sleep(seconds):
            waits.append(seconds)

        stage = ResponseDelayStage(100, sleep=fake_sleep)
        for _ in range(20):
            run(stage.check(make_request()))
        assert len(waits) == 20
        assert all(0 <= w <= 0.1 for w in waits)

        waits.clear()
        run(ResponseDelayStage(0, sleep=fake_sleep).check(make_request()))
        assert waits == []

    def test_admin_credentials(self):
        stage = AdminCredentialStage(AdminSessionGate(ADMIN_USERNAME, ADMIN_PASSWORD))

        missing = rejection_of(stage, json_request({"username": ADMIN_USERNAME}))
        assert (missing.status_code, missing.body) == (400, {"error": "Username and password required"})

        wrong = rejection_of(stage, json_request({"username": ADMIN_USERNAME, "password": "nope"}))
        assert (wrong.status_code, wrong.body) == (401, {"error": "Invalid credentials"})

        request = json_request({"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
        run(stage.check(request))
        assert request.state.admin_token == encode_token(ADMIN_USERNAME, ADMIN_PASSWORD)

    @pytest.mark.parametrize(
        "headers, message",
        [
            ({}, "Authentication required."),
            ({"Authorization": "Bearer abc"}, "Authentication required."),
            ({"Authorization": "Basic !!!"}, "Invalid authentication format."),
            ({"Authorization": "Basic " + encode_token(ADMIN_USERNAME, "nope")}, "Invalid credentials."),
        ],
    )
    def test_admin_token_rejections(self, headers, message):
        stage = AdminTokenStage(AdminSessionGate(ADMIN_USERNAME, ADMIN_PASSWORD))
        rejection = rejection_of(stage, make_request(headers=headers, method="GET"))
        assert rejection.status_code == 401
        assert rejection.body == {"error": "Unauthorized", "message": message}

    def test_admin_token_accepts_valid(self):
        stage = AdminTokenStage(AdminSessionGate(ADMIN_USERNAME, ADMIN_PASSWORD))
        headers = {"Authorization": "Basic " + encode_token(ADMIN_USERNAME, ADMIN_PASSWORD)}
        run(stage.check(make_request(headers=headers, method="GET")))
