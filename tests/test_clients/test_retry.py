import json

import httpx
import pytest

from halo_mocks import MOCK_API_KEY, candidate_body
from x402_halo.clients.responses import RecoveredResponse, candidate_text
from x402_halo.clients.retry import RetryExecutor, build_retry_body
from x402_halo.engine.exceptions import RetryFailure, TransportFailure


class TestBuildRetryBody:

    def test_string_prompt_is_wrapped(self):
        assert build_retry_body(["hi"]) == {"contents": [{"parts": [{"text": "hi"}]}]}

    def test_native_request_passes_through(self):
        native = {"contents": [{"role": "user", "parts": [{"text": "hi"}]}], "generationConfig": {"temperature": 0}}
        assert build_retry_body([native, "ignored"]) is native

    def test_contents_keyword(self):
        assert build_retry_body([], {"contents": "hi"}) == {"contents": [{"parts": [{"text": "hi"}]}]}


class TestRecoveredResponse:

    def test_text_and_native_fields(self):
        data = {**candidate_body("hello"), "usageMetadata": {"totalTokenCount": 3}}
        result = RecoveredResponse(data)
        assert result.text == "hello"
        assert result.response.text == "hello"
        assert result["usageMetadata"] == {"totalTokenCount": 3}
        assert result.usageMetadata["totalTokenCount"] == 3
        assert dict(result) == data

    def test_missing_text(self):
        assert RecoveredResponse({"candidates": []}).text == ""
        assert candidate_text({"candidates": [{"content": {"parts": [{"text": 5}]}}]}) is None

    def test_unknown_attribute(self):
        with pytest.raises(AttributeError):
            RecoveredResponse({}).missing


class TestRetryExecutor:

    @pytest.mark.asyncio
    async def test_retry_carries_payment_signature(self, keyed_config, http_client):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=candidate_body("hello"))

        executor = RetryExecutor(keyed_config, http_client(handler))
        result = await executor.retry("ZW52ZWxvcGU=", ["Explain x402"], keyed_config.api_details())

        assert result.text == "hello"
        assert result.status_code == 200
        request = seen[0]
        assert request.headers["Payment-Signature"] == "ZW52ZWxvcGU="
        assert "x-halo-rescue" not in request.headers
        assert request.url.params["key"] == MOCK_API_KEY
        assert request.url.path.endswith(":generateContent")
        assert json.loads(request.content) == {"contents": [{"parts": [{"text": "Explain x402"}]}]}

    @pytest.mark.asyncio
    async def test_api_details_default_to_config(self, keyed_config, http_client):
        hosts = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            return httpx.Response(200, json=candidate_body("ok"))

        await RetryExecutor(keyed_config, http_client(handler)).retry("sig", ["hi"])
        assert hosts == ["halo.test"]

    @pytest.mark.asyncio
    async def test_non_success_is_retry_failure(self, keyed_config, http_client):
        executor = RetryExecutor(keyed_config, http_client(lambda request: httpx.Response(402, text="nonce reused")))
        with pytest.raises(RetryFailure) as exc_info:
            await executor.retry("sig", ["hi"])
        assert exc_info.value.status_code == 402
        assert exc_info.value.body == "nonce reused"

    @pytest.mark.asyncio
    async def test_single_attempt_only(self, keyed_config, http_client):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500, text="upstream error")

        with pytest.raises(RetryFailure):
            await RetryExecutor(keyed_config, http_client(handler)).retry("sig", ["hi"])
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_non_json_success_is_retry_failure(self, keyed_config, http_client):
        executor = RetryExecutor(keyed_config, http_client(lambda request: httpx.Response(200, text="<html>")))
        with pytest.raises(RetryFailure):
            await executor.retry("sig", ["hi"])

    @pytest.mark.asyncio
    async def test_transport_error(self, keyed_config, http_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportFailure):
            await RetryExecutor(keyed_config, http_client(handler)).retry("sig", ["hi"])
