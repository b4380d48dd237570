import json

import httpx
import pytest

from halo_mocks import MOCK_API_KEY, candidate_body
from x402_halo.clients.judge import JudgeClient, build_judge_request, parse_decision
from x402_halo.engine.exceptions import TransportFailure


class TestDecisionParsing:

    def test_yes_is_approval(self):
        decision = parse_decision(candidate_body("YES, approved."))
        assert decision == "YES, APPROVED."
        assert JudgeClient.approves(decision)

    def test_lowercase_yes_is_normalised(self):
        assert JudgeClient.approves(parse_decision(candidate_body("  yes\n")))

    def test_no_is_denial(self):
        decision = parse_decision(candidate_body("NO"))
        assert decision == "NO"
        assert not JudgeClient.approves(decision)

    @pytest.mark.parametrize("data", [{}, {"candidates": []}, candidate_body(""), candidate_body("   "), None, [1]])
    def test_unparseable_is_error_sentinel(self, data):
        decision = parse_decision(data)
        assert decision == "ERROR"
        assert not JudgeClient.approves(decision)


def test_prompt_mentions_resource_and_amount():
    body = build_judge_request("Gemini generateContent", "1000000")
    prompt = body["contents"][0]["parts"][0]["text"]
    assert "Resource: Gemini generateContent" in prompt
    assert "Required Cost: 1000000" in prompt
    assert "Reply ONLY with 'YES' or 'NO'" in prompt


class TestJudgeClient:

    @pytest.mark.asyncio
    async def test_consult_request_shape(self, keyless_config, http_client):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=candidate_body("YES"))

        judge = JudgeClient(keyless_config, http_client(handler))
        decision = await judge.consult("Gemini generateContent", "1000000")

        assert decision == "YES"
        assert len(seen) == 1
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/v1beta/models/gemini-3-flash-preview:generateContent"
        assert request.url.params["key"] == MOCK_API_KEY
        assert request.headers["x-halo-rescue"] == "true"
        assert "Payment-Signature" not in request.headers
        prompt = json.loads(request.content)["contents"][0]["parts"][0]["text"]
        assert "Gemini generateContent" in prompt

    @pytest.mark.asyncio
    async def test_non_json_reply_is_error_sentinel(self, keyless_config, http_client):
        judge = JudgeClient(keyless_config, http_client(lambda request: httpx.Response(502, text="bad gateway")))
        assert await judge.consult("x", "1") == "ERROR"

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, keyless_config, http_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        judge = JudgeClient(keyless_config, http_client(handler))
        with pytest.raises(TransportFailure) as exc_info:
            await judge.consult("x", "1")
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert MOCK_API_KEY not in (exc_info.value.url or "")
