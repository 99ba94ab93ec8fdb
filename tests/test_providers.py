"""
Tests for the hosted assistant providers.
"""

from unittest.mock import MagicMock

import pytest

from smartlife.main import app
from smartlife.api import deps
from smartlife.config import Settings
from smartlife.core.huggingface_client import AssistantProviderError, HuggingFaceClient
from smartlife.core.vectara_client import VectaraClient
from smartlife.services.assistant import AssistantService, build_assistant_client
from conftest import bearer


def json_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    return response


class TestHuggingFaceClient:
    """Tests for HuggingFaceClient."""

    @pytest.fixture
    def hf(self):
        return HuggingFaceClient(api_url="https://hf.test/models/demo", api_key="hf_token")

    def test_generate(self, hf, mocker):
        post = mocker.patch(
            "smartlife.core.huggingface_client.requests.post",
            return_value=json_response([{"generated_text": "  Your plan covers day care.  "}]),
        )
        assert hf.generate("Question?") == "Your plan covers day care."

        kwargs = post.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer hf_token"
        assert kwargs["json"]["inputs"] == "Question?"
        assert kwargs["json"]["parameters"]["return_full_text"] is False

    def test_strips_echoed_prompt(self, hf, mocker):
        mocker.patch(
            "smartlife.core.huggingface_client.requests.post",
            return_value=json_response([{"generated_text": "Question? Answer."}]),
        )
        assert hf.generate("Question?") == "Answer."

    @pytest.mark.parametrize("payload", [
        {"error": "Model is loading"},
        [{"generated_text": ""}],
        [{"generated_text": None}],
        [],
        "Service Unavailable",
    ])
    def test_unusable_answers(self, hf, mocker, payload):
        mocker.patch("smartlife.core.huggingface_client.requests.post", return_value=json_response(payload))
        with pytest.raises(AssistantProviderError):
            hf.generate("Question?")

    def test_requires_url(self, mocker):
        mocker.patch(
            "smartlife.core.huggingface_client.get_settings",
            return_value=MagicMock(huggingface_api_url=None, huggingface_api_key=None, ai_request_timeout=5),
        )
        with pytest.raises(AssistantProviderError):
            HuggingFaceClient()


class TestVectaraClient:
    """Tests for VectaraClient."""

    @pytest.fixture
    def vectara(self):
        return VectaraClient(api_key="zqt_key", corpus_key="policies")

    def test_generate(self, vectara, mocker):
        post = mocker.patch(
            "smartlife.core.vectara_client.requests.post",
            return_value=json_response({"summary": "Maternity is covered after 2 years.", "factual_consistency_score": 0.81}),
        )
        assert vectara.generate("prompt", query="Is maternity covered?") == "Maternity is covered after 2 years."
        assert vectara.last_score == 0.81

        payload = post.call_args.kwargs["json"]
        assert payload["query"] == "Is maternity covered?"
        assert payload["search"]["corpora"] == [{"corpus_key": "policies"}]
        assert post.call_args.kwargs["headers"]["x-api-key"] == "zqt_key"

    @pytest.mark.parametrize("payload", [{"summary": ""}, {"summary": None}, [{"summary": "Yes"}], "oops"])
    def test_unusable_answers(self, vectara, mocker, payload):
        mocker.patch("smartlife.core.vectara_client.requests.post", return_value=json_response(payload))
        with pytest.raises(AssistantProviderError):
            vectara.generate("prompt")

    def test_malformed_body_falls_back(self, vectara, mocker, customer):
        mocker.patch("smartlife.core.vectara_client.requests.post", return_value=json_response(["not", "a", "dict"]))
        result = AssistantService(vectara).respond("How do I file a claim?", customer)
        assert result.fallback is True
        assert result.response.startswith("To file a claim")

    def test_confidence_flows_to_assistant(self, vectara, mocker, customer):
        mocker.patch(
            "smartlife.core.vectara_client.requests.post",
            return_value=json_response({"summary": "Yes, after 2 years.", "factual_consistency_score": 0.64}),
        )
        result = AssistantService(vectara).respond("Is maternity covered?", customer)
        assert result.provider == "vectara"
        assert result.confidence_score == 0.64


class TestProviderSelection:
    """Tests for build_assistant_client."""

    def test_mock_and_unknown(self):
        assert build_assistant_client("mock") is None
        assert build_assistant_client("openai") is None

    def test_vectara(self, mocker):
        mocker.patch(
            "smartlife.core.vectara_client.get_settings",
            return_value=MagicMock(
                vectara_api_key="k", vectara_corpus_key="c", vectara_api_url="https://v.test", ai_request_timeout=5
            ),
        )
        assert isinstance(build_assistant_client("Vectara"), VectaraClient)

    @pytest.mark.parametrize("provider,module", [
        ("huggingface", "smartlife.core.huggingface_client"),
        ("vectara", "smartlife.core.vectara_client"),
    ])
    def test_missing_configuration_uses_keywords(self, mocker, provider, module):
        mocker.patch(f"{module}.get_settings", return_value=Settings(ai_provider=provider, _env_file=None))
        assert build_assistant_client(provider) is None

    def test_assistant_endpoint_without_provider_config(self, client, customer, mocker):
        settings = Settings(ai_provider="huggingface", huggingface_api_url=None, _env_file=None)
        mocker.patch("smartlife.services.assistant.get_settings", return_value=settings)
        mocker.patch("smartlife.core.huggingface_client.get_settings", return_value=settings)
        app.dependency_overrides.pop(deps.get_assistant_service)

        response = client.post("/api/ai/assistant", headers=bearer(customer), json={"query": "claim help"})
        assert response.status_code == 200
        assert response.json()["data"]["response"].startswith("To file a claim")
