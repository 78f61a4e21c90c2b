import pytest

from config import LlmRoute
from conftest import FakeLlm, FakeLlmResponse
from llm_gateway import LlmGatewayError, complete


ROUTE = LlmRoute(
    name="feedback",
    base_url="https://llm.test",
    endpoint="/v1/chat/completions",
    model="gpt-4o",
    timeout_s=120,
    api_key="sk-test",
)


class _Exploding:
    def post(self, url, *, json, headers, timeout):
        raise ConnectionError("connection reset")


def test_complete_posts_chat_payload():
    llm = FakeLlm(content="## Overall Performance")
    reply = complete(
        [{"role": "system", "content": "coach"}, {"role": "user", "content": "transcript"}],
        cfg=ROUTE,
        client=llm,
        options={"temperature": 0.7},
    )
    assert reply == "## Overall Performance"
    [call] = llm.calls
    assert call["url"] == "https://llm.test/v1/chat/completions"
    assert call["headers"] == {"Content-Type": "application/json", "Authorization": "Bearer sk-test"}
    assert call["json"] == {
        "model": "gpt-4o",
        "messages": [{"role": "system", "content": "coach"}, {"role": "user", "content": "transcript"}],
        "temperature": 0.7,
    }


def test_error_status_carries_body():
    llm = FakeLlm()
    llm.response = FakeLlmResponse(500, text="upstream exploded")
    with pytest.raises(LlmGatewayError) as excinfo:
        complete([{"role": "user", "content": "x"}], cfg=ROUTE, client=llm)
    assert str(excinfo.value) == "OpenAI API error: 500 upstream exploded"
    assert excinfo.value.details == "upstream exploded"
    assert len(llm.calls) == 1


def test_missing_content_is_an_error():
    llm = FakeLlm()
    llm.response = FakeLlmResponse(200, {"choices": []})
    with pytest.raises(LlmGatewayError):
        complete([{"role": "user", "content": "x"}], cfg=ROUTE, client=llm)


def test_transport_failure_is_wrapped():
    with pytest.raises(LlmGatewayError) as excinfo:
        complete([{"role": "user", "content": "x"}], cfg=ROUTE, client=_Exploding())
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_messages_need_a_role():
    with pytest.raises(ValueError):
        complete([{"content": "x"}], cfg=ROUTE, client=FakeLlm())
