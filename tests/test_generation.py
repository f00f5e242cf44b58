"""
Generation service parsing and the OpenAI-compatible provider
"""

import json

import httpx
import pytest

from autopen.errors import GenerationError
from autopen.llm import (
    GenerationService,
    LLMProvider,
    LLMResponse,
    OpenRouterProvider,
    clean_title,
    create_provider,
    extract_json,
)
from autopen.llm.providers import DeepSeekProvider, is_retryable
from autopen.models import Chapter, GenerationKind, LLMOptions, ModelSettings, TableOfContents


class StubProvider(LLMProvider):
    """Returns canned replies and remembers what it was asked"""

    def __init__(self, *replies, error=None):
        super().__init__(api_key="test", base_url="http://llm.test/v1/", model="stub-model")
        self.replies = list(replies)
        self.error = error
        self.requests = []

    @property
    def name(self) -> str:
        return "stub"

    async def invoke(self, prompt, *, system_prompt=None, options=None):
        self.requests.append((prompt, system_prompt, options))
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.replies.pop(0), model=self.model)


TOC_REPLY = """Here is the outline:

```json
{"chapters": [
  {"title": "Flour", "dataPoints": ["protein content"]},
  {"title": "Water", "dataPoints": []}
]}
```
"""


def test_extract_json_variants():
    assert extract_json('```json\n{"a": 1}\n```') == {"a": 1}
    assert extract_json('```\n{"a": 2}\n```') == {"a": 2}
    assert extract_json('Sure! {"a": 3} hope that helps') == {"a": 3}
    assert extract_json('{"a": 4}') == {"a": 4}
    with pytest.raises(ValueError):
        extract_json("no json here")


def test_clean_title():
    assert clean_title('\n# "Bread at Home"\n\nsubtitle') == "Bread at Home"
    assert clean_title("**The Loaf**") == "The Loaf"
    assert clean_title("   \n  ") == ""


def test_base_url_is_normalised():
    assert StubProvider().base_url == "http://llm.test/v1"


@pytest.mark.asyncio
async def test_title_uses_title_settings():
    provider = StubProvider("## The Crumb Book\n")
    service = GenerationService(provider)

    title = await service.generate(GenerationKind.TITLE, {"raw_data": "notes on bread"})

    assert title == "The Crumb Book"
    prompt, system_prompt, options = provider.requests[0]
    assert "notes on bread" in prompt
    assert system_prompt
    assert (options.temperature, options.max_tokens) == (0.8, 50)


@pytest.mark.asyncio
async def test_toc_is_parsed_into_entries():
    service = GenerationService(StubProvider(TOC_REPLY))

    toc = await service.generate(GenerationKind.TOC, {"title": "Bread", "raw_data": "notes"})

    assert isinstance(toc, TableOfContents)
    assert [e.title for e in toc.chapters] == ["Flour", "Water"]
    assert toc.chapters[0].data_points == ["protein content"]


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["I cannot help with that", '{"chapters": []}', '{"chapters": [{"dataPoints": []}]}'])
async def test_unusable_toc_is_a_generation_error(reply):
    service = GenerationService(StubProvider(reply))
    with pytest.raises(GenerationError):
        await service.generate(GenerationKind.TOC, {"title": "Bread", "raw_data": "notes"})


@pytest.mark.asyncio
async def test_meta_revision_requires_all_three_fields():
    context = {"review_notes": "n", "title": "T", "introduction": "I", "conclusion": "C"}

    good = GenerationService(StubProvider('{"title": " New ", "introduction": "I2", "conclusion": "C2", "extra": 1}'))
    assert await good.generate(GenerationKind.META_REVISION, context) == {
        "title": "New", "introduction": "I2", "conclusion": "C2",
    }

    partial = GenerationService(StubProvider('{"title": "New", "introduction": ""}'))
    with pytest.raises(GenerationError):
        await partial.generate(GenerationKind.META_REVISION, context)


@pytest.mark.asyncio
async def test_chapter_prompt_carries_the_outline():
    provider = StubProvider("Chapter text")
    service = GenerationService(provider)
    chapter = Chapter(title="Flour", index=0, data_points=["protein content"])

    text = await service.generate(GenerationKind.CHAPTER, {"book_title": "Bread", "chapter": chapter, "total": 3})

    assert text == "Chapter text"
    prompt, _, options = provider.requests[0]
    assert "Flour" in prompt and "protein content" in prompt
    assert options.max_tokens == 4000


@pytest.mark.asyncio
async def test_provider_failures_become_generation_errors():
    request = httpx.Request("POST", "http://llm.test/v1/chat/completions")
    error = httpx.HTTPStatusError("bad", request=request, response=httpx.Response(401, request=request))
    service = GenerationService(StubProvider(error=error))

    with pytest.raises(GenerationError) as exc:
        await service.generate(GenerationKind.INTRODUCTION, {"title": "T", "table_of_contents": TableOfContents()})
    assert isinstance(exc.value.__cause__, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_empty_reply_and_missing_context():
    service = GenerationService(StubProvider("   "))
    with pytest.raises(GenerationError):
        await service.generate(GenerationKind.CONCLUSION, {"title": "T", "table_of_contents": TableOfContents()})
    with pytest.raises(GenerationError):
        await service.generate(GenerationKind.TOC, {"title": "T"})


def test_model_settings_per_kind():
    settings = ModelSettings(revision=LLMOptions(model="editor-model", temperature=0.2))
    assert settings.for_kind(GenerationKind.CHAPTER_REVISION).model == "editor-model"
    assert settings.for_kind(GenerationKind.META_REVISION).temperature == 0.2
    assert settings.for_kind(GenerationKind.CHAPTER).max_tokens == 4000
    assert settings.for_kind(GenerationKind.REVIEW).temperature == 0.5


def completion(text="Hello"):
    return {
        "model": "vendor/model",
        "choices": [{"message": {"role": "assistant", "content": text}}],
        "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
    }


def make_openrouter(handler, **kwargs):
    return OpenRouterProvider(
        api_key="sk-test",
        base_url="https://openrouter.test/api/v1",
        model="vendor/model",
        backoff_base=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_openrouter_request_shape():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=completion())

    provider = make_openrouter(handler)
    response = await provider.invoke("Hi", system_prompt="Be brief", options=LLMOptions(model="other/model", max_tokens=10))

    assert response.content == "Hello"
    assert response.usage["total_tokens"] == 4
    request = seen[0]
    assert str(request.url) == "https://openrouter.test/api/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["X-Title"] == "AutoPen"
    assert request.headers["HTTP-Referer"] == "https://autopen.local"
    body = json.loads(request.content)
    assert body["model"] == "other/model"
    assert body["max_tokens"] == 10
    assert [m["role"] for m in body["messages"]] == ["system", "user"]


@pytest.mark.asyncio
async def test_rate_limit_is_retried():
    statuses = [429, 503]

    def handler(request):
        if statuses:
            return httpx.Response(statuses.pop(0), json={"error": "slow down"})
        return httpx.Response(200, json=completion("Finally"))

    response = await make_openrouter(handler).invoke("Hi")
    assert response.content == "Finally"
    assert statuses == []


@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"error": "bad request"})

    with pytest.raises(httpx.HTTPStatusError):
        await make_openrouter(handler).invoke("Hi")
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_retries_give_up_after_max_retries():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(httpx.ConnectError):
        await make_openrouter(handler, max_retries=2).invoke("Hi")
    assert len(calls) == 3


def test_retryable_errors():
    request = httpx.Request("POST", "https://openrouter.test/api/v1/chat/completions")

    def status_error(code):
        return httpx.HTTPStatusError("failed", request=request, response=httpx.Response(code, request=request))

    assert is_retryable(httpx.ConnectError("connection refused", request=request))
    assert is_retryable(status_error(429))
    assert is_retryable(status_error(503))
    assert not is_retryable(status_error(400))
    assert not is_retryable(ValueError("bad json"))


def test_create_provider_by_type():
    assert isinstance(create_provider("deepseek", "k", "https://api.deepseek.test", "deepseek-chat"), DeepSeekProvider)
    assert create_provider("openrouter", "k", "https://x.test", "m").name == "openrouter"
    assert create_provider("something-else", "k", "https://x.test", "m").name == "openai_compatible"
