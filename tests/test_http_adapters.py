import unittest
from unittest import mock

import requests
from pydantic import BaseModel

from domain.errors import ServiceError, is_retryable_error
from infrastructure.embedding.http_embedder import HttpEmbedder, HttpEmbedderConfig
from infrastructure.llm.http_language_model import HttpLanguageModel, LLMConfig

LLM_POST = "infrastructure.llm.http_language_model.requests.post"
EMBEDDER_POST = "infrastructure.embedding.http_embedder.requests.post"


class Verdict(BaseModel):
    score: float
    reason: str


def json_response(payload):
    response = mock.Mock()
    response.json.return_value = payload
    return response


def chat_response(content):
    return json_response({"choices": [{"message": {"content": content}}]})


class TestHttpLanguageModel(unittest.IsolatedAsyncioTestCase):
    async def test_openai_text_request(self):
        model = HttpLanguageModel(LLMConfig(api_key="sk-test", model="gpt-4o-mini"))
        with mock.patch(LLM_POST, return_value=chat_response("hello")) as post:
            answer = await model.generate_text("Say hello", system="Be brief")

        self.assertEqual(answer, "hello")
        args, kwargs = post.call_args
        self.assertEqual(args[0], "https://api.openai.com/v1/chat/completions")
        self.assertEqual(kwargs["headers"], {"Authorization": "Bearer sk-test"})
        self.assertEqual(kwargs["json"]["model"], "gpt-4o-mini")
        self.assertEqual(
            kwargs["json"]["messages"],
            [{"role": "system", "content": "Be brief"}, {"role": "user", "content": "Say hello"}],
        )
        self.assertNotIn("response_format", kwargs["json"])

    async def test_structured_output_is_validated(self):
        model = HttpLanguageModel(LLMConfig(api_key="sk-test"))
        content = '```json\n{"score": 0.8, "reason": "fine"}\n```'
        with mock.patch(LLM_POST, return_value=chat_response(content)) as post:
            verdict = await model.generate_structured("Rate it", Verdict, system="Judge")

        self.assertEqual(verdict, Verdict(score=0.8, reason="fine"))
        body = post.call_args.kwargs["json"]
        self.assertEqual(body["response_format"], {"type": "json_object"})
        self.assertIn("JSON schema", body["messages"][0]["content"])
        self.assertTrue(body["messages"][0]["content"].startswith("Judge"))

    async def test_azure_request_shape(self):
        config = LLMConfig(provider="azure", model="gpt4o", base_url="https://acme.openai.azure.com/", api_key="k")
        model = HttpLanguageModel(config)
        with mock.patch(LLM_POST, return_value=chat_response("ok")) as post:
            await model.generate_text("hi")

        args, kwargs = post.call_args
        self.assertEqual(
            args[0],
            "https://acme.openai.azure.com/openai/deployments/gpt4o/chat/completions?api-version=2024-06-01",
        )
        self.assertEqual(kwargs["headers"], {"api-key": "k"})

    async def test_ollama_request_shape(self):
        model = HttpLanguageModel(LLMConfig(provider="ollama", model="llama3"))
        response = json_response({"message": {"content": '{"score": 1, "reason": "r"}'}})
        with mock.patch(LLM_POST, return_value=response) as post:
            verdict = await model.generate_structured("Rate it", Verdict)

        self.assertEqual(verdict.score, 1.0)
        args, kwargs = post.call_args
        self.assertEqual(args[0], "http://localhost:11434/api/chat")
        self.assertEqual(kwargs["json"]["format"], "json")
        self.assertFalse(kwargs["json"]["stream"])

    async def test_missing_api_key_is_not_retryable(self):
        model = HttpLanguageModel(LLMConfig(api_key=None))
        with mock.patch(LLM_POST) as post:
            with self.assertRaises(ServiceError) as ctx:
                await model.generate_text("hi")
        post.assert_not_called()
        self.assertFalse(is_retryable_error(ctx.exception))

    async def test_http_status_is_carried(self):
        model = HttpLanguageModel(LLMConfig(api_key="sk-test"))
        response = mock.Mock()
        response.raise_for_status.side_effect = requests.HTTPError("busy", response=mock.Mock(status_code=503))
        with mock.patch(LLM_POST, return_value=response):
            with self.assertRaises(ServiceError) as ctx:
                await model.generate_text("hi")
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertTrue(is_retryable_error(ctx.exception))

    async def test_connection_failure_is_retryable(self):
        model = HttpLanguageModel(LLMConfig(api_key="sk-test"))
        with mock.patch(LLM_POST, side_effect=requests.ConnectionError("refused")):
            with self.assertRaises(ServiceError) as ctx:
                await model.generate_text("hi")
        self.assertTrue(ctx.exception.retryable)

    def test_configuration_is_validated(self):
        with self.assertRaises(ValueError):
            HttpLanguageModel(LLMConfig(provider="azure"))
        with self.assertRaises(ValueError):
            HttpLanguageModel(LLMConfig(provider="anthropic"))  # type: ignore[arg-type]


class TestHttpEmbedder(unittest.IsolatedAsyncioTestCase):
    async def test_batches_and_orders_by_index(self):
        embedder = HttpEmbedder(HttpEmbedderConfig(model="text-embedding-3-small", dimension=2, api_key="k", batch_size=2))
        responses = [
            json_response({"data": [{"index": 1, "embedding": [0.0, 1.0]}, {"index": 0, "embedding": [1.0, 0.0]}]}),
            json_response({"data": [{"index": 0, "embedding": [0.5, 0.5]}]}),
        ]
        with mock.patch(EMBEDDER_POST, side_effect=responses) as post:
            vectors = await embedder.embed_texts(["a", "b", "c"])

        self.assertEqual(vectors, [[1.0, 0.0], [0.0, 1.0], [0.5, 0.5]])
        self.assertEqual(post.call_count, 2)
        self.assertEqual(post.call_args_list[0].kwargs["json"], {"model": "text-embedding-3-small", "input": ["a", "b"]})

    async def test_empty_input_skips_request(self):
        embedder = HttpEmbedder(HttpEmbedderConfig(model="m", dimension=2))
        with mock.patch(EMBEDDER_POST) as post:
            self.assertEqual(await embedder.embed_texts([]), [])
        post.assert_not_called()

    async def test_timeout_is_retryable(self):
        embedder = HttpEmbedder(HttpEmbedderConfig(model="m", dimension=2))
        with mock.patch(EMBEDDER_POST, side_effect=requests.Timeout("timed out")):
            with self.assertRaises(ServiceError) as ctx:
                await embedder.embed_texts(["a"])
        self.assertTrue(ctx.exception.retryable)


if __name__ == "__main__":
    unittest.main()
