"""
Model completion service.

The conversation core only depends on the CompletionClient protocol:
given a prompt and a model id, yield text fragments whose concatenation
is the reply. OpenAICompletionClient implements it with the openai SDK,
against either OpenAI or Azure OpenAI.
"""
from typing import Iterator, Protocol

from openai import AzureOpenAI, OpenAI

from innersense import config


class CompletionClient(Protocol):
    def stream(self, prompt: str, model: str) -> Iterator[str]: ...


class OpenAICompletionClient:
    def __init__(self, client=None, temperature: float = 0.7, max_tokens: int = 800):
        self.client = client or self._build_client()
        self.temperature = temperature
        self.max_tokens = max_tokens

    @staticmethod
    def _build_client():
        if config.AZURE_OPENAI_ENDPOINT:
            if not config.AZURE_OPENAI_API_KEY:
                raise ValueError("AZURE_OPENAI_API_KEY environment variable is not set")
            return AzureOpenAI(
                api_key=config.AZURE_OPENAI_API_KEY,
                azure_endpoint=config.AZURE_OPENAI_ENDPOINT,
                api_version=config.AZURE_OPENAI_API_VERSION,
            )
        if not config.OPENAI_API_KEY:
            raise ValueError("OPENAI_API_KEY environment variable is not set")
        return OpenAI(api_key=config.OPENAI_API_KEY)

    def stream(self, prompt: str, model: str) -> Iterator[str]:
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                stream=True,
            )
            for chunk in response:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except Exception as e:
            raise RuntimeError(f"OpenAI Chat ({model}): {e}") from e
