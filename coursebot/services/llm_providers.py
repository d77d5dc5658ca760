"""
HTTP handlers for the external LLM providers.

Every handler normalizes its vendor's request/response shape into the same
contract: ``await handler.complete(system_prompt, conversation) -> str``.
Failures of any kind surface as ``ProviderError``.
"""

from typing import List, Optional, Sequence

import httpx
import openai
from loguru import logger

from coursebot.services.provider_registry import ProviderDescriptor, ProviderId


class ProviderError(Exception):
    def __init__(self, provider_id: ProviderId, message: str):
        super().__init__(f"{provider_id.value}: {message}")
        self.provider_id = provider_id


_KEY_ENV_NAMES = {
    ProviderId.GROQ: "GROQ_API_KEY",
    ProviderId.TOGETHER: "TOGETHER_API_KEY",
    ProviderId.HUGGINGFACE: "HF_TOKEN",
}


def _warn_invalid_key(provider_id: ProviderId):
    logger.warning(
        f"{provider_id.value} API key was rejected. Please check {_KEY_ENV_NAMES[provider_id]} in your .env file."
    )


class ChatCompletionProvider:
    """OpenAI-compatible chat completion API (Groq, Together)."""

    def __init__(
        self,
        provider_id: ProviderId,
        client,
        model: str,
        max_tokens: int = 150,
        temperature: float = 0.7,
    ):
        self.provider_id = provider_id
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def complete(self, system_prompt: str, conversation: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": conversation},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.AuthenticationError as e:
            _warn_invalid_key(self.provider_id)
            raise ProviderError(self.provider_id, f"authentication failed: {e}") from e
        except openai.OpenAIError as e:
            raise ProviderError(self.provider_id, str(e)) from e

        content = ""
        if response.choices:
            content = (response.choices[0].message.content or "").strip()
        if not content:
            raise ProviderError(self.provider_id, "empty response")
        return content


class HuggingFaceProvider:
    """
    Hugging Face inference API.

    Text-generation models take a single prompt, so the system prompt is not
    sent. Candidate models are tried in order inside this one provider slot;
    the first model that returns non-empty text wins.
    """

    provider_id = ProviderId.HUGGINGFACE

    def __init__(
        self,
        token: str,
        models: Sequence[str],
        endpoint: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
        max_tokens: int = 150,
        temperature: float = 0.7,
    ):
        self.token = token
        self.models: List[str] = list(models)
        self.endpoint = endpoint.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def complete(self, system_prompt: str, conversation: str) -> str:
        for model in self.models:
            try:
                text = await self._generate(model, conversation)
            except httpx.HTTPStatusError as e:
                if e.response.status_code in (401, 403):
                    _warn_invalid_key(self.provider_id)
                logger.warning(f"Hugging Face model {model} failed, trying next: {e}")
                continue
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"Hugging Face model {model} failed, trying next: {e}")
                continue

            if text:
                logger.info(f"Using Hugging Face model: {model}")
                return text

        raise ProviderError(self.provider_id, "no candidate model produced a response")

    async def _generate(self, model: str, inputs: str) -> str:
        response = await self.client.post(
            f"{self.endpoint}/{model}",
            headers={"Authorization": f"Bearer {self.token}"},
            json={
                "inputs": inputs,
                "parameters": {
                    "max_new_tokens": self.max_tokens,
                    "temperature": self.temperature,
                    "do_sample": True,
                    "top_p": 0.9,
                    "repetition_penalty": 1.1,
                },
            },
        )
        response.raise_for_status()

        data = response.json()
        if isinstance(data, list):
            data = data[0] if data else {}
        if not isinstance(data, dict):
            return ""
        generated = data.get("generated_text")
        if not isinstance(generated, str):
            return ""
        # Some models echo the prompt back before the completion.
        return generated.replace(inputs, "").strip()


def build_provider(descriptor: ProviderDescriptor, config=None):
    """Create the handler for a validated provider descriptor."""
    if config is None:
        from coursebot.config import settings as config

    if descriptor.identifier == ProviderId.HUGGINGFACE:
        return HuggingFaceProvider(
            token=descriptor.credential,
            models=config.hf_model_list(),
            endpoint=descriptor.endpoint,
            timeout=config.PROVIDER_TIMEOUT_S,
            max_tokens=config.MAX_TOKENS,
            temperature=config.TEMPERATURE,
        )

    model = config.GROQ_MODEL if descriptor.identifier == ProviderId.GROQ else config.TOGETHER_MODEL
    client = openai.AsyncOpenAI(
        api_key=descriptor.credential,
        base_url=descriptor.endpoint,
        timeout=config.PROVIDER_TIMEOUT_S,
        max_retries=0,
    )
    return ChatCompletionProvider(
        provider_id=descriptor.identifier,
        client=client,
        model=model,
        max_tokens=config.MAX_TOKENS,
        temperature=config.TEMPERATURE,
    )
