"""
Registry of configured AI providers.

A provider is registered only when its credential looks real: present, not the
placeholder value shipped in the example .env, and (where the vendor documents
one) carrying the expected key prefix. Anything else is "not configured" and
simply left out of the registry.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Set, Tuple

from loguru import logger


class ProviderId(str, Enum):
    GROQ = "groq"
    TOGETHER = "together"
    HUGGINGFACE = "huggingface"


# Fastest first; Hugging Face last since it retries across several models.
PROVIDER_PRIORITY: Tuple[ProviderId, ...] = (
    ProviderId.GROQ,
    ProviderId.TOGETHER,
    ProviderId.HUGGINGFACE,
)

ENDPOINTS: Dict[ProviderId, str] = {
    ProviderId.GROQ: "https://api.groq.com/openai/v1",
    ProviderId.TOGETHER: "https://api.together.xyz/v1",
    ProviderId.HUGGINGFACE: "https://api-inference.huggingface.co/models",
}

PLACEHOLDERS: Dict[ProviderId, str] = {
    ProviderId.GROQ: "your-groq-api-key-here",
    ProviderId.TOGETHER: "your-together-api-key-here",
    ProviderId.HUGGINGFACE: "your-huggingface-token-here",
}

KEY_PREFIXES: Dict[ProviderId, str] = {
    ProviderId.GROQ: "gsk_",
    ProviderId.HUGGINGFACE: "hf_",
}

# Together documents no prefix, so only reject obviously truncated keys.
MIN_KEY_LENGTH: Dict[ProviderId, int] = {
    ProviderId.TOGETHER: 11,
}

PROVIDER_CATALOG: Dict[ProviderId, dict] = {
    ProviderId.HUGGINGFACE: {
        "name": "Hugging Face",
        "models": [
            "microsoft/DialoGPT-medium",
            "facebook/blenderbot-400M-distill",
            "microsoft/DialoGPT-small",
            "HuggingFaceH4/zephyr-7b-beta",
        ],
        "cost": "Free (rate limited)",
        "setup": "Requires HF_TOKEN (free to get)",
        "signup_url": "https://huggingface.co/settings/tokens",
    },
    ProviderId.GROQ: {
        "name": "Groq",
        "models": ["llama-3.1-8b-instant", "llama-3.3-70b-versatile"],
        "cost": "Free tier: 14,400 tokens/day",
        "setup": "Requires GROQ_API_KEY",
        "signup_url": "https://console.groq.com/keys",
    },
    ProviderId.TOGETHER: {
        "name": "Together AI",
        "models": ["meta-llama/Llama-3-8b-chat-hf", "mistralai/Mixtral-8x7B-Instruct-v0.1"],
        "cost": "Free tier: $25 credits",
        "setup": "Requires TOGETHER_API_KEY",
        "signup_url": "https://api.together.xyz/settings/api-keys",
    },
}

_GENERIC_PLACEHOLDER = re.compile(r"^your[-_].*[-_]here$", re.IGNORECASE)


# ── Key validation ────────────────────────────────────────
def is_placeholder(value: str, sentinel: Optional[str] = None) -> bool:
    """True if the value is the shipped sentinel or shaped like 'your-...-here'."""
    value = value.strip()
    if sentinel is not None and value == sentinel:
        return True
    return bool(_GENERIC_PLACEHOLDER.match(value))


def has_required_prefix(value: str, prefix: Optional[str]) -> bool:
    if not prefix:
        return True
    return value.startswith(prefix)


def is_valid_credential(provider_id: ProviderId, value: Optional[str]) -> bool:
    if not value or not value.strip():
        return False
    if is_placeholder(value, PLACEHOLDERS.get(provider_id)):
        return False
    if not has_required_prefix(value, KEY_PREFIXES.get(provider_id)):
        return False
    if len(value) < MIN_KEY_LENGTH.get(provider_id, 0):
        return False
    return True


@dataclass(frozen=True)
class ProviderDescriptor:
    identifier: ProviderId
    credential: str
    endpoint: str

    @property
    def enabled(self) -> bool:
        return is_valid_credential(self.identifier, self.credential)


HandlerFactory = Callable[[ProviderDescriptor], object]


class ProviderRegistry:
    """Immutable set of usable provider handlers, keyed by provider id."""

    def __init__(self, handlers: Optional[Mapping[ProviderId, object]] = None):
        self._handlers: Dict[ProviderId, object] = dict(handlers or {})

    @classmethod
    def initialize(
        cls,
        credentials: Mapping[ProviderId, Optional[str]],
        handler_factory: Optional[HandlerFactory] = None,
    ) -> "ProviderRegistry":
        if handler_factory is None:
            from coursebot.services.llm_providers import build_provider
            handler_factory = build_provider

        handlers: Dict[ProviderId, object] = {}
        for provider_id in PROVIDER_PRIORITY:
            descriptor = ProviderDescriptor(
                identifier=provider_id,
                credential=(credentials.get(provider_id) or "").strip(),
                endpoint=ENDPOINTS[provider_id],
            )
            if not descriptor.enabled:
                continue
            handlers[provider_id] = handler_factory(descriptor)

        registry = cls(handlers)
        logger.info(f"AI providers initialized: {sorted(p.value for p in registry.available_providers())}")
        return registry

    def available_providers(self) -> Set[ProviderId]:
        return set(self._handlers)

    def is_empty(self) -> bool:
        return not self._handlers

    def get(self, provider_id: ProviderId):
        return self._handlers.get(provider_id)

    def ordered(self) -> List[Tuple[ProviderId, object]]:
        return [(p, self._handlers[p]) for p in PROVIDER_PRIORITY if p in self._handlers]
