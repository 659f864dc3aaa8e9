"""
PromptGear - an edge service that turns raw prompts into structured ones.

The service accepts a raw prompt over HTTP, asks an upstream LLM to rewrite
it into a Role / Task / Context / Reasoning / Stop Conditions scaffold, and
returns the result. It retries transient upstream failures, caches results
by request content, enforces a CORS allow-list and reports a coarse health
signal.

Quick Start:

    # Local development without an API key
    MOCK_TRANSFORM=true ALLOWED_ORIGINS="*" promptgear serve

    # Real upstream calls
    OPENAI_API_KEY=sk-... ALLOWED_ORIGINS="chrome-extension://*" promptgear serve

Embedding the app:

    from promptgear.config import ServiceConfig
    from promptgear.service import create_app

    app = create_app(ServiceConfig.from_env())
"""

__version__ = "0.1.0"

from .cache import build_cache_key  # noqa: E402
from .config import ServiceConfig, UpstreamConfig  # noqa: E402
from .exceptions import (  # noqa: E402
    CacheError,
    ConfigurationError,
    PromptGearError,
    RequestValidationError,
)
from .mock import build_mock_structured_prompt, is_mock_enabled  # noqa: E402

__all__ = [
    "CacheError",
    "ConfigurationError",
    "PromptGearError",
    "RequestValidationError",
    "ServiceConfig",
    "UpstreamConfig",
    "__version__",
    "build_cache_key",
    "build_mock_structured_prompt",
    "is_mock_enabled",
]
