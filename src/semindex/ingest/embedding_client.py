"""LiteLLM embedding client with retry, timeout, and ordered fan-out.

Every embedding call in the index and search paths routes through this
module. The default model is a local Ollama model reached at ``base_url``;
any LiteLLM ``provider/model`` string works.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor

import litellm

from semindex.errors import ConfigurationError, EmbeddingServiceError

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "ollama/nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"

# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "ollama": None,  # Local, no key required
}


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Raises:
        ConfigurationError: If the required key is missing from environment.
    """
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    env_var = _PROVIDER_ENV.get(provider)

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise ConfigurationError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


class EmbeddingClient:
    """Map text to a fixed-length vector through LiteLLM.

    Args:
        model: LiteLLM embedding model string (provider/model format). Also
            the identifier stored with each embedding.
        base_url: Service base URL, passed to LiteLLM as ``api_base``.
            None uses the provider default.
        timeout: Per-request timeout in seconds.
        num_retries: LiteLLM retries on transient errors.
        max_concurrency: Upper bound on parallel requests in ``embed_many``.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str | None = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        num_retries: int = 3,
        max_concurrency: int = 8,
    ) -> None:
        if max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be >= 1")
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.num_retries = num_retries
        self.max_concurrency = max_concurrency

    def embed(self, text: str) -> list[float]:
        """Return the embedding vector for *text*.

        Raises:
            EmbeddingServiceError: On network, timeout, or service errors, or
                when the response carries no usable vector.
        """
        kwargs: dict = {
            "model": self.model,
            "input": [text],
            "timeout": self.timeout,
            "num_retries": self.num_retries,
        }
        if self.base_url:
            kwargs["api_base"] = self.base_url
        try:
            response = litellm.embedding(**kwargs)
        except Exception as exc:
            raise EmbeddingServiceError(
                f"embedding request to '{self.model}' failed: {exc}"
            ) from exc
        return _extract_vector(response, self.model)

    def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* concurrently; result ``i`` always belongs to ``texts[i]``.

        All requests complete (or the first failure is raised) before this
        returns.

        Raises:
            EmbeddingServiceError: If any request fails.
        """
        if not texts:
            return []
        if len(texts) == 1:
            return [self.embed(texts[0])]
        workers = min(len(texts), self.max_concurrency)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="semindex-embed") as pool:
            return list(pool.map(self.embed, texts))


def _extract_vector(response: object, model: str) -> list[float]:
    try:
        item = response.data[0]  # type: ignore[attr-defined]
        vector = item["embedding"] if isinstance(item, dict) else item.embedding
    except (AttributeError, IndexError, KeyError, TypeError) as exc:
        raise EmbeddingServiceError(f"malformed embedding response from '{model}'") from exc
    if not vector:
        raise EmbeddingServiceError(f"empty embedding returned by '{model}'")
    try:
        return [float(x) for x in vector]
    except (TypeError, ValueError) as exc:
        raise EmbeddingServiceError(f"non-numeric embedding returned by '{model}'") from exc
