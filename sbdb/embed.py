"""Text embedding providers."""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from array import array
from typing import Sequence

DEFAULT_BASE_URL = "https://api.openai.com"
DEFAULT_MODEL = "text-embedding-3-small"
DEFAULT_DIM = 1536
_TIMEOUT = 30.0


class EmbedError(Exception):
    """Raised when embeddings cannot be configured or fetched."""


class Embedder(ABC):
    """Produces vector embeddings from text; exposes ``model_id`` and ``dim``."""

    model_id: str
    dim: int

    @abstractmethod
    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Return one embedding vector per text."""


class OpenAIEmbedder(Embedder):
    """Embedder for any service exposing an OpenAI-compatible ``/v1/embeddings`` endpoint."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        dim: int = 0,
    ) -> None:
        self.base_url = base_url or os.environ.get("SBDB_EMBED_BASE_URL") or DEFAULT_BASE_URL
        self.api_key = api_key or os.environ.get("SBDB_EMBED_API_KEY") or ""
        if not self.api_key:
            raise EmbedError("embedding API key not set: use SBDB_EMBED_API_KEY env or config")
        self.model_id = model or os.environ.get("SBDB_EMBED_MODEL") or DEFAULT_MODEL
        self.dim = dim or DEFAULT_DIM

    def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Send the texts to the embeddings endpoint and return the vectors."""
        payload = json.dumps({"model": self.model_id, "input": list(texts)}).encode("utf-8")
        request = urllib.request.Request(
            self.base_url + "/v1/embeddings",
            data=payload,
            method="POST",
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
        )
        try:
            with urllib.request.urlopen(request, timeout=_TIMEOUT) as response:
                status = response.status
                body = response.read()
        except urllib.error.HTTPError as exc:
            status = exc.code
            try:
                body = exc.read()
            finally:
                exc.close()
        except (urllib.error.URLError, OSError) as exc:
            raise EmbedError(f"embed API call failed: {exc}") from exc

        text = body.decode("utf-8", errors="replace")
        if status != 200:
            raise EmbedError(f"embed API returned {status}: {text}")

        try:
            result = json.loads(text)
            data = result.get("data") or []
            vectors = [array("f", item.get("embedding") or []).tolist() for item in data]
        except (ValueError, TypeError, AttributeError) as exc:
            raise EmbedError(f"parsing embed response: {exc}") from exc

        if vectors and vectors[0]:
            self.dim = len(vectors[0])
        return vectors