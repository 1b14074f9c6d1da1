"""
Embedding Client

Turns chunk and query text into vectors through an OpenAI-compatible
embeddings endpoint. Inputs are sent in batches of `batch_size`; the result
always holds one vector per input, in input order, or the call fails with
EmbeddingError. No partial result is ever returned.
"""

from __future__ import annotations

from typing import List, Sequence, Optional
import logging
import httpx

from ..config import settings
from ..core.errors import EmbeddingError

logger = logging.getLogger("docs.embedder")


class Embedder:
    """
    Batched asynchronous embedding client. Stateless; the similarity index
    owns the vectors it produces.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        batch_size: Optional[int] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key or settings.openai_api_key.get_secret_value()
        self.model = model or settings.embedding_model
        self.url = (base_url or settings.openai_base_url).rstrip("/") + "/embeddings"
        self.batch_size = batch_size or settings.embedding_batch_size
        self.timeout = timeout
        self._transport = transport

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed `texts`, one request per batch.

        Raises
        ------
        EmbeddingError
            On transport errors, non-2xx responses, non-JSON bodies, or a
            response whose vectors do not line up with the batch.
        """
        if not texts:
            return []

        vectors: List[List[float]] = []

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            for start in range(0, len(texts), self.batch_size):
                batch = list(texts[start : start + self.batch_size])
                body = await self._post_batch(client, batch)

                batch_vectors = self._parse_vectors(body)
                if len(batch_vectors) != len(batch):
                    raise EmbeddingError(
                        f"Expected {len(batch)} embeddings, got {len(batch_vectors)}."
                    )
                vectors.extend(batch_vectors)

        logger.debug("Embedded %d texts with %s", len(texts), self.model)
        return vectors

    async def _post_batch(self, client: httpx.AsyncClient, batch: List[str]) -> dict:
        try:
            response = await client.post(
                self.url,
                json={"model": self.model, "input": batch},
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(
                "Embedding request failed (%s) for %d inputs: %s",
                type(exc).__name__,
                len(batch),
                exc,
            )
            raise EmbeddingError(
                f"Embedding generation failed: {type(exc).__name__}"
            ) from exc

    @staticmethod
    def _parse_vectors(data: dict) -> List[List[float]]:
        # Expected: {"data": [{"index": 0, "embedding": [...]}, ...]}
        records = data.get("data") if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise EmbeddingError("Embedding response has no 'data' list.")

        if all(isinstance(r, dict) and isinstance(r.get("index"), int) for r in records):
            records = sorted(records, key=lambda r: r["index"])

        vectors: List[List[float]] = []
        for position, record in enumerate(records):
            vector = record.get("embedding") if isinstance(record, dict) else None
            if not isinstance(vector, list) or not all(
                isinstance(x, (float, int)) for x in vector
            ):
                raise EmbeddingError(f"Invalid embedding record at position {position}.")
            vectors.append([float(x) for x in vector])
        return vectors
