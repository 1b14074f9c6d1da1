from typing import List
from unittest.mock import AsyncMock

import pytest

from docs_assistant.crawl.crawler import Crawler
from docs_assistant.embeddings.embedder import Embedder
from docs_assistant.embeddings.models import DocumentChunk
from docs_assistant.indexing.manager import DocsIndex
from docs_assistant.llm.client import LLMClient

RENEWALS_URL = "https://docs.navigaglobal.com/circulation-user-manual/renewals"
INVOICES_URL = "https://docs.navigaglobal.com/circulation-setup-manual/invoices"

KEYWORDS = ("renew", "invoice", "weather")


def keyword_vector(text: str) -> List[float]:
    """Tiny deterministic embedding: one dimension per keyword."""
    lowered = text.lower()
    return [1.0 if word in lowered else 0.0 for word in KEYWORDS]


@pytest.fixture
def keyword_embedder():
    mock = AsyncMock(spec=Embedder)
    mock.embed.side_effect = lambda texts: [keyword_vector(t) for t in texts]
    return mock


@pytest.fixture
def mock_crawler():
    mock = AsyncMock(spec=Crawler)
    mock.crawl.return_value = []
    return mock


@pytest.fixture
def mock_llm():
    mock = AsyncMock(spec=LLMClient)
    mock.chat.return_value = (
        "Open the subscription and choose Renew.\n"
        "Sources: Renewals (" + RENEWALS_URL + ")"
    )
    return mock


@pytest.fixture
def seeded_index(mock_crawler, keyword_embedder):
    """Index pre-seeded with one renewals chunk and one invoices chunk."""
    index = DocsIndex(
        crawler=mock_crawler,
        embedder=keyword_embedder,
        chunk_size=500,
        chunk_overlap=50,
        k=5,
        threshold=0.1,
    )
    texts = [
        (RENEWALS_URL, "Renewals", "To renew a subscription open the account and select Renew."),
        (INVOICES_URL, "Invoices", "Invoice runs are configured per product."),
    ]
    index.publish([
        DocumentChunk(source_url=url, title=title, text=text, embedding=keyword_vector(text))
        for url, title, text in texts
    ])
    return index
