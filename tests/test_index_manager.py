import asyncio
import gc
from unittest.mock import AsyncMock

import pytest

from docs_assistant.core.errors import EmbeddingError, IndexBuildError
from docs_assistant.crawl.models import CrawledPage
from docs_assistant.embeddings.embedder import Embedder
from docs_assistant.indexing.manager import DocsIndex, IndexState

from conftest import RENEWALS_URL, keyword_vector

PAGES = [
    CrawledPage(url=RENEWALS_URL, title="Renewals", text="How to renew a subscription. " * 4),
    CrawledPage(url=RENEWALS_URL + "/empty", title="Empty", text="  "),
]


def _index(crawler, embedder, **kwargs):
    params = dict(chunk_size=40, chunk_overlap=10, k=3, threshold=0.1)
    params.update(kwargs)
    return DocsIndex(crawler=crawler, embedder=embedder, **params)


@pytest.mark.asyncio
async def test_build_crawls_chunks_and_embeds(mock_crawler, keyword_embedder):
    mock_crawler.crawl.return_value = PAGES
    index = _index(mock_crawler, keyword_embedder)
    assert index.state == IndexState.EMPTY

    generation = await index.ensure_ready()

    assert index.state == IndexState.READY
    assert len(generation) == 4
    assert all(c.source_url == RENEWALS_URL for c in generation.chunks)
    assert all(c.title == "Renewals" for c in generation.chunks)
    # All chunks embedded in one batched call.
    keyword_embedder.embed.assert_awaited_once()


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_build(mock_crawler, keyword_embedder):
    gate = asyncio.Event()

    async def slow_crawl(*args, **kwargs):
        await gate.wait()
        return PAGES

    mock_crawler.crawl.side_effect = slow_crawl
    index = _index(mock_crawler, keyword_embedder)

    waiters = [asyncio.create_task(index.ensure_ready()) for _ in range(5)]
    await asyncio.sleep(0)
    assert index.state == IndexState.BUILDING

    gate.set()
    generations = await asyncio.gather(*waiters)

    assert mock_crawler.crawl.await_count == 1
    assert all(g is generations[0] for g in generations)
    assert index.state == IndexState.READY


@pytest.mark.asyncio
async def test_ready_index_is_not_rebuilt(mock_crawler, keyword_embedder):
    mock_crawler.crawl.return_value = PAGES
    index = _index(mock_crawler, keyword_embedder)

    first = await index.ensure_ready()
    second = await index.ensure_ready()

    assert first is second
    assert mock_crawler.crawl.await_count == 1


@pytest.mark.asyncio
async def test_failed_build_publishes_nothing_and_retries(mock_crawler):
    mock_crawler.crawl.return_value = PAGES
    embedder = AsyncMock(spec=Embedder)
    embedder.embed.side_effect = EmbeddingError("boom")
    index = _index(mock_crawler, embedder)

    with pytest.raises(EmbeddingError):
        await index.ensure_ready()

    assert index.generation is None
    assert index.state == IndexState.EMPTY

    embedder.embed.side_effect = lambda texts: [keyword_vector(t) for t in texts]
    generation = await index.ensure_ready()
    assert len(generation) > 0
    assert mock_crawler.crawl.await_count == 2


@pytest.mark.asyncio
async def test_concurrent_waiters_all_see_build_failure(mock_crawler):
    mock_crawler.crawl.return_value = PAGES
    embedder = AsyncMock(spec=Embedder)
    embedder.embed.side_effect = EmbeddingError("boom")
    index = _index(mock_crawler, embedder)

    results = await asyncio.gather(
        *(index.ensure_ready() for _ in range(3)),
        return_exceptions=True,
    )

    assert all(isinstance(r, EmbeddingError) for r in results)
    assert mock_crawler.crawl.await_count == 1


@pytest.mark.asyncio
async def test_vector_count_mismatch_fails_build(mock_crawler):
    mock_crawler.crawl.return_value = PAGES
    embedder = AsyncMock(spec=Embedder)
    embedder.embed.return_value = [[1.0, 0.0]]
    index = _index(mock_crawler, embedder)

    with pytest.raises(IndexBuildError):
        await index.ensure_ready()
    assert index.generation is None


@pytest.mark.asyncio
async def test_empty_crawl_is_rebuilt_on_next_request(mock_crawler, keyword_embedder):
    index = _index(mock_crawler, keyword_embedder)

    assert await index.retrieve("renew") == []
    assert index.state == IndexState.EMPTY

    mock_crawler.crawl.return_value = PAGES
    results = await index.retrieve("renew")

    assert mock_crawler.crawl.await_count == 2
    assert results and results[0].source_url == RENEWALS_URL


@pytest.mark.asyncio
async def test_retrieve_ranks_and_filters(seeded_index):
    results = await seeded_index.retrieve("How do I renew a subscription?")
    assert [r.source_url for r in results] == [RENEWALS_URL]
    assert results[0].score == pytest.approx(1.0)

    assert await seeded_index.retrieve("What's the weather today?") == []


@pytest.mark.asyncio
async def test_retrieve_respects_k(seeded_index):
    results = await seeded_index.retrieve("renew invoice", k=1, threshold=0.0)
    assert len(results) == 1


def test_stats_reflect_state(seeded_index, mock_crawler, keyword_embedder):
    stats = seeded_index.get_stats()
    assert stats["state"] == "ready"
    assert stats["total_chunks"] == 2
    assert stats["dimension"] == 3

    empty = _index(mock_crawler, keyword_embedder).get_stats()
    assert empty == {
        "state": "empty",
        "total_chunks": 0,
        "total_pages": 0,
        "dimension": 0,
        "built_at": None,
    }


@pytest.mark.asyncio
async def test_failed_build_with_no_remaining_waiters_is_not_reported(mock_crawler):
    loop = asyncio.get_running_loop()
    reported = []
    loop.set_exception_handler(lambda _loop, context: reported.append(context))

    gate = asyncio.Event()

    async def slow_crawl(*args, **kwargs):
        await gate.wait()
        return PAGES

    mock_crawler.crawl.side_effect = slow_crawl
    embedder = AsyncMock(spec=Embedder)
    embedder.embed.side_effect = EmbeddingError("boom")
    index = _index(mock_crawler, embedder)

    waiter = asyncio.create_task(index.ensure_ready())
    await asyncio.sleep(0)
    build_task = index._build_task

    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    gate.set()
    await asyncio.wait([build_task])
    assert build_task.done()
    assert index.state == IndexState.EMPTY

    del build_task
    gc.collect()
    loop.set_exception_handler(None)
    assert reported == []
