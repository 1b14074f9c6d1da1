import asyncio
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from docs_assistant.crawl.scope import ALLOWED_BASES
from docs_assistant.indexing.manager import DocsIndex
from docs_assistant.main import configure_logging
from docs_assistant.config import settings


async def main():
    configure_logging(settings.log_level)

    print("Crawling:")
    for base in ALLOWED_BASES:
        print(f"  {base}")
    print(f"Page cap: {settings.max_crawl_pages}, chunk size: {settings.chunk_size}, "
          f"overlap: {settings.chunk_overlap}")

    index = DocsIndex()
    generation = await index.ensure_ready()

    stats = generation.get_stats()
    print(f"Visited {index.crawler.visited_count} URLs.")
    print(f"Indexed {stats['total_chunks']} chunks from {stats['total_pages']} pages "
          f"(dimension {stats['dimension']}).")

    if len(generation) == 0:
        print("No documents indexed; check connectivity and the allowed bases.")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
