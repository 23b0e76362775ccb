import asyncio
from dotenv import load_dotenv
load_dotenv("backend/.env")

from config import Configuration
from models import FilterCriteria, SortKey
from services.retrieval import SearchSession, build_coordinator


async def main():
    cfg = Configuration.from_env()
    print(f"=== Config ===")
    print(cfg.log_summary())
    print()

    coordinator = build_coordinator(cfg)
    session = SearchSession(coordinator)

    query = "coffee"
    criteria = FilterCriteria(howard_affiliated_only=True, sort_key=SortKey.BY_RATING)
    print(f"=== Searching ===")
    print(f"Query: {query!r}  Criteria: {criteria}")
    print()

    result = await session.submit(query, criteria, 1, cfg.default_page_size)
    print(f"=== Page 1 ({result.total_match_count} matches) ===")
    for i, b in enumerate(result.items, 1):
        print(f"{i}. {b.name} [{b.category}]")
        print(f"   Rating: {b.rating} ({b.review_count} reviews)  Price: {'$' * b.price_level}")
        print()

    # every business, newest first, to exercise paging
    page, seen = 1, 0
    while True:
        result = await coordinator.search("", FilterCriteria(sort_key=SortKey.BY_RECENCY), page, 2)
        if not result.items:
            break
        seen += len(result.items)
        print(f"page {page}: {[b.name for b in result.items]}")
        page += 1

    print()
    print(f"=== Summary ===")
    print(f"✓ Pages walked: {page - 1}")
    print(f"✓ Businesses seen: {seen}/{result.total_match_count}")

if __name__ == "__main__":
    asyncio.run(main())
