#!/usr/bin/env python3
"""
Demo script for QuickCafe.

Runs one recommendation against the configured Google Maps, scoring model,
Redis and database, then repeats it to show the search cache at work.

Usage:
    python scripts/demo.py "Capitol Hill, Seattle" cozy --requirements wifi power_outlets
"""

import argparse
import asyncio
import time

from quickcafe import (
    AnalysisOrchestrator,
    CacheCoordinator,
    GooglePlacesProvider,
    OpenAITextScorer,
    QuickCafeError,
    RecommendationService,
    RedisFastStore,
    SqlDurableStore,
)
from quickcafe.entities import AmenityType, PriceTier, ScoredCafe, VibeCategory
from quickcafe.logging_config import setup_logging
from quickcafe.services import RetryPolicy


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def print_ranked(scored: list[ScoredCafe], start: int = 1) -> None:
    print(f"{'#':<4} {'Cafe':<32} {'Dist (m)':>9} {'Vibe':>6} {'Amen':>6} {'Score':>6}")
    print("-" * 70)
    for rank, s in enumerate(scored, start=start):
        print(
            f"{rank:<4} {s.cafe.name[:32]:<32} {s.distance_meters:>9.0f} "
            f"{s.vibe_score:>6.2f} {s.amenity_score:>6.2f} {s.combined_score:>6.2f}"
        )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a QuickCafe recommendation")
    parser.add_argument("location", nargs="?", default="Seattle, WA")
    parser.add_argument("mood", nargs="?", default="cozy", choices=[v.value for v in VibeCategory])
    parser.add_argument("--price", choices=[p.value for p in PriceTier], default=None)
    parser.add_argument(
        "--requirements", nargs="*", default=[], choices=[a.value for a in AmenityType]
    )
    parser.add_argument("--clear-cache", action="store_true", help="Clear the search cache first")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> None:
    store = SqlDurableStore.create()
    await store.create_schema()
    fast_store = RedisFastStore.create()
    retry_policy = RetryPolicy.create()
    places = GooglePlacesProvider(retry_policy=retry_policy)
    scorer = OpenAITextScorer.create()

    cache = CacheCoordinator.create(fast_store=fast_store, durable_store=store)
    service = RecommendationService.create(
        places=places,
        store=store,
        cache=cache,
        analysis=AnalysisOrchestrator.create(scorer=scorer, cache=cache, retry_policy=retry_policy),
    )

    try:
        print_section("Setup")
        print(f"  Database: {store.url}")
        print(f"  Scoring model: {scorer.model_name}")
        print(f"  Cache healthy: {await service.is_healthy()}")

        if args.clear_cache:
            print(f"  Cleared {await service.clear_cache()} cached searches")

        for attempt in ("First request", "Repeated request"):
            print_section(f"{attempt}: {args.mood} near {args.location}")
            start = time.time()
            try:
                result = await service.recommend(
                    args.location, args.mood, args.price, args.requirements
                )
            except QuickCafeError as e:
                print(f"  ✗ {type(e).__name__}: {e}")
                return

            duration = (time.time() - start) * 1000
            print(f"  Resolved to ({result.coordinates.lat:.4f}, {result.coordinates.lng:.4f})")
            print(f"  Cache: {'HIT' if result.cache_hit else 'miss'}, Time: {duration:.0f}ms\n")
            print_ranked(result.recommendations)
            if result.other_options:
                print("\n  Other options:")
                print_ranked(result.other_options, start=len(result.recommendations) + 1)
    finally:
        await places.close()
        await scorer.close()
        await fast_store.close()
        await store.close()


def main() -> None:
    setup_logging()
    asyncio.run(run(parse_args()))


if __name__ == "__main__":
    main()
