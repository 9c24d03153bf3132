#!/usr/bin/env python3
"""
Hybrid Recommendation Engine - Demo

Builds a synthetic community platform and shows community and event
recommendations for a new and an established user, followed by a latency
summary.
"""

import asyncio
import logging
import random
import time
from datetime import datetime, timedelta, timezone
from typing import List, Tuple

from hybrid_recommender import (
    CommunityRecommendationEngine,
    EngineConfig,
    EventRecommendationEngine,
    RecommendationResult,
)
from hybrid_recommender.core.models import Community, Event, Interaction, InteractionType, User, UserPreferences

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

CATEGORIES = ["Technology", "Music", "Sports", "Art", "Business", "Cooking"]
INTERESTS = ["tech & innovation", "music", "sports & fitness", "arts & culture",
             "career & business", "food & drink"]
TAGS = {
    "Technology": ["ai", "software", "programming", "data"],
    "Music": ["guitar", "jazz", "concert", "band"],
    "Sports": ["running", "football", "yoga", "cycling"],
    "Art": ["painting", "gallery", "design", "sculpture"],
    "Business": ["startup", "networking", "leadership", "career"],
    "Cooking": ["baking", "recipes", "restaurant", "wine"],
}
CITIES = [
    {"lat": 51.5074, "lng": -0.1278, "city": "London"},
    {"lat": 48.8566, "lng": 2.3522, "city": "Paris"},
    {"lat": 52.5200, "lng": 13.4050, "city": "Berlin"},
]


def print_header(title: str, char: str = "="):
    """Print a formatted header"""
    print()
    print(char * 70)
    print(f" {title}")
    print(char * 70)
    print()


def print_section(title: str):
    """Print a section header"""
    print(f"\n⚡ {title}")
    print("-" * (len(title) + 3))


def generate_synthetic_data(
    num_users: int = 500,
    num_communities: int = 120,
    num_events: int = 300,
    seed: int = 42,
) -> Tuple[List[User], List[Community], List[Event]]:
    """Generate a synthetic population, community catalog and event calendar"""
    rng = random.Random(seed)
    now = datetime.now(timezone.utc)

    logger.info(f"Generating {num_users} users, {num_communities} communities and {num_events} events...")

    communities = []
    for i in range(num_communities):
        category = rng.choice(CATEGORIES)
        communities.append(Community(
            community_id=f"community_{i}",
            name=f"{category} Circle {i}",
            category=category,
            tags=rng.sample(TAGS[category], 2),
            member_count=rng.randint(5, 4000),
            growth_rate=rng.uniform(0, 0.6),
            engagement_score=rng.uniform(0, 100),
            last_activity=now - timedelta(days=rng.uniform(0, 45)),
            location=rng.choice(CITIES + [None]),
        ))

    events = []
    for i in range(num_events):
        host = rng.choice(communities)
        max_attendees = rng.choice([None, 20, 50, 200])
        events.append(Event(
            event_id=f"event_{i}",
            title=f"{host.category} meetup: {' & '.join(host.tags)}",
            category=host.category,
            community_id=host.community_id,
            community_name=host.name,
            start_time=now + timedelta(days=rng.uniform(-5, 40)),
            tags=list(host.tags),
            location=host.location,
            is_online=host.location is None,
            max_attendees=max_attendees,
            current_attendees=rng.randint(0, max_attendees or 80),
            created_at=now - timedelta(days=rng.uniform(0, 20)),
        ))

    users = []
    for i in range(num_users):
        joined = rng.sample(communities, rng.randint(0, 6))
        users.append(User(
            user_id=f"user_{i}",
            interests=rng.sample(INTERESTS, 2),
            activity_level=rng.choice(["low", "medium", "high"]),
            location=rng.choice(CITIES + [None]),
            preferences=UserPreferences(preferred_categories=rng.sample(CATEGORIES, 1)),
            joined_communities=[c.community_id for c in joined],
            attended_events=[e.event_id for e in rng.sample(events, rng.randint(0, 8))],
            interactions=[
                Interaction(InteractionType.VIEW, c.community_id, timestamp=now - timedelta(days=rng.uniform(0, 30)))
                for c in joined
            ],
        ))

    logger.info("Synthetic data generated")
    return users, communities, events


def print_recommendations(result: RecommendationResult, names: dict, limit: int = 5):
    for i, rec in enumerate(result.recommendations[:limit], 1):
        reason = rec.reasons[0].description if rec.reasons else "-"
        print(f"  {i}. {names.get(rec.candidate_id, rec.candidate_id)} "
              f"(score: {rec.score:.3f}, {rec.method.value}) - {reason}")

    metadata = result.metadata
    print(f"  candidates: {metadata.total_candidates}, algorithms: {', '.join(metadata.algorithms_used)}, "
          f"diversity: {metadata.diversity_score:.2f}, time: {metadata.processing_time_ms:.2f}ms")


async def demo_community_recommendations(engine: CommunityRecommendationEngine, users, communities):
    """Compare a brand new user with an established one"""
    print_section("Community Recommendations")

    names = {c.community_id: c.name for c in communities}
    newcomer = User(user_id="newcomer", interests=["tech & innovation"])
    established = max(users, key=lambda u: len(u.joined_communities))

    for user in (newcomer, established):
        result = await engine.generate_recommendations(user, users, communities, options={"maxRecommendations": 5})
        print(f"\n{user.user_id} ({len(user.joined_communities)} communities joined):")
        print_recommendations(result, names)


async def demo_event_recommendations(engine: EventRecommendationEngine, users, events):
    """Upcoming events for an established user, all dates and this week only"""
    print_section("Event Recommendations")

    names = {e.event_id: e.title for e in events}
    user = max(users, key=lambda u: len(u.attended_events))

    for date_range in ("all", "week"):
        result = await engine.generate_recommendations(
            user, users, events, user.joined_communities,
            options={"maxRecommendations": 5, "dateRangeFilter": date_range},
        )
        print(f"\n{user.user_id}, date range '{date_range}':")
        print_recommendations(result, names)


async def benchmark_latency(engine: CommunityRecommendationEngine, users, communities, num_requests: int = 100):
    """Benchmark recommendation latency"""
    print_section("Latency Benchmark")

    latencies = []

    print(f"Running {num_requests} recommendation requests...")

    for _ in range(num_requests):
        user = random.choice(users)

        start_time = time.perf_counter()
        await engine.generate_recommendations(user, users, communities)
        latencies.append((time.perf_counter() - start_time) * 1000)

    latencies.sort()

    p50 = latencies[len(latencies) // 2]
    p95 = latencies[int(len(latencies) * 0.95)]
    avg_latency = sum(latencies) / len(latencies)

    print(f"\n📊 Latency Results:")
    print(f"  Total requests: {len(latencies)}")
    print(f"  Average latency: {avg_latency:.2f}ms")
    print(f"  P50 latency: {p50:.2f}ms")
    print(f"  P95 latency: {p95:.2f}ms")
    print(f"  Max latency: {max(latencies):.2f}ms")

    sla_violations = sum(1 for latency in latencies if latency > engine.config.max_latency_ms)
    print(f"\n🎯 SLA: {len(latencies) - sla_violations}/{len(latencies)} requests under "
          f"{engine.config.max_latency_ms}ms")


async def run_demo():
    """Run the complete demonstration"""
    print_header("⚡ Hybrid Recommendation Engine - Demo")

    users, communities, events = generate_synthetic_data()

    config = EngineConfig(worker_threads=4, max_latency_ms=250)

    with CommunityRecommendationEngine(config) as community_engine, \
            EventRecommendationEngine(config) as event_engine:
        print(f"✅ Engines initialized: {community_engine}")

        await demo_community_recommendations(community_engine, users, communities)
        await demo_event_recommendations(event_engine, users, events)
        await benchmark_latency(community_engine, users, communities)

    print_header("✨ Demo Complete!", "🌟")


async def main():
    """Main entry point"""
    try:
        await run_demo()
    except KeyboardInterrupt:
        print("\n\nDemo interrupted.")
    finally:
        print("\nGoodbye! 👋")


if __name__ == "__main__":
    asyncio.run(main())
