#!/usr/bin/env python3
"""
Seed script — writes a realistic dataset straight into the content store.

Creates:
  • 10 users
  • A follow graph (each user subscribes to 4 others)
  • 12 items per user across long videos, reels, images and community posts,
    spread over the last 10 days with random engagement counters
  • Some likes across items

The ranking API is read-only, so this talks to the database directly:
  python scripts/seed_data.py
  python scripts/seed_data.py --database-url sqlite+aiosqlite:///./feedrank.db

All IDs are printed so you can use them in curl commands.
"""
import argparse
import asyncio
import random
from datetime import datetime, timedelta

from feedrank.database import build_engine, build_session_factory, init_db
from feedrank.config import settings
from feedrank.models import Content, ContentTag, Follow, Like, User
from feedrank.ranking.types import ALL_KINDS, Visibility


BASE_USERS = [
    ("alice_ai", "Alice Chen"),
    ("bob_builder", "Bob Martinez"),
    ("carol_codes", "Carol Singh"),
    ("dave_designs", "Dave Kim"),
    ("eve_engineer", "Eve Johnson"),
    ("frank_feeds", "Frank Williams"),
    ("grace_graphs", "Grace Li"),
    ("henry_hpc", "Henry Brown"),
    ("iris_infra", "Iris Davis"),
    ("jack_ml", "Jack Wilson"),
]

SAMPLE_TITLES = [
    "Zero downtime deploys, start to finish",
    "Vector databases in ten minutes",
    "Redis sorted sets for feed mailboxes",
    "Kafka consumer groups explained",
    "The cold-start problem in recommendations",
    "Fan-out on write vs pull on read",
    "Sourdough at altitude",
    "Weekend climbing trip",
    "Street food tour: Osaka",
    "Home studio lighting on a budget",
    "Five-minute pasta",
    "Trail running for beginners",
]

TAGS = [
    "tech", "devops", "databases", "ml", "cooking", "travel",
    "fitness", "photography", "music", "gaming", "diy", "news",
]


async def main(database_url: str, items_per_user: int) -> None:
    engine = build_engine(database_url)
    session_factory = build_session_factory(engine)
    await init_db(engine)
    now = datetime.utcnow()

    async with session_factory() as session:
        # ── Create users ─────────────────────────────────────────────────
        print("Creating users...")
        users = [User(username=u, display_name=d) for u, d in BASE_USERS]
        session.add_all(users)
        await session.flush()
        user_ids = [u.user_id for u in users]
        for user in users:
            print(f"  ✓ {user.username} ({user.user_id})")

        # ── Create follow graph ──────────────────────────────────────────
        print("\nCreating subscriptions...")
        for follower_id in user_ids:
            followees = random.sample([u for u in user_ids if u != follower_id], k=4)
            session.add_all(Follow(follower_id=follower_id, followee_id=f) for f in followees)
        print("  ✓ Follow graph created")

        # ── Create content ───────────────────────────────────────────────
        print("\nCreating content...")
        contents: list[Content] = []
        for user_id in user_ids:
            for i in range(items_per_user):
                kind = ALL_KINDS[i % len(ALL_KINDS)]
                item = Content(
                    kind=kind.value,
                    author_id=user_id,
                    title=random.choice(SAMPLE_TITLES),
                    # a few private / archived items so eligibility filtering is visible
                    visibility=(
                        Visibility.PRIVATE.value if random.random() < 0.05 else Visibility.PUBLIC.value
                    ),
                    archived=random.random() < 0.05,
                    like_count=random.randint(0, 200),
                    comment_count=random.randint(0, 40),
                    view_count=random.randint(0, 5000),
                    created_at=now - timedelta(minutes=random.randint(5, 10 * 24 * 60)),
                )
                item.tags = [ContentTag(tag=t) for t in random.sample(TAGS, k=random.randint(1, 3))]
                contents.append(item)
        session.add_all(contents)
        await session.flush()
        print(f"  ✓ {len(contents)} items created")

        # ── Create some likes ────────────────────────────────────────────
        print("\nAdding likes...")
        likes = 0
        for user_id in user_ids[1:]:
            # alice_ai stays a cold-start viewer
            for item in random.sample(contents, k=random.randint(3, 10)):
                session.add(Like(user_id=user_id, content_id=item.content_id))
                likes += 1
        print(f"  ✓ {likes} likes added")

        await session.commit()

    await engine.dispose()

    # ── Print summary ────────────────────────────────────────────────────
    api_url = "http://localhost:8000"
    cold, warm = user_ids[0], user_ids[1]
    print("\n" + "=" * 60)
    print("Seed complete! Here are some commands to try:\n")
    print(f"# Home feed for '{BASE_USERS[1][0]}':")
    print(f"  curl -s '{api_url}/feed/?user_id={warm}' | python3 -m json.tool\n")
    print(f"# Personalized for '{BASE_USERS[1][0]}':")
    print(f"  curl -s '{api_url}/recommendations/personalized?user_id={warm}' | python3 -m json.tool\n")
    print(f"# Cold start for '{BASE_USERS[0][0]}' (same as trending):")
    print(f"  curl -s '{api_url}/recommendations/personalized?user_id={cold}' | python3 -m json.tool\n")
    print(f"# Up next after '{contents[0].title}':")
    print(f"  curl -s '{api_url}/recommendations/upnext/{contents[0].content_id}' | python3 -m json.tool\n")
    print(f"# Trending hashtags:")
    print(f"  curl -s '{api_url}/trending/hashtags' | python3 -m json.tool\n")
    print(f"# Trending creators:")
    print(f"  curl -s '{api_url}/trending/creators' | python3 -m json.tool\n")
    print(f"# Newest '{TAGS[0]}' content:")
    print(f"  curl -s '{api_url}/trending/hashtags/{TAGS[0]}' | python3 -m json.tool\n")
    print("# Check Jaeger traces: http://localhost:16686")
    print("# Check Prometheus: http://localhost:9090")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the feed ranking content store")
    parser.add_argument("--database-url", default=settings.database_url, help="SQLAlchemy async URL")
    parser.add_argument("--items-per-user", type=int, default=12)
    args = parser.parse_args()
    asyncio.run(main(args.database_url, args.items_per_user))
