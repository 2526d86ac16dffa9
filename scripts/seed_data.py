#!/usr/bin/env python3
"""
Seed script — creates a realistic dataset for exercising the content graph.

Creates:
  • 10 users
  • A follow graph (each user follows 4 others) and a couple of blocks
  • 3 posts per user, comments with replies on some of them
  • Likes across posts, comments and replies
  • One story per user

Run against a running API:
  python scripts/seed_data.py --api-url http://localhost:8000

All IDs are printed so you can use them in curl commands.
"""
import argparse
import json
import random
import time
import urllib.error
import urllib.request
from dataclasses import dataclass


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

SAMPLE_POSTS = [
    "Just shipped a new feature to production. Zero downtime deploys are beautiful.",
    "Hiking trip this weekend, the view from the ridge was unreal.",
    "Finally finished the sourdough starter. Day 7 and it smells right.",
    "Reading list for the month: three novels and one very long paper.",
    "New desk setup! Cable management took longer than the desk.",
    "Coffee tasting notes: this one is all blueberry and chocolate.",
    "Ran my first 10k today. Legs are not speaking to me.",
    "Trying to learn the guitar again. Barre chords remain my nemesis.",
    "The city at 6am is a different place.",
    "Rainy day, good playlist, nothing scheduled.",
]

SAMPLE_COMMENTS = [
    "Love this!",
    "Where was this taken?",
    "Congrats 🎉",
    "Same here, honestly.",
    "Tell me more.",
]

SAMPLE_REPLIES = ["Thanks!", "Haha yes", "Will do", "Agreed", "🙌"]


@dataclass
class ApiClient:
    base_url: str

    def _send(self, method: str, path: str, data: dict | None = None) -> dict:
        url = f"{self.base_url}{path}"
        body = json.dumps(data).encode() if data is not None else None
        req = urllib.request.Request(
            url, data=body, headers={"Content-Type": "application/json"}, method=method
        )
        try:
            with urllib.request.urlopen(req, timeout=10) as resp:
                raw = resp.read()
                return json.loads(raw) if raw else {}
        except urllib.error.HTTPError as e:
            print(f"  HTTP {e.code} on {method} {path}: {e.read().decode()}")
            return {}

    def post(self, path: str, data: dict) -> dict:
        return self._send("POST", path, data)

    def get(self, path: str) -> dict:
        return self._send("GET", path)


def wait_for_api(client: ApiClient, retries: int = 15) -> None:
    print(f"Waiting for API at {client.base_url} ...")
    for i in range(retries):
        try:
            result = client.get("/health")
            if result.get("status") == "ok":
                print("  API is ready!\n")
                return
        except urllib.error.URLError:
            pass
        time.sleep(3)
    raise RuntimeError(f"API not reachable at {client.base_url} after {retries} retries")


def main(api_url: str) -> None:
    client = ApiClient(api_url)
    wait_for_api(client)

    # ── Create users ─────────────────────────────────────────────────────
    print("Creating users...")
    user_ids: list[str] = []
    for username, full_name in BASE_USERS:
        result = client.post(
            "/users/",
            {"username": username, "email": f"{username}@example.com", "full_name": full_name},
        )
        uid = result.get("user_id", "")
        if uid:
            user_ids.append(uid)
            print(f"  ✓ {username} ({uid})")
        else:
            print(f"  ✗ Failed to create {username}")

    if len(user_ids) < 3:
        print("Not enough users created — aborting")
        return

    # ── Create follow / block graph ───────────────────────────────────────
    print("\nCreating follow relationships...")
    follows = 0
    for actor in user_ids:
        for target in random.sample([u for u in user_ids if u != actor], k=min(4, len(user_ids) - 1)):
            if client.post(f"/users/{target}/follow", {"user_id": actor}):
                follows += 1
    blocker, blocked = user_ids[-1], user_ids[-2]
    client.post(f"/users/{blocked}/block", {"user_id": blocker})
    print(f"  ✓ {follows} follows, 1 block")

    # ── Create posts ──────────────────────────────────────────────────────
    print("\nCreating posts...")
    post_ids: list[str] = []
    captions = SAMPLE_POSTS * 3
    random.shuffle(captions)
    for i, user_id in enumerate(user_ids):
        for caption in captions[i * 3:(i + 1) * 3]:
            pid = client.post("/posts/", {"user_id": user_id, "caption": caption}).get("post_id")
            if pid:
                post_ids.append(pid)
    print(f"  ✓ {len(post_ids)} posts created")

    # ── Comments and replies ──────────────────────────────────────────────
    print("\nAdding comments and replies...")
    comments = replies = 0
    for post_id in random.sample(post_ids, k=len(post_ids) // 2):
        author = random.choice(user_ids)
        comment = client.post(
            "/comments/",
            {"post_id": post_id, "user_id": author, "text": random.choice(SAMPLE_COMMENTS)},
        )
        if not comment:
            continue
        comments += 1
        cid = comment["comment_id"]
        for replier in random.sample(user_ids, k=random.randint(0, 2)):
            thread = client.post(
                f"/comments/{cid}/replies",
                {"user_id": replier, "text": random.choice(SAMPLE_REPLIES)},
            )
            if thread:
                replies += 1
                client.post(f"/comments/{cid}/like", {"user_id": replier})
    print(f"  ✓ {comments} comments, {replies} replies")

    # ── Likes ─────────────────────────────────────────────────────────────
    print("\nAdding likes...")
    likes = 0
    for post_id in post_ids:
        for user_id in random.sample(user_ids, k=random.randint(0, 5)):
            if client.post(f"/posts/{post_id}/like", {"user_id": user_id}):
                likes += 1
    print(f"  ✓ {likes} likes added")

    # ── Stories ───────────────────────────────────────────────────────────
    for user_id in user_ids:
        client.post("/stories/", {"user_id": user_id, "text": "Good morning!"})

    # ── Print summary ─────────────────────────────────────────────────────
    print("\n" + "=" * 60)
    print("Seed complete! Here are some commands to try:\n")
    u, v = user_ids[0], user_ids[1]
    print(f"# Fetch '{BASE_USERS[0][0]}' with followers, following and posts:")
    print(f"  curl -s '{api_url}/users/{u}' | python3 -m json.tool\n")
    print(f"# Like one of their posts as '{BASE_USERS[1][0]}':")
    print(f"  curl -s -X POST '{api_url}/posts/{post_ids[0]}/like' \\")
    print(f"    -H 'Content-Type: application/json' \\")
    print(f"    -d '{{\"user_id\": \"{v}\"}}' | python3 -m json.tool\n")
    print(f"# Delete '{BASE_USERS[1][0]}' and every trace of them:")
    print(f"  curl -s -X DELETE '{api_url}/users/{v}' | python3 -m json.tool\n")
    print(f"# Check Jaeger traces: http://localhost:16686")
    print(f"# Check Prometheus: http://localhost:9090")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Content Graph service")
    parser.add_argument("--api-url", default="http://localhost:8000", help="API base URL")
    args = parser.parse_args()
    main(args.api_url)
