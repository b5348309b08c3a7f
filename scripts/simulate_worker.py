#!/usr/bin/env python3
"""Smoke test against a running server — plays the part of one scraping worker.

Usage:
  1. Start the server with API_KEY set (python -m serp_collector)
  2. Run: python scripts/simulate_worker.py [--base-url http://localhost:3000]

Steps:
  Step 1: Health check
  Step 2: Create a project and enqueue two queries (admin API)
  Step 3: Claim a query (worker API)
  Step 4: Submit synthetic results for it
  Step 5: Read back project stats and stored results
"""

import argparse
import asyncio
import os
import sys

import httpx

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def step_header(n: int, title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  Step {n}: {title}")
    print(f"{'='*60}\n")


def ok(msg: str) -> None:
    print(f"  ✅ {msg}")


def fail(msg: str) -> None:
    print(f"  ❌ {msg}")


def info(msg: str) -> None:
    print(f"  ℹ️  {msg}")


def fake_pages(search_term: str, max_pages: int) -> list[dict]:
    pages = []
    for page_number in range(1, min(max_pages, 2) + 1):
        pages.append({
            "page_number": page_number,
            "results": [
                {
                    "position": pos,
                    "title": f"{search_term} — result {pos}",
                    "url": f"https://example{pos}.com/{page_number}",
                    "domain": f"example{pos}.com",
                    "description": "synthetic result from simulate_worker",
                }
                for pos in range(1, 4)
            ],
        })
    return pages


async def step1_health(client: httpx.AsyncClient) -> bool:
    step_header(1, "Health Check")
    r = await client.get("/health")
    if r.status_code == 200:
        ok(f"Server up: {r.json()}")
        return True
    fail(f"Health returned {r.status_code}")
    return False


async def step2_enqueue(client: httpx.AsyncClient) -> str | None:
    step_header(2, "Create Project + Enqueue")
    r = await client.post("/api/v1/admin/projects", json={
        "name": "simulate_worker",
        "description": "created by scripts/simulate_worker.py",
    })
    if r.status_code != 200:
        fail(f"Create project failed: {r.status_code} {r.text}")
        return None
    project_id = r.json()["id"]
    ok(f"Project: {project_id}")

    r = await client.post(f"/api/v1/admin/projects/{project_id}/queries", json={
        "queries": ["گربه سیاه", "black cat"],
        "priority": 10,
    })
    if r.status_code != 200:
        fail(f"Enqueue failed: {r.status_code} {r.text}")
        return None
    ok(f"Inserted: {r.json()['inserted']}")
    return project_id


async def step3_claim(client: httpx.AsyncClient, headers: dict) -> dict | None:
    step_header(3, "Claim Next Query")
    r = await client.get("/api/v1/queries/next", headers=headers)
    if r.status_code != 200:
        fail(f"Claim failed: {r.status_code} {r.text}")
        return None
    claimed = r.json()
    if claimed is None:
        fail("No pending work")
        return None
    ok(f"Claimed {claimed['query_id']}: '{claimed['search_term']}' (max_pages={claimed['max_pages']})")
    return claimed


async def step4_submit(client: httpx.AsyncClient, headers: dict, claimed: dict) -> bool:
    step_header(4, "Submit Results")
    r = await client.post("/api/v1/results", headers=headers, json={
        "query_id": claimed["query_id"],
        "pages": fake_pages(claimed["search_term"], claimed["max_pages"]),
        "suggestions": [f"{claimed['search_term']} images"],
        "related_searches": [f"{claimed['search_term']} video"],
    })
    if r.status_code == 200:
        ok("Results accepted")
        return True
    fail(f"Submit failed: {r.status_code} {r.text}")
    return False


async def step5_report(client: httpx.AsyncClient, project_id: str, query_id: str) -> bool:
    step_header(5, "Stats + Stored Results")
    r = await client.get(f"/api/v1/admin/projects/{project_id}/stats")
    if r.status_code != 200:
        fail(f"Stats failed: {r.status_code} {r.text}")
        return False
    stats = r.json()
    ok(f"Queries: {stats['queries']}")
    for d in stats["top_domains"][:3]:
        print(f"    - {d['domain']}: {d['count']}")

    r = await client.get(f"/api/v1/admin/queries/{query_id}/results")
    if r.status_code != 200:
        fail(f"Results failed: {r.status_code} {r.text}")
        return False
    data = r.json()
    ok(f"{len(data['results'])} results, {len(data['suggestions'])} suggestions")
    return stats["queries"]["completed"] >= 1


async def main():
    parser = argparse.ArgumentParser(description="Simulated SERP worker")
    parser.add_argument("--base-url", default="http://localhost:3000")
    parser.add_argument("--api-key", default=os.getenv("API_KEY", ""))
    args = parser.parse_args()

    print("\n🔎 SERP Collector — Worker Simulation")
    print("=" * 60)
    if not args.api_key:
        info("No API key given (--api-key or API_KEY) — worker steps will be rejected")

    headers = {"X-API-Key": args.api_key}
    results = {}

    async with httpx.AsyncClient(base_url=args.base_url, timeout=30.0) as client:
        results[1] = await step1_health(client)
        project_id = await step2_enqueue(client) if results[1] else None
        results[2] = project_id is not None

        claimed = await step3_claim(client, headers) if project_id else None
        results[3] = claimed is not None

        results[4] = await step4_submit(client, headers, claimed) if claimed else False
        results[5] = (
            await step5_report(client, project_id, claimed["query_id"])
            if results[4] else False
        )

    # Summary
    print(f"\n{'='*60}")
    print("  SUMMARY")
    print(f"{'='*60}")
    for step_n, passed in sorted(results.items()):
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"  Step {step_n}: {status}")

    total_passed = sum(1 for v in results.values() if v)
    print(f"\n  {total_passed}/{len(results)} steps passed")
    print(f"{'='*60}\n")

    sys.exit(0 if all(results.values()) else 1)


if __name__ == "__main__":
    asyncio.run(main())
