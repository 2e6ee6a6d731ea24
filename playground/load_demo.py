"""
Read/Write Split Demo
=====================

Drives a running splitdb service the way a client would:
1. Inserts a batch of blog posts (every write goes to the master)
2. Reads the first page repeatedly and shows where each answer came from
3. Fires a burst of concurrent reads and reports latency and source mix

Prerequisites
-------------
A master, two replicas and the service, e.g.:

    docker run -d --name db-master -e POSTGRES_PASSWORD=root -e POSTGRES_DB=blogdb \
        postgres:17-alpine -c wal_level=logical
    docker run -d --name db-replica1 -e POSTGRES_PASSWORD=root postgres:17-alpine
    docker run -d --name db-replica2 -e POSTGRES_PASSWORD=root postgres:17-alpine

    # all three on one Docker network, service on the same network
    python -m splitdb

Inspect Replication
-------------------
    # On the master: one slot per replica
    psql -h db-master -U postgres -c "SELECT slot_name, active FROM pg_replication_slots"

    # On a replica: subscription state
    psql -h db-replica1 -U postgres -d blogdb -c "SELECT subname, subenabled FROM pg_subscription"

Running This Example
--------------------
    uv run python playground/load_demo.py --url http://localhost:5000 --posts 20 --reads 1000
"""

from __future__ import annotations

import argparse
import asyncio
import statistics
import time
from collections import Counter
from datetime import datetime

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


# =============================================================================
# 1. BULK INSERT
# =============================================================================


async def insert_posts(client: httpx.AsyncClient, count: int) -> None:
    for i in range(1, count + 1):
        response = await client.post(
            "/blog",
            json={
                "title": f"Replication Test Blog #{i}",
                "body": f"Blog post number {i} created at {datetime.now():%H:%M:%S}.",
            },
        )
        response.raise_for_status()
    console.print(f"[green]✓ Inserted {count} blogs[/green]")


# =============================================================================
# 2. WHERE DID THE ANSWER COME FROM
# =============================================================================


async def show_sources(client: httpx.AsyncClient, repeats: int = 4) -> None:
    table = Table(title="GET /blogs?page=1&limit=5")
    table.add_column("#", justify="right")
    table.add_column("source")
    table.add_column("size", justify="right")
    table.add_column("newest id", justify="right")

    for i in range(1, repeats + 1):
        body = (await client.get("/blogs", params={"page": 1, "limit": 5})).json()
        newest = body["blogs"][0]["id"] if body["blogs"] else "-"
        table.add_row(str(i), body["source"], str(body["size"]), str(newest))

    console.print(table)
    console.print("[dim]First read is served by a replica, repeats within the TTL by the cache.[/dim]")


# =============================================================================
# 3. READ LOAD
# =============================================================================


async def read_load(client: httpx.AsyncClient, total: int, concurrency: int) -> None:
    semaphore = asyncio.Semaphore(concurrency)
    latencies_ms: list[float] = []
    sources: Counter[str] = Counter()
    failures = 0

    async def one_read() -> None:
        nonlocal failures
        async with semaphore:
            start = time.perf_counter()
            try:
                response = await client.get("/blogs")
            except httpx.HTTPError:
                failures += 1
                return
            latencies_ms.append((time.perf_counter() - start) * 1000)
            if response.status_code == 200:
                sources[response.json()["source"]] += 1
            else:
                failures += 1

    started = time.perf_counter()
    await asyncio.gather(*(one_read() for _ in range(total)))
    elapsed = time.perf_counter() - started

    summary = Table(title=f"{total} reads, concurrency {concurrency}")
    summary.add_column("metric")
    summary.add_column("value", justify="right")
    summary.add_row("throughput", f"{total / elapsed:,.0f} req/s")
    if latencies_ms:
        summary.add_row("p50", f"{statistics.median(latencies_ms):.1f} ms")
        summary.add_row("p95", f"{statistics.quantiles(latencies_ms, n=20)[-1]:.1f} ms")
    summary.add_row("failures", str(failures))
    for source, count in sources.most_common():
        summary.add_row(f"source={source}", str(count))
    console.print(summary)


async def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--url", default="http://localhost:5000")
    parser.add_argument("--posts", type=int, default=20)
    parser.add_argument("--reads", type=int, default=1000)
    parser.add_argument("--concurrency", type=int, default=50)
    args = parser.parse_args()

    console.print(Panel.fit(f"splitdb demo against {args.url}", style="bold blue"))

    async with httpx.AsyncClient(base_url=args.url, timeout=10.0) as client:
        await insert_posts(client, args.posts)
        await show_sources(client)
        await read_load(client, args.reads, args.concurrency)


if __name__ == "__main__":
    asyncio.run(main())
