"""
write_load.py - async create-load script for the tinylink API

Usage:
  python write_load.py --base http://127.0.0.1:8000 --count 2000 --concurrency 100 --out links_created.jsonl
  python write_load.py --count 500 --custom-pool 50     # contend for 50 custom codes, expect 409s

Every created link is written as one JSON line (code, url, expiryDays,
expires_at) so read_load.py can replay redirects against it and tell which
links were already past expiry when the run started.
"""
import argparse
import asyncio
import json
import random
import time
from collections import Counter
from datetime import datetime, timezone

import httpx

from tinylink.manager.codes import CODE_ALPHABET

EXPIRY_CHOICES = (0, 15, 30, 45)
HOSTS = ("example.com", "sample.net", "demo.org", "test.io")


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _custom_pool(size):
    """Fixed set of custom codes shared by all workers, so later creates collide."""
    rng = random.Random(size)
    return ["ld" + "".join(rng.choice(CODE_ALPHABET) for _ in range(4)) for _ in range(size)]


def _payload(idx, pool):
    payload = {
        "url": f"https://{random.choice(HOSTS)}/item/{idx}",
        "expiryDays": random.choice(EXPIRY_CHOICES),
    }
    if pool:
        payload["code"] = random.choice(pool)
    return payload


async def _create_one(client: httpx.AsyncClient, base: str, payload):
    """Return (status, body); status is "error" when the request never completed."""
    try:
        r = await client.post(f"{base}/api/links", json=payload, timeout=10)
    except httpx.HTTPError:
        return "error", None
    return r.status_code, (r.json() if r.status_code == 201 else None)


async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--count", type=int, default=2000)
    parser.add_argument("--concurrency", type=int, default=100)
    parser.add_argument("--out", default="links_created.jsonl")
    parser.add_argument("--custom-pool", type=int, default=0,
                        help="request custom codes drawn from a pool of this size")
    args = parser.parse_args()

    pool = _custom_pool(args.custom_pool) if args.custom_pool else []
    statuses = Counter()
    expiring = 0

    start_iso = _now_iso()
    t0 = time.perf_counter()
    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    with open(args.out, "w", encoding="utf-8") as out_f:
        async with httpx.AsyncClient(limits=limit) as client:
            sem = asyncio.Semaphore(args.concurrency)

            async def _task(i):
                nonlocal expiring
                payload = _payload(i, pool)
                async with sem:
                    status, body = await _create_one(client, args.base, payload)
                statuses[status] += 1
                if body is None:
                    return
                if body.get("expires_at"):
                    expiring += 1
                out_f.write(json.dumps({
                    "code": body["code"],
                    "url": body["target_url"],
                    "expiryDays": payload["expiryDays"],
                    "expires_at": body.get("expires_at"),
                }) + "\n")

            await asyncio.gather(*(_task(i) for i in range(args.count)))
    dt = time.perf_counter() - t0

    created = statuses[201]
    print(f"START: {start_iso}")
    print(f"END:   {_now_iso()}")
    print(f"TOTAL: {dt:.3f} s")
    print(f"OPS:   writes={args.count}, created={created}, expiring={expiring}, permanent={created - expiring}")
    breakdown = ", ".join(f"{k}={statuses[k]}" for k in sorted(statuses, key=str))
    print(f"STATUS: {breakdown}")
    if pool:
        print(f"CONFLICTS: {statuses[409]} (at most {len(pool)} of {args.count} creates can win)")
    if dt > 0:
        print(f"TPS:   {created/dt:.1f} req/s")


if __name__ == "__main__":
    asyncio.run(main())
