"""
read_load.py - async load script that hammers short-code redirects

Usage:
  python read_load.py --base http://127.0.0.1:8000 --in links_created.jsonl --count 15000 --concurrency 200

With --verify, the script compares each link's click counter before and after
the run against the number of successful redirects it issued for that code.
"""
import argparse
import asyncio
import json
import random
import time
from collections import Counter
from datetime import datetime, timezone

import httpx

def _now_iso():
    return datetime.now(timezone.utc).isoformat()

def _load_links(path):
    """Read write_load.py output; returns {code: expires_at or None}."""
    links = {}
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            record = json.loads(line)
            expires_at = record.get("expires_at")
            links[record["code"]] = datetime.fromisoformat(expires_at.replace("Z", "+00:00")) if expires_at else None
    return links

async def _hit_one(client: httpx.AsyncClient, base: str, code: str):
    try:
        r = await client.get(f"{base}/{code}", follow_redirects=False, timeout=10)
    except httpx.HTTPError:
        return False
    return r.status_code == 302

async def _clicks(client: httpx.AsyncClient, base: str, codes):
    out = {}
    for code in codes:
        r = await client.get(f"{base}/api/links/{code}", timeout=10)
        if r.status_code == 200:
            out[code] = r.json()["clicks"]
    return out

async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:8000")
    parser.add_argument("--in", dest="codes_file", default="links_created.jsonl")
    parser.add_argument("--count", type=int, default=15000)
    parser.add_argument("--concurrency", type=int, default=200)
    parser.add_argument("--verify", action="store_true", help="check click counters afterwards")
    args = parser.parse_args()

    links = _load_links(args.codes_file)
    if not links:
        print(f"No codes found in {args.codes_file}. Run write_load.py first.")
        return
    codes = list(links)

    start = datetime.now(timezone.utc)
    start_iso = start.isoformat()
    # Past expiry but still redirecting until the next sweep deletes them
    stale = sum(1 for expires_at in links.values() if expires_at is not None and expires_at < start)
    success = 0
    hits = Counter()

    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    async with httpx.AsyncClient(limits=limit) as client:
        before = await _clicks(client, args.base, set(codes)) if args.verify else {}
        sem = asyncio.Semaphore(args.concurrency)

        async def _task(i):
            nonlocal success
            code = random.choice(codes)
            async with sem:
                ok = await _hit_one(client, args.base, code)
                if ok:
                    success += 1
                    hits[code] += 1

        t0 = time.perf_counter()
        await asyncio.gather(*(_task(i) for i in range(args.count)))
        dt = time.perf_counter() - t0

        if args.verify:
            after = await _clicks(client, args.base, hits.keys())
            lost = {c: hits[c] - (after.get(c, 0) - before.get(c, 0)) for c in hits}
            lost = {c: n for c, n in lost.items() if n}
            print(f"VERIFY: {len(hits)} codes checked, {len(lost)} with mismatched counters")

    end_iso = _now_iso()
    print(f"START: {start_iso}")
    print(f"END:   {end_iso}")
    print(f"TOTAL: {dt:.3f} s")
    print(f"OPS:   reads={args.count}, ok={success}, fail={args.count - success}")
    print(f"LINKS: loaded={len(codes)}, stale={stale}")
    if dt > 0:
        print(f"RPS:   {success/dt:.1f} req/s")

if __name__ == "__main__":
    asyncio.run(main())
