#!/usr/bin/env python3
"""Benchmark permission checks: latency (p50, p95, p99) and QPS.

Grants the benchmark subject 'read' on every client root (inherited), then
checks random (resource, scope) pairs across the seeded resource forest.

Usage:
    export API_URL=http://localhost:8000
    # Optional, when the API requires bearer tokens:
    export KEYCLOAK_URL=... KEYCLOAK_CLIENT_SECRET=... BENCH_USER=... BENCH_PASSWORD=...
    python scripts/bench_check.py [--num-checks 500] [--subject bench-user]
"""
from __future__ import annotations

import argparse
import os
import random
import statistics
import sys
import time

import httpx


def get_token(
    keycloak_url: str,
    realm: str,
    client_id: str,
    client_secret: str,
    username: str,
    password: str,
) -> str:
    url = f"{keycloak_url.rstrip('/')}/realms/{realm}/protocol/openid-connect/token"
    r = httpx.post(
        url,
        data={
            "grant_type": "password",
            "client_id": client_id,
            "client_secret": client_secret,
            "username": username,
            "password": password,
        },
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        timeout=30.0,
    )
    r.raise_for_status()
    return r.json()["access_token"]


def flatten(nodes: list[dict]) -> list[dict]:
    flat = []
    stack = list(nodes)
    while stack:
        node = stack.pop()
        flat.append(node)
        stack.extend(node.get("children", []))
    return flat


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark permission checks")
    parser.add_argument("--num-checks", type=int, default=200, help="Number of check requests")
    parser.add_argument("--subject", type=str, default="bench-user", help="Subject id to check")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for resource picks")
    parser.add_argument("--output", type=str, default="/results/bench_check.txt", help="Output file path")
    args = parser.parse_args()

    api_url = os.environ.get("API_URL", "http://localhost:8000").rstrip("/")
    client_secret = os.environ.get("KEYCLOAK_CLIENT_SECRET", "")
    headers = {"Content-Type": "application/json"}
    if client_secret:
        print("Getting token...")
        token = get_token(
            os.environ.get("KEYCLOAK_URL", "http://localhost:8080"),
            os.environ.get("KEYCLOAK_REALM", "permengine"),
            os.environ.get("KEYCLOAK_CLIENT_ID", "permengine-api"),
            client_secret,
            os.environ.get("BENCH_USER", "testuser"),
            os.environ.get("BENCH_PASSWORD", "testpass"),
        )
        headers["Authorization"] = f"Bearer {token}"

    with httpx.Client(timeout=60.0) as client:
        r = client.get(f"{api_url}/v1/permissions/resources", headers=headers)
        r.raise_for_status()
        roots = r.json()["items"]
        resources = flatten(roots)
        if not resources:
            print("Resource catalog is empty; seed resources first.")
            return 1

        r = client.post(
            f"{api_url}/v1/permissions/batch-grant",
            json={
                "subject_type": "User",
                "subject_id": args.subject,
                "resource_scopes": [{"resource_id": n["id"], "scopes": ["read"]} for n in roots],
                "inherit_to_children": True,
            },
            headers=headers,
        )
        r.raise_for_status()

    rng = random.Random(args.seed)
    latencies: list[float] = []
    errors = 0
    print(f"Running {args.num_checks} checks over {len(resources)} resources...")
    start_total = time.perf_counter()
    with httpx.Client(timeout=30.0) as client:
        for _ in range(args.num_checks):
            resource = rng.choice(resources)
            t0 = time.perf_counter()
            r = client.post(
                f"{api_url}/v1/permissions/check",
                json={
                    "subject_id": args.subject,
                    "resource_id": resource["id"],
                    "scope": rng.choice(["read", "write"]),
                },
                headers=headers,
            )
            elapsed = time.perf_counter() - t0
            if r.status_code == 200:
                latencies.append(elapsed)
            else:
                errors += 1
    total_elapsed = time.perf_counter() - start_total

    n = len(latencies)
    if n == 0:
        print("No successful checks.")
        return 1

    qps = n / total_elapsed
    p50 = statistics.median(latencies) * 1000
    p95 = sorted(latencies)[int(n * 0.95) - 1] * 1000 if n >= 20 else p50
    p99 = sorted(latencies)[int(n * 0.99) - 1] * 1000 if n >= 100 else p95

    summary = (
        f"Check benchmark (resources={len(resources)}, checks={n}, errors={errors})\n"
        f"  QPS: {qps:.2f}\n"
        f"  Latency: p50={p50:.1f} ms, p95={p95:.1f} ms, p99={p99:.1f} ms\n"
        f"  Total time: {total_elapsed:.2f} s\n"
    )
    print(summary)

    try:
        os.makedirs(os.path.dirname(args.output) or ".", exist_ok=True)
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(summary)
        print(f"Wrote {args.output}")
    except OSError as e:
        print(f"Could not write {args.output}: {e}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
