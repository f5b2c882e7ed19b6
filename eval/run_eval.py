#!/usr/bin/env python3
"""
Offline evaluation runner:
- Loads YAML cases under eval/cases/*.yaml
- Posts each transcript to /api/tasks/extract with its fixed reference time
- Computes simple metrics and writes eval/report.json

Usage:
  python eval/run_eval.py --base-url http://localhost:8000
  python eval/run_eval.py --fast    # only the first N cases
"""

import argparse
import glob
import json
import os
from typing import Any, Dict, List

import httpx
import yaml

DEFAULT_BASE_URL = "http://localhost:8000"
CASES_GLOB = os.path.join(os.path.dirname(__file__), "cases", "*.yaml")
TIMEOUT = 8.0

def load_cases(limit: int | None = None) -> List[Dict[str, Any]]:
    paths = sorted(glob.glob(CASES_GLOB))
    cases: List[Dict[str, Any]] = []
    for p in paths:
        with open(p, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or []
            if isinstance(data, list):
                cases.extend(data)
    if limit is not None:
        cases = cases[:limit]
    return cases

def post_extract(client: httpx.Client, base_url: str, transcript: str, reference_time: str | None) -> Dict[str, Any]:
    url = f"{base_url}/api/tasks/extract"
    body = {"transcript": transcript, "referenceTime": reference_time}
    r = client.post(url, json=body, timeout=TIMEOUT)
    r.raise_for_status()
    return r.json()

def eval_case(client: httpx.Client, base_url: str, case: Dict[str, Any]) -> Dict[str, Any]:
    # YAML may load an unquoted timestamp as datetime
    ref = case.get("reference_time")
    ref = ref.isoformat() if hasattr(ref, "isoformat") else ref
    out = post_extract(client, base_url, case["transcript"], ref)

    tasks = out.get("tasks", [])
    got_texts = [t.get("text", "") for t in tasks]
    expect_count = case.get("expect_count")
    expect_texts = case.get("expect_texts", [])

    count_ok = expect_count is None or len(tasks) == expect_count
    got_lower = [t.lower() for t in got_texts]
    texts_ok = all(e.lower() in got_lower for e in expect_texts)
    # every task must carry both time fields or neither
    pairing_ok = all((t.get("reminderTime") is None) == (t.get("originalTimeText") is None) for t in tasks)

    return {
        "id": case["id"],
        "expect_count": expect_count,
        "got_count": len(tasks),
        "count_ok": count_ok,
        "expect_texts": expect_texts,
        "got_texts": got_texts,
        "texts_ok": texts_ok,
        "pairing_ok": pairing_ok,
        "raw": out,  # keep for debugging
    }

def summarize(results: List[Dict[str, Any]]) -> Dict[str, Any]:
    n = len(results)
    acc_count = sum(r["count_ok"] for r in results) / max(1, n)
    with_texts = [r for r in results if r["expect_texts"]]
    acc_texts = sum(r["texts_ok"] for r in with_texts) / max(1, len(with_texts))
    acc_pairing = sum(r["pairing_ok"] for r in results) / max(1, n)

    return {
        "total_cases": n,
        "count_accuracy": round(acc_count, 3),
        "text_hit_rate": round(acc_texts, 3),
        "pairing_coverage": round(acc_pairing, 3),
    }

def print_table(results: List[Dict[str, Any]], summary: Dict[str, Any]) -> None:
    headers = ["id", "expect", "got", "count✓", "texts✓", "pair✓"]
    rows = []
    for r in results:
        rows.append([
            r["id"],
            r["expect_count"],
            r["got_count"],
            "✓" if r["count_ok"] else "✗",
            "-" if not r["expect_texts"] else ("✓" if r["texts_ok"] else "✗"),
            "✓" if r["pairing_ok"] else "✗",
        ])
    colw = [max(len(str(x)) for x in col) for col in zip(*([headers] + rows))]
    def fmt_row(row): return "  ".join(str(x).ljust(w) for x, w in zip(row, colw))

    print(fmt_row(headers))
    print("-" * (sum(colw) + 2 * (len(headers) - 1)))
    for row in rows:
        print(fmt_row(row))
    print("\nSummary:")
    for k, v in summary.items():
        print(f"- {k}: {v}")

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--base-url", default=DEFAULT_BASE_URL)
    ap.add_argument("--fast", action="store_true", help="Run only the first 5 cases")
    ap.add_argument("--out", default=os.path.join(os.path.dirname(__file__), "report.json"))
    ap.add_argument("--target", type=float, default=0.8, help="Fail when count accuracy drops below this")
    args = ap.parse_args()

    cases = load_cases(limit=5 if args.fast else None)
    if not cases:
        print("No cases found under eval/cases/*.yaml")
        return

    results: List[Dict[str, Any]] = []
    with httpx.Client() as client:
        for c in cases:
            try:
                results.append(eval_case(client, args.base_url, c))
            except Exception as e:
                results.append({
                    "id": c["id"],
                    "error": str(e),
                    "expect_count": c.get("expect_count"),
                    "got_count": None,
                    "count_ok": False,
                    "expect_texts": c.get("expect_texts", []),
                    "got_texts": [],
                    "texts_ok": False,
                    "pairing_ok": False,
                    "raw": {},
                })

    summary = summarize(results)

    # Write JSON report for CI / diffing
    os.makedirs(os.path.dirname(args.out), exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump({"summary": summary, "results": results}, f, ensure_ascii=False, indent=2)

    print_table(results, summary)

    if summary["count_accuracy"] < args.target:
        print(f"\nCount accuracy below target ({summary['count_accuracy']} < {args.target})")
        raise SystemExit(1)

if __name__ == "__main__":
    main()
