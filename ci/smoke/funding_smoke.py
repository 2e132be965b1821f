#!/usr/bin/env python3
"""
RedHope funding smoke test against a running deployment.

Checks:
1) /healthz and /dashboard-stats answer 200
2) A checkout session can be created (returns a Stripe URL, NO CHARGE MADE)
3) Confirming an unknown session id is rejected
4) Invalid amounts are rejected with 400
"""

from __future__ import annotations

import argparse
import json
import os
from typing import Any, Dict, Iterable, Tuple

import requests

DEFAULT_PATHS = ["/", "/healthz", "/dashboard-stats", "/fundings"]


# ---------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------
def die(msg: str, code: int = 1) -> None:
    print(f"❌ {msg}")
    raise SystemExit(code)


def ok(msg: str) -> None:
    print(f"✅ {msg}")


def info(msg: str) -> None:
    print(f"↪ {msg}")


# ---------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------
class Client:
    def __init__(self, base: str, timeout: float = 12.0):
        self.base = base.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.headers = {"accept": "application/json"}

    def url(self, path: str) -> str:
        return self.base + (path if path.startswith("/") else "/" + path)

    @staticmethod
    def _decode(r: requests.Response) -> Tuple[int, Any]:
        try:
            return r.status_code, r.json()
        except ValueError:
            return r.status_code, {}

    def get(self, path: str, **params: str) -> Tuple[int, Any]:
        r = self.session.get(self.url(path), params=params or None, headers=self.headers, timeout=self.timeout)
        return self._decode(r)

    def post(self, path: str, payload: Dict[str, Any]) -> Tuple[int, Any]:
        r = self.session.post(self.url(path), json=payload, headers=self.headers, timeout=self.timeout)
        return self._decode(r)


# ---------------------------------------------------------------------
# Smoke steps
# ---------------------------------------------------------------------
def check_gets(http: Client, paths: Iterable[str]) -> None:
    for p in paths:
        code, _ = http.get(p)
        if code != 200:
            die(f"{p} expected 200, got {code}")
    ok("GET routes OK")


def create_checkout(http: Client) -> None:
    payload = {"amount": 1, "donorName": "Smoke Test", "donorEmail": "smoke@redhope.test"}
    code, body = http.post("/funding-checkout-session", payload)
    if code != 200:
        die(f"Checkout session failed ({code}): {json.dumps(body)[:200]}")
    if not str(body.get("url") or "").startswith("https://"):
        die("Missing checkout url in response")
    ok("Checkout session creation OK")


def reject_bad_amounts(http: Client) -> None:
    for amount in (0, -5, "abc", 1.5):
        code, _ = http.post("/funding-checkout-session", {"amount": amount, "donorName": "x", "donorEmail": "x@y.z"})
        if code != 400:
            die(f"amount={amount!r} expected 400, got {code}")
    ok("Invalid amounts rejected")


def reject_unknown_session(http: Client) -> None:
    code, _ = http.get("/funding-success", session_id="cs_test_does_not_exist")
    if code < 400:
        die(f"Unknown session expected an error, got {code}")
    ok("Unknown session rejected")


# ---------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------
def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--base", default=os.getenv("BASE", "http://127.0.0.1:5000"))
    ap.add_argument("--skip-checkout", action="store_true", help="don't call Stripe at all")
    args = ap.parse_args()

    info(f"Base: {args.base}")
    http = Client(base=args.base)
    check_gets(http, DEFAULT_PATHS)
    reject_bad_amounts(http)
    if not args.skip_checkout:
        create_checkout(http)
        reject_unknown_session(http)

    print("\n🎉 REDHOPE FUNDING SMOKE PASSED")


if __name__ == "__main__":
    main()
