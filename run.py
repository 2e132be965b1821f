#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
RedHope launcher.

- Local dev:             ./run.py --env development
- Production (no reload): ENV=production TRUST_PROXY=1 ./run.py --env production --no-reload
- Gunicorn export:       gunicorn "wsgi:app"
"""

from __future__ import annotations

import argparse
import os
import socket
from typing import Optional


def _env_bool(name: str) -> Optional[bool]:
    """Return bool for env var if set, otherwise None."""
    v = os.getenv(name)
    if v is None:
        return None
    vv = str(v).strip().lower()
    if vv in {"1", "true", "yes", "y", "on"}:
        return True
    if vv in {"0", "false", "no", "n", "off"}:
        return False
    return None


def _port_in_use(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.settimeout(0.5)
        return s.connect_ex(("127.0.0.1" if host in {"0.0.0.0", ""} else host, port)) == 0


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run the RedHope API.")
    p.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    p.add_argument("--port", type=int, default=int(os.getenv("PORT", "5000")))
    p.add_argument("--env", choices=["development", "testing", "production"], help="Runtime environment")
    p.add_argument("--config", help="Config alias (production) or dotted path")
    p.add_argument("--debug", action=argparse.BooleanOptionalAction, default=None)
    p.add_argument("--no-reload", action="store_true", help="Disable Werkzeug reloader")
    p.add_argument("--routes", action="store_true", help="Print the URL map and exit")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    if args.env:
        os.environ["ENV"] = args.env

    from redhope import create_app

    app = create_app(args.config)
    env = app.config.get("ENV", "development")

    if args.routes:
        for rule in sorted(app.url_map.iter_rules(), key=lambda r: r.rule):
            methods = ",".join(sorted(m for m in rule.methods if m not in {"HEAD", "OPTIONS"}))
            print(f"{methods:<18} {rule.rule}")
        return

    debug = args.debug
    if debug is None:
        debug = _env_bool("FLASK_DEBUG")
    if debug is None:
        debug = env != "production"
    if env == "production" and debug:
        app.logger.warning("Debug is ON in production; refusing to enable it")
        debug = False

    if _port_in_use(args.host, args.port):
        raise SystemExit(f"Port {args.port} already in use")

    app.logger.info("RedHope on http://%s:%s (env=%s debug=%s)", args.host, args.port, env, debug)
    app.run(host=args.host, port=args.port, debug=debug, use_reloader=debug and not args.no_reload)


if __name__ == "__main__":
    main()
