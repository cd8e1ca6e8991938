from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import get_settings
from .render import render_history, render_text_card
from .services.errors import AiServiceError
from .services.pipeline.orchestrator import run_pipeline

settings = get_settings()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pricesense",
        description="Predict the Indian market price of a product from free-text specs.",
    )
    parser.add_argument("specs", nargs="+", help="Product specifications.")
    parser.add_argument("--json", action="store_true", help="Print the raw result JSON.")
    parser.add_argument("--html", type=Path, help="Also write an HTML card to this file.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    specs = " ".join(args.specs)
    try:
        result = run_pipeline("POST", json.dumps({"specs": specs}))
    except AiServiceError as exc:
        print(f"[ERROR] {exc.message} ({exc.code})", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_contract_dict(), ensure_ascii=False, indent=2))
    else:
        print(render_text_card(result))
    if args.html:
        args.html.write_text(render_history([result]), encoding="utf-8")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
