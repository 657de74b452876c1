# src/shipment_tracking/cli.py
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config.env import EnvError, get_app_env, load_selection_policy
from .config.logging_config import default_log_path, get_logger
from .pipelines.tracking_pipeline import TrackingPipeline

# --log-file given without a path
_BESIDE_INPUT = Path("-")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="shipment-tracking",
        description="Resolve an order id (or tracking number) to its authoritative courier status.",
    )
    p.add_argument("order_id", nargs="?", default=None,
                   help="Customer order id (requires --orders).")
    p.add_argument(
        "--tracking-number",
        default=None,
        help="Query a tracking number directly instead of an order id.",
    )
    p.add_argument(
        "--orders",
        type=Path,
        default=None,
        help="Order sheet (.xlsx or .csv) with order_id and logistics_no columns.",
    )
    source = p.add_mutually_exclusive_group()
    source.add_argument(
        "--replay-file",
        type=Path,
        default=None,
        help="JSON file of recorded 17TRACK items for deterministic replays.",
    )
    source.add_argument(
        "--use-api",
        action="store_true",
        help="Query the live 17TRACK API (requires TRACK17_API_KEY).",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO",
    )
    p.add_argument(
        "--log-file",
        nargs="?",
        const=_BESIDE_INPUT,
        type=Path,
        default=None,
        help="Also write logs to this file. Without a path, log beside the "
             "order sheet (or replay file) with a .log extension.",
    )
    p.add_argument(
        "--no-console",
        action="store_true",
        help="Disable console logging (file logging remains).",
    )
    p.add_argument(
        "--strict-env",
        action="store_true",
        help="Require TRACK17_API_KEY to be present; otherwise exit 2.",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    log_file = args.log_file
    if log_file == _BESIDE_INPUT:
        source = args.orders or args.replay_file
        if source is None:
            print("error: --log-file without a path needs --orders or --replay-file",
                  file=sys.stderr)
            return 2
        log_file = default_log_path(source)

    logger = get_logger(
        level=args.log_level,
        console=not args.no_console,
        log_file=log_file,
    )

    if not args.order_id and not args.tracking_number:
        print("error: provide an ORDER_ID or --tracking-number", file=sys.stderr)
        return 2
    if args.order_id and args.orders is None:
        print("error: ORDER_ID lookups require --orders", file=sys.stderr)
        return 2
    if not args.replay_file and not args.use_api:
        print("error: choose a data source (--replay-file or --use-api)", file=sys.stderr)
        return 2

    try:
        env_cfg = get_app_env(strict=args.strict_env or args.use_api)
        policy = load_selection_policy()
    except EnvError as e:
        logger.error("Environment error: %s", e)
        return 2

    # Lazy imports keep startup light
    orders = None
    if args.orders is not None:
        from .io.orders import OrderBook
        try:
            orders = OrderBook.from_path(args.orders)
        except FileNotFoundError:
            print(f"error: order sheet not found: {args.orders}", file=sys.stderr)
            return 2
        except ValueError as e:
            logger.error("Invalid order sheet %s: %s", args.orders, e)
            return 2
        logger.info("Loaded %d order(s) from %s", len(orders), args.orders)

    if args.replay_file:
        from .api.client import ReplayClient
        try:
            aggregator = ReplayClient(args.replay_file)
        except ValueError as e:
            logger.error("%s", e)
            return 2
        logger.info("Replay mode enabled: %s", args.replay_file)
    else:
        from .api.track17 import Track17Client
        from .api.transport import RequestsTransport

        aggregator = Track17Client(
            env_cfg.TRACK17_API_KEY,
            base_url=env_cfg.TRACK17_BASE_URL,
            transport=RequestsTransport(),
        )
        logger.info("Live 17TRACK API enabled (base=%s)", env_cfg.TRACK17_BASE_URL)

    pipeline = TrackingPipeline(logger, orders=orders, aggregator=aggregator, policy=policy)
    if args.order_id:
        response = pipeline.track_order(args.order_id)
    else:
        response = pipeline.track_number(args.tracking_number)

    print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))
    return 0 if response.ok else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
