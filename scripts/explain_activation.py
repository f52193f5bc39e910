"""Resolve a module catalog and print the activation report.

Usage examples:
    python scripts/explain_activation.py --catalog configs/catalog \
        --capability jdbc --capability dataSource=1 --environment server
    python scripts/explain_activation.py --format json --only-activated

Without --catalog the configured resolver.catalog_dir and host probe are
used (configs/base.yaml + overrides + ACTIVATION__* env). Exit code 2 on
structural errors (cycle, unknown exclusion, malformed catalog).
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from activation.catalog import load_catalog  # noqa: E402
from activation.config import (  # noqa: E402
    ConfigError,
    configure_logging,
    get_config,
)
from activation.errors import ActivationError, map_exception  # noqa: E402
from activation.host import HostProbe  # noqa: E402
from activation.modules import ActivationManager  # noqa: E402


def _parse_capability(raw: str) -> tuple[str, int]:
    name, _, count = raw.partition("=")
    if not name:
        raise argparse.ArgumentTypeError(f"invalid capability: {raw!r}")
    try:
        arity = int(count) if count else 1
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            f"invalid capability arity: {raw!r}"
        ) from e
    if arity < 0:
        raise argparse.ArgumentTypeError(
            f"capability arity must be >= 0: {raw!r}"
        )
    return name, arity


def _parse_property(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not key or not sep:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE: {raw!r}")
    return key, value


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Explain which catalog modules activate and why"
    )
    p.add_argument("--catalog", help="catalog directory (default: config)")
    p.add_argument(
        "--exclude", action="append", default=[], help="module to exclude"
    )
    p.add_argument(
        "--capability",
        action="append",
        default=[],
        type=_parse_capability,
        help="capability present on the host, NAME or NAME=ARITY",
    )
    p.add_argument(
        "--component",
        action="append",
        default=[],
        help="user-declared component",
    )
    p.add_argument(
        "--property",
        action="append",
        default=[],
        type=_parse_property,
        help="property KEY=VALUE",
    )
    p.add_argument("--environment", help="environment kind, e.g. server")
    p.add_argument("--format", choices=["text", "json"], default="text")
    p.add_argument("--only-activated", action="store_true")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = get_config()
        configure_logging(cfg.logging, stream=sys.stderr)
        catalog = load_catalog(args.catalog or cfg.resolver.catalog_dir)
        probe = HostProbe.from_config(cfg)
        if args.capability or args.component or args.property or (
            args.environment
        ):
            caps = dict(cfg.host.capabilities)
            caps.update(dict(args.capability))
            props = cfg.flat_properties()
            props.update(dict(args.property))
            probe = HostProbe(
                capabilities=caps,
                probe_imports=cfg.host.probe_imports,
                components=list(cfg.host.components) + args.component,
                properties=props,
                environment=args.environment or cfg.resolver.environment,
            )
        manager = ActivationManager(
            cfg, catalog=catalog, exclusions=args.exclude, probe=probe
        )
    except (ActivationError, ConfigError) as e:
        print(
            json.dumps({"error_type": map_exception(e), "message": str(e)}),
            file=sys.stderr,
        )
        return 2

    report = manager.report
    if args.format == "json":
        if args.only_activated:
            payload = {"activated": report.activated_names()}
            print(json.dumps(payload, indent=2, sort_keys=True))
        else:
            print(report.to_json(indent=2))
    elif args.only_activated:
        for name in report.activated_names():
            print(name)
    else:
        sys.stdout.write(report.render_text())
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
