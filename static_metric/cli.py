"""static-metric-gen: generate a Python metrics module from a DSL file.

Usage:
  static-metric-gen metrics.dsl -o app/generated_metrics.py --auto-flush
  static-metric-gen metrics.dsl -o app/generated_metrics.py --check

Exit codes: 0 ok, 1 generation/config error or (with --check) stale module.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape

from .codegen.pipeline import compute_dsl_hash, generate_source, is_up_to_date, render_catalog, write_module
from .config import load_config
from .dsl.parser import parse
from .utils.exceptions import ConfigError, GenerationError
from .utils.logging_utils import setup_logging
from .version import get_version

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog='static-metric-gen',
                                 description='Generate static prometheus_client metric classes from a DSL file.')
    ap.add_argument('input', help='DSL file to compile')
    ap.add_argument('-o', '--output', help='Generated module path (default: stdout)')
    ap.add_argument('--auto-flush', action='store_true', help='Emit thread-local auto-flush classes (Local* kinds only)')
    ap.add_argument('--flush-interval', type=float, help='Auto-flush threshold in seconds (default 1.0)')
    ap.add_argument('--runtime-package', help='Import path of the runtime support package')
    ap.add_argument('--no-case-fold', action='store_true', help='Keep identifier case for default label values')
    ap.add_argument('--config', help='YAML generator config file')
    ap.add_argument('--catalog', help='Also write a Markdown catalog to this path')
    ap.add_argument('--check', action='store_true', help='Only verify OUTPUT was generated from INPUT')
    ap.add_argument('--json', action='store_true', help='Machine-readable result on stdout')
    ap.add_argument('--log-level', default='WARNING', help='Logging level (default WARNING)')
    ap.add_argument('--version', action='version', version=f'%(prog)s {get_version()}')
    return ap


def _report(console: Console, as_json: bool, payload: dict[str, Any]) -> None:
    if as_json:
        print(json.dumps(payload))
        return
    status = payload.get('status')
    if status == 'error':
        console.print(f"[bold red]error[/]: {escape(payload['error'])}")
    elif status == 'stale':
        console.print(f"[yellow]stale[/]: {escape(payload['module'])} does not match {escape(payload['input'])}")
    else:
        target = payload.get('module') or '<stdout>'
        console.print(f"[green]ok[/] {escape(target)} (DSL_HASH {payload['dsl_hash']})")
        if payload.get('catalog'):
            console.print(f"   catalog: {escape(payload['catalog'])}")


def main(argv: list[str] | None = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    if args.check and not args.output:
        ap.error('--check requires -o/--output')
    setup_logging(args.log_level)
    console = Console(stderr=True, soft_wrap=True)

    try:
        config = load_config(
            args.config,
            flush_interval=args.flush_interval,
            runtime_package=args.runtime_package,
            case_fold_labels=False if args.no_case_fold else None,
        )
        text = Path(args.input).read_text(encoding='utf-8')
    except (ConfigError, OSError) as e:
        logger.error("cli.setup_failed error=%s", e)
        _report(console, args.json, {'status': 'error', 'input': args.input, 'error': str(e)})
        return 1

    if args.check:
        fresh = is_up_to_date(text, args.output)
        _report(console, args.json, {
            'status': 'ok' if fresh else 'stale',
            'input': args.input,
            'module': args.output,
            'dsl_hash': compute_dsl_hash(text),
        })
        return 0 if fresh else 1

    kwargs = dict(auto_flush=args.auto_flush, config=config, source_name=args.input)
    payload: dict[str, Any] = {'status': 'ok', 'input': args.input, 'module': args.output,
                               'catalog': args.catalog, 'dsl_hash': compute_dsl_hash(text)}
    try:
        if args.output:
            write_module(text, args.output, **kwargs)
        else:
            source = generate_source(text, **kwargs)
            if args.json:
                payload['source'] = source
            else:
                sys.stdout.write(source)
        if args.catalog:
            body = parse(text, args.input, case_fold_labels=config.case_fold_labels)
            Path(args.catalog).write_text(render_catalog(body), encoding='utf-8')
    except (GenerationError, OSError) as e:
        logger.error("cli.generate_failed input=%s error=%s", args.input, e)
        _report(console, args.json, {'status': 'error', 'input': args.input, 'error': str(e)})
        return 1

    _report(console, args.json, payload)
    return 0


if __name__ == '__main__':
    sys.exit(main())
