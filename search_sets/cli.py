#!/usr/bin/env python3
# Bonsai - OpenBIM Blender Add-on
# Copyright (C) 2025 Your Engineering Firm
#
# This file is part of Bonsai.
#
# Bonsai is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Qualified Path: search_sets/cli.py

Search Sets CLI - Standalone search set creation for IFC federations
---------------------------------------------------------------------
Runs the classification engine outside Blender.

Usage:
    search-sets disciplines \
        --files Tower_ARCH_01.ifc Tower_STRC_01.ifc Annex_MEP_02.ifc \
        --database terminal1_sets.db

    search-sets element-sets --parameter Category \
        --files ... --database terminal1_sets.db --disciplines ARCH STRC

    search-sets scan --files ... --database terminal1_sets.db --disciplines ARCH
    search-sets custom-sets --category Pset_WallCommon --attribute FireRating \
        --files ... --database terminal1_sets.db

    search-sets list --database terminal1_sets.db
"""

import argparse
import json
import logging
import sqlite3
import sys
import time
from pathlib import Path
from typing import List, Optional

from .engine import ClassificationEngine, OperationSummary
from .errors import DisciplinesNotBuilt, SearchSetError
from .hierarchy import LeafPolicy
from .model import SavedItem
from .properties import SetParameter

# Schema version of the JSON run report
REPORT_VERSION = "1.0.0"


def write_report(path: Path, summary: Optional[OperationSummary], started: float,
                 error: Optional[str] = None) -> None:
    """Write a JSON run report"""
    report = {
        "schema_version": REPORT_VERSION,
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        "status": "failed" if error else "completed",
        "duration_seconds": round(time.time() - started, 2),
    }
    if summary is not None:
        report.update(summary.to_dict())
    if error:
        report["error"] = error

    with open(path, 'w') as f:
        json.dump(report, f, indent=2)


def print_summary(summary: OperationSummary, duration: float) -> None:
    """Print final summary to console"""
    print("\n" + "=" * 60)
    print(f"SEARCH SETS: {summary.operation.upper().replace('_', ' ')}")
    print("=" * 60)
    if summary.operation == "scan":
        print(f"Categories:       {summary.created}")
    else:
        print(f"Sets Created:     {summary.created}")
    print(f"Duration:         {duration:.1f} seconds")
    if summary.disciplines:
        print("\nPer-Discipline:")
        print("-" * 60)
        for discipline, count in summary.disciplines.items():
            print(f"  {discipline:<20} {count:>6}")
    if summary.catalog:
        print("\nProperties:")
        print("-" * 60)
        for category, attributes in summary.catalog.items():
            print(f"  {category}")
            for attribute in attributes:
                print(f"      {attribute}")
    if summary.skipped:
        print(f"\nSkipped:          {', '.join(summary.skipped)}")
    if summary.diagnostics:
        print(f"Diagnostics:      {len(summary.diagnostics)} (run with --verbose for details)")
        for line in summary.diagnostics:
            logging.getLogger(__name__).debug(line)
    print("=" * 60 + "\n")


def print_tree(items: List[SavedItem], indent: int = 0) -> None:
    for item in items:
        if item.is_group:
            print(f"{'  ' * indent}[{item.name}]")
            print_tree(item.children, indent + 1)
        else:
            print(f"{'  ' * indent}{item.name}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="search-sets",
        description="Create discipline and property search sets for IFC federations",
    )
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--files', nargs='+', required=True, help='IFC file paths in the federation')
    common.add_argument('--database', required=True, help='SQLite search set database path')
    common.add_argument('--report', help='Optional JSON report file path')

    selection = argparse.ArgumentParser(add_help=False)
    selection.add_argument(
        '--disciplines',
        nargs='+',
        help='Disciplines to process (default: all discipline sets)'
    )

    policy = argparse.ArgumentParser(add_help=False)
    policy.add_argument(
        '--duplicates',
        choices=[p.value for p in LeafPolicy],
        default=LeafPolicy.APPEND.value,
        help='What to do with a set whose name already exists in its folder'
    )

    subparsers.add_parser('disciplines', parents=[common],
                          help='Create discipline search sets from file name patterns')

    element_sets = subparsers.add_parser('element-sets', parents=[common, selection, policy],
                                         help='Create one set per parameter value per discipline')
    element_sets.add_argument(
        '--parameter',
        choices=[p.value for p in SetParameter],
        default=SetParameter.CATEGORY.value,
        help='Parameter to split disciplines by'
    )

    scan = subparsers.add_parser('scan', parents=[common, selection],
                                 help='List property categories and names found in disciplines')
    scan.add_argument('--max-roots', type=int, default=500,
                      help='Elements sampled per discipline')
    scan.add_argument('--max-nodes', type=int, default=50,
                      help='Nodes sampled below each element')

    custom_sets = subparsers.add_parser('custom-sets', parents=[common, selection, policy],
                                        help='Create one set per value of any property')
    custom_sets.add_argument('--category', required=True, help='Property category name')
    custom_sets.add_argument('--attribute', required=True, help='Property name')

    list_sets = subparsers.add_parser('list', help='Print saved folders and sets')
    list_sets.add_argument('--database', required=True, help='SQLite search set database path')

    return parser


def run(args: argparse.Namespace) -> OperationSummary:
    from .ifc_host import IfcSearchSetHost

    host = IfcSearchSetHost([Path(f) for f in args.files], Path(args.database))
    engine = ClassificationEngine(
        host,
        leaf_policy=LeafPolicy(getattr(args, 'duplicates', LeafPolicy.APPEND.value)),
        scan_max_roots=getattr(args, 'max_roots', None),
        scan_max_nodes_per_root=getattr(args, 'max_nodes', None),
    )

    if args.command == 'disciplines':
        return engine.build_disciplines()

    disciplines = args.disciplines or engine.discipline_names
    if not disciplines:
        raise DisciplinesNotBuilt()
    if args.command == 'element-sets':
        return engine.build_attribute_sets(args.parameter, disciplines)
    if args.command == 'scan':
        return engine.scan_properties(disciplines)
    return engine.build_custom_sets(args.category, args.attribute, disciplines)


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line interface"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    if args.command == 'list':
        from .store import SetStore

        db_path = Path(args.database)
        if not db_path.exists():
            print(f"ERROR: Database not found: {db_path}")
            return 1
        try:
            items = SetStore(db_path).load_tree()
        except (ValueError, sqlite3.Error) as e:
            print(f"ERROR: {e}")
            return 1
        print_tree(items)
        return 0

    # Validate input files exist
    for file_path in args.files:
        if not Path(file_path).exists():
            print(f"ERROR: File not found: {file_path}")
            return 1

    started = time.time()
    try:
        summary = run(args)
    except Exception as e:
        error = str(e) if isinstance(e, SearchSetError) else f"{type(e).__name__}: {e}"
        logging.getLogger(__name__).debug("Run failed", exc_info=True)
        print(f"ERROR: {error}")
        if args.report:
            write_report(Path(args.report), None, started, error=error)
        return 1

    print_summary(summary, time.time() - started)
    if args.report:
        write_report(Path(args.report), summary, started)
    return 0


if __name__ == "__main__":
    sys.exit(main())
