"""
Command-line interface for catalog reconciliation.

Usage:
    python -m scripts.reconciliation run
    python -m scripts.reconciliation run --include-medium --dry-run
    python -m scripts.reconciliation run --format json
    python -m scripts.reconciliation analyze --format json --limit 100
    python -m scripts.reconciliation test "Circuito circular"
"""

import argparse
import json
import sys
import logging

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def get_connection():
    """Get database connection from shared config."""
    from db_config import get_connection as _get_connection
    return _get_connection()


def cmd_run(args):
    """Run a reconciliation."""
    from .errors import ReconciliationError
    from .pipeline import ReconciliationEngine
    from .report import print_summary
    from .store import PostgresStore

    conn = get_connection()
    try:
        engine = ReconciliationEngine(
            PostgresStore(conn),
            include_medium=args.include_medium,
            dry_run=args.dry_run,
            workers=args.workers,
        )
        try:
            summary = engine.run()
        except ReconciliationError as e:
            logger.error(f"Reconciliation failed: {e}")
            sys.exit(1)

        if args.format == "json":
            print(json.dumps(summary.to_dict(), indent=2, default=str))
        else:
            print_summary(summary)
            for u in summary.sample_unmatched:
                print(f"  NO MAPPING: [{u.entry.id}] {u.entry.raw_name} ({u.entry.procedure_tag})")
    finally:
        conn.close()


def cmd_analyze(args):
    """Similarity diagnostic report (read-only)."""
    from .diagnostics import run_similarity_report
    from .errors import ReconciliationError
    from .store import PostgresStore

    conn = get_connection()
    try:
        try:
            report = run_similarity_report(PostgresStore(conn))
        except ReconciliationError as e:
            logger.error(f"Similarity report failed: {e}")
            sys.exit(1)

        data = report.to_dict(limit=args.limit)
        if args.format == "json":
            print(json.dumps(data, indent=2, default=str))
            return

        stats = data["estadisticas"]
        print(f"\n{'='*60}")
        print("SIMILARITY REPORT")
        print(f"{'='*60}")
        print(f"  Legacy entries: {stats['total_registros']:,}")
        print(f"  Catalog items:  {stats['total_catalogo']:,}")
        for tier, count in stats["por_nivel"].items():
            print(f"    {tier:8s} {count:>8,}")
        print()
        for row in data["resultados"]:
            print(f"  {row['similitud_porcentaje']:>3}%  {row['nivel']:6s}  "
                  f"{row['legacy_nombre']}  ->  {row['catalogo_nombre']}")
        print()
    finally:
        conn.close()


def cmd_test_match(args):
    """Test matching a single name against the live catalog."""
    from .classifier import classify_all
    from .matcher import CatalogIndex, CatalogMatcher
    from .models import LegacyEntry
    from .store import PostgresStore

    conn = get_connection()
    try:
        index = CatalogIndex(PostgresStore(conn).load_catalog())
        entry = LegacyEntry(id="cli", raw_name=args.name, procedure_tag=args.tag or "")
        result = CatalogMatcher(index).match(entry)

        print(f"\n{'='*60}")
        print("MATCH TEST")
        print(f"{'='*60}")
        print(f"  Input:      {args.name}")
        print(f"  Normalized: {result.normalized}")
        print(f"  Pre-filtered candidates: {result.evaluated}")
        print()

        if result.matched:
            for m in classify_all(result.candidates):
                print(f"  {m.score:.4f}  {m.tier:6s} {m.action:7s} [{m.item.id}] {m.item.name}")
        else:
            print("  NO MATCH FOUND")
        print()
    finally:
        conn.close()


def main():
    parser = argparse.ArgumentParser(
        description="Legacy supply list -> catalog reconciliation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m scripts.reconciliation run --dry-run
  python -m scripts.reconciliation run --include-medium
  python -m scripts.reconciliation analyze --limit 50
  python -m scripts.reconciliation test "CAL SODADA"
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Run command
    run_parser = subparsers.add_parser('run', help='Reconcile and merge into the configuration store')
    run_parser.add_argument('--include-medium', action='store_true',
                            help='Also merge medium-confidence (review) matches')
    run_parser.add_argument('--dry-run', '-n', action='store_true', help='Plan only, write nothing')
    run_parser.add_argument('--workers', '-w', type=int, default=1, help='Matcher threads')
    run_parser.add_argument('--format', '-f', choices=['summary', 'json'],
                            default='summary', help='Output format')
    run_parser.set_defaults(func=cmd_run)

    # Analyze command
    analyze_parser = subparsers.add_parser('analyze', help='Similarity diagnostic report')
    analyze_parser.add_argument('--limit', type=int, help='Limit result rows shown')
    analyze_parser.add_argument('--format', '-f', choices=['summary', 'json'],
                                default='summary', help='Output format')
    analyze_parser.set_defaults(func=cmd_analyze)

    # Test command
    test_parser = subparsers.add_parser('test', help='Test matching a single name')
    test_parser.add_argument('name', help='Supply name to match')
    test_parser.add_argument('--tag', '-t', help='Procedure tag')
    test_parser.set_defaults(func=cmd_test_match)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == '__main__':
    main()
