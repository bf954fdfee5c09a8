"""CLI interface for query understanding.

Usage:
    python -m enhanced_search <command> "<query>" [options]

Commands:
    analyze     Classify, enhance and plan a query (ProcessedQuery as JSON)
    validate    Report query issues and improvement suggestions
    decompose   Split a multi-part query into sub-queries
"""

import argparse
import asyncio
import json
import sys
import logging
from typing import List, Optional

from .core.config import get_config
from .core.logging_config import configure_logging, level_from_config
from .core.models import QueryContext
from .semantic.query_processor import QueryProcessor
from .utils.error_handler import StructuredError

logger = logging.getLogger(__name__)


def _context_from(args) -> QueryContext:
    return QueryContext(
        language=args.language,
        current_file=args.current_file,
        agent_type=args.agent_type,
    )


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2))


async def cmd_analyze(args, processor: QueryProcessor) -> int:
    """Run full query processing."""
    processed = await processor.process_query(args.query, _context_from(args))
    _print_json(processed.model_dump(mode="json"))
    return 0


async def cmd_validate(args, processor: QueryProcessor) -> int:
    """Validate a query; exit status 1 when it is invalid."""
    result = await processor.validate_query(args.query, _context_from(args))
    _print_json(result.model_dump(mode="json"))
    return 0 if result.is_valid else 1


async def cmd_decompose(args, processor: QueryProcessor) -> int:
    """Decompose a complex query."""
    sub_queries = await processor.decompose_complex_query(args.query, _context_from(args))
    _print_json([sq.model_dump(mode="json") for sq in sub_queries])
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="enhanced-search",
        description="Query understanding CLI for Enhanced Search",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        help='Log level when ENHANCED_SEARCH_LOG_LEVEL / LOG_LEVEL are unset (default: from configuration)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    for name, help_text in (
        ('analyze', 'Classify, enhance and plan a query'),
        ('validate', 'Validate a query and suggest improvements'),
        ('decompose', 'Split a multi-part query into sub-queries'),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('query', type=str, help='Natural-language query')
        sub.add_argument('--language', type=str, default=None, help='Programming language context')
        sub.add_argument('--current-file', type=str, default=None, help='File the agent is working in')
        sub.add_argument(
            '--agent-type',
            type=str,
            default=None,
            help='Calling agent type (e.g. code_review, debugging)'
        )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(args.log_level or level_from_config(get_config()))

    # Command dispatch
    commands = {
        'analyze': cmd_analyze,
        'validate': cmd_validate,
        'decompose': cmd_decompose,
    }

    processor = QueryProcessor()
    try:
        return asyncio.run(commands[args.command](args, processor))
    except StructuredError as e:
        logger.error(f"{args.command} failed: {e}")
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Operation cancelled")
        return 1


if __name__ == '__main__':
    sys.exit(main())
