import argparse
import json
import sys
from typing import Any, Dict, List, Optional

import anyio
from dotenv import load_dotenv

from cosmicdaily.config import Settings, ConfigurationError
from cosmicdaily.constants import SUPPORTED_LANGUAGE_CODES
from cosmicdaily.domain.exceptions import CosmicDailyException
from cosmicdaily.domain.models import FetchResult
from cosmicdaily.interfaces.app import CosmicDailyApp, create_app
from cosmicdaily.logging import init_logging, shutdown_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="cosmicdaily",
        description="Show NASA's Astronomy Picture of the Day.",
    )
    parser.add_argument(
        "--refresh", action="store_true", help="Skip the cache and fetch from the network"
    )
    parser.add_argument(
        "--clear-cache", action="store_true", help="Delete cached records and images first"
    )
    parser.add_argument(
        "--translate",
        metavar="LANG",
        choices=sorted(SUPPORTED_LANGUAGE_CODES),
        help="Translate the explanation (e.g. tr, es, ja)",
    )
    parser.add_argument("--recent", metavar="N", type=int, help="List the N most recent records")
    parser.add_argument("--date", metavar="YYYY-MM-DD", help="Show the record for a given day")
    return parser.parse_args(argv)


def _result_payload(result: FetchResult) -> Dict[str, Any]:
    return {
        "record": result.record.to_wire(),
        "source": result.source.value,
        "state": result.state.value,
        "fetched_at": result.fetched_at,
        "is_stale": result.is_stale,
        "offline": result.offline,
    }


async def run(settings: Settings, args: argparse.Namespace) -> Dict[str, Any]:
    app: CosmicDailyApp
    async with create_app(settings) as app:
        output: Dict[str, Any] = {}

        if args.clear_cache:
            output["removed_files"] = await app.clear_all_caches()

        if args.recent:
            records = await app.fetch_recent(args.recent)
            output["recent"] = [record.to_wire() for record in records]
            return output

        if args.date:
            record = await app.fetch_for_date(args.date)
            output["record"] = record.to_wire()
            explanation = record.explanation
        else:
            result = await app.fetch_record(force_refresh=args.refresh)
            output.update(_result_payload(result))
            explanation = result.record.explanation

        if args.translate and explanation:
            output["translation"] = {
                "language": args.translate,
                "text": await app.translate(explanation, args.translate),
            }
        return output


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    try:
        settings = Settings()
    except ConfigurationError as e:
        # Handle configuration errors gracefully
        print(f"\nConfiguration Error:\n{e}", file=sys.stderr)
        return 1

    args = parse_args(argv)
    init_logging(settings)
    try:
        output = anyio.run(run, settings, args)
    except (CosmicDailyException, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1
    finally:
        shutdown_logging()

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
