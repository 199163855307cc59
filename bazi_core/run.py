"""
CLI wrapper for compute_bazi_chart().

Usage:
    bazi-chart --birth-date YYYY-MM-DD --birth-time HH:MM --gender GENDER \
        [--longitude LON] [--latitude LAT] [--utc-offset OFFSET | --detect-offset] \
        [--provider swisseph|lunar] [--verbose]
"""

import argparse
import json
import logging
import sys

from bazi_core.astro_calendar import parse_moment
from bazi_core.config import get_settings
from bazi_core.create_chart import compute_bazi_chart, utc_offset_for
from bazi_core.errors import BaziError, InvalidChartInput
from bazi_core.providers import PROVIDERS, get_provider

logger = logging.getLogger(__name__)

EXIT_INPUT_ERROR = 1
EXIT_PROVIDER_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute a BaZi chart and its first luck pillar.")
    parser.add_argument("--birth-date", required=True, dest="birth_date")
    parser.add_argument("--birth-time", required=True, dest="birth_time")
    parser.add_argument("--gender", required=True, choices=["male", "female"])
    parser.add_argument("--longitude", type=float, default=None)
    parser.add_argument("--latitude", type=float, default=None)
    offset = parser.add_mutually_exclusive_group()
    offset.add_argument("--utc-offset", dest="utc_offset", type=float, default=None)
    offset.add_argument("--detect-offset", dest="detect_offset", action="store_true",
                        help="derive the standard UTC offset from --latitude/--longitude")
    parser.add_argument("--provider", default=None, choices=sorted(PROVIDERS))
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main(argv=None):
    settings = get_settings()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        utc_offset = args.utc_offset
        if args.detect_offset:
            if args.latitude is None or args.longitude is None:
                raise InvalidChartInput("--detect-offset needs --latitude and --longitude")
            moment = parse_moment(args.birth_date, args.birth_time)
            utc_offset, tz_name, dst = utc_offset_for(args.latitude, args.longitude, moment)
            logger.info("Detected %s (standard UTC%+g%s)", tz_name or "no zone", utc_offset,
                        ", DST stripped" if dst else "")

        result = compute_bazi_chart(
            birth_date=args.birth_date,
            birth_time=args.birth_time,
            gender=args.gender,
            longitude=args.longitude,
            latitude=args.latitude,
            utc_offset=utc_offset,
            provider=get_provider(args.provider, utc_offset=utc_offset),
        )
    except InvalidChartInput as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except BaziError as e:
        logger.error("Chart computation failed: %s", e)
        return EXIT_PROVIDER_ERROR

    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
