"""
CLI wrapper for compute_chart() and score_timeline().

Usage:
    suimei --birth-date YYYY-MM-DD [--birth-time HH:MM] --gender GENDER \
        [--timezone ZONE | --latitude LAT --longitude LON] \
        [--zi-hour same_day|next_day] [--timeline START END] [--verbose]
"""

import argparse
import json
import logging
import sys
from dataclasses import replace

from suimei.astro_calendar import SwissEphemerisCalendar, timezone_for
from suimei.chart import compute_chart, score_timeline
from suimei.config import EngineConfig, ZiHourConvention
from suimei.errors import SuimeiError


def _parse_date(value):
    try:
        year, month, day = (int(part) for part in value.split("-"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{value}'") from None
    return year, month, day


def _parse_time(value):
    try:
        hour, minute = (int(part) for part in value.split(":"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected HH:MM, got '{value}'") from None
    return hour, minute


def build_parser():
    parser = argparse.ArgumentParser(prog="suimei", description="Compute a Four Pillars chart.")
    parser.add_argument("--birth-date", required=True, dest="birth_date", type=_parse_date)
    parser.add_argument("--birth-time", dest="birth_time", type=_parse_time, default=None,
                        help="local clock time; omit when unknown")
    parser.add_argument("--gender", required=True, choices=["male", "female"])
    parser.add_argument("--timezone", default=None, help="IANA timezone of the birth clock time")
    parser.add_argument("--latitude", type=float, default=None)
    parser.add_argument("--longitude", type=float, default=None)
    parser.add_argument("--zi-hour", dest="zi_hour", default=None,
                        choices=[c.value for c in ZiHourConvention])
    parser.add_argument("--timeline", nargs=2, type=int, metavar=("START", "END"), default=None)
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if (args.latitude is None) != (args.longitude is None):
        parser.error("--latitude and --longitude must be given together")

    config = EngineConfig.from_env()
    if args.zi_hour:
        config = replace(config, zi_hour_convention=ZiHourConvention(args.zi_hour))

    year, month, day = args.birth_date
    hour, minute = args.birth_time if args.birth_time else (None, None)

    try:
        if args.timezone:
            config = replace(config, timezone=args.timezone)
        elif args.latitude is not None:
            config = replace(config, timezone=timezone_for(args.latitude, args.longitude))

        calendar = SwissEphemerisCalendar.from_config(config)
        chart = compute_chart(year, month, day, hour, minute, args.gender,
                              calendar=calendar, config=config)
    except SuimeiError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    result = {"timezone": config.timezone, "chart": chart.to_dict()}
    if args.timeline:
        start, end = args.timeline
        result["timeline"] = [entry.to_dict() for entry in score_timeline(chart, start, end)]

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
