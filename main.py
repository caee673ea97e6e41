"""
Federation rankings - command line entry point
"""
import asyncio
import sys
from datetime import date, datetime
from pathlib import Path

from loguru import logger

from app.config import get_settings


def setup_logging(level: str = None, log_dir: str = None):
    """stderr + daily rotating file"""
    settings = get_settings()
    level = level or settings.LOG_LEVEL
    log_dir = Path(log_dir or settings.LOG_DIR)

    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level
    )
    logger.add(
        str(log_dir / "rankings_{time:YYYY-MM-DD}.log"),
        rotation="1 day",
        retention="30 days",
        level="DEBUG"
    )


def parse_day(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


async def generate_snapshot(args) -> int:
    """Snapshot from a JSON export (offline) or from Supabase"""
    if args.data:
        from ranking import RankingCalculator

        calculator = RankingCalculator()
        calculator.load_data(args.data)
        output = args.output or f"ranking_snapshot_{args.date.isoformat()}.json"
        calculator.export_snapshot(output, args.date, title=args.title)
        return 0

    from app.admin.service import AdminService
    from database.supabase_client import FederationDB

    service = AdminService(FederationDB())
    snapshot = await service.generate_snapshot(args.date, args.title, args.description)
    if args.publish:
        await service.publish_snapshot(snapshot["id"])

    logger.info(
        f"Snapshot {snapshot['id']}: {snapshot['athlete_count']} athletes"
        f"{' (published)' if args.publish else ' (draft)'}"
    )
    return 0


def show_points(args) -> int:
    from ranking import InvalidInputError, display_points, points_breakdown

    try:
        breakdown = points_breakdown(args.coefficient, args.rank, args.wins)
    except InvalidInputError as e:
        logger.error(str(e))
        return 2

    print(f"\n=== Coefficient {args.coefficient}, rank {args.rank}, {args.wins} wins ===")
    print(f"  placement: {breakdown['base_points']:g}"
          f"{'' if breakdown['medal_counted'] else ' (medal not counted)'}")
    print(f"  win bonus: {breakdown['bonus_points']:g}")
    print(f"  total:     {display_points(breakdown['points'])}")
    return 0


async def show_stats() -> int:
    from database.supabase_client import FederationDB

    stats = await FederationDB().get_stats()
    print("\n=== Database stats ===")
    for table, count in stats.items():
        print(f"  {table}: {count}")
    return 0


def main(argv=None) -> int:
    """Main function"""
    import argparse

    parser = argparse.ArgumentParser(description="Federation rankings and selections")
    parser.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL)")
    sub = parser.add_subparsers(dest="mode", required=True)

    sub.add_parser("serve", help="Run the API server")

    snap = sub.add_parser("snapshot", help="Generate a ranking snapshot")
    snap.add_argument("--date", type=parse_day, default=date.today(), help="Snapshot date (YYYY-MM-DD)")
    snap.add_argument("--title", default=None)
    snap.add_argument("--description", default=None)
    snap.add_argument("--publish", action="store_true", help="Publish right away")
    snap.add_argument("--data", default=None, help="JSON export to rank offline instead of Supabase")
    snap.add_argument("--output", default=None, help="Output file for --data")

    pts = sub.add_parser("points", help="Points of a single result")
    pts.add_argument("--coefficient", type=int, required=True)
    pts.add_argument("--rank", type=int, required=True)
    pts.add_argument("--wins", type=int, default=0)

    sub.add_parser("stats", help="Database counters")

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.mode == "serve":
        import uvicorn

        settings = get_settings()
        uvicorn.run("app.server:app", host=settings.HOST, port=settings.PORT, log_level="info")
        return 0

    if args.mode == "snapshot":
        return asyncio.run(generate_snapshot(args))

    if args.mode == "points":
        return show_points(args)

    if args.mode == "stats":
        return asyncio.run(show_stats())

    return 1


if __name__ == "__main__":
    sys.exit(main())
