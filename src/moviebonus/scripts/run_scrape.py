"""Run the bonus pipeline (or just the now-showing tracker) from the command line."""

import argparse
import asyncio
import logging
import sys

from moviebonus.scrapers.models import NowShowingResult
from moviebonus.scrapers.now_showing import run_now_showing_tracker
from moviebonus.schemas import NowShowingResponse, ScrapeRunResponse
from moviebonus.tasks.scrape_job import PipelineResult, run_scrape_pipeline


def print_pipeline_report(result: PipelineResult) -> None:
    print(f"Catalog: {len(result.catalog)} movies, {result.matched_movies} with bonuses\n")

    for bonus in result.all_bonuses:
        print(f"  [{bonus.theater_name}] {bonus.movie_title}  week {bonus.week}: {bonus.description}")

    if result.missing_movies:
        print(f"\nNot in catalog ({len(result.missing_movies)}):")
        for movie in result.missing_movies:
            tag = " (rerelease)" if movie.is_rerelease else ""
            print(f"  - {movie.title}{tag}")

    if result.errors:
        print(f"\nErrors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  - {error}")


def print_now_showing_report(result: NowShowingResult) -> None:
    for heading, movies in (("Now showing", result.now_showing), ("Upcoming", result.upcoming)):
        print(f"{heading} ({len(movies)}):")
        for movie in movies:
            date_part = f"  {movie.release_date}" if movie.release_date else ""
            tag = "  [rerelease]" if movie.is_rerelease else ""
            print(f"  - {movie.title}{date_part}{tag}")
        print()

    for error in result.errors:
        print(f"ERROR: {error}")


async def run(now_showing_only: bool, as_json: bool) -> bool:
    """Run the requested job, print its report and return True when error-free."""
    if now_showing_only:
        tracker_result = await run_now_showing_tracker()
        if as_json:
            print(NowShowingResponse.model_validate(tracker_result, from_attributes=True).model_dump_json(indent=2))
        else:
            print_now_showing_report(tracker_result)
        return not tracker_result.errors

    result = await run_scrape_pipeline()
    if as_json:
        print(ScrapeRunResponse.from_pipeline(result).model_dump_json(indent=2))
    else:
        print_pipeline_report(result)
    return not result.errors


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Scrape Taiwan theater chains for entry bonuses and merge them into the catalog."
    )
    parser.add_argument(
        "--now-showing",
        action="store_true",
        help="Only scrape the now-showing and upcoming listings",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON instead of a text report",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    ok = asyncio.run(run(args.now_showing, args.json))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
