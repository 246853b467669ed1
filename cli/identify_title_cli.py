#!/usr/bin/env python3
"""
Identify a movie or TV show from an image.

This script takes an image (a local file or a URL), downsizes and
re-encodes it as JPEG, asks a vision-capable chat model to name the movie
or show it comes from, and then enriches the title with details from The
Movie Database (TMDB): year, rating, genres, runtime or season counts,
poster, top-billed cast and the best YouTube trailer.

Usage:
    python cli/identify_title_cli.py --image <path>
    python cli/identify_title_cli.py --url <image url>

Arguments:
    --image: Path to the image file
    --url: URL of the image to download
    --no-details: Only print the recognized title, skip the TMDB lookup
    --model: Recognition model override
    --verbose: Enable debug logging

Output:
    Prints the title followed by the TMDB details when available.
    Prints an apology when the model could not name the title.
    Exits with code 1 on configuration, image or recognition errors.

Dependencies:
    - MISTRAL_API_KEY environment variable must be set for recognition
    - TMDB_API_KEY (and optionally TMDB_READ_ACCESS_TOKEN) for details
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

try:
    from cli.lib.image_source import FileImageSource, ImageSourceError, fetch_image_from_url
    from cli.lib.pipeline import IdentificationResult, TitleIdentifier
    from cli.lib.settings import (
        get_recognition_api_key,
        get_recognition_endpoint,
        get_recognition_model,
        get_tmdb_service,
    )
except ImportError:
    from lib.image_source import FileImageSource, ImageSourceError, fetch_image_from_url
    from lib.pipeline import IdentificationResult, TitleIdentifier
    from lib.settings import (
        get_recognition_api_key,
        get_recognition_endpoint,
        get_recognition_model,
        get_tmdb_service,
    )


def format_result(result: IdentificationResult) -> list[str]:
    """
    Render a successful identification as output lines.

    The first line is always the title (or the apology for an unknown
    title); detail lines follow only for fields TMDB returned.
    """
    if result.is_unknown:
        return [result.display_text]

    lines = [f"Title: {result.title}"]
    details = result.media_details
    if details is not None:
        if details.year:
            lines.append(f"Year: {details.year}")
        if details.vote_average is not None:
            lines.append(f"Rating: {details.vote_average:.1f}/10")
        if details.genres:
            lines.append(f"Genres: {', '.join(details.genres)}")
        if details.is_movie:
            if details.runtime:
                lines.append(f"Runtime: {details.runtime} min")
        else:
            if details.number_of_seasons is not None:
                lines.append(f"Seasons: {details.number_of_seasons}")
            if details.number_of_episodes is not None:
                lines.append(f"Episodes: {details.number_of_episodes}")
            if details.episode_run_time:
                lines.append(f"Episode runtime: {details.episode_run_time[0]} min")
        if details.overview:
            lines.append(f"Overview: {details.overview}")
        if details.poster_url:
            lines.append(f"Poster: {details.poster_url}")
        if details.cast:
            lines.append("Cast:")
            for member in details.cast:
                if member.character:
                    lines.append(f"  {member.name} as {member.character}")
                else:
                    lines.append(f"  {member.name}")
        if details.trailer_url:
            lines.append(f"Trailer: {details.trailer_url}")
    elif result.lookup_error is not None:
        lines.append(f"Note: {result.lookup_error.describe()}")

    share = result.share_text()
    if share:
        lines.append(f"Share: {share}")
    return lines


def main():
    """
    Movie/TV identification CLI entry point.

    Behavior:
    - Builds an image source from --image (read lazily) or --url (downloaded).
    - Loads configuration from the environment (.env supported).
    - Runs the identify-then-enrich pipeline on an asyncio event loop.
    - Prints the result; errors go to stderr with exit code 1.

    Exit Codes:
    - 0: A title was recognized, or the model answered "Unknown".
    - 1: Missing API key, unreadable or undecodable image, download failure
         or recognition error.
    """
    parser = argparse.ArgumentParser(description="Identify a movie or TV show from an image")
    source_group = parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument("--image", help="Path to the image file")
    source_group.add_argument("--url", help="URL of the image to identify")
    parser.add_argument("--no-details", action="store_true", help="Skip the movie database lookup")
    parser.add_argument("--model", help="Recognition model to use instead of the configured one")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.image and not Path(args.image).is_file():
        print(f"Image file not found: {args.image}", file=sys.stderr)
        sys.exit(1)

    try:
        api_key = get_recognition_api_key()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.url:
        try:
            source = fetch_image_from_url(args.url)
        except ImageSourceError as e:
            print(f"Error: {e.cause.describe()}", file=sys.stderr)
            sys.exit(1)
    else:
        source = FileImageSource(Path(args.image))

    tmdb = None if args.no_details else get_tmdb_service()
    identifier = TitleIdentifier(
        api_key,
        tmdb=tmdb,
        model=args.model or get_recognition_model(),
        endpoint=get_recognition_endpoint(),
    )

    result = asyncio.run(identifier.identify_async(source, enrich=not args.no_details))
    if result is None or result.is_error:
        message = result.display_text if result is not None else "Error: Identification was cancelled"
        print(message, file=sys.stderr)
        sys.exit(1)

    for line in format_result(result):
        print(line)


if __name__ == "__main__":
    main()
