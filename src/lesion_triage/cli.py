#!/usr/bin/env python3
"""
Command line entry point.

Usage:

    lesion-triage classify photo.jpg --url http://localhost:8080 --timeout-ms 5000
    lesion-triage health --url http://localhost:8080
    lesion-triage serve --port 8080 --mode unnormalized
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .client.prediction_client import PredictionClient
from .pipeline.validator import ImageValidator
from .utils.config import Settings, load_settings
from .utils.exceptions import ConfigurationException, ImageValidationException, MalformedResponseException
from .utils.models import PredictionFailure, PredictionOutcome, ServerEndpoint

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_MALFORMED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Skin lesion classification client")
    parser.add_argument("-c", "--config", help="Path to a YAML settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    classify = subparsers.add_parser("classify", help="Classify an image")
    classify.add_argument("image", help="Image file (JPG, PNG, GIF, BMP)")
    classify.add_argument("--url", help="Server base URL")
    classify.add_argument("--timeout-ms", type=int, help="Request deadline in milliseconds")
    classify.add_argument("--top", type=int, default=8, help="Number of candidates to print")
    classify.add_argument("--json", action="store_true", help="Print the result as JSON")

    health = subparsers.add_parser("health", help="Check server connectivity")
    health.add_argument("--url", help="Server base URL")

    serve = subparsers.add_parser("serve", help="Run the development stub server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)
    serve.add_argument("--mode", default="normalized",
                       choices=["normalized", "unnormalized", "failure", "malformed"])

    return parser


def resolve_endpoint(settings: Settings, url: Optional[str] = None,
                     timeout_ms: Optional[int] = None) -> ServerEndpoint:
    """Apply command line overrides to the configured endpoint."""
    return ServerEndpoint(
        base_url=url or settings.endpoint.base_url,
        timeout_millis=timeout_ms or settings.endpoint.timeout_millis
    )


def format_outcome(outcome: PredictionOutcome, top: int = 8) -> str:
    """Render an outcome as plain text."""
    primary = outcome.primary
    lines = [
        f"Prediction: {primary.display_name} [{primary.severity_tier.value} risk] "
        f"{primary.percentage:.1f}%",
        f"  {primary.description}",
        f"  class: {outcome.predicted_class_id} (source: {outcome.provenance.value})",
        "",
    ]
    for candidate in outcome.top(top):
        lines.append(f"  {candidate.percentage:5.1f}%  {candidate.display_name}")
    if len(outcome.candidates) > top:
        lines.append(f"  showing top {top} of {len(outcome.candidates)} classes")
    if outcome.advisory:
        lines.extend(["", f"WARNING: {outcome.advisory}"])
    return "\n".join(lines)


async def run_classify(args, settings: Settings) -> int:
    path = Path(args.image)
    image_bytes = path.read_bytes()

    validator = ImageValidator(max_size=settings.max_image_bytes)
    check = validator.ensure_valid(image_bytes, path.name)

    endpoint = resolve_endpoint(settings, args.url, args.timeout_ms)
    async with PredictionClient() as client:
        result = await client.classify(image_bytes, endpoint, filename=path.name,
                                       content_type=check.content_type)

    if isinstance(result, PredictionFailure):
        if args.json:
            print(json.dumps(result.model_dump(mode='json'), indent=2))
        else:
            print(f"Prediction failed: {result.reason}")
        return EXIT_FAILED

    if args.json:
        print(json.dumps(result.model_dump(mode='json'), indent=2))
    else:
        print(format_outcome(result, args.top))
    return EXIT_OK


async def run_health(args, settings: Settings) -> int:
    endpoint = resolve_endpoint(settings, args.url)
    async with PredictionClient() as client:
        healthy = await client.check_health(endpoint, timeout_millis=settings.health_timeout_millis)
    print(f"Server {endpoint.base_url} is {'available' if healthy else 'not available'}")
    return EXIT_OK if healthy else EXIT_FAILED


def run_serve(args) -> int:
    import uvicorn
    from .devserver import create_app

    uvicorn.run(create_app(args.mode), host=args.host, port=args.port)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigurationException as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILED

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        if args.command == "classify":
            return asyncio.run(run_classify(args, settings))
        if args.command == "health":
            return asyncio.run(run_health(args, settings))
        return run_serve(args)

    except ImageValidationException as e:
        print(f"Invalid image: {e}", file=sys.stderr)
        return EXIT_FAILED
    except MalformedResponseException as e:
        print(json.dumps(e.to_dict(), indent=2, default=str), file=sys.stderr)
        return EXIT_MALFORMED
    except OSError as e:
        print(f"Cannot read image: {e}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
