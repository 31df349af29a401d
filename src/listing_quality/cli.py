"""
Command line entry point.

    listing-quality analyze photos/*.jpg --content-type kitchen --format json
    listing-quality diagnose living.jpg --content-type living_room
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import load_config
from .errors import BatchTooLargeError, ConfigurationError, DuplicateImageError, ListingQualityError
from .imaging.pixel_buffer import PixelBuffer
from .reporting.quality_report import QualityReportGenerator
from .scheduling.scheduler import ConcurrencyGatedScheduler, FailedImage, ImageJob
from .scoring.diagnostics import ContentType, SceneDiagnostics, recommend_enhancement
from .scoring.quality_analyzer import QualityAnalyzer

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_USAGE = 2


def setup_logging(level: str = "WARNING"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='[%(asctime)s] %(levelname)s %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='listing-quality',
        description='Technical and compositional quality analysis for listing photos',
    )
    parser.add_argument('--config', type=str, default=None,
                        help='JSON config file with "analysis" and "resources" sections')
    parser.add_argument('--log-level', type=str, default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging verbosity')
    sub = parser.add_subparsers(dest='command')
    sub.required = True

    analyze = sub.add_parser('analyze', help='Score a batch of images')
    analyze.add_argument('paths', nargs='+', help='Image files to analyze')
    analyze.add_argument('--content-type', type=str, default='unknown',
                         help='Category label used for batch grouping')
    analyze.add_argument('--workers', type=int, default=None,
                         help='Worker threads (defaults to the largest resource capacity)')
    analyze.add_argument('--format', choices=['text', 'json'], default='text',
                         help='Output format')
    analyze.add_argument('--progress', action='store_true',
                         help='Show a progress bar')

    diagnose = sub.add_parser('diagnose', help='Scene diagnosis and enhancement settings')
    diagnose.add_argument('paths', nargs='+', help='Image files to diagnose')
    diagnose.add_argument('--content-type', type=str, default=ContentType.LIVING_ROOM.value,
                          choices=[c.value for c in ContentType],
                          help='Room or document type')
    return parser


def _decode(paths: List[str], content_type: str):
    jobs, failed = [], []
    for path in paths:
        try:
            jobs.append(ImageJob(filename=path, pixels=PixelBuffer.load_image(path),
                                 content_type=content_type))
        except ListingQualityError as e:
            logger.warning(f"Skipping {path}: {e}")
            failed.append(FailedImage(filename=path, error_type=type(e).__name__, message=str(e)))
    return jobs, failed


def print_text_report(result, decode_failures: List[FailedImage]):
    for outcome in sorted(result.succeeded, key=lambda o: o.filename):
        report = outcome.report
        print(f"{outcome.filename}: overall {report.overall_score:.2f} "
              f"(composition {outcome.analysis.composition_score:.2f})")
        for issue in report.issues:
            print(f"  [{issue.severity.value}] {issue.description}")
        for text in report.recommendations:
            print(f"    - {text}")

    for failure in decode_failures + sorted(result.failed, key=lambda f: f.filename):
        print(f"{failure.filename}: FAILED ({failure.error_type}: {failure.message})")

    batch = result.report
    dist = batch.quality_distribution
    print()
    print(f"Batch score: {batch.overall_batch_score:.3f} over {batch.total_images} images")
    print(f"Distribution: excellent={dist.excellent} good={dist.good} fair={dist.fair} poor={dist.poor}")
    if batch.recommendations:
        print("Top recommendations:")
        for text in batch.recommendations[:5]:
            print(f"  - {text}")


def run_analyze(args, config) -> int:
    jobs, decode_failures = _decode(args.paths, args.content_type)
    analyzer = QualityAnalyzer(config.analysis)

    with ConcurrencyGatedScheduler(analyzer=analyzer,
                                   report_generator=QualityReportGenerator(),
                                   limits=config.resources,
                                   max_workers=args.workers) as scheduler:
        result = scheduler.run_batch(jobs, show_progress=args.progress)

    if args.format == 'json':
        payload = result.to_dict()
        payload["failed"] = [f.to_dict() for f in decode_failures] + payload["failed"]
        print(json.dumps(payload, indent=2))
    else:
        print_text_report(result, decode_failures)

    return EXIT_FAILURES if (result.failed or decode_failures) else EXIT_OK


def run_diagnose(args, config) -> int:
    diagnostics = SceneDiagnostics(config.analysis)
    status = EXIT_OK
    for path in args.paths:
        try:
            image = PixelBuffer.load_image(path)
        except ListingQualityError as e:
            logger.warning(f"Skipping {path}: {e}")
            status = EXIT_FAILURES
            continue
        diagnosis = diagnostics.diagnose(image)
        settings = recommend_enhancement(args.content_type, diagnosis)
        print(json.dumps({
            "filename": path,
            "diagnosis": diagnosis.to_dict(),
            "enhancement": settings.to_dict(),
        }, indent=2))
    return status


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.command == 'analyze':
        if args.workers is not None and args.workers < 1:
            parser.error("--workers must be at least 1")
        try:
            return run_analyze(args, config)
        except (BatchTooLargeError, DuplicateImageError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_USAGE
    return run_diagnose(args, config)


if __name__ == '__main__':
    sys.exit(main())
