"""
Command line entry point

Usage:
    smartwebp convert SRC [SRC ...] [--force] [--quality Q] [--out-dir DIR] [--diff]
    smartwebp analyze SRC [SRC ...]

Sources may be local file paths or http(s) URLs. Each source is processed
independently; the exit status is 1 if any of them failed.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Set

from smartwebp.core.errors import ConversionError, FetchError
from smartwebp.core.logger import get_logger
from smartwebp.models.entities import ConversionOutcome
from smartwebp.services.image_service import ImageService

logger = get_logger(__name__)


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _read_source(service: ImageService, source: str) -> bytes:
    if _is_url(source):
        return service.fetcher.fetch(source)
    try:
        return Path(source).read_bytes()
    except OSError as exc:
        raise FetchError(f"Cannot read {source}: {exc}") from exc


def _source_stem(source: str) -> str:
    name = source.rstrip("/").rsplit("/", 1)[-1] if _is_url(source) else Path(source).name
    stem = Path(name.split("?", 1)[0]).stem
    return stem or "image"


def _claim_stem(source: str, taken: Set[str]) -> str:
    """Unique output stem within one run; repeated stems get -1, -2, ... suffixes"""
    base = _source_stem(source)
    stem, n = base, 0
    while stem in taken:
        n += 1
        stem = f"{base}-{n}"
    taken.add(stem)
    return stem


def _write_outputs(
    outcome: ConversionOutcome, stem: str, out_dir: Path, write_diff: bool
) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    target = out_dir / f"{stem}.webp"
    target.write_bytes(outcome.result.encoded_bytes)
    if write_diff and outcome.diff_bytes:
        (out_dir / f"{stem}.diff.png").write_bytes(outcome.diff_bytes)
    return target


def _format_outcome(source: str, outcome: ConversionOutcome, target: Path) -> str:
    result = outcome.result
    flag = "ok" if result.accepted else "REVIEW"
    return (
        f"[{flag}] {source} → {target} "
        f"strategy={result.strategy_tag} q={result.quality_used} "
        f"ssim={result.ssim_score:.4f} "
        f"{outcome.original_size / 1024:.1f}KB → {result.size_bytes / 1024:.1f}KB "
        f"({outcome.reduction_percent}% smaller)"
    )


def run_convert(args: argparse.Namespace, service: ImageService) -> int:
    failures = 0
    taken: Set[str] = set()
    for source in args.sources:
        try:
            original = _read_source(service, source)
            if args.quality is not None:
                outcome = service.retry_bytes_at_quality(original, args.quality)
            else:
                outcome = service.convert_bytes(original, force=args.force)
            target = _write_outputs(
                outcome, _claim_stem(source, taken), args.out_dir, args.diff
            )
            print(_format_outcome(source, outcome, target))
        except ConversionError as e:
            failures += 1
            logger.debug(f"Conversion failed for {source}", exc_info=True)
            print(f"[error] {source}: {e}", file=sys.stderr)
    return 1 if failures else 0


def run_analyze(args: argparse.Namespace, service: ImageService) -> int:
    failures = 0
    for source in args.sources:
        try:
            original = _read_source(service, source)
            analysis = service.converter.analyzer.analyze(original)
            print(
                f"{source}: {analysis.width}x{analysis.height} {analysis.format} "
                f"{analysis.size / 1024:.1f}KB entropy={analysis.entropy:.3f} "
                f"mean={analysis.mean:.1f} class={analysis.classification} "
                f"→ {analysis.recommendation} ({analysis.reason})"
            )
        except ConversionError as e:
            failures += 1
            print(f"[error] {source}: {e}", file=sys.stderr)
    return 1 if failures else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smartwebp",
        description="Content-adaptive WebP conversion with an SSIM quality floor",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Convert images to WebP")
    convert.add_argument("sources", nargs="+", help="Image paths or http(s) URLs")
    convert.add_argument(
        "--force",
        action="store_true",
        help="Convert even already-optimized WebP sources",
    )
    convert.add_argument(
        "--quality",
        type=int,
        default=None,
        help="Encode once at this quality instead of searching (0-100)",
    )
    convert.add_argument(
        "--out-dir",
        type=Path,
        default=Path("."),
        help="Directory for converted files (default: current directory)",
    )
    convert.add_argument(
        "--diff",
        action="store_true",
        help="Also write <name>.diff.png next to each output",
    )

    analyze = sub.add_parser("analyze", help="Classify images without converting")
    analyze.add_argument("sources", nargs="+", help="Image paths or http(s) URLs")

    return parser


def main(argv: Optional[List[str]] = None, service: Optional[ImageService] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "quality", None) is not None and not 0 <= args.quality <= 100:
        parser.error("--quality must be between 0 and 100")

    service = service or ImageService()
    if args.command == "convert":
        return run_convert(args, service)
    return run_analyze(args, service)


if __name__ == "__main__":
    raise SystemExit(main())
