"""
Batch parsing runner for Syllabus Parser.

Parses every supported file in a folder (default: DATA_DIR/raw) and writes
one <name>.json result next to it in DATA_DIR/parsed, or DATA_DIR/failed
for documents that could not be parsed.
"""
import argparse
import asyncio
import json
import mimetypes
from pathlib import Path

from syllabus_parser.core.config import settings
from syllabus_parser.models.document import DocumentBlob
from syllabus_parser.services.parsing_service import ParsingService
from syllabus_parser.services.provider_catalog import get_provider_catalog
from syllabus_parser.utils.extractors.format_detector import EXTENSIONS
from syllabus_parser.utils.logger import get_logger

logger = get_logger(__name__)


async def parse_folder(source_dir: Path, output_dir: Path) -> int:
    """
    Returns:
        Number of documents that failed
    """
    parsed_dir = output_dir / "parsed"
    failed_dir = output_dir / "failed"
    parsed_dir.mkdir(parents=True, exist_ok=True)
    failed_dir.mkdir(parents=True, exist_ok=True)

    if not source_dir.exists():
        logger.warning(f"Source directory '{source_dir}' does not exist. Nothing to parse.")
        return 0

    items = sorted(p for p in source_dir.iterdir() if p.is_file() and p.suffix.lower() in EXTENSIONS)
    if not items:
        logger.info(f"Source directory '{source_dir}' has no supported files. Nothing to parse.")
        return 0

    await get_provider_catalog().refresh()
    service = ParsingService()

    failures = 0
    for item in items:
        logger.info(f"Parsing: {item.name}")
        blob = DocumentBlob(
            data=item.read_bytes(),
            mime_type=mimetypes.guess_type(item.name)[0] or "",
            filename=item.name,
        )
        result = await service.parse(blob)

        target_dir = parsed_dir if result.success else failed_dir
        failures += 0 if result.success else 1
        target = target_dir / f"{item.stem}.json"
        target.write_text(json.dumps(result.to_response(), indent=2), encoding="utf-8")

        if result.success:
            logger.info(f"{item.name}: confidence={result.confidence:.2f} -> {target}")
        else:
            logger.error(f"{item.name}: {'; '.join(result.errors or [])}")

    logger.info(f"Done: {len(items) - failures} parsed, {failures} failed")
    return failures


def main() -> None:
    parser = argparse.ArgumentParser(description="Parse every syllabus in a folder")
    parser.add_argument("source", nargs="?", type=Path, default=settings.DATA_DIR / "raw")
    parser.add_argument("--output", type=Path, default=settings.DATA_DIR)
    args = parser.parse_args()

    failures = asyncio.run(parse_folder(args.source, args.output))
    raise SystemExit(1 if failures else 0)


if __name__ == "__main__":
    main()
