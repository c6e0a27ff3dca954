"""Command-line interface for scanning payment slips.

Subcommands:

* ``scan`` runs the full pipeline on one document and prints the record.
* ``extract`` runs only the field extractors over a saved OCR text dump.
* ``batch`` scans every document in a folder concurrently into a CSV.
"""

import argparse
import csv
import json
import sys
import time
from concurrent.futures import Future
from pathlib import Path

from pydantic import ValidationError

from slipscan.errors import ExtractionIncomplete, ScanError
from slipscan.extraction.engine import FieldExtractor
from slipscan.pipeline import ScanReconciliationPipeline
from slipscan.records import PartialBillingRecord, ReconciledBillingRecord
from slipscan.utils.config import ExtractionConfig, load_config
from slipscan.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

EXIT_OCR_ERROR = 1
EXIT_INCOMPLETE = 2

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.tiff", "*.tif", "*.pdf")
_CSV_COLUMNS = [
    "filename",
    "status",
    "amount",
    "due_date",
    "payee_name",
    "reference_code",
    "processing_time_s",
    "error",
]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported slip files in a directory, sorted by name."""
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _parse_user_data(data: str | None) -> PartialBillingRecord | None:
    """Parse the ``--data`` JSON object into a partial record."""
    if not data:
        return None
    return PartialBillingRecord.model_validate_json(data)


def _record_row(record: ReconciledBillingRecord) -> dict[str, object]:
    return {
        key: value
        for key, value in record.model_dump(mode="json").items()
        if key in _CSV_COLUMNS
    }


def scan_file(
    file_path: Path,
    pipeline: ScanReconciliationPipeline,
    user_partial: PartialBillingRecord | None = None,
) -> ReconciledBillingRecord:
    """Scan one document and wait for the result."""
    future = pipeline.submit(file_path, user_partial)
    return future.result()


def extract_text_file(
    text_path: Path, config: ExtractionConfig | None = None
) -> dict[str, object]:
    """Run the extractors over an OCR text dump.

    Returns:
        Mapping of field name to ``{"value", "strategy", "rule"}`` or
        ``None`` for fields that were not found, plus the merged record.
    """
    result = FieldExtractor(config).extract(text_path.read_text(encoding="utf-8"))
    fields: dict[str, object] = {}
    for name, found in result.fields.items():
        fields[name] = (
            None
            if found is None
            else {
                "value": str(found.value),
                "strategy": found.strategy.value,
                "rule": found.rule,
            }
        )
    return {
        "filename": text_path.name,
        "fields": fields,
        "record": result.record.model_dump(mode="json"),
    }


def process_folder(
    input_dir: Path,
    output_csv: Path,
    pipeline: ScanReconciliationPipeline,
    verbose: bool = False,
) -> dict[str, int]:
    """Scan every slip in a folder concurrently and write one CSV row each.

    Returns:
        Summary dict with total, successful and failed counts.
    """
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to scan", len(files))
    submitted: dict[Path, float] = {}
    finished: dict[Path, float] = {}
    futures: list[tuple[Path, Future[ReconciledBillingRecord]]] = []
    for path in files:
        submitted[path] = time.time()
        future = pipeline.submit(path)
        future.add_done_callback(
            lambda _, path=path: finished.__setitem__(path, time.time())
        )
        futures.append((path, future))

    rows: list[dict[str, object]] = []
    successful = 0
    for i, (path, future) in enumerate(futures, 1):
        try:
            record = future.result()
        except ScanError as exc:
            logger.error("Failed to scan %s: %s", path.name, exc)
            rows.append({"filename": path.name, "status": "failed", "error": str(exc)})
        else:
            row = {"filename": path.name, "status": "success", "error": None}
            row.update(_record_row(record))
            rows.append(row)
            successful += 1
        # Submission to completion, including time queued behind other files.
        elapsed = finished.get(path, time.time()) - submitted[path]
        rows[-1]["processing_time_s"] = round(elapsed, 2)
        if verbose:
            print(f"Scanned [{i}/{len(files)}]: {path.name} ({rows[-1]['status']})")

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)
    return {"total": len(files), "successful": successful, "failed": len(files) - successful}


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    if not rows:
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Scan Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def _emit(payload: dict[str, object], output: Path | None) -> None:
    output_str = json.dumps(payload, indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str, encoding="utf-8")
        print(f"Output written to {output}")
    else:
        print(output_str)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slipscan",
        description="Payment slip scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")
    # Accepted after the subcommand too; SUPPRESS keeps the global value.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-c",
        "--config",
        type=Path,
        default=argparse.SUPPRESS,
        help="YAML configuration file",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    scan_parser = subparsers.add_parser(
        "scan", parents=[common], help="Scan a single slip"
    )
    scan_parser.add_argument("file", type=Path, help="Slip image or PDF")
    scan_parser.add_argument(
        "-d", "--data", help="JSON object with values that override extraction"
    )
    scan_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    extract_parser = subparsers.add_parser(
        "extract", parents=[common], help="Extract fields from an OCR text dump"
    )
    extract_parser.add_argument("file", type=Path, help="UTF-8 text file")
    extract_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser(
        "batch", parents=[common], help="Scan a folder of slips"
    )
    batch_parser.add_argument("input_dir", type=Path, help="Directory with slips")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the selected command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = load_config(args.config)
    setup_logging(config.log_level, stream=sys.stderr)

    if args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        _emit(extract_text_file(args.file, config.extraction), args.output)
        return

    if args.command == "scan":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            user_partial = _parse_user_data(args.data)
        except ValidationError as exc:
            print(f"Error: invalid --data: {exc}", file=sys.stderr)
            sys.exit(1)
        with ScanReconciliationPipeline.from_config(config) as pipeline:
            try:
                record = scan_file(args.file, pipeline, user_partial)
            except ExtractionIncomplete as exc:
                print(f"Error: {exc}", file=sys.stderr)
                sys.exit(EXIT_INCOMPLETE)
            except ScanError as exc:
                print(f"Error: {exc}", file=sys.stderr)
                sys.exit(EXIT_OCR_ERROR)
        payload = record.model_dump(mode="json")
        payload["status"] = record.initial_status().value
        _emit(payload, args.output)
        return

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        with ScanReconciliationPipeline.from_config(config) as pipeline:
            summary = process_folder(args.input_dir, args.output, pipeline, args.verbose)
        _print_summary(summary, args.output)


if __name__ == "__main__":
    main()
