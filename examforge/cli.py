"""
Command-line interface for examforge.
문제 생성 및 PDF 영역 추출을 위한 CLI 인터페이스입니다.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .schema import BoundingBox, GenerationReport, GenerationRequest, QuestionType

console = Console()


def format_generation_report(report: GenerationReport, model_name: str) -> None:
    """Display a generation report in a formatted table."""
    table = Table(title=f"Generation Results - {model_name}")

    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="magenta")

    table.add_row("Requested", str(report.requested))
    table.add_row("Returned", str(len(report.questions)))
    table.add_row("Raw Generated", str(report.raw_count))
    table.add_row("After De-duplication", str(report.deduplicated_count))
    table.add_row("Failed Batches", str(report.failed_batches))
    table.add_row("Top-up Batch", "Yes" if report.topped_up else "No")

    console.print(table)

    if report.shortfall:
        console.print(Panel(
            f"Returned {len(report.questions)} of {report.requested} requested questions",
            title="Shortfall",
            border_style="yellow",
        ))


def _parse_bbox(value: str, corners: bool) -> BoundingBox:
    """Parse 'x,y,w,h' (or 'x1,y1,x2,y2' with --corners) into a BoundingBox."""
    parts = [p for p in value.replace(":", ",").split(",") if p.strip()]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError(f"Bounding box needs 4 values, got {value!r}")
    try:
        a, b, c, d = (float(p) for p in parts)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid bounding box {value!r}: {e}") from e
    if corners:
        return BoundingBox(x1=a, y1=b, x2=c, y2=d)
    return BoundingBox(x=a, y=b, width=c, height=d)


def _read_pdf(path_str: str) -> bytes:
    pdf_path = Path(path_str)
    if not pdf_path.exists():
        console.print(f"[red]Error:[/red] PDF file not found: {pdf_path}")
        sys.exit(1)
    return pdf_path.read_bytes()


def _cmd_generate(args) -> None:
    from .generation import QuestionGenerator
    from .models import GeminiClient

    request = GenerationRequest(
        topic=args.topic,
        subject=args.subject,
        grade=args.grade,
        count=args.count,
        question_type=QuestionType(args.type),
        difficulty=args.difficulty,
        specific_needs=args.needs,
    )
    client = GeminiClient.from_settings()

    console.print(f"[blue]Generating {request.count} questions with {client.model_name}...[/blue]")
    report = asyncio.run(QuestionGenerator(client).run(request))

    if args.validate:
        _run_validation(report)

    format_generation_report(report, client.model_name)

    input_tokens, output_tokens = client.get_token_usage()
    console.print(f"[dim]Tokens: {input_tokens:,} in / {output_tokens:,} out[/dim]")

    payload = [q.model_dump(mode="json") for q in report.questions]
    if args.output:
        output_path = Path(args.output)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        console.print(f"[green]V[/green] Questions saved to {output_path}")
    else:
        console.print_json(data=payload)


def _cmd_crop(args) -> None:
    from .cropper import RegionCropper

    pdf_bytes = _read_pdf(args.pdf_path)
    boxes = [_parse_bbox(b, args.corners) for b in args.bbox]

    cropper = RegionCropper()
    crops = cropper.crop_regions_from_pdf(pdf_bytes, args.page, boxes)

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    stem = Path(args.pdf_path).stem
    for i, png in enumerate(crops, start=1):
        out = output_dir / f"{stem}_p{args.page}_r{i}.png"
        out.write_bytes(png)
        console.print(f"[green]V[/green] {out} ({len(png):,} bytes)")


def _cmd_split(args) -> None:
    from .pdf_parser import PDFParser

    pdf_bytes = _read_pdf(args.pdf_path)
    chunks = PDFParser(pdf_bytes).split_into_chunks(pages_per_chunk=args.pages_per_chunk)

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    stem = Path(args.pdf_path).stem

    table = Table(title=f"Chunks - {stem}")
    table.add_column("File", style="cyan")
    table.add_column("Pages", justify="right", style="green")

    for chunk in chunks:
        out = output_dir / f"{stem}_{chunk.start_page:03d}-{chunk.end_page:03d}.pdf"
        out.write_bytes(chunk.buffer)
        table.add_row(str(out), f"{chunk.start_page}-{chunk.end_page}")

    console.print(table)


def _cmd_backends(args) -> None:
    from .cropper import PageRasterizer, RegionCropper

    table = Table(title="Extraction Backends")
    table.add_column("Backend", style="cyan")
    table.add_column("Role", style="yellow")
    table.add_column("Available", style="green")

    rasterizer = PageRasterizer(scale=1.0)
    for role, (name, ok) in zip(("raster primary", "raster fallback"), rasterizer.check_engines().items()):
        table.add_row(name, role, "[green]Yes[/green]" if ok else "[red]No[/red]")

    cropper = RegionCropper(rasterizer=rasterizer)
    for role, (name, ok) in zip(("image primary", "image secondary"), cropper.check_backends().items()):
        table.add_row(name, role, "[green]Yes[/green]" if ok else "[red]No[/red]")

    console.print(table)
    console.print("\n[dim]Install:[/dim]")
    console.print("  pdf2image: apt install poppler-utils")


def _run_validation(report: GenerationReport) -> None:
    """Run validation layer on generated questions."""
    from .validator import validate_questions

    validation = validate_questions(report.questions, expected_count=report.requested)

    if validation.is_valid:
        console.print(f"  [green]VALID[/green] - {validation.total_warnings} warnings")
    else:
        console.print(f"  [red]INVALID[/red] - {validation.total_errors} errors, {validation.total_warnings} warnings")

    for issue in validation.issues:
        color = "red" if issue.level == "error" else "yellow"
        q_prefix = f"{issue.question_id}: " if issue.question_id else ""
        console.print(f"  [{color}]{issue.level.upper()}[/{color}] {q_prefix}{issue.message}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate exam questions with Gemini and extract diagrams from exam PDFs"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("generate", help="Generate questions for a topic")
    gen.add_argument("--topic", required=True, help="Topic to write questions about")
    gen.add_argument("--subject", required=True, help="Subject name")
    gen.add_argument("--grade", required=True, help="Grade or level")
    gen.add_argument("--count", type=int, default=10, help="Number of questions (default: 10)")
    gen.add_argument(
        "--type",
        choices=[t.value for t in QuestionType],
        default=QuestionType.MCQ_SINGLE.value,
        help="Question type (default: mcq_single)"
    )
    gen.add_argument("--difficulty", type=int, default=50, help="1 (easiest) to 100 (hardest)")
    gen.add_argument("--needs", default=None, help="Additional instructions for the model")
    gen.add_argument("-o", "--output", default=None, help="Output JSON file path")
    gen.add_argument("--validate", action="store_true", help="Run validation layer on the result")
    gen.set_defaults(func=_cmd_generate)

    crop = subparsers.add_parser("crop", help="Crop regions from one PDF page")
    crop.add_argument("pdf_path", help="Path to PDF file")
    crop.add_argument("--page", type=int, default=1, help="1-indexed page number (default: 1)")
    crop.add_argument(
        "--bbox",
        action="append",
        required=True,
        help="Region as x,y,width,height (fractions or pixels); repeatable"
    )
    crop.add_argument(
        "--corners",
        action="store_true",
        help="Read --bbox values as x1:y1:x2:y2 corners"
    )
    crop.add_argument("-o", "--output", default="output/crops", help="Output directory")
    crop.set_defaults(func=_cmd_crop)

    split = subparsers.add_parser("split", help="Split a PDF into page chunks")
    split.add_argument("pdf_path", help="Path to PDF file")
    split.add_argument("--pages-per-chunk", type=int, default=10, help="Pages per chunk (default: 10)")
    split.add_argument("-o", "--output", default="output/chunks", help="Output directory")
    split.set_defaults(func=_cmd_split)

    backends = subparsers.add_parser("backends", help="Show raster engine and image backend availability")
    backends.set_defaults(func=_cmd_backends)

    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        args.func(args)
    except Exception as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
