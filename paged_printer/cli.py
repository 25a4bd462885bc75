"""
Command-line interface for paged-printer.
"""

import asyncio
import os
import sys
from pathlib import Path

import click
from pypdf import PdfReader
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.tree import Tree

from paged_printer.exceptions import PagedPrinterError
from paged_printer.printer import Printer
from paged_printer.types import PdfOptions, PrinterOptions
from paged_printer.utils import configure_logging

console = Console()


def _split_tags(value):
    if not value:
        return ()
    return tuple(tag.strip() for tag in value.split(",") if tag.strip())


def _default_output(input_path, html):
    stem = Path(input_path.rstrip("/")).stem or "output"
    return f"{stem}.html" if html else f"{stem}.pdf"


async def _run_render(input_path, printer_options, pdf_options, html, progress, task):
    async with Printer(printer_options) as printer:
        printer.on("page", lambda page: progress.update(task, advance=1, description="Paginating"))
        printer.on("rendered", lambda result: progress.update(task, description=str(result)))
        printer.on("postprocessing", lambda: progress.update(task, description="Post-processing PDF"))
        if html:
            return await printer.to_html(input_path)
        return await printer.to_pdf(input_path, pdf_options)


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """
    Paged Printer - render paginated HTML documents to PDF.
    """
    pass


@cli.command(name="render")
@click.argument('input_path', type=str)
@click.option('--output', '-o', type=click.Path(), help='Output file (defaults to INPUT name with .pdf/.html)')
@click.option('--html', is_flag=True, default=False, help='Write the paginated HTML instead of a PDF')
@click.option('--outline-tags', '-t', default='', help="Ordered heading tags for the outline (e.g. 'h1,h2,h3')")
@click.option('--width', '-w', help='Page width, overrides the CSS page size (e.g. 210mm)')
@click.option('--height', help='Page height (e.g. 297mm)')
@click.option('--orientation', type=click.Choice(['portrait', 'landscape']), help='Page orientation')
@click.option('--allow-local', is_flag=True, default=False, help='Allow loading local files')
@click.option('--allow-remote', is_flag=True, default=False, help='Allow loading remote resources')
@click.option('--allowed-path', 'allowed_paths', multiple=True, help='Permitted local path prefix (repeatable)')
@click.option('--allowed-domain', 'allowed_domains', multiple=True, help='Permitted remote host (repeatable)')
@click.option('--additional-script', 'additional_scripts', multiple=True, type=click.Path(exists=True), help='Script injected before pagination (repeatable)')
@click.option('--polyfill', envvar='PAGED_PRINTER_POLYFILL', help='Path or URL of paged.polyfill.js')
@click.option('--timeout', default=60.0, show_default=True, type=float, help='Seconds to wait for rendering')
@click.option('--headless/--no-headless', default=True, show_default=True, help='Run the browser headless')
@click.option('--crop-to-trim', is_flag=True, default=False, help='Also set the CropBox to the trim box')
@click.option('--verbose', '-v', is_flag=True, default=False, help='Enable debug logging')
def render(input_path, output, html, outline_tags, width, height, orientation, allow_local,
           allow_remote, allowed_paths, allowed_domains, additional_scripts, polyfill, timeout,
           headless, crop_to_trim, verbose):
    """
    Render INPUT_PATH (a URL or an HTML file) to PDF.

    Examples:

        paged-printer render book.html --allow-local -t h1,h2,h3

        paged-printer render https://example.com/doc.html --allow-remote -o doc.pdf

        paged-printer render book.html --html -o book.paged.html
    """
    if verbose:
        configure_logging(verbose=True)

    printer_options = PrinterOptions(
        headless=headless,
        allow_local=allow_local,
        allow_remote=allow_remote,
        allowed_paths=allowed_paths,
        allowed_domains=allowed_domains,
        additional_scripts=additional_scripts,
        timeout=timeout,
        crop_to_trim=crop_to_trim,
    )
    if polyfill:
        printer_options.polyfill = polyfill

    pdf_options = PdfOptions(
        width=width,
        height=height,
        orientation=orientation,
        outline_tags=_split_tags(outline_tags),
    )
    output_path = Path(output or _default_output(input_path, html))

    try:
        console.print(f"\n[bold cyan]Rendering {input_path}...[/bold cyan]")
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TextColumn("[dim]{task.completed} page(s)[/dim]"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Loading document", total=None)
            result = asyncio.run(
                _run_render(input_path, printer_options, pdf_options, html, progress, task)
            )

        output_path.parent.mkdir(parents=True, exist_ok=True)
        if html:
            output_path.write_text(result, encoding="utf-8")
        else:
            output_path.write_bytes(result)

        console.print(f"\n[bold green]✓ Successfully created:[/bold green] {output_path}")
        console.print(f"[dim]Output directory: {os.path.abspath(output_path.parent)}[/dim]\n")

    except PagedPrinterError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]✗ Unexpected error:[/bold red] {e}")
        sys.exit(1)


def _format_box(box):
    if box is None:
        return "-"
    return " ".join(f"{float(value):g}" for value in box)


def _add_outline_nodes(reader, tree, items):
    last = None
    for item in items:
        if isinstance(item, list):
            if last is not None:
                _add_outline_nodes(reader, last, item)
            continue
        try:
            page_number = reader.get_destination_page_number(item)
        except Exception:
            page_number = None
        suffix = f" [dim](page {page_number + 1})[/dim]" if page_number is not None and page_number >= 0 else ""
        last = tree.add(f"{item.title}{suffix}")


@cli.command(name="inspect")
@click.argument('input_pdf', type=click.Path(exists=True))
def inspect_pdf(input_pdf):
    """
    Display page boxes, metadata and outline of a PDF file.

    Example:

        paged-printer inspect book.pdf
    """
    try:
        reader = PdfReader(input_pdf)

        boxes = Table(title=f"Page Boxes: {os.path.basename(input_pdf)}")
        boxes.add_column("Page", style="cyan", no_wrap=True)
        boxes.add_column("MediaBox", style="green")
        boxes.add_column("TrimBox", style="green")
        for index, page in enumerate(reader.pages, 1):
            trim = page.get("/TrimBox")
            boxes.add_row(str(index), _format_box(page.mediabox), _format_box(trim))

        console.print()
        console.print(boxes)

        metadata = reader.metadata or {}
        if metadata:
            table = Table(title="Metadata", show_header=False)
            table.add_column("Property", style="cyan")
            table.add_column("Value", style="green")
            for key, value in metadata.items():
                table.add_row(str(key).lstrip("/"), str(value))
            console.print(table)

        outline = reader.outline
        if outline:
            tree = Tree("[bold]Outline[/bold]")
            _add_outline_nodes(reader, tree, outline)
            console.print(tree)
        console.print()

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    cli()
