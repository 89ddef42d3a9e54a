import typer
from pathlib import Path
from typing import Optional
import logging
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import LOG_LEVEL
from .deck_compiler import get_deck_compiler
from .errors import DocGeniusError
from .markup import ReportDocument
from .models import ReportType
from . import operators

# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize Typer app
app = typer.Typer(
    name="docgenius",
    help="Turn PDFs into HTML reports and slide decks, and edit reports from the command line",
    add_completion=False
)

# Initialize console for rich output
console = Console()


def _read(path: str) -> str:
    file_path = Path(path)
    if not file_path.exists():
        console.print(f"[red]Error: File not found: {path}[/red]")
        raise typer.Exit(1)
    return file_path.read_text(encoding="utf-8")


def _write(path: str, content: str):
    Path(path).write_text(content, encoding="utf-8")
    console.print(f"[green]✓ Saved to: {path}[/green]")


def _fail(error: DocGeniusError):
    console.print(f"[red]Error ({error.error_type}): {error.message}[/red]")
    if error.retry:
        console.print("[yellow]The generation service is busy, try again in a moment.[/yellow]")
    raise typer.Exit(1)


@app.command()
def compile_deck(
    report: str = typer.Argument(..., help="Path to the report HTML"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Where to write the deck HTML")
):
    """Compile a report into a self-contained slide deck"""
    compiler = get_deck_compiler()
    deck = compiler.build_deck(_read(report))
    output = output or str(Path(report).with_name(f"{Path(report).stem}-presentation.html"))
    _write(output, compiler.render(deck))
    display_deck_statistics(compiler.get_deck_statistics(deck))


@app.command()
def sections(
    report: str = typer.Argument(..., help="Path to the report HTML")
):
    """List the sections of a report with their indices"""
    infos = ReportDocument(_read(report)).section_infos()

    table = Table(title=f"Sections of {Path(report).name}")
    table.add_column("Index", style="cyan")
    table.add_column("Id", style="magenta")
    table.add_column("Title")
    for info in infos:
        table.add_row(str(info.index), info.id or "-", info.title or "[dim](untitled)[/dim]")
    console.print(table)


@app.command()
def edit(
    report: str = typer.Argument(..., help="Path to the report HTML"),
    instruction: str = typer.Argument(..., help="What to change, in plain words"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Where to write the edited report (default: in place)"),
    pdf: Optional[str] = typer.Option(None, "--pdf", help="Source PDF for content-generating edits")
):
    """Apply a free-text edit to a report through the generation service"""
    from .report_pipeline import ReportPipeline

    pipeline = ReportPipeline()
    pdf_content = None
    try:
        if pdf:
            pdf_content = pipeline.extract_pdf(Path(pdf).read_bytes()).text
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
            progress.add_task("Resolving instruction...", total=None)
            response = pipeline.edit(instruction, _read(report), pdf_content=pdf_content)
    except DocGeniusError as e:
        _fail(e)

    for result in response.results:
        color = "green" if result.success else "red"
        console.print(f"[{color}]{'✓' if result.success else '✗'} {result.tool}: {result.message}[/{color}]")
    if not response.results and response.reply:
        console.print(response.reply)

    if any(result.success for result in response.results):
        _write(output or report, response.report_html)
    elif not response.success:
        raise typer.Exit(1)


@app.command()
def recolor(
    report: str = typer.Argument(..., help="Path to the report HTML"),
    color: str = typer.Argument(..., help="Colour name or CSS value"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Where to write the result (default: in place)")
):
    """Change every accent colour of a report"""
    try:
        outcome = operators.change_all_colors(_read(report), color)
    except DocGeniusError as e:
        _fail(e)
    console.print(f"[green]✓ {outcome.message}[/green]")
    if outcome.changes:
        _write(output or report, outcome.html)


@app.command()
def move_section(
    report: str = typer.Argument(..., help="Path to the report HTML"),
    source: int = typer.Argument(..., help="Current index of the section"),
    target: int = typer.Argument(..., help="Index the section should end up at"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Where to write the result (default: in place)")
):
    """Move a section to another position"""
    try:
        outcome = operators.move_section(_read(report), source, target)
    except DocGeniusError as e:
        _fail(e)
    console.print(f"[green]✓ {outcome.message}[/green]")
    if outcome.changes:
        _write(output or report, outcome.html)


@app.command()
def extract(
    pdf_path: str = typer.Argument(..., help="Path to the PDF file"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the text to this file")
):
    """Extract the text of a PDF"""
    from .pdf_parser import PDFParser

    if not Path(pdf_path).exists():
        console.print(f"[red]Error: PDF file not found: {pdf_path}[/red]")
        raise typer.Exit(1)
    try:
        result = PDFParser().extract(Path(pdf_path).read_bytes())
    except DocGeniusError as e:
        _fail(e)

    console.print(f"[bold blue]{result.info.get('title') or Path(pdf_path).stem}[/bold blue]")
    console.print(f"[dim]Pages: {result.pages}, characters: {len(result.text)}[/dim]")
    if output:
        _write(output, result.text)


@app.command()
def process(
    pdf_path: str = typer.Argument(..., help="Path to the PDF file to process"),
    report_type: ReportType = typer.Option(ReportType.INTERVENTION, "--type", "-t", help="Report template"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Where to write the report HTML"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
):
    """Generate an HTML report from a PDF"""
    from .report_pipeline import ReportPipeline

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not Path(pdf_path).exists():
        console.print(f"[red]Error: PDF file not found: {pdf_path}[/red]")
        raise typer.Exit(1)

    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
        progress.add_task("Processing PDF...", total=None)
        response = ReportPipeline().process_pdf(Path(pdf_path).read_bytes(), Path(pdf_path).name, report_type)

    if not response.success:
        console.print(f"[red]{response.message}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ PDF processed successfully in {response.processing_time:.2f} seconds[/green]")
    console.print(f"[dim]Domain: {response.domain}, profile: {response.profile.type if response.profile else '-'}[/dim]")
    _write(output or response.file_name, response.report_html)


def display_deck_statistics(stats):
    """Display deck statistics"""
    table = Table(title=f"Deck: {stats['title']}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("Total Slides", str(stats["total_slides"]))
    table.add_row("Content Slides", str(stats["content_slides"]))
    table.add_row("Report Styles Carried", "yes" if stats["has_report_styles"] else "no")

    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Host to bind the server to"),
    port: int = typer.Option(8000, "--port", help="Port to bind the server to")
):
    """Start the FastAPI server"""

    console.print(f"[green]Starting server on {host}:{port}[/green]")

    import uvicorn
    uvicorn.run("src.docgenius.api:app", host=host, port=port, reload=True)


if __name__ == "__main__":
    app()
