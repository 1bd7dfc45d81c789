import typer
from typing_extensions import Annotated
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from pathlib import Path
import asyncio
import logging

from nanobanana import __version__
from nanobanana.config import get_settings
from nanobanana.controller import StudioController
from nanobanana.core import create_provider
from nanobanana.errors import GenerationError
from nanobanana.models import ArtStyle, AspectRatio
from nanobanana.utils import read_image_file, save_image_from_data_url

app = typer.Typer(
    name="nanobanana",
    help="🍌 Generate and edit images with the Gemini image model.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"NanoBanana Version: [bold green]{__version__}[/bold green]")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
):
    logging.basicConfig(level=get_settings().log_level.upper())


@app.command()
def generate(
    prompt: Annotated[
        str,
        typer.Option(
            "--prompt",
            "-p",
            help="Description of the image, or editing instructions when --image is given.",
            show_default=False,
        ),
    ] = None,
    style: Annotated[
        ArtStyle, typer.Option("--style", "-s", help="Artistic style appended to the prompt.")
    ] = ArtStyle.PHOTOREALISTIC,
    aspect_ratio: Annotated[
        AspectRatio, typer.Option("--aspect-ratio", "-a", help="Aspect ratio of the result.")
    ] = AspectRatio.SQUARE,
    image: Annotated[
        Path,
        typer.Option(
            "--image",
            "-i",
            exists=True,
            dir_okay=False,
            help="Source image to edit. Omit to generate from scratch.",
        ),
    ] = None,
    engine: Annotated[
        str,
        typer.Option(help="The configured engine to use (e.g., gemini)."),
    ] = None,
    output: Annotated[
        str,
        typer.Option(
            "--output",
            "-o",
            help="Output filename (e.g., my_image.png). If not provided, one will be generated.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Print the request sent to the API.",
            is_flag=True,
        ),
    ] = False,
):
    settings = get_settings()
    try:
        engine_config = settings.engine(engine)
    except KeyError as e:
        console.print(f"[bold red]Error:[/bold red] {e.args[0]}")
        raise typer.Exit(code=1)

    if prompt is None:
        prompt = typer.prompt("Please enter the prompt for image generation")

    try:
        provider = create_provider(engine_config)
    except GenerationError as e:
        console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(code=1)

    controller = StudioController(
        provider, product_name=settings.product_name, verbose=verbose
    )
    controller.update_prompt(prompt)
    controller.update_style(style)
    controller.update_aspect_ratio(aspect_ratio)
    if image is not None:
        controller.set_source_image(read_image_file(image))

    console.print(
        f"🖼️ {'Editing' if image else 'Generating'} image with engine: "
        f"[bold cyan]{engine or settings.default_engine}[/bold cyan] ({engine_config.model})"
    )
    console.print(f'📜 Prompt: "{prompt}"')

    async def _generate():
        try:
            return await controller.submit()
        finally:
            await provider.close()

    with console.status("[spinner]Processing...", spinner="dots"):
        state = asyncio.run(_generate())

    if state.error:
        console.print(f"\n[bold red]Error generating image:[/bold red] {state.error}")
        raise typer.Exit(code=1)

    data_url, filename = controller.download()
    output_path = Path(settings.output_dir) / (output or filename)
    saved_path = save_image_from_data_url(data_url, output_path)
    if saved_path is None:
        console.print(f"[bold red]Error:[/bold red] Failed to save image to {output_path}")
        raise typer.Exit(code=1)
    console.print(
        Panel(
            f"Image generated successfully! Saved to: [green]{saved_path}[/green]\n"
            f"Prompt used: {state.result.prompt_used}",
            title="[bold green]Success ✨[/bold green]",
            expand=False,
        )
    )


@app.command(name="list-styles")
def list_styles_command():
    table = Table(title="🎨 Art Styles")
    table.add_column("Style", style="cyan", no_wrap=True)
    table.add_column("Prompt Clause", style="green")
    for s in ArtStyle:
        clause = "(none)" if s == ArtStyle.NONE else f"in the style of {s.value}"
        table.add_row(s.value, clause)
    console.print(table)
    console.print(f"Aspect ratios: {', '.join(r.value for r in AspectRatio)}")


@app.command(name="list-engines")
def list_engines_command():
    settings = get_settings()
    if not settings.engines:
        console.print(
            "[yellow]No engines configured. Check your .env file or environment variables.[/yellow]"
        )
        return
    table = Table(title="⚙️ Configured NanoBanana Engines")
    table.add_column("Engine Name", style="cyan", no_wrap=True)
    table.add_column("Kind", style="blue")
    table.add_column("API Key Set", style="magenta")
    table.add_column("Base URL", style="green")
    table.add_column("Model", style="yellow")
    for name in settings.engines:
        config = settings.engine(name)
        api_key_status = "✅ Set" if config.api_key else "⚠️ Not Set"
        base_url_str = str(config.base_url) if config.base_url else "Default"
        default_marker = " (default)" if name == settings.default_engine else ""
        table.add_row(
            name + default_marker, config.kind, api_key_status, base_url_str, config.model
        )
    console.print(table)


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = None,
    port: Annotated[int, typer.Option(help="Port to listen on.")] = None,
    engine: Annotated[str, typer.Option(help="The configured engine to use.")] = None,
):
    from nanobanana.web_server import run

    run(host=host, port=port, engine=engine)


if __name__ == "__main__":
    app()
