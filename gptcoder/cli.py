# gptcoder/cli.py

import dataclasses
from pathlib import Path
from typing import Optional, List

import typer
from loguru import logger

from .services.logging import setup_logging
from .config.loader import get_config
from .core.models import ConfigurationError
from .core.formatting import number_with_commas
from .core.prompt_assembler import PromptAssembler
from .core.source_loader import LocalSourceLoader
from .core.token_counter import count_tokens
from . import __version__

app = typer.Typer(help="GPTCoder CLI - Assemble a repository and an instruction into a single LLM prompt.")


def version_callback(value: bool):
    if value:
        print(f"GPTCoder CLI Version: {__version__}")
        raise typer.Exit()


@app.callback()
def main_options(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: Optional[bool] = typer.Option(None, "--version", callback=version_callback, is_eager=True, help="Show version and exit."),
):
    """ Main callback to set up logging """
    log_level = "DEBUG" if verbose else "INFO"
    setup_logging(level=log_level, verbose=verbose)
    ctx.ensure_object(dict)
    ctx.obj["VERBOSE"] = verbose


@app.command()
def build(
    repo: Path = typer.Option(..., "--repo", "-r", help="Path to the repository root.", exists=True, file_okay=False, dir_okay=True, readable=True, resolve_path=True),
    include: Optional[List[str]] = typer.Option(None, "--include", "-i", help="Glob patterns for files to include (relative to repo root, e.g. 'src/*.py', '*.md')."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-e", help="Glob patterns for files to exclude (applied after includes)."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Target model name (see 'models'). Defaults to the configured default model."),
    instruction: Optional[str] = typer.Option(None, "--instruction", "-t", help="Instruction text placed after the repository."),
    instruction_file: Optional[Path] = typer.Option(None, "--instruction-file", help="Read the instruction from a file.", exists=True, dir_okay=False, readable=True),
    output: Path = typer.Option("prompt.txt", "--output", "-o", help="Output file path for the generated prompt.", writable=True, resolve_path=True),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens", help="Override the model's maximum tokens."),
):
    """
    Builds a prompt from a repository and an instruction, refusing to write it
    when the model's token budget is used up.
    """
    config = get_config()

    try:
        model_spec = config.get_model(model)
        if max_tokens is not None:
            model_spec = dataclasses.replace(model_spec, max_tokens=max_tokens)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(code=1)

    if instruction_file is not None:
        instruction_text = instruction_file.read_text(encoding="utf-8")
    elif instruction is not None:
        instruction_text = instruction
    else:
        instruction_text = config.default_instruction

    loader = LocalSourceLoader(
        root_path=repo,
        ignore_patterns=config.ignore_patterns,
        include_patterns=include,
        exclude_patterns=exclude,
        max_file_size=config.max_file_size,
    )
    try:
        files = loader.load()
    except ValueError as e:
        logger.error(f"Load Error: {e}")
        raise typer.Exit(code=1)

    if not files:
        logger.error("No files selected after applying include/exclude patterns. Aborting.")
        raise typer.Exit(code=1)

    assembler = PromptAssembler(model_spec, instruction=instruction_text)
    assembler.initialize(files)

    budget = assembler.compute_budget()
    for entry in assembler.files:
        logger.debug(f"{entry.path}: {number_with_commas(entry.token_used)} tokens")
    typer.echo(f"{budget.describe(model_spec.name)} - {budget.utilization:.1f}%")

    if not budget.can_submit:
        logger.error("Prompt exceeds the model's token budget. Remove files or shorten the instruction.")
        raise typer.Exit(code=1)

    prompt = assembler.render_prompt()
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(prompt, encoding='utf-8')
    except OSError as e:
        logger.error(f"Error writing output file: {e}")
        raise typer.Exit(code=1)
    logger.success(f"Prompt with {len(files)} files written to: {output}")


@app.command()
def models():
    """Lists the configured models and their token limits."""
    config = get_config()
    for model_config in config.models:
        marker = "*" if model_config.name == config.default_model else " "
        typer.echo(f"{marker} {model_config.name}: {number_with_commas(model_config.max_tokens)} tokens")


@app.command()
def count(
    paths: List[Path] = typer.Argument(..., help="Files to count.", exists=True, dir_okay=False, readable=True),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model whose tokenizer is used."),
):
    """Prints the token count of each file and the total."""
    try:
        model_spec = get_config().get_model(model)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(code=1)

    total = 0
    for path in paths:
        tokens = count_tokens(path.read_text(encoding="utf-8", errors="replace"), model_spec.encoding_name)
        total += tokens
        typer.echo(f"{path}: {number_with_commas(tokens)}")
    typer.echo(f"Total: {number_with_commas(total)} ({model_spec.name})")


if __name__ == "__main__":
    app()
