import argparse
import json
import sys
import logging
from pathlib import Path
from typing import List, Optional

from .core.config import load_config
from .core.console import ConsoleManager
from .core.errors import PodcraftError
from .core.service import PrepService
from .transcript.tokens import count_words, estimate_tokens
from .audio.transcription import estimate_transcription_cost
from .models import AudioAsset
from .utils import setup_logging

logger = logging.getLogger("Podcraft.CLI")


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _write_text(text: str, output: Optional[str], console: ConsoleManager):
    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.success(f"Written to {output}")
    else:
        # Raw text; rich would interpret brackets as markup
        console.console.print(text, markup=False, highlight=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Podcraft - transcript preparation for content generation.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    parser.add_argument("--config", help="Path to podcraft.yaml")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    tokens_parser = subparsers.add_parser("tokens", help="Estimate token count of a transcript")
    tokens_parser.add_argument("file", help="Transcript file ('-' for stdin)")

    truncate_parser = subparsers.add_parser("truncate", help="Truncate a transcript to a token budget")
    truncate_parser.add_argument("file", help="Transcript file ('-' for stdin)")
    truncate_parser.add_argument("--max-tokens", type=int, help="Token budget (default: from config)")
    truncate_parser.add_argument("--beginning-ratio", type=float, help="Share of the budget kept from the beginning")
    truncate_parser.add_argument("-o", "--output", help="Write the result to a file instead of stdout")

    budget_parser = subparsers.add_parser("budget", help="Show the transcript budget for a stage")
    budget_parser.add_argument("stage", type=int, help="Stage number")
    budget_parser.add_argument("--model", help="Model name (default: from config)")
    budget_parser.add_argument("--previous", help="JSON file with outputs of earlier stages")

    split_parser = subparsers.add_parser("split", help="Split audio above the provider limit into chunks")
    split_parser.add_argument("file", help="Input audio file")
    split_parser.add_argument("-o", "--output-dir", help="Directory for chunk files (default: next to input)")

    parse_parser = subparsers.add_parser("parse", help="Extract JSON from a model response")
    parse_parser.add_argument("file", help="Response file ('-' for stdin)")
    parse_parser.add_argument("--context", default="cli", help="Label used in logs")

    return parser


def _run_tokens(args, console: ConsoleManager):
    text = _read_text(args.file)
    console.print(f"Words:  {count_words(text):,}")
    console.print(f"Tokens: ~{estimate_tokens(text):,}")


def _run_truncate(args, service: PrepService, console: ConsoleManager):
    text = _read_text(args.file)
    result = service.truncator.truncate(text, max_tokens=args.max_tokens, beginning_ratio=args.beginning_ratio)
    if result.was_truncated:
        logger.info(
            f"Truncated {result.original_tokens:,} -> {result.truncated_tokens:,} tokens "
            f"({result.details.removed_percent}% removed)"
        )
    else:
        logger.info(f"Transcript fits ({result.original_tokens:,} tokens), unchanged")
    _write_text(result.text, args.output, console)


def _run_budget(args, service: PrepService, console: ConsoleManager):
    previous_stages = None
    if args.previous:
        previous_stages = json.loads(_read_text(args.previous))
    model = args.model or service.config.budget.default_model
    budget = service.transcript_budget(args.stage, model, previous_stages)
    console.print(f"Stage {args.stage} ({model}): {budget:,} tokens available for the transcript")


def _run_split(args, service: PrepService, console: ConsoleManager):
    file_path = Path(args.file)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    asset = AudioAsset(buffer=file_path.read_bytes(), filename=file_path.name)
    cost = estimate_transcription_cost(asset.size_bytes)
    with console.status(f"Splitting {asset.filename}..."):
        result = service.split_audio(asset.buffer, asset.filename)

    if not result.chunked:
        console.print(f"{file_path.name} is within the provider limit, no split needed.")
        return

    output_dir = Path(args.output_dir) if args.output_dir else file_path.parent
    output_dir.mkdir(parents=True, exist_ok=True)
    for chunk in result.chunks:
        (output_dir / chunk.filename).write_bytes(chunk.buffer)
        console.print(f"  {chunk.filename} ({chunk.size_bytes / 1024 / 1024:.2f} MB)")

    console.success(
        f"{result.total_chunks} chunks written to {output_dir} "
        f"(estimated transcription cost {cost['formatted_cost']})"
    )


def _run_parse(args, service: PrepService, console: ConsoleManager):
    raw = _read_text(args.file)
    data = service.parse_stage_output(raw, context=args.context)
    console.console.print_json(json.dumps(data, ensure_ascii=False))


COMMANDS = {
    "truncate": _run_truncate,
    "budget": _run_budget,
    "split": _run_split,
    "parse": _run_parse,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    console = ConsoleManager()

    try:
        config_context = load_config(args.config)
        debug_mode = args.verbose or config_context.debug
        console.configure(config_context.logging.output_mode, debug=debug_mode)
        setup_logging(
            config_context.logging.log_dir,
            debug=debug_mode,
            output_mode=console.output_mode,
            console=console.console,
        )

        if args.command == "tokens":
            _run_tokens(args, console)
            return 0

        service = PrepService(config_context).initialize()
        COMMANDS[args.command](args, service, console)
        return 0

    except PodcraftError as e:
        console.error_panel(e.message, title=type(e).__name__)
        if args.verbose:
            logger.exception("Command failed")
        return 1
    except (OSError, ValueError) as e:
        console.error_panel(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
