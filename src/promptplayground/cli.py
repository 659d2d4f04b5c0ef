"""CLI for running prompt templates against the configured backend."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence, TextIO
import argparse
import asyncio
import json
import sys

from promptplayground import __version__
from promptplayground.config.settings import (
    PlaygroundSettings,
    SettingsError,
    load_settings,
    settings_summary,
)
from promptplayground.generation.outcome import Failed, RunOutcome
from promptplayground.runtime.app import PlaygroundApp, configure_logging
from promptplayground.runtime.console import ConsoleVariableCollector, parse_variable_assignments
from promptplayground.template.prompt_config import (
    PromptConfig,
    PromptConfigError,
    prompt_config_from_mapping,
)


PROMPT_CONFIG_FILENAME = "config.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Prompt Playground runner")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to JSON settings file. Environment variables override file values.",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Validate settings and print a redacted summary.",
    )
    parser.add_argument(
        "--template",
        type=Path,
        help="Prompt template file (for example skprompt.txt).",
    )
    parser.add_argument(
        "--prompt-config",
        type=Path,
        help=f"Prompt completion config. Defaults to {PROMPT_CONFIG_FILENAME} beside the template.",
    )
    parser.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Preset a template variable. Repeatable.",
    )
    parser.add_argument(
        "--count",
        type=int,
        help="Number of generations to run (overrides generation.max_count).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Cancel the run after this many seconds.",
    )
    parser.add_argument(
        "--no-input",
        action="store_true",
        help="Never prompt for missing variables.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the run outcome as JSON.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"promptplayground {__version__}",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(config_path=args.config)
    except SettingsError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    if args.check:
        print(json.dumps(settings_summary(settings), indent=2, sort_keys=True))
        return 0

    if args.template is None:
        parser.error("--template is required unless --check is given")

    try:
        settings = _apply_count(settings, args.count)
        template = args.template.expanduser().read_text(encoding="utf-8")
        prompt_config = _load_prompt_config(args.template, args.prompt_config)
        presets = parse_variable_assignments(args.var)
    except (OSError, SettingsError, PromptConfigError, ValueError) as exc:
        print(f"Input error: {exc}", file=sys.stderr)
        return 2

    if args.timeout is not None and args.timeout <= 0:
        print("Input error: --timeout must be > 0.", file=sys.stderr)
        return 2

    configure_logging(settings.runtime.log_level)
    collector = ConsoleVariableCollector(
        presets=presets,
        defaults=prompt_config.input_defaults if prompt_config is not None else None,
        interactive=not args.no_input,
    )
    app = PlaygroundApp(settings)

    outcome = asyncio.run(
        app.run(
            template,
            collector,
            prompt_config=prompt_config,
            timeout_seconds=args.timeout,
        )
    )
    if args.json:
        print(json.dumps(outcome_to_dict(outcome), indent=2, ensure_ascii=False))
    else:
        _print_outcome(outcome, sys.stdout, sys.stderr)
    return exit_code(outcome)


def exit_code(outcome: RunOutcome) -> int:
    if isinstance(outcome, Failed):
        return 130 if outcome.abandoned else 1
    if outcome.status == "cancelled":
        return 130
    return 0


def outcome_to_dict(outcome: RunOutcome) -> dict:
    error = outcome.error if isinstance(outcome, Failed) else None
    return {
        "status": outcome.status,
        "results": [
            {
                "text": result.text,
                "model": result.model,
                "input_tokens": result.input_tokens,
                "output_tokens": result.output_tokens,
                "finish_reason": result.finish_reason,
            }
            for result in outcome.results
        ],
        "error": None
        if error is None
        else {"type": error.__class__.__name__, "message": str(error)},
    }


def _print_outcome(outcome: RunOutcome, out: TextIO, err: TextIO) -> None:
    for index, result in enumerate(outcome.results, start=1):
        print(f"--- result {index} ({result.model}) ---", file=out)
        print(result.text, file=out)

    if isinstance(outcome, Failed):
        if outcome.abandoned:
            print("Generation cancelled.", file=err)
        else:
            print(f"Error: {outcome.error}", file=err)
    elif outcome.status == "cancelled":
        print(f"Generation cancelled after {len(outcome.results)} result(s).", file=err)


def _apply_count(settings: PlaygroundSettings, count: Optional[int]) -> PlaygroundSettings:
    if count is None:
        return settings
    if count < 0:
        raise SettingsError("--count must be >= 0.")
    return replace(settings, generation=replace(settings.generation, max_count=count))


def _load_prompt_config(template_path: Path, explicit: Optional[Path]) -> Optional[PromptConfig]:
    path = explicit
    if path is None:
        candidate = template_path.expanduser().parent / PROMPT_CONFIG_FILENAME
        if not candidate.exists():
            return None
        path = candidate

    try:
        payload = json.loads(path.expanduser().read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise PromptConfigError(f"Prompt config is not valid JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise PromptConfigError("Prompt config root must be an object.")
    return prompt_config_from_mapping(payload)
