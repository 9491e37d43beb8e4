"""
Interactive and one-shot CLI adapter for DexAI.

Architectural role:
- Exposes terminal interaction over `dexai.core.engine.AgentEngine`.
- Starts embedding initialization in the background at startup.

Request lifecycle (per user turn, interactive):
1. Read stdin.
2. Handle local commands (`exit`/`quit`, `/mode`, `/classify`, `/clear`).
3. Route normal text to `engine.process_task` in the active mode.
4. Print the rendered answer.

One-shot usage:
    dexai-cli "tell me about pikachu" --mode quality --json

Input validation behavior:
- Empty input is ignored.
- `/mode` validates the requested mode against `config.VALID_MODES`.

Error handling strategy:
- EOF and keyboard interrupts terminate the loop without traceback output.
"""

import argparse
import json
import sys
import threading

from dexai import config
from dexai.core.classification_types import Mode
from dexai.core.engine import build_engine
from dexai.logging_config import setup_logging


# =========================================================
# UTF-8 SAFE OUTPUT
# =========================================================

def _configure_stdout() -> None:
    if hasattr(sys.stdout, "reconfigure"):
        try:
            sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
        except (AttributeError, ValueError, OSError):
            pass


def start_embedding_initialization(engine) -> threading.Thread | None:
    """Initialize the embedding tier on a daemon thread; requests never wait."""
    embedding = engine.context.embedding
    if embedding is None:
        return None
    thread = threading.Thread(target=embedding.initialize, name="embedding-init", daemon=True)
    thread.start()
    return thread


# =========================================================
# LOCAL COMMANDS
# =========================================================

def print_mode_help(current: Mode) -> None:
    print("\nAvailable modes:")
    for name in config.VALID_MODES:
        print(f" - {name}: {config.MODE_DESCRIPTIONS[name]['description']}")
    print("\nUsage:")
    print(" /mode <fast|balanced|quality>")
    print(" /classify <text>")
    print(" /clear")
    print(f"\nCurrent mode: {current.value}\n")


def handle_command(engine, line: str, mode: Mode):
    """
    Apply one local command.

    Returns:
        `(handled, mode)`; `handled` is `False` when `line` is a normal query.
    """
    lowered = line.lower()

    if lowered.startswith("/mode"):
        parts = line.split()
        if len(parts) == 1 or parts[1].lower() == "help":
            print_mode_help(mode)
            return True, mode
        requested = parts[1].lower()
        if requested not in config.VALID_MODES:
            print(f"\nMode '{parts[1]}' not found.\n")
            return True, mode
        mode = Mode(requested)
        print(f"\nSwitched to mode: {mode.value}\n")
        return True, mode

    if lowered.startswith("/classify"):
        text = line[len("/classify"):].strip()
        if not text:
            print("\nUsage: /classify <text>\n")
            return True, mode
        print(json.dumps(engine.classify(text, mode).to_dict(), indent=2))
        return True, mode

    if lowered in ("/clear", "clear cache"):
        cleared = engine.clear_cache()
        print(f"\nCache cleared ({cleared['responses_cleared']} responses, {cleared['entities_cleared']} entities).\n")
        return True, mode

    return False, mode


# =========================================================
# LOOPS
# =========================================================

def run_interactive(engine, mode: Mode) -> None:
    print("DexAI started. (Type 'exit' to quit, '/mode help' for commands)")
    print(f"Active mode: {mode.value}\n")
    print("-" * 60)

    while True:
        try:
            question = input("Question: ").strip()
        except EOFError:
            print("\nSession ended (EOF received).")
            break
        except KeyboardInterrupt:
            print("\nOperation cancelled by user.")
            break

        if not question:
            continue

        if question.lower() in ("exit", "quit"):
            print("Shutting down.")
            break

        handled, mode = handle_command(engine, question, mode)
        if handled:
            continue

        print("\nResponse:\n")
        outcome = engine.process_task(question, mode)
        print(outcome.result)
        print("\n" + "-" * 60 + "\n")


def run_once(engine, query: str, mode: Mode, as_json: bool = False) -> int:
    outcome = engine.process_task(query, mode)
    if as_json:
        print(json.dumps(outcome.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(outcome.result)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dexai-cli", description="Ask questions about Pokemon species.")
    parser.add_argument("query", nargs="?", help="Run one query and exit instead of starting the prompt loop")
    parser.add_argument("--mode", choices=config.VALID_MODES, default=config.DEFAULT_MODE)
    parser.add_argument("--json", action="store_true", help="Print the full result including classification")
    parser.add_argument("--log-level", default=None)
    return parser


# =========================================================
# MAIN
# =========================================================

def main(argv=None, engine_factory=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or ("WARNING" if args.query else None))
    _configure_stdout()

    engine = (engine_factory or build_engine)()
    mode = Mode(args.mode)

    if args.query:
        if mode == Mode.QUALITY and engine.context.embedding is not None:
            engine.context.embedding.initialize()
        return run_once(engine, args.query, mode, as_json=args.json)

    start_embedding_initialization(engine)
    run_interactive(engine, mode)
    return 0


if __name__ == "__main__":
    sys.exit(main())
