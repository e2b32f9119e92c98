#!/usr/bin/env python3
"""
EduBot Interactive CLI

A command-line chat with the assistant, mainly for trying prompts and
tools against a live OpenAI key and records backend.
"""

import argparse
import json
import logging
import signal
import sys
import threading
from typing import Optional

from .assistant import AssistantSession
from .config import config
from .models import ANONYMOUS, SessionContext
from .rendering import render_plain
from .tools import ToolRegistry

# Global shutdown flag for signal handling
_shutdown_requested = threading.Event()

logger = logging.getLogger(__name__)


def _signal_handler(signum: int, frame) -> None:
    """Handle SIGINT for graceful shutdown."""
    if _shutdown_requested.is_set():
        logger.debug("Force shutdown requested")
        sys.exit(1)
    logger.debug("Shutdown requested")
    _shutdown_requested.set()
    print("\n\nShutting down... (press Ctrl+C again to force)")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def print_banner() -> None:
    """Print the welcome banner."""
    banner = """
╔════════════════════════════════════════════════════════════════╗
║                       EduBot Interactive                        ║
║                                                                 ║
║  Asistente académico con consulta de notas y recursos           ║
╚════════════════════════════════════════════════════════════════╝

Available commands:
  /help                 - Show this help message
  /trace                - Show the trace of the last message
  /tools                - List available tools
  /history              - Show the conversation history
  /clear                - Start a new conversation
  /login <token> [name] - Log in with a records API token
  /logout               - Forget the token
  /quit                 - Exit the CLI

Type your questions below.
"""
    print(banner)


def print_tools() -> None:
    """Print registered tools."""
    print("\nAvailable Tools:")
    print("─" * 64)
    for i, (name, tool) in enumerate(ToolRegistry.all_tools().items(), start=1):
        auth = "  [login required]" if tool.requires_auth else ""
        print(f"{i}. {name}{auth}")
        print(f"   {tool.description}")
    print()


def print_trace(trace: list[dict]) -> None:
    """Print the steps of the last run."""
    if not trace:
        print("\nNo trace available. Send a message first.\n")
        return

    print("\n" + "═" * 70)
    print("ORCHESTRATION TRACE")
    print("═" * 70)

    for step in trace:
        flags = ""
        if step["is_final"]:
            flags = "  [FINAL]"
        elif step["auto_triggered"]:
            flags = "  [AUTO]"
        print(f"\n┌─ Step {step['step_number']} (iteration {step['iteration']}){flags}")
        if step["action"]:
            print(f"│  Action: {step['action']}")
        if step["action_input"]:
            print(f"│  Input: {json.dumps(step['action_input'], ensure_ascii=False)}")
        if step["observation"]:
            obs = step["observation"]
            if len(obs) > 200:
                obs = obs[:200] + "..."
            print(f"│  Observation: {obs}")
        if step["error"]:
            print(f"│  Error: {step['error']}")
        if step["final_answer"]:
            print(f"│  Final Answer: {step['final_answer'][:200]}")
        print("└" + "─" * 68)
    print()


def print_history(history: list[dict]) -> None:
    if not history:
        print("\nConversation is empty.\n")
        return
    print()
    for turn in history:
        role = turn["role"]
        if role == "system":
            print("[system] (prompt omitted)")
        elif role == "tool":
            print(f"[tool:{turn['tool_name']}] {turn['content'][:120]}")
        elif turn.get("tool_request"):
            print(f"[assistant] -> {turn['tool_request']['name']}({turn['tool_request']['arguments']})")
        else:
            print(f"[{role}] {turn['content']}")
    print()


class InteractiveCLI:
    """Interactive CLI for EduBot."""

    def __init__(self, assistant: Optional[AssistantSession] = None, verbose: bool = False):
        self.verbose = verbose
        self.assistant = assistant or AssistantSession(session_id="cli")
        self.session: SessionContext = ANONYMOUS

    def login(self, args: list[str]) -> None:
        if not args:
            print("\nUsage: /login <token> [name]\n")
            return
        name = " ".join(args[1:]) or None
        self.session = SessionContext(is_logged_in=True, display_name=name, token=args[0])
        print(f"\nLogged in{' as ' + name if name else ''}.\n")

    def logout(self) -> None:
        self.session = ANONYMOUS
        print("\nLogged out.\n")

    def clear_history(self) -> None:
        self.assistant.reset()
        print("\nConversation history cleared.\n")

    def process_query(self, query: str) -> bool:
        """Process a user message.

        Returns:
            True if should continue, False if shutdown requested
        """
        try:
            result = self.assistant.send_message(query, self.session)

            if _shutdown_requested.is_set():
                print("\n\nMessage completed, shutting down.\n")
                return False

            print("\n" + render_plain(result.answer) + "\n")
            if result.tools_used:
                print(f"(tools: {', '.join(result.tools_used)}; use /trace for details)\n")

        except KeyboardInterrupt:
            _shutdown_requested.set()
            print("\n\nInterrupted, shutting down.\n")
            return False
        except Exception as e:
            print(f"\nError: {e}\n")
            if self.verbose:
                import traceback

                traceback.print_exc()

        return True

    def handle_command(self, user_input: str) -> bool:
        """Run a slash command. Returns False when the CLI should exit."""
        parts = user_input.split()
        command = parts[0].lower()

        if command in ("/quit", "/exit", "/q"):
            print("\n¡Hasta luego!\n")
            return False
        elif command in ("/help", "/h", "/?"):
            print_banner()
        elif command == "/trace":
            print_trace(self.assistant.get_trace())
        elif command == "/tools":
            print_tools()
        elif command == "/history":
            print_history(self.assistant.history())
        elif command == "/clear":
            self.clear_history()
        elif command == "/login":
            self.login(parts[1:])
        elif command == "/logout":
            self.logout()
        else:
            print(f"\nUnknown command: {user_input}")
            print("Type /help for available commands.\n")
        return True

    def run(self) -> None:
        """Run the interactive CLI loop."""
        print_banner()
        if not self.assistant.available:
            print("WARNING: OPENAI_API_KEY not configured, running in fallback mode.\n")

        while not _shutdown_requested.is_set():
            try:
                user_input = input(">>> ").strip()

                if _shutdown_requested.is_set():
                    break
                if not user_input:
                    continue

                if user_input.startswith("/"):
                    if not self.handle_command(user_input):
                        break
                elif not self.process_query(user_input):
                    break

            except KeyboardInterrupt:
                if _shutdown_requested.is_set():
                    print("\n")
                    break
                print("\n\nType /quit to exit.\n")
            except EOFError:
                print("\n¡Hasta luego!\n")
                break


def main() -> None:
    """Main entry point."""
    signal.signal(signal.SIGINT, _signal_handler)

    parser = argparse.ArgumentParser(
        description="EduBot Interactive CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                  # Start interactive mode
  %(prog)s -v                               # Start with verbose logging
  %(prog)s -q "¿Cuál es mi promedio?" --token TOKEN
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-q", "--query", type=str, help="Send a single message and exit")
    parser.add_argument("--token", type=str, default=None, help="Records API token (logs in)")
    parser.add_argument("--name", type=str, default=None, help="Student display name")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON (for scripting)",
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    cli = InteractiveCLI(verbose=args.verbose)
    if args.token:
        cli.session = SessionContext(
            is_logged_in=True, display_name=args.name, token=args.token
        )

    if args.query:
        result = cli.assistant.send_message(args.query, cli.session)
        if args.json:
            output = {
                "query": args.query,
                "answer": result.answer,
                "state": result.state.value,
                "iterations": result.iterations,
                "trace": cli.assistant.get_trace(),
            }
            print(json.dumps(output, indent=2, ensure_ascii=False))
        else:
            print(render_plain(result.answer))
    else:
        cli.run()


if __name__ == "__main__":
    main()
