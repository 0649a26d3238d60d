"""CLI - Command line interface for the resume orchestrator."""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from .agent_factory import create_orchestrator
from .agents.orchestrator import AgentOrchestrator
from .agents.protocol import GoalOutcome
from .errors import OrchestratorError, PlanningError, UnresolvableWorkflowError

console = Console()

RESULT_PREVIEW_CHARS = 120


def load_context(path: Optional[str]) -> Dict[str, Any]:
    """Read a JSON object from ``path``; no path means an empty context."""
    if not path:
        return {}
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Context file must contain a JSON object: {path}")
    return data


def _preview(value: Any) -> str:
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False, default=str)
    return text if len(text) <= RESULT_PREVIEW_CHARS else text[: RESULT_PREVIEW_CHARS - 3] + "..."


def render_outcome(outcome: GoalOutcome) -> None:
    table = Table(title=f"Goal: {outcome.goal}", show_lines=True)
    table.add_column("Task", style="cyan")
    table.add_column("Agent", style="magenta")
    table.add_column("Result")
    for record in outcome.results:
        table.add_row(record.task_id, record.agent_role, _preview(record.result))
    console.print(table)
    console.print(
        f"✅ {outcome.tasks_completed}/{outcome.total_tasks} tasks completed "
        f"by {', '.join(outcome.agents_used) or 'no agents'}",
        style="green",
    )


def render_stats(orchestrator: AgentOrchestrator) -> None:
    stats = orchestrator.observer.get_session_stats()
    table = Table(title="Session stats")
    table.add_column("Metric", style="dim")
    table.add_column("Value", justify="right")
    for key, value in stats.items():
        table.add_row(key, f"{value:.2f}" if isinstance(value, float) else str(value))
    console.print(table)


def render_failure(orchestrator: AgentOrchestrator, error: Exception) -> None:
    state = orchestrator.get_state()
    lines: List[str] = [f"**{type(error).__name__}**: {error}", "", f"Orchestrator status: `{state.status.value}`"]
    if isinstance(error, UnresolvableWorkflowError) and error.pending_task_ids:
        lines.append(f"Pending tasks: {', '.join(error.pending_task_ids)}")
    failed = [t for t in state.tasks if t.error]
    for task in failed:
        lines.append(f"- `{task.id}` ({task.assigned_agent_role}) failed: {task.error}")
    if isinstance(error, PlanningError) and error.raw_text:
        lines.extend(["", "Raw planner reply:", f"```\n{error.raw_text[:500]}\n```"])
    console.print(Panel(Markdown("\n".join(lines)), title="Goal failed", border_style="red"))


async def run_goal(orchestrator: AgentOrchestrator, goal: str, context: Dict[str, Any]) -> GoalOutcome:
    with console.status("[cyan]Planning and executing workflow..."):
        return await orchestrator.achieve_goal(goal, context)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resume-orchestrator",
        description="Resume Orchestrator - coordinate specialized career agents",
    )
    parser.add_argument(
        "--config", "-c",
        default="config/config.local.yaml",
        help="Path to configuration file (config.yaml defaults are merged underneath)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log orchestrator events",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    goal_parser = subparsers.add_parser("goal", help="Plan and execute a multi-agent workflow for a goal")
    goal_parser.add_argument("goal", help="Natural-language goal")
    goal_parser.add_argument("--context-file", help="JSON file with context passed to every agent")
    goal_parser.add_argument("--stats", action="store_true", help="Print session stats afterwards")

    chat_parser = subparsers.add_parser("chat", help="Send one message; it is answered directly or routed")
    chat_parser.add_argument("message", help="Message text")
    chat_parser.add_argument("--context-file", help="JSON file with context")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        orchestrator = create_orchestrator(config_path=args.config, verbose=args.verbose)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"⚠️ {e}", style="yellow")
        console.print("Set GEMINI_API_KEY or add api_key to config/config.local.yaml.", style="dim")
        return 2

    if args.command == "serve":
        from .web.app import main as serve

        serve(host=args.host, port=args.port, orchestrator=orchestrator)
        return 0

    context = load_context(args.context_file)

    try:
        if args.command == "goal":
            outcome = asyncio.run(run_goal(orchestrator, args.goal, context))
            render_outcome(outcome)
            if args.stats:
                render_stats(orchestrator)
        else:
            reply = asyncio.run(orchestrator.chat(args.message, context))
            console.print(Markdown(reply))
    except OrchestratorError as e:
        render_failure(orchestrator, e)
        return 1
    except KeyboardInterrupt:
        console.print("\n👋 Interrupted", style="yellow")
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
