"""
Terminal monitoring dashboard for the orchestration engine.

Provides a snapshot or live view of:
- Per-agent health, success rate and response time
- Aggregate task metrics and per-pattern latency
- Coordinator invocation counters and concurrency limits

Uses Rich library for terminal UI with live updates.
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .logging_config import get_logger

logger = get_logger("dashboard")


class OrchestrationDashboard:
    """
    Monitoring dashboard for an OrchestrationEngine.

    Args:
        engine: OrchestrationEngine instance to monitor
        console: Console to draw on (defaults to stdout)
        refresh_rate: Seconds between live refreshes
    """

    def __init__(self, engine, console: Optional[Console] = None, refresh_rate: float = 0.5):
        self.engine = engine
        self.console = console or Console()
        self._refresh_rate = refresh_rate
        self._running = False

    def render(self) -> Group:
        """Build the full dashboard renderable from current engine state."""
        health = self.engine.check_health()
        status = self.engine.get_status()

        return Group(
            Panel(self._render_header(health.status), title="VUXSort Orchestration", border_style="bold blue"),
            Panel(self._render_health(health), title="Agent Health", border_style=self._health_style(health.status)),
            Panel(self._render_metrics(status.get("metrics", {})), title="Task Metrics", border_style="cyan"),
            Panel(self._render_coordinator(status.get("coordinator", {})), title="Coordinator", border_style="magenta"),
        )

    def print_snapshot(self, console: Optional[Console] = None) -> None:
        """Print the dashboard once."""
        (console or self.console).print(self.render())

    async def start(self):
        """Start live dashboard display until stop() is called."""
        self._running = True
        with Live(self.render(), console=self.console, refresh_per_second=4) as live:
            while self._running:
                live.update(self.render())
                await asyncio.sleep(self._refresh_rate)

    def stop(self):
        """Stop dashboard display."""
        self._running = False

    def _render_header(self, overall: str) -> Text:
        now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        text = Text()
        text.append("Status: ", style="bold")
        text.append(overall.upper(), style=self._health_style(overall))
        text.append(f"  |  Time: {now}", style="dim")
        return text

    def _render_health(self, health) -> Table:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Agent", style="cyan")
        table.add_column("Status", justify="center")
        table.add_column("Success", justify="right")
        table.add_column("Avg time", justify="right")
        table.add_column("Enabled", justify="center")

        for domain, agent in health.agents.items():
            table.add_row(
                domain.value,
                Text("●", style=self._health_style(agent.status)),
                f"{agent.success_rate:.0f}%",
                f"{agent.average_response_time_ms:.0f}ms",
                "✓" if agent.enabled else "✗",
            )
        return table

    def _render_metrics(self, metrics: Dict[str, Any]) -> Table:
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_row("Total tasks:", str(metrics.get("total_tasks", 0)))
        table.add_row("Succeeded:", str(metrics.get("successful_tasks", 0)))
        table.add_row("Failed:", str(metrics.get("failed_tasks", 0)))
        table.add_row("Avg time:", f"{metrics.get('average_execution_time_ms', 0.0):.0f}ms")

        for pattern, latency in metrics.get("coordination_efficiency", {}).items():
            table.add_row(f"{pattern}:", f"{latency:.0f}ms")
        return table

    def _render_coordinator(self, coordinator: Dict[str, Any]) -> Table:
        table = Table(show_header=False, box=None, padding=(0, 1))

        running = sum(coordinator.get("running_invocations", {}).values())
        max_concurrent = coordinator.get("max_concurrent_agents", 0)

        # Running invocations bar
        bar_width = 20
        filled = int(running / max_concurrent * bar_width) if max_concurrent else 0
        bar = "█" * min(filled, bar_width) + "░" * (bar_width - min(filled, bar_width))

        table.add_row("Running:", bar, f"{running}/{max_concurrent}")
        table.add_row("Active executions:", "", str(coordinator.get("active_executions", 0)))
        table.add_row("Completed:", "✓", str(coordinator.get("completed_invocations", 0)))
        table.add_row("Failed:", "✗", str(coordinator.get("failed_invocations", 0)))
        table.add_row("Timed out:", "", str(coordinator.get("timed_out_invocations", 0)))
        table.add_row("Retried:", "", str(coordinator.get("retried_invocations", 0)))
        return table

    @staticmethod
    def _health_style(status: str) -> str:
        return {
            "healthy": "green",
            "degraded": "yellow bold",
            "unhealthy": "red bold",
        }.get(status, "white")


async def run_dashboard(engine, console: Optional[Console] = None):
    """
    Run dashboard as standalone task.

    Args:
        engine: OrchestrationEngine to monitor

    Usage:
        dashboard_task = asyncio.create_task(run_dashboard(engine))
        # ... submit tasks ...
        dashboard_task.cancel()
    """
    dashboard = OrchestrationDashboard(engine, console=console)

    try:
        await dashboard.start()
    except asyncio.CancelledError:
        dashboard.stop()
        logger.info("Dashboard stopped")
