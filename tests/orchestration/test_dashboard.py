"""
Dashboard Tests.

Renders the monitoring dashboard against a recording console.
"""

import asyncio
import sys
from pathlib import Path

import pytest
from rich.console import Console

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from vuxsort_orchestrator import AgentDomain, OrchestrationEngine, SimulatedAgentInvoker, Task
from vuxsort_orchestrator.dashboard import OrchestrationDashboard, run_dashboard


@pytest.fixture
def engine():
    return OrchestrationEngine(invoker=SimulatedAgentInvoker(time_scale=0.001))


@pytest.fixture
def console():
    return Console(record=True, width=120, force_terminal=False)


class TestSnapshot:
    """One-shot rendering."""

    def test_renders_every_panel(self, engine, console):
        OrchestrationDashboard(engine, console=console).print_snapshot()
        output = console.export_text()

        for title in ("VUXSort Orchestration", "Agent Health", "Task Metrics", "Coordinator"):
            assert title in output
        for domain in AgentDomain:
            assert domain.value in output
        assert "HEALTHY" in output

    @pytest.mark.asyncio
    async def test_reflects_submitted_tasks(self, engine, console):
        await engine.submit_task(Task(id="t-1", description="Add dendrogram to results"))

        OrchestrationDashboard(engine, console=console).print_snapshot()
        output = console.export_text()

        assert "Total tasks:" in output
        assert "sequential:" in output


class TestLive:
    """Live refresh loop."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, engine, console):
        dashboard = OrchestrationDashboard(engine, console=console, refresh_rate=0.01)

        running = asyncio.ensure_future(dashboard.start())
        await asyncio.sleep(0.05)
        dashboard.stop()
        await asyncio.wait_for(running, timeout=1)

        assert running.done()

    @pytest.mark.asyncio
    async def test_run_dashboard_stops_on_cancel(self, engine, console):
        running = asyncio.ensure_future(run_dashboard(engine, console=console))
        await asyncio.sleep(0.05)
        running.cancel()
        await asyncio.wait_for(running, timeout=1)

        assert running.done()
