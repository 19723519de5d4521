"""Run controller: drive one espresso brew simulation at a time and narrate it
into the report feed.

The controller owns the ``idle``/``running`` state. A start request while a run
is in progress is rejected with an error entry, never queued. Every accepted
run ends with the simulation clock back at its default time scale and the
state back at ``idle``, whether the brew completed or failed.
"""

from __future__ import annotations

import logging
import math
from typing import Any, AsyncIterator, Dict, Optional

from ..data_access.models import (
    BrewEvent,
    BrewInfo,
    BrewStep,
    ReportType,
    RunParameters,
    RunState,
)
from ..data_access.report_feed import ReportFeed, present
from ..physics import EspressoComponents
from .interfaces import (
    BrewResultLike,
    CoffeeLike,
    HeatLike,
    SimulationComponents,
    WaterLike,
)
from .timing import SimulationClock, default_clock, scaled_timing

logger = logging.getLogger(__name__)

STEP_LABELS: Dict[str, str] = {
    "heat-water": "Heat water",
    "pre-brew": "Pre-heating portfilter",
    "pre-infusion": "Pre-infusion",
    "pressure-buildup": "Pressure build",
    "extraction": "Extracting",
}


def get_step_label(step: str) -> str:
    return STEP_LABELS.get(step, f"{step}")


def _format_number(value: Any) -> str:
    """Render a reading the way it was produced: ``9.0`` -> ``9``, ``9.5`` -> ``9.5``."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_step(step: BrewStep) -> str:
    """Turn one brew step into a single human-readable line.

    >>> format_step(BrewStep(step="extraction", pressure_bars=9,
    ...                      temperature_c=92.3, time_remaining_ms=15000))
    'Extracting - 9 bar • 92.3°C • left 15s'
    """

    output = get_step_label(step.step)

    if step.pressure_bars:
        output += f" - {_format_number(step.pressure_bars)} bar"

    if step.temperature_c:
        separator = "•" if step.pressure_bars else "-"
        output += f" {separator} {step.temperature_c:.1f}°C"

    if step.time_remaining_ms is not None and step.time_remaining_ms > 0:
        output += f" • left {_round_half_up(step.time_remaining_ms / 1000)}s"

    return output


def format_setup(coffee: CoffeeLike, water: WaterLike, heat: HeatLike) -> str:
    return (
        f"Setup - water {water.actual_volume_ml:.1f}ml @ {water.actual_temp_c:.1f}°C"
        f" • coffee {_format_number(coffee.actual_weight_g)}g {coffee.type} ({coffee.grind_size})"
        f" • heater {_format_number(heat.heat_power_w)}W"
    )


def format_brew_info(info: BrewInfo) -> str:
    return (
        f"Brew complete - TDS {info.tds} • Ext {info.extraction}"
        f" • {info.temperature} • {info.volume} • {info.category}"
    )


def _error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class SimulationRunController:
    """Single-flight controller for brew simulation runs."""

    def __init__(
        self,
        feed: Optional[ReportFeed] = None,
        *,
        components: Optional[SimulationComponents] = None,
        clock: Optional[SimulationClock] = None,
    ) -> None:
        self.feed = feed if feed is not None else ReportFeed()
        self.components = components if components is not None else EspressoComponents()
        self.clock = clock if clock is not None else default_clock
        self._state = RunState.IDLE
        self._runs_started = 0

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    async def execute(self, parameters: RunParameters) -> None:
        """Run one simulation to completion.

        Never raises for run failures: every outcome, including a rejected
        start, is reported through the feed.
        """

        # check-and-set without an await in between keeps this single-flight
        if self._state is RunState.RUNNING:
            logger.warning("Rejected simulation start: a run is already in progress")
            self.feed.append("Simulation already running", ReportType.ERROR)
            return
        self._state = RunState.RUNNING
        self._runs_started += 1
        run_number = self._runs_started
        logger.info(
            "Simulation run %d started (time_scale=%s)", run_number, parameters.time_scale
        )

        self.feed.append("Simulation started", ReportType.HEADING)
        try:
            with scaled_timing(self.clock, parameters.time_scale):
                await self._run(parameters)
        except Exception as exc:
            logger.warning(
                "Simulation run %d failed: %s", run_number, exc, exc_info=True
            )
            self.feed.append(f"Error: {_error_message(exc)}", ReportType.ERROR)
        else:
            logger.info("Simulation run %d finished", run_number)
        finally:
            self.clock.reset_time_scale()
            self._state = RunState.IDLE

    async def _run(self, parameters: RunParameters) -> None:
        components = self.components
        machine = components.create_machine(self.clock)
        coffee = components.create_coffee(parameters)
        water = components.create_water(parameters)
        heat = components.create_heat(parameters)
        self.feed.append(format_setup(coffee, water, heat), ReportType.INFO)

        self.feed.append("Assembling machine...", ReportType.WARNING)
        await machine.assemble_machine(coffee, water, heat)
        self.feed.append("Machine ready", ReportType.SUCCESS)

        self.feed.append("Brewing espresso...", ReportType.WARNING)
        result = await self._consume_steps(machine.brew())

        if result is not None:
            self.feed.append(
                format_brew_info(result.get_brew_info()), ReportType.SUCCESS
            )
        else:
            self.feed.append("Brew complete", ReportType.SUCCESS)

    async def _consume_steps(
        self, events: AsyncIterator[BrewEvent]
    ) -> Optional[BrewResultLike]:
        """Pull events one at a time until the result marker or exhaustion."""

        result = None
        try:
            async for event in events:
                if event.kind == "result":
                    result = event.result
                    break
                self.feed.append(format_step(event.step))
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()
        return result

    def clear_reports(self) -> None:
        self.feed.clear()

    def snapshot(self) -> Dict[str, Any]:
        """Read-only view for the display: state plus newest-first entries."""

        return {
            "state": self._state.value,
            "entries": [
                {**entry.model_dump(mode="json"), "presentation": present(entry.type)}
                for entry in self.feed.entries
            ],
        }


__all__ = [
    "STEP_LABELS",
    "SimulationRunController",
    "format_brew_info",
    "format_setup",
    "format_step",
    "get_step_label",
]
