"""Shared testing helpers: scripted collaborators for the run controller."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import AsyncIterator, List, Optional, Sequence

from brew_sim.core.timing import SimulationClock
from brew_sim.data_access.models import (
    BrewEvent,
    BrewInfo,
    BrewStep,
    ResultEvent,
    RunParameters,
    StepEvent,
)

SAMPLE_INFO = BrewInfo(
    tds="9.80%",
    extraction="20.1%",
    temperature="84.5°C",
    volume="25.5ml",
    category="Balanced",
)


class StubResult:
    def __init__(self, info: BrewInfo = SAMPLE_INFO) -> None:
        self.info = info

    def get_brew_info(self) -> BrewInfo:
        return self.info


class ScriptedMachine:
    """Machine double that replays a fixed list of events."""

    def __init__(
        self,
        clock: SimulationClock,
        events: Sequence[BrewEvent],
        *,
        assembly_error: Optional[Exception] = None,
        step_error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ) -> None:
        self.clock = clock
        self.events = list(events)
        self.assembly_error = assembly_error
        self.step_error = step_error
        self.gate = gate
        self.time_scale_at_assembly: Optional[float] = None
        self.time_scale_during_brew: List[float] = []
        self.closed = False

    async def assemble_machine(self, coffee, water, heat) -> None:
        self.time_scale_at_assembly = self.clock.time_scale
        if self.gate is not None:
            await self.gate.wait()
        if self.assembly_error is not None:
            raise self.assembly_error

    def brew(self) -> AsyncIterator[BrewEvent]:
        return self._brew()

    async def _brew(self) -> AsyncIterator[BrewEvent]:
        try:
            for event in self.events:
                await asyncio.sleep(0)
                if event.kind == "step":
                    self.time_scale_during_brew.append(self.clock.time_scale)
                yield event
            if self.step_error is not None:
                raise self.step_error
        finally:
            self.closed = True


class ScriptedComponents:
    """Builds plain namespaces for ingredients and a :class:`ScriptedMachine`."""

    def __init__(
        self,
        events: Sequence[BrewEvent] = (),
        *,
        construction_error: Optional[Exception] = None,
        **machine_kwargs,
    ) -> None:
        self.events = events
        self.construction_error = construction_error
        self.machine_kwargs = machine_kwargs
        self.machines: List[ScriptedMachine] = []

    def create_coffee(self, parameters: RunParameters):
        if self.construction_error is not None:
            raise self.construction_error
        return SimpleNamespace(
            type=parameters.coffee_type.value,
            grind_size=parameters.coffee_grind_size.value,
            actual_weight_g=parameters.coffee_nominal_weight_g,
        )

    def create_water(self, parameters: RunParameters):
        return SimpleNamespace(
            actual_volume_ml=parameters.water_nominal_volume_ml,
            actual_temp_c=parameters.water_nominal_temp_c,
        )

    def create_heat(self, parameters: RunParameters):
        return SimpleNamespace(
            heat_source=parameters.heat_source,
            heat_power_w=parameters.heat_power_w,
        )

    def create_machine(self, clock: SimulationClock) -> ScriptedMachine:
        machine = ScriptedMachine(clock, self.events, **self.machine_kwargs)
        self.machines.append(machine)
        return machine


def steps(*items: BrewStep) -> List[BrewEvent]:
    return [StepEvent(item) for item in items]


def with_result(events: List[BrewEvent], result=None) -> List[BrewEvent]:
    return events + [ResultEvent(result if result is not None else StubResult())]
