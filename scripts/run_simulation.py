from __future__ import annotations

import argparse
import asyncio
import logging

from brew_sim.core.orchestrator import SimulationRunController
from brew_sim.data_access.models import CoffeeType, GrindSize
from brew_sim.utils.settings import get_simulator_config


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one espresso brew simulation")
    parser.add_argument("--time-scale", type=float, default=None)
    parser.add_argument(
        "--coffee-type", choices=[t.value for t in CoffeeType], default=None
    )
    parser.add_argument(
        "--grind-size", choices=[g.value for g in GrindSize], default=None
    )
    parser.add_argument("--coffee-weight", type=float, default=None, help="grams")
    parser.add_argument("--water-volume", type=float, default=None, help="ml")
    parser.add_argument("--water-temp", type=float, default=None, help="°C")
    parser.add_argument("--heat-source", default=None)
    parser.add_argument("--heat-power", type=float, default=None, help="W")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args()


async def main() -> None:
    args = _parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    parameters = get_simulator_config().defaults.to_run_parameters(
        time_scale=args.time_scale,
        coffee_type=args.coffee_type,
        coffee_grind_size=args.grind_size,
        coffee_nominal_weight_g=args.coffee_weight,
        water_nominal_volume_ml=args.water_volume,
        water_nominal_temp_c=args.water_temp,
        heat_source=args.heat_source,
        heat_power_w=args.heat_power,
    )

    controller = SimulationRunController()

    def _print_newest(entries) -> None:
        if entries:
            print(f"{entries[0].time}  {entries[0].message}")

    controller.feed.subscribe(_print_newest)
    await controller.execute(parameters)


if __name__ == "__main__":
    asyncio.run(main())
