import pytest

from brew_sim.core.orchestrator import (
    format_brew_info,
    format_setup,
    format_step,
    get_step_label,
)
from brew_sim.data_access.models import BrewStep, CoffeeType, GrindSize
from brew_sim.physics import Coffee, Heat, Water
from tests.utils import SAMPLE_INFO


# 测试：包含压力、温度与剩余时间的萃取步骤格式化结果。
def test_extraction_step_with_all_readings() -> None:
    step = BrewStep(
        step="extraction", pressure_bars=9, temperature_c=92.3, time_remaining_ms=15000
    )
    assert format_step(step) == "Extracting - 9 bar • 92.3°C • left 15s"


@pytest.mark.parametrize(
    "step_id, label",
    [
        ("heat-water", "Heat water"),
        ("pre-brew", "Pre-heating portfilter"),
        ("pre-infusion", "Pre-infusion"),
        ("pressure-buildup", "Pressure build"),
        ("extraction", "Extracting"),
        ("descaling", "descaling"),
    ],
)
def test_step_labels(step_id: str, label: str) -> None:
    assert get_step_label(step_id) == label
    assert format_step(BrewStep(step=step_id)) == label


# 测试：没有压力读数时温度前使用连字符。
def test_temperature_without_pressure_uses_hyphen() -> None:
    step = BrewStep(step="heat-water", temperature_c=45.26, time_remaining_ms=3200)
    assert format_step(step) == "Heat water - 45.3°C • left 3s"


def test_fractional_pressure_is_kept() -> None:
    step = BrewStep(step="pressure-buildup", pressure_bars=6.5, temperature_c=88.5)
    assert format_step(step) == "Pressure build - 6.5 bar • 88.5°C"


# 测试：剩余时间按四舍五入到整秒，为 0 或缺失时省略。
@pytest.mark.parametrize(
    "remaining, suffix",
    [(1500, " • left 2s"), (2499, " • left 2s"), (0, ""), (None, ""), (-10, "")],
)
def test_remaining_time_rounding(remaining, suffix) -> None:
    step = BrewStep(step="extraction", pressure_bars=9, time_remaining_ms=remaining)
    assert format_step(step) == "Extracting - 9 bar" + suffix


# 测试：读数为 0 时与缺失一样被省略。
def test_zero_readings_are_omitted() -> None:
    step = BrewStep(step="pre-brew", pressure_bars=0, temperature_c=0)
    assert format_step(step) == "Pre-heating portfilter"


def test_setup_summary_uses_actual_values() -> None:
    coffee = Coffee(type=CoffeeType.ARABICA, grind_size=GrindSize.FINE, nominal_weight_g=20)
    water = Water(nominal_volume_ml=36, nominal_temp_c=90)
    heat = Heat(heat_source="electric", heat_power_w=1500)

    assert format_setup(coffee, water, heat) == (
        "Setup - water 35.3ml @ 88.5°C • coffee 19.6g arabica (fine) • heater 1500W"
    )


def test_brew_info_summary() -> None:
    assert format_brew_info(SAMPLE_INFO) == (
        "Brew complete - TDS 9.80% • Ext 20.1% • 84.5°C • 25.5ml • Balanced"
    )
