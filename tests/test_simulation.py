import pytest

from bundle_rescue.errors import SimulationRejected
from bundle_rescue.models import SimulationResult
from bundle_rescue.simulation import SimulationGate

from conftest import ScriptedRelay


def test_clean_simulation_passes_and_reports_effective_price(builder):
    relay = ScriptedRelay()
    signed = builder.build(20 * 10**9)

    result = SimulationGate(relay).check(signed, 100)

    assert result.effective_gas_price == 20 * 10**9
    assert relay.simulated == [(100, signed)]


@pytest.mark.parametrize("errors, index", [({0: "insufficient funds"}, 0), ({2: "reverted", 1: "x"}, 1)])
def test_any_slot_error_rejects(builder, errors, index):
    relay = ScriptedRelay(sim_errors=errors)

    with pytest.raises(SimulationRejected) as err:
        SimulationGate(relay).check(builder.build(20 * 10**9))

    assert err.value.index == index


def test_effective_price_with_no_gas_used():
    assert SimulationResult((), (), 100).effective_gas_price == 0
    assert SimulationResult((10, 30), (None, None), 400).effective_gas_price == 10
