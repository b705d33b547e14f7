"""Unit tests for the Simulation Engine: orchestration, propagation and evaluation."""

import logging
import math

import pytest

from circuitlab.config import Settings
from circuitlab.schemas.circuit import PlacedComponent, TerminalRef, WireData
from circuitlab.schemas.simulation import ErrorType
from circuitlab.simulation import SimulationEngine, simulate_circuit


# ─── Fixtures ───


def _placed(*specs: tuple[str, str]) -> list[PlacedComponent]:
    return [PlacedComponent(id=pid, type=t) for pid, t in specs]


def _wire(wire_id: str, start: str, end: str) -> WireData:
    sc, st = start.split(":")
    ec, et = end.split(":")
    return WireData(
        id=wire_id,
        start_terminal=TerminalRef(component_id=sc, terminal_id=st),
        end_terminal=TerminalRef(component_id=ec, terminal_id=et),
    )


def _engine(placed, wires, settings: Settings | None = None) -> SimulationEngine:
    engine = SimulationEngine(settings or Settings())
    engine.load_circuit(placed, wires)
    return engine


def _led_loop_parts(suffix: str = "") -> tuple[list[PlacedComponent], list[WireData]]:
    p, r, l, g = (f"{name}{suffix}" for name in ("P", "R", "L", "G"))
    placed = _placed((p, "5v"), (r, "resistor"), (l, "led"), (g, "gnd"))
    wires = [
        _wire(f"w1{suffix}", f"{p}:out", f"{r}:term-a"),
        _wire(f"w2{suffix}", f"{r}:term-b", f"{l}:anode"),
        _wire(f"w3{suffix}", f"{l}:cathode", f"{g}:in"),
    ]
    return placed, wires


def _powered(placed_extra, wires_extra) -> SimulationEngine:
    """5V and GND fixtures plus the given parts and wires."""
    return _engine(_placed(("P", "5v"), ("G", "gnd")) + placed_extra, wires_extra)


# ═══════════════════════════════════════════════════════════
# Loading
# ═══════════════════════════════════════════════════════════


class TestLoadCircuit:
    def test_unknown_types_are_skipped(self):
        engine = _engine(_placed(("O", "object"), ("L", "led")), [])
        assert list(engine.get_components()) == ["L"]

    def test_half_attached_wires_are_dropped(self):
        wire = WireData(
            id="w1",
            start_terminal=TerminalRef(component_id="L", terminal_id="anode"),
        )
        engine = _engine(_placed(("L", "led")), [wire])
        assert engine.wires == []

    def test_reload_discards_previous_state(self):
        engine = _engine(_placed(("B", "button")), [])
        engine.set_button_pressed("B", True)
        engine.load_circuit(_placed(("B", "button")), [])
        assert engine.components["B"].state.pressed is False

    def test_initial_state_bags(self):
        engine = _engine(
            _placed(("R", "resistor"), ("S", "servo"), ("D", "dht11")), []
        )
        assert engine.components["R"].state.resistance == 220
        assert engine.components["S"].state.angle == 90
        assert engine.components["D"].state.temperature == 25


# ═══════════════════════════════════════════════════════════
# Mutators
# ═══════════════════════════════════════════════════════════


class TestMutators:
    def _engine(self) -> SimulationEngine:
        return _engine(
            _placed(
                ("POT", "potentiometer"),
                ("US", "ultrasonic"),
                ("D", "dht11"),
                ("S", "servo"),
                ("IR", "ir-sensor"),
            ),
            [],
        )

    def test_values_are_clamped(self):
        engine = self._engine()
        engine.set_potentiometer_position("POT", 1.7)
        engine.set_ultrasonic_voltage("US", 9.0)
        engine.set_dht11_values("D", 80, -5)
        engine.set_servo_angle("S", 200)

        assert engine.components["POT"].state.position == 1.0
        assert engine.components["US"].state.output_voltage == 4.5
        assert engine.components["D"].state.temperature == 50
        assert engine.components["D"].state.humidity == 0
        assert engine.components["S"].state.angle == 180

    def test_lower_clamps(self):
        engine = self._engine()
        engine.set_potentiometer_position("POT", -1)
        engine.set_ultrasonic_voltage("US", 0.0)
        engine.set_servo_angle("S", -30)
        assert engine.components["POT"].state.position == 0.0
        assert engine.components["US"].state.output_voltage == 0.5
        assert engine.components["S"].state.angle == 0

    def test_unknown_or_mismatched_ids_are_ignored(self):
        engine = self._engine()
        engine.set_button_pressed("missing", True)
        engine.set_ir_detected("POT", True)
        assert not hasattr(engine.components["POT"].state, "detected")

    def test_non_finite_resistance_keeps_previous_value(self):
        engine = _engine(_placed(("R", "resistor")), [])
        engine.set_resistor_resistance("R", 330)
        engine.set_resistor_resistance("R", float("nan"))
        engine.set_resistor_resistance("R", float("inf"))
        assert engine.components["R"].state.resistance == 330


# ═══════════════════════════════════════════════════════════
# Orchestration
# ═══════════════════════════════════════════════════════════


class TestSimulate:
    def test_empty_workspace(self):
        result = _engine([], []).simulate()
        assert result.is_valid
        assert result.circuits == []
        assert result.component_states == {}

    def test_supply_and_ground_alone_are_valid(self):
        result = _engine(_placed(("P", "5v"), ("G", "gnd")), []).simulate()
        assert result.is_valid
        assert result.errors == []
        assert len(result.circuits) == 2
        assert result.component_states["P"].powered

    def test_every_placed_part_gets_a_state(self):
        placed, wires = _led_loop_parts()
        result = _engine(placed + _placed(("R9", "resistor")), wires).simulate()
        assert set(result.component_states) == {"P", "R", "L", "G", "R9"}

    def test_repeat_runs_are_identical(self):
        placed, wires = _led_loop_parts()
        engine = _engine(placed + _placed(("R9", "resistor")), wires)
        first = engine.simulate().model_dump_json()
        second = engine.simulate().model_dump_json()
        assert first == second

    def test_simulate_circuit_helper(self):
        placed, wires = _led_loop_parts()
        result = simulate_circuit(placed, wires, settings=Settings())
        assert result.component_states["L"].is_active

    def test_circuit_summaries(self):
        placed, wires = _led_loop_parts()
        result = _engine(placed, wires).simulate()
        summary = result.circuits[0]
        assert summary.id == "circuit-0"
        assert summary.is_complete
        assert sorted(summary.wire_ids) == ["w1", "w2", "w3"]
        assert sorted(summary.component_ids) == ["G", "L", "P", "R"]

    def test_floating_nets_serialize_as_null(self):
        result = _engine(_placed(("R", "resistor")), []).simulate()
        net = next(iter(result.net_states.values()))
        assert math.isnan(net.voltage)
        assert net.model_dump(mode="json")["voltage"] is None


class TestShortCircuit:
    def test_supply_wired_to_ground(self):
        engine = _engine(
            _placed(("P", "5v"), ("G", "gnd")), [_wire("w1", "P:out", "G:in")]
        )
        result = engine.simulate()
        assert [e.type for e in result.errors] == [ErrorType.SHORT_CIRCUIT]
        assert set(result.errors[0].affected_components) == {"P", "G"}
        assert not result.is_valid

    def test_short_silences_the_whole_cluster(self):
        placed, wires = _led_loop_parts()
        wires.append(_wire("w4", "P:out", "G:in"))
        result = _engine(placed, wires).simulate()

        assert [e.type for e in result.errors] == [ErrorType.SHORT_CIRCUIT]
        for state in result.component_states.values():
            assert not state.is_active
            assert not state.powered
        assert result.component_states["L"].properties["glowing"] is False

    def test_gpio_low_against_supply_pin(self):
        engine = _engine(
            _placed(("U", "arduino-uno")), [_wire("w1", "U:5v", "U:d13")]
        )
        result = engine.simulate({"U": {"d13": "LOW"}})
        assert [e.type for e in result.errors] == [ErrorType.SHORT_CIRCUIT]

    def test_clusters_are_isolated(self):
        shorted = _placed(("P1", "5v"), ("G1", "gnd"))
        placed, wires = _led_loop_parts("2")
        engine = _engine(shorted + placed, [_wire("ws", "P1:out", "G1:in")] + wires)
        result = engine.simulate()

        assert len(result.errors) == 1
        assert result.errors[0].cluster_id == result.circuits[0].id
        assert result.component_states["L2"].is_active


class TestClusterErrors:
    def test_lonely_resistor_has_no_supply(self):
        result = _engine(_placed(("R", "resistor")), []).simulate()
        assert [e.type for e in result.errors] == [
            ErrorType.NO_GROUND,
            ErrorType.NO_POWER,
        ]
        assert result.errors[0].affected_components == ["R"]
        assert result.errors[0].cluster_id == "circuit-0"

    def test_no_power(self):
        engine = _engine(
            _placed(("G", "gnd"), ("Z", "buzzer")),
            [_wire("w1", "Z:negative", "G:in")],
        )
        result = engine.simulate()
        assert [e.type for e in result.errors] == [ErrorType.NO_POWER]
        assert not result.component_states["Z"].is_active

    def test_boards_count_as_supply_and_ground(self):
        result = _engine(_placed(("U", "arduino-uno"), ("E", "esp32")), []).simulate()
        assert result.is_valid
        assert result.component_states["U"].powered
        assert result.component_states["E"].properties["powered"] is True


# ═══════════════════════════════════════════════════════════
# Logic panel pin states
# ═══════════════════════════════════════════════════════════


class TestPinStates:
    def _blink(self, board: str = "arduino-uno") -> SimulationEngine:
        return _engine(
            _placed(("U", board), ("R", "resistor"), ("L", "led")),
            [
                _wire("w1", "U:d13", "R:term-a"),
                _wire("w2", "R:term-b", "L:anode"),
                _wire("w3", "L:cathode", "U:gnd"),
            ],
        )

    def test_high_pin_drives_led(self):
        result = self._blink().simulate({"U": {"d13": "HIGH"}})
        assert result.component_states["L"].is_active

    def test_esp32_pin_drives_at_logic_level(self):
        result = self._blink("esp32").simulate({"U": {"d13": "HIGH"}})
        led = result.component_states["L"]
        assert led.is_active
        assert led.properties["current"] == pytest.approx(1.5 / 220)

    def test_pin_states_last_one_pass(self):
        engine = self._blink()
        engine.simulate({"U": {"d13": "HIGH"}})
        result = engine.simulate()
        assert not result.component_states["L"].is_active

    def test_low_pin_sinks_current(self):
        engine = _engine(
            _placed(("P", "5v"), ("R", "resistor"), ("L", "led"), ("U", "arduino-uno")),
            [
                _wire("w1", "P:out", "R:term-a"),
                _wire("w2", "R:term-b", "L:anode"),
                _wire("w3", "L:cathode", "U:d12"),
            ],
        )
        assert engine.simulate({"U": {"d12": "LOW"}}).component_states["L"].is_active
        assert not engine.simulate({"U": {"d12": "INPUT"}}).component_states["L"].is_active


# ═══════════════════════════════════════════════════════════
# Voltage propagation
# ═══════════════════════════════════════════════════════════


class TestPropagation:
    def _chain(self, settings: Settings) -> SimulationEngine:
        # listed ground-first so each round only reaches one net further
        return _engine(
            _placed(
                ("G", "gnd"),
                ("L", "led"),
                ("R2", "resistor"),
                ("R1", "resistor"),
                ("P", "5v"),
            ),
            [
                _wire("w1", "P:out", "R1:term-a"),
                _wire("w2", "R1:term-b", "R2:term-a"),
                _wire("w3", "R2:term-b", "L:anode"),
                _wire("w4", "L:cathode", "G:in"),
            ],
            settings,
        )

    def test_resistors_pass_voltage_through(self):
        engine = self._chain(Settings())
        engine.simulate()
        assert engine.netlist.voltage_at("L", "anode") == 5.0
        assert engine.netlist.voltage_at("L", "cathode") == 0.0

    def test_round_cap_leaves_far_nets_floating(self, caplog):
        engine = self._chain(Settings(propagation_max_iterations=1))
        with caplog.at_level(logging.WARNING):
            engine.simulate()
        assert engine.netlist.voltage_at("R2", "term-a") == 5.0
        assert math.isnan(engine.netlist.voltage_at("L", "anode"))
        assert "cap" in caplog.text

    def test_open_switch_blocks_voltage(self):
        engine = _powered(
            _placed(("B", "button"), ("R", "resistor")),
            [_wire("w1", "P:out", "B:in"), _wire("w2", "B:out", "R:term-a")],
        )
        engine.simulate()
        assert math.isnan(engine.netlist.voltage_at("B", "out"))

        engine.set_button_pressed("B", True)
        engine.simulate()
        assert engine.netlist.voltage_at("R", "term-a") == 5.0
        assert engine.netlist.voltage_at("R", "term-b") == 5.0

    def test_potentiometer_wiper_divides_supply(self):
        engine = _powered(
            _placed(("POT", "potentiometer")),
            [_wire("w1", "P:out", "POT:vcc"), _wire("w2", "POT:gnd", "G:in")],
        )
        engine.set_potentiometer_position("POT", 0.25)
        result = engine.simulate()
        assert engine.netlist.voltage_at("POT", "signal") == pytest.approx(1.25)
        pot = result.component_states["POT"]
        assert pot.is_active
        assert pot.properties["output_voltage"] == pytest.approx(1.25)


# ═══════════════════════════════════════════════════════════
# Sensors and actuators
# ═══════════════════════════════════════════════════════════


class TestSensors:
    def _sensor(self, placed_id: str, kind: str) -> SimulationEngine:
        return _powered(
            _placed((placed_id, kind)),
            [
                _wire("w1", "P:out", f"{placed_id}:vcc"),
                _wire("w2", f"{placed_id}:gnd", "G:in"),
            ],
        )

    def test_ir_output_follows_detection(self):
        engine = self._sensor("IR", "ir-sensor")
        engine.simulate()
        assert engine.netlist.voltage_at("IR", "out") == 0.0

        engine.set_ir_detected("IR", True)
        result = engine.simulate()
        assert engine.netlist.voltage_at("IR", "out") == 5.0
        assert result.component_states["IR"].properties["detected"] is True

    def test_ultrasonic_echo_voltage(self):
        engine = self._sensor("US", "ultrasonic")
        engine.set_ultrasonic_voltage("US", 2.0)
        engine.set_ultrasonic_distance("US", 120)
        result = engine.simulate()
        assert engine.netlist.voltage_at("US", "echo") == 2.0
        assert result.component_states["US"].properties["distance"] == 120

    def test_ultrasonic_needs_five_volt_class_supply(self):
        engine = _engine(
            _placed(("E", "esp32"), ("US", "ultrasonic"), ("IR", "ir-sensor")),
            [
                _wire("w1", "E:3v3", "US:vcc"),
                _wire("w2", "US:gnd", "E:gnd"),
                _wire("w3", "E:3v3", "IR:vcc"),
                _wire("w4", "IR:gnd", "E:gnd"),
            ],
        )
        result = engine.simulate()
        assert math.isnan(engine.netlist.voltage_at("US", "echo"))
        assert not result.component_states["US"].powered
        assert result.component_states["IR"].powered

    def test_dht11_data_line(self):
        engine = self._sensor("D", "dht11")
        engine.set_dht11_values("D", 31, 40)
        result = engine.simulate()
        assert engine.netlist.voltage_at("D", "data") == 5.0
        assert result.component_states["D"].properties["temperature"] == 31

    def test_dht11_without_reading_floats(self):
        engine = self._sensor("D", "dht11")
        engine.components["D"].state.temperature = None
        engine.simulate()
        assert math.isnan(engine.netlist.voltage_at("D", "data"))

    def test_unpowered_sensor_is_inert(self):
        result = _engine(_placed(("IR", "ir-sensor")), []).simulate()
        state = result.component_states["IR"]
        assert not state.powered and not state.is_active


class TestActuators:
    def test_buzzer_sounds_across_supply(self):
        engine = _powered(
            _placed(("Z", "buzzer")),
            [_wire("w1", "P:out", "Z:positive"), _wire("w2", "Z:negative", "G:in")],
        )
        buzzer = engine.simulate().component_states["Z"]
        assert buzzer.is_active
        assert buzzer.properties["active"] is True

    def _servo(self, signal_source: str | None) -> SimulationEngine:
        wires = [
            _wire("w1", "U:5v", "S:vcc"),
            _wire("w2", "S:gnd", "U:gnd"),
        ]
        if signal_source:
            wires.append(_wire("w3", signal_source, "S:signal"))
        return _engine(_placed(("U", "arduino-uno"), ("S", "servo")), wires)

    def test_servo_signal_high(self):
        engine = self._servo("U:d9")
        result = engine.simulate({"U": {"d9": "HIGH"}})
        assert result.component_states["S"].powered
        signal = engine.servo_signal_voltage("S")
        assert signal.powered and signal.voltage == 5.0
        assert engine.servo_angle_from_signal("S") == 180

    def test_servo_signal_low(self):
        engine = self._servo("U:d9")
        engine.simulate({"U": {"d9": "LOW"}})
        assert engine.servo_angle_from_signal("S") == 0

    def test_servo_floating_signal(self):
        engine = self._servo(None)
        engine.simulate()
        signal = engine.servo_signal_voltage("S")
        assert signal.powered and signal.voltage is None
        assert engine.servo_angle_from_signal("S") is None

    def test_unpowered_servo(self):
        engine = _engine(_placed(("S", "servo")), [])
        engine.simulate()
        assert not engine.servo_signal_voltage("S").powered
        assert engine.servo_signal_voltage("nope").powered is False
