"""Unit tests for Clock and SimulationConfig."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta

import pytest

from dessim import OverflowPolicy, Simulation, SimulationConfig
from dessim.core.clock import Clock


class TestClock:
    def test_starts_at_start_time(self):
        assert Clock().now == 0
        assert Clock(7.5).now == 7.5

    def test_negative_start_raises(self):
        with pytest.raises(ValueError, match="start_time"):
            Clock(-1)

    def test_advance_forward(self):
        clock = Clock()
        clock.advance(3)
        clock.advance(3)
        assert clock.now == 3

    def test_advance_backwards_raises(self):
        clock = Clock(5)
        with pytest.raises(ValueError, match="backwards"):
            clock.advance(4)

    def test_to_datetime_with_epoch(self):
        epoch = datetime(2024, 1, 1, 8, 0)
        clock = Clock(epoch=epoch, time_unit=timedelta(minutes=1))
        clock.advance(90)
        assert clock.to_datetime() == datetime(2024, 1, 1, 9, 30)
        assert clock.to_datetime(30) == datetime(2024, 1, 1, 8, 30)

    def test_to_datetime_without_epoch_raises(self):
        with pytest.raises(RuntimeError, match="epoch"):
            Clock().to_datetime()


class TestSimulationConfig:
    def test_defaults(self):
        config = SimulationConfig()
        assert config.strict_interrupts is True
        assert config.fail_fast is False
        assert config.overflow is OverflowPolicy.BLOCK
        assert config.epoch is None
        assert config.time_unit == timedelta(seconds=1)

    def test_is_frozen(self):
        config = SimulationConfig()
        with pytest.raises(FrozenInstanceError):
            config.fail_fast = True

    def test_replace_returns_copy(self):
        config = SimulationConfig()
        changed = config.replace(fail_fast=True)
        assert changed.fail_fast is True
        assert config.fail_fast is False

    def test_simulation_uses_epoch(self):
        epoch = datetime(2024, 6, 1)
        sim = Simulation(config=SimulationConfig(epoch=epoch, time_unit=timedelta(hours=1)))
        sim.timeout(5)
        sim.run()
        assert sim.now_datetime == datetime(2024, 6, 1, 5)

    def test_simulations_do_not_share_config(self):
        strict = Simulation()
        lenient = Simulation(config=SimulationConfig(strict_interrupts=False))
        assert strict.config.strict_interrupts
        assert not lenient.config.strict_interrupts
