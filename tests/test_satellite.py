"""
Unit Tests for the Satellite Driver and Tracker

Run with:
    python -m pytest tests/test_satellite.py -v
"""

import dataclasses
import gc
import threading
import unittest
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest import mock

import numpy as np

import tle_propagator
from tle_propagator import config, satellite
from tle_propagator.exceptions import OrbitDecayedError, ParseError, UnknownModelError
from tle_propagator.gravity import WGS72, WGS84
from tle_propagator.initializer import initialize
from tle_propagator.propagation import step
from tle_propagator.records import StateVector
from tle_propagator.satellite import (
    Satellite,
    SatelliteTracker,
    clear_registry,
    get_satellite,
    propagate,
)
from tle_propagator.tle_parser import parse_tle

ISS_LINES = [config.SAMPLE_ISS_TLE['line1'], config.SAMPLE_ISS_TLE['line2']]
GEO_LINES = [
    "1 28626U 05008A   06176.46683397 -.00000205  00000-0  10000-3 0  2190",
    "2 28626   0.0019 286.9433 0000004  13.7918  55.6504  1.00270176  4891",
]
DECAYING_LINES = [
    "1 44444U 19999A   23259.50000000  .10000000  00000-0  50000-2 0  9991",
    "2 44444  51.6400 100.0000 0005000  90.0000 270.0000 16.50000000 99990",
]


class TestSatellite(unittest.TestCase):
    """Lazy initialization and time handling"""

    def setUp(self):
        self.element_set = parse_tle(ISS_LINES, strict_checksum=False)
        self.satellite = Satellite(self.element_set, "wgs84")

    def test_lazy_initialization(self):
        self.assertFalse(self.satellite.initialized)

        record = self.satellite.record

        self.assertTrue(self.satellite.initialized)
        self.assertIs(self.satellite.record, record)
        self.assertIs(record.gravity, WGS84)

    def test_unknown_model_fails_early(self):
        with self.assertRaises(UnknownModelError):
            Satellite(self.element_set, "wgs60")

    def test_default_model_from_config(self):
        with mock.patch.object(config, "DEFAULT_GRAVITY_MODEL", "wgs72"):
            self.assertIs(Satellite(self.element_set).gravity, WGS72)

    def test_from_tle(self):
        sat = Satellite.from_tle([config.SAMPLE_ISS_TLE['name']] + ISS_LINES, "wgs72")

        self.assertEqual(sat.catalog_number, 25544)
        self.assertEqual(sat.name, "ISS (ZARYA)")
        self.assertIn("25544", repr(sat))

    def test_from_tle_rejects_garbage(self):
        with self.assertRaises(ParseError):
            Satellite.from_tle(["not a tle", "at all"])

    def test_minutes_since_epoch(self):
        epoch = self.element_set.epoch

        self.assertEqual(self.satellite.minutes_since_epoch(epoch), 0.0)
        self.assertAlmostEqual(self.satellite.minutes_since_epoch(epoch + timedelta(hours=1)),
                               60.0, places=9)
        self.assertAlmostEqual(self.satellite.minutes_since_epoch(epoch - timedelta(days=1)),
                               -1440.0, places=9)

    def test_propagate_matches_step(self):
        epoch = self.element_set.epoch
        state = self.satellite.propagate(epoch + timedelta(minutes=90))

        self.assertIsInstance(state, StateVector)
        self.assertAlmostEqual(state.tsince, 90.0, places=6)
        expected = step(initialize(self.element_set, WGS84), state.tsince)
        self.assertEqual(state, expected)

    def test_naive_datetime_is_utc(self):
        when = datetime(2023, 9, 17, 0, 0, 0)
        aware = when.replace(tzinfo=timezone.utc)

        self.assertEqual(self.satellite.propagate(when), self.satellite.propagate(aware))

    def test_other_timezones(self):
        aware = datetime(2023, 9, 17, 0, 0, 0, tzinfo=timezone.utc)
        shifted = aware.astimezone(timezone(timedelta(hours=-5)))

        self.assertEqual(self.satellite.propagate(shifted), self.satellite.propagate(aware))

    def test_propagate_minutes(self):
        state = self.satellite.propagate_minutes(0.0)
        self.assertEqual(state.tsince, 0.0)
        self.assertEqual(state, self.satellite.propagate(self.element_set.epoch))

    def test_propagate_batch(self):
        epoch = self.element_set.epoch
        times = [epoch + timedelta(minutes=m) for m in (0, 30, 60, 90)]

        states = self.satellite.propagate_batch(times)

        self.assertEqual(len(states), 4)
        for when, state in zip(times, states):
            self.assertEqual(state, self.satellite.propagate(when))

    def test_batch_raises_on_decay(self):
        sat = Satellite(parse_tle(DECAYING_LINES), "wgs72")
        epoch = sat.element_set.epoch
        times = [epoch, epoch + timedelta(days=10)]

        with self.assertLogs("tle_propagator.satellite", level="ERROR"):
            with self.assertRaises(OrbitDecayedError):
                sat.propagate_batch(times)

    def test_state_vector(self):
        state = self.satellite.propagate_minutes(45.0)

        self.assertEqual(state.position.shape, (3,))
        self.assertEqual(state.velocity.shape, (3,))
        self.assertAlmostEqual(state.radius, float(np.linalg.norm(state.position)), places=9)
        self.assertGreater(state.speed, 7.0)
        self.assertLess(state.speed, 8.0)
        position, velocity = state.as_tuple()
        self.assertEqual(len(position), 3)
        self.assertEqual(velocity[0], state.velocity[0])
        with self.assertRaises(TypeError):
            hash(state)


class TestConcurrency(unittest.TestCase):

    def test_record_built_once(self):
        element_set = parse_tle(GEO_LINES, strict_checksum=False)
        sat = Satellite(element_set, "wgs72")
        barrier = threading.Barrier(8)

        def worker(minutes):
            barrier.wait()
            return sat.propagate_minutes(minutes)

        with mock.patch.object(satellite, "initialize", wraps=initialize) as wrapped:
            with ThreadPoolExecutor(max_workers=8) as pool:
                states = list(pool.map(worker, [1440.0] * 8))

        self.assertEqual(wrapped.call_count, 1)
        for state in states[1:]:
            self.assertEqual(state, states[0])

    def test_concurrent_steps_bit_identical(self):
        sat = Satellite(parse_tle(ISS_LINES), "wgs84")
        times = [float(m) for m in range(-1440, 1441, 180)]
        expected = [sat.propagate_minutes(t) for t in times]

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(sat.propagate_minutes, times * 4))

        self.assertEqual(results, expected * 4)


class TestModuleLevelPropagate(unittest.TestCase):

    def setUp(self):
        clear_registry()
        self.element_set = parse_tle(ISS_LINES)

    def tearDown(self):
        clear_registry()

    def test_registry_reuses_satellites(self):
        first = get_satellite(self.element_set, "wgs84")

        self.assertIs(get_satellite(self.element_set, "WGS84"), first)
        self.assertIsNot(get_satellite(self.element_set, "wgs72"), first)

        with mock.patch.object(config, "DEFAULT_GRAVITY_MODEL", "wgs84"):
            self.assertIs(get_satellite(self.element_set), first)

    def test_equal_element_sets_share_a_satellite(self):
        again = parse_tle(ISS_LINES)
        self.assertIs(get_satellite(again, "wgs84"), get_satellite(self.element_set, "wgs84"))

    def test_propagate(self):
        when = self.element_set.epoch + timedelta(hours=6)

        state = propagate(self.element_set, when, "wgs84")

        self.assertEqual(state, Satellite(self.element_set, "wgs84").propagate(when))
        self.assertTrue(get_satellite(self.element_set, "wgs84").initialized)

    def test_propagate_unknown_model(self):
        with self.assertRaises(UnknownModelError):
            propagate(self.element_set, self.element_set.epoch, "wgs60")

    def test_cached_satellite_does_not_hold_its_key(self):
        cached = get_satellite(self.element_set, "wgs84")

        self.assertEqual(cached.element_set, self.element_set)
        self.assertIsNot(cached.element_set, self.element_set)

    def test_dropped_element_sets_are_released(self):
        when = self.element_set.epoch + timedelta(minutes=30)
        element_sets = [dataclasses.replace(self.element_set, element_number=n) for n in range(50)]
        for element_set in element_sets:
            propagate(element_set, when, "wgs84")
        self.assertEqual(len(satellite._registry), 50)

        del element_sets, element_set
        gc.collect()

        self.assertEqual(len(satellite._registry), 0)

    def test_live_element_set_keeps_its_entry(self):
        first = get_satellite(self.element_set, "wgs84")
        gc.collect()
        self.assertIs(get_satellite(self.element_set, "wgs84"), first)

    def test_clear_registry(self):
        first = get_satellite(self.element_set, "wgs84")
        clear_registry()
        self.assertIsNot(get_satellite(self.element_set, "wgs84"), first)

    def test_package_exports(self):
        self.assertIs(tle_propagator.propagate, propagate)
        self.assertIs(tle_propagator.parse_tle, parse_tle)


class TestSatelliteTracker(unittest.TestCase):
    """Multi-satellite tracking by catalog number"""

    def setUp(self):
        self.tracker = SatelliteTracker(model_name="wgs72")
        self.line1, self.line2 = ISS_LINES

    def test_load_satellite(self):
        with self.assertLogs("tle_propagator.satellite", level="INFO"):
            norad_id = self.tracker.load_satellite(self.line1, self.line2, "ISS (ZARYA)")

        self.assertEqual(norad_id, 25544)
        self.assertIn(25544, self.tracker.satellites)
        self.assertEqual(self.tracker.satellites[25544].name, "ISS (ZARYA)")

    def test_load_invalid(self):
        with self.assertRaises(ParseError):
            self.tracker.load_satellite("1 bad", self.line2)

    def test_load_text(self):
        text = "\n".join(["ISS (ZARYA)"] + ISS_LINES + GEO_LINES)
        self.assertEqual(self.tracker.load_text(text), [25544, 28626])

    def test_propagate(self):
        self.tracker.load_satellite(self.line1, self.line2)
        epoch = self.tracker.satellites[25544].element_set.epoch

        state = self.tracker.propagate(25544, epoch + timedelta(minutes=10))

        self.assertAlmostEqual(state.tsince, 10.0, places=6)

    def test_propagate_defaults_to_now(self):
        self.tracker.load_satellite(self.line1, self.line2)
        epoch = self.tracker.satellites[25544].element_set.epoch

        with mock.patch.object(satellite, "datetime") as mock_datetime:
            mock_datetime.now.return_value = epoch + timedelta(hours=1)
            state = self.tracker.propagate(25544)

        self.assertAlmostEqual(state.tsince, 60.0, places=6)

    def test_propagate_unknown_satellite(self):
        with self.assertRaises(KeyError):
            self.tracker.propagate(99999, datetime.now(timezone.utc))

    def test_propagate_batch(self):
        self.tracker.load_satellite(self.line1, self.line2)
        epoch = self.tracker.satellites[25544].element_set.epoch

        states = self.tracker.propagate_batch(25544, [epoch, epoch + timedelta(minutes=5)])

        self.assertEqual([s.tsince for s in states], [0.0, 5.0])

    def test_get_orbital_elements(self):
        self.tracker.load_satellite(self.line1, self.line2, "ISS (ZARYA)")

        elements = self.tracker.get_orbital_elements(25544)

        self.assertEqual(elements['catalog_number'], 25544)
        self.assertEqual(elements['name'], "ISS (ZARYA)")
        self.assertAlmostEqual(elements['inclination'], 51.6416, places=4)
        self.assertEqual(elements['gravity_model'], "wgs72")
        self.assertEqual(elements['regime'], "near_earth")
        self.assertEqual(elements['resonance'], "none")
        self.assertGreater(elements['perigee_altitude_km'], 380.0)

    def test_remove_satellite(self):
        self.tracker.load_satellite(self.line1, self.line2)
        self.tracker.remove_satellite(25544)

        self.assertNotIn(25544, self.tracker.satellites)
        with self.assertRaises(KeyError):
            self.tracker.remove_satellite(25544)


if __name__ == '__main__':
    unittest.main()
