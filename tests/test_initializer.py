"""
Unit Tests for SGP4 Initialization

Run with:
    python -m pytest tests/test_initializer.py -v
"""

import dataclasses
import math
import unittest
from unittest import mock

from tle_propagator import config
from tle_propagator.exceptions import OrbitDecayedError, UnknownModelError
from tle_propagator.gravity import WGS72, WGS84
from tle_propagator.initializer import initialize
from tle_propagator.records import (
    DeepSpaceTerms,
    NearEarthTerms,
    PropagationRecord,
    Regime,
    Resonance,
)
from tle_propagator.tle_parser import TLEParser

VANGUARD = (
    "1 00005U 58002B   00179.78495062  .00000023  00000-0  28098-4 0  4753",
    "2 00005  34.2682 348.7242 1859667 331.7664  19.3264 10.82419157413667",
)
STR3_SGP4 = (
    "1 88888U          80275.98708465  .00073094  13844-3  66816-4 0    87",
    "2 88888  72.8435 115.9689 0086731  52.6988 110.5714 16.05824518  1058",
)
STR3_SDP4 = (
    "1 11801U          80230.29629788  .00000096  00000-0  00000-0 0    13",
    "2 11801  46.7916 230.4354 7318036  47.4722  10.4117  2.28537848    13",
)
MOLNIYA = (
    "1 08195U 75081A   06176.33215444  .00000099  00000-0  11873-3 0   813",
    "2 08195  64.1586 279.0717 6877146 264.7651  20.2257  2.00491383225656",
)
GEO = (
    "1 28626U 05008A   06176.46683397 -.00000205  00000-0  10000-3 0  2190",
    "2 28626   0.0019 286.9433 0000004  13.7918  55.6504  1.00270176  4891",
)


class InitializerTestCase(unittest.TestCase):

    parser = TLEParser(strict_checksum=False)

    def parse(self, lines):
        return self.parser.parse(*lines)


class TestRegimeSelection(InitializerTestCase):
    """Near-earth / deep-space split and drag simplification"""

    def test_near_earth_full_drag(self):
        record = initialize(self.parse(VANGUARD), "wgs72")

        self.assertEqual(record.regime, Regime.NEAR_EARTH)
        self.assertIsInstance(record.payload, NearEarthTerms)
        self.assertFalse(record.is_simplified)
        self.assertIsNotNone(record.payload.drag)
        self.assertEqual(record.resonance, Resonance.NONE)

    def test_near_earth_low_perigee_simplified(self):
        record = initialize(self.parse(STR3_SGP4), "wgs72")

        self.assertEqual(record.regime, Regime.NEAR_EARTH)
        self.assertTrue(record.is_simplified)
        self.assertIsNone(record.payload.drag)
        self.assertLess(record.perigee_altitude_km, config.SIMPLIFIED_DRAG_PERIGEE_KM)

    def test_iss(self):
        element_set = self.parser.parse(config.SAMPLE_ISS_TLE['line1'],
                                        config.SAMPLE_ISS_TLE['line2'])
        record = initialize(element_set, WGS84)

        self.assertEqual(record.regime, Regime.NEAR_EARTH)
        self.assertFalse(record.is_simplified)
        self.assertGreater(record.perigee_altitude_km, 380.0)
        self.assertLess(record.apogee_altitude_km, 450.0)
        self.assertAlmostEqual(record.period_minutes, 92.9, delta=0.3)

    def test_deep_space_non_resonant(self):
        record = initialize(self.parse(STR3_SDP4), "wgs72")

        self.assertEqual(record.regime, Regime.DEEP_SPACE)
        self.assertIsInstance(record.payload, DeepSpaceTerms)
        self.assertIsNone(record.payload.resonance)
        self.assertEqual(record.resonance, Resonance.NONE)
        self.assertTrue(record.is_simplified)
        self.assertGreaterEqual(record.period_minutes, config.DEEP_SPACE_PERIOD_MINUTES)

    def test_deep_space_half_day_resonance(self):
        record = initialize(self.parse(MOLNIYA), "wgs72")

        self.assertEqual(record.regime, Regime.DEEP_SPACE)
        self.assertEqual(record.resonance, Resonance.HALF_DAY)
        self.assertNotEqual(record.payload.resonance.d2201, 0.0)
        self.assertEqual(record.payload.resonance.del1, 0.0)

    def test_deep_space_synchronous_resonance(self):
        record = initialize(self.parse(GEO), "wgs72")

        self.assertEqual(record.resonance, Resonance.SYNCHRONOUS)
        self.assertNotEqual(record.payload.resonance.del1, 0.0)
        self.assertEqual(record.payload.resonance.d2201, 0.0)


class TestRecord(InitializerTestCase):

    def test_un_kozai_mean_motion(self):
        record = initialize(self.parse(VANGUARD), "wgs72")

        self.assertAlmostEqual(record.no_kozai, 10.82419157 * 2.0 * math.pi / 1440.0, places=12)
        self.assertNotEqual(record.no_unkozai, record.no_kozai)
        self.assertAlmostEqual(record.no_unkozai / record.no_kozai, 1.0, delta=1.0e-3)
        self.assertAlmostEqual(record.a, math.pow(WGS72.xke / record.no_unkozai, 2.0 / 3.0),
                               places=12)

    def test_angles_in_radians(self):
        record = initialize(self.parse(VANGUARD), "wgs72")

        self.assertAlmostEqual(record.inclo, math.radians(34.2682), places=12)
        self.assertAlmostEqual(record.nodeo, math.radians(348.7242), places=12)
        self.assertAlmostEqual(record.argpo, math.radians(331.7664), places=12)
        self.assertAlmostEqual(record.mo, math.radians(19.3264), places=12)
        self.assertGreaterEqual(record.gsto, 0.0)
        self.assertLess(record.gsto, 2.0 * math.pi)

    def test_record_is_immutable(self):
        record = initialize(self.parse(VANGUARD), "wgs72")

        self.assertIsInstance(record, PropagationRecord)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            record.bstar = 0.0
        with self.assertRaises(dataclasses.FrozenInstanceError):
            record.payload.drag.d2 = 0.0

    def test_gravity_model_selection(self):
        element_set = self.parse(VANGUARD)

        self.assertIs(initialize(element_set, "WGS72").gravity, WGS72)
        self.assertIs(initialize(element_set, WGS84).gravity, WGS84)
        with mock.patch.object(config, "DEFAULT_GRAVITY_MODEL", "wgs72"):
            self.assertIs(initialize(element_set).gravity, WGS72)

    def test_unknown_gravity_model(self):
        with self.assertRaises(UnknownModelError):
            initialize(self.parse(VANGUARD), "wgs60")

    def test_initialization_is_logged(self):
        with self.assertLogs("tle_propagator.initializer", level="DEBUG") as logs:
            initialize(self.parse(MOLNIYA), "wgs72")

        self.assertIn("regime=deep_space", logs.output[0])
        self.assertIn("resonance=HALF_DAY", logs.output[0])


class TestInvalidElements(InitializerTestCase):

    def test_eccentricity_out_of_range(self):
        element_set = dataclasses.replace(self.parse(VANGUARD), eccentricity=1.2)

        with self.assertRaises(OrbitDecayedError) as ctx:
            initialize(element_set, "wgs72")
        self.assertEqual(ctx.exception.code, 1)

    def test_mean_motion_not_positive(self):
        for mean_motion in (0.0, -1.0):
            element_set = dataclasses.replace(self.parse(VANGUARD), mean_motion=mean_motion)

            with self.assertRaises(OrbitDecayedError) as ctx:
                initialize(element_set, "wgs72")
            self.assertEqual(ctx.exception.code, 2)

    def test_sub_orbital_epoch(self):
        """Perigee inside the Earth at epoch"""
        line2 = config.SAMPLE_ISS_TLE['line2']
        line2 = line2[:26] + "0500000" + line2[33:52] + "16.50000000" + line2[63:]
        element_set = self.parser.parse(config.SAMPLE_ISS_TLE['line1'], line2)

        with self.assertRaises(OrbitDecayedError) as ctx:
            initialize(element_set, "wgs84")

        self.assertEqual(ctx.exception.code, 5)
        self.assertEqual(ctx.exception.tsince, 0.0)
        self.assertIn("Physical meaning", str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
