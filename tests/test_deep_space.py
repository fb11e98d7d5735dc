"""
Unit Tests for Deep-Space Perturbations

Run with:
    python -m pytest tests/test_deep_space.py -v
"""

import math
import unittest

from tle_propagator.deep_space import (
    HALF_DAY_BAND,
    STEP,
    SYNCHRONOUS_BAND,
    apply_periodics,
    apply_secular,
    classify_resonance,
    integrate_resonance,
)
from tle_propagator.initializer import initialize
from tle_propagator.records import Resonance
from tle_propagator.tle_parser import TLEParser

MOLNIYA = (
    "1 08195U 75081A   06176.33215444  .00000099  00000-0  11873-3 0   813",
    "2 08195  64.1586 279.0717 6877146 264.7651  20.2257  2.00491383225656",
)
GEO = (
    "1 28626U 05008A   06176.46683397 -.00000205  00000-0  10000-3 0  2190",
    "2 28626   0.0019 286.9433 0000004  13.7918  55.6504  1.00270176  4891",
)
STR3_SDP4 = (
    "1 11801U          80230.29629788  .00000096  00000-0  00000-0 0    13",
    "2 11801  46.7916 230.4354 7318036  47.4722  10.4117  2.28537848    13",
)


def deep_record(lines):
    return initialize(TLEParser(strict_checksum=False).parse(*lines), "wgs72")


class TestResonanceClassification(unittest.TestCase):

    def test_synchronous(self):
        self.assertEqual(classify_resonance(0.00437, 0.0), Resonance.SYNCHRONOUS)
        self.assertEqual(classify_resonance(0.00437, 0.8), Resonance.SYNCHRONOUS)

    def test_half_day_needs_eccentricity(self):
        self.assertEqual(classify_resonance(0.00875, 0.7), Resonance.HALF_DAY)
        self.assertEqual(classify_resonance(0.00875, 0.5), Resonance.HALF_DAY)
        self.assertEqual(classify_resonance(0.00875, 0.3), Resonance.NONE)

    def test_band_edges(self):
        low, high = SYNCHRONOUS_BAND
        self.assertEqual(classify_resonance(low, 0.0), Resonance.NONE)
        self.assertEqual(classify_resonance(high, 0.0), Resonance.NONE)
        low, high = HALF_DAY_BAND
        self.assertEqual(classify_resonance(low, 0.6), Resonance.HALF_DAY)
        self.assertEqual(classify_resonance(high, 0.6), Resonance.HALF_DAY)

    def test_outside_bands(self):
        self.assertEqual(classify_resonance(0.00997, 0.73), Resonance.NONE)
        self.assertEqual(classify_resonance(0.0065, 0.1), Resonance.NONE)


class TestResonanceIntegrator(unittest.TestCase):

    def setUp(self):
        self.geo = deep_record(GEO).payload.resonance
        self.molniya = deep_record(MOLNIYA).payload.resonance

    def test_epoch_returns_initial_state(self):
        for terms in (self.geo, self.molniya):
            nm, xl = integrate_resonance(terms, 0.0)
            self.assertEqual(nm, terms.no_unkozai)
            self.assertEqual(xl, terms.xlamo)

    def test_order_independent(self):
        for terms in (self.geo, self.molniya):
            expected = integrate_resonance(terms, 5000.0)
            integrate_resonance(terms, 20000.0)
            integrate_resonance(terms, -3000.0)
            integrate_resonance(terms, 100.0)
            self.assertEqual(integrate_resonance(terms, 5000.0), expected)

    def test_backward_integration(self):
        for terms in (self.geo, self.molniya):
            nm, xl = integrate_resonance(terms, -2.5 * STEP)
            self.assertTrue(math.isfinite(nm) and math.isfinite(xl))
            self.assertAlmostEqual(nm / terms.no_unkozai, 1.0, delta=1.0e-3)

    def test_mean_motion_stays_near_resonance(self):
        nm, _ = integrate_resonance(self.geo, 30.0 * 1440.0)
        low, high = SYNCHRONOUS_BAND
        self.assertGreater(nm, low)
        self.assertLess(nm, high)

    def test_within_one_step_is_taylor_series(self):
        """Times shorter than one step need no integration steps"""
        terms = self.molniya
        nm_a, xl_a = integrate_resonance(terms, 100.0)
        nm_b, xl_b = integrate_resonance(terms, 200.0)
        # resonance angle advances at roughly no_unkozai + xfact
        rate = (xl_b - xl_a) / 100.0
        self.assertAlmostEqual(rate, terms.no_unkozai + terms.xfact, delta=1.0e-6)
        self.assertNotEqual(nm_a, nm_b)


class TestLunarSolarTerms(unittest.TestCase):

    def test_near_equatorial_orbit_has_no_node_drift(self):
        record = deep_record(GEO)
        self.assertEqual(record.payload.rates.dnodt, 0.0)

    def test_inclined_orbit_has_node_drift(self):
        record = deep_record(STR3_SDP4)
        self.assertNotEqual(record.payload.rates.dnodt, 0.0)
        self.assertIsNone(record.payload.resonance)

    def test_secular_drift_is_linear_without_resonance(self):
        record = deep_record(STR3_SDP4)
        rates = record.payload.rates
        elements = (record.ecco, record.argpo, record.inclo, record.mo, record.nodeo,
                    record.no_unkozai)

        em, argpm, inclm, mm, nodem, nm = apply_secular(record.payload, 1000.0, *elements)

        self.assertAlmostEqual(em, record.ecco + rates.dedt * 1000.0, places=15)
        self.assertAlmostEqual(inclm, record.inclo + rates.didt * 1000.0, places=15)
        self.assertAlmostEqual(nodem, record.nodeo + rates.dnodt * 1000.0, places=15)
        self.assertEqual(nm, record.no_unkozai)

    def test_periodics_are_small(self):
        for lines in (STR3_SDP4, MOLNIYA):
            record = deep_record(lines)
            ep, inclp, nodep, argpp, mp = apply_periodics(
                record.payload.lunar_solar, 720.0, record.ecco, record.inclo,
                record.nodeo, record.argpo, record.mo)

            self.assertAlmostEqual(ep, record.ecco, delta=1.0e-2)
            self.assertAlmostEqual(inclp, record.inclo, delta=1.0e-2)

    def test_lyddane_branch_keeps_node_continuous(self):
        record = deep_record(GEO)
        terms = record.payload.lunar_solar

        _, inclp, nodep, _, _ = apply_periodics(terms, 0.0, record.ecco, record.inclo,
                                                record.nodeo, record.argpo, record.mo)

        self.assertLess(inclp, 0.2)
        self.assertLess(abs(nodep - record.nodeo), math.pi)


if __name__ == '__main__':
    unittest.main()
