"""
Deep-Space (SDP4) Perturbations

Lunar and solar gravity and Earth-resonance effects for orbits with a
period of 225 minutes or more:

- ``initialize_deep_space`` computes the lunar-solar coefficients, their
  secular rates and, for resonant orbits, the resonance terms.
- ``apply_secular`` adds the secular drift and resonance effects to the mean
  elements at a given time.
- ``apply_periodics`` adds the lunar-solar periodic terms, switching to
  the Lyddane formulation below 0.2 rad inclination.
- ``integrate_resonance`` integrates the resonance equations from epoch.

The integrator keeps no state between calls. Every evaluation starts at
epoch and takes fixed 720-minute steps toward the requested time, so a
result never depends on which times were evaluated before it.

References:
    Hujsak, R. S. (1979). A Restricted Four Body Solution for Resonating
    Satellites without Drag. Spacetrack Report #1.
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import math
from typing import NamedTuple, Optional, Tuple

from .records import (
    DeepSpaceTerms,
    LunarSolarTerms,
    Resonance,
    ResonanceTerms,
    SecularRates,
)

TWOPI = 2.0 * math.pi
X2O3 = 2.0 / 3.0

# Solar and lunar mean motions (rad/min) and orbit eccentricities
ZNS = 1.19459e-5
ZES = 0.01675
ZNL = 1.5835218e-4
ZEL = 0.05490

# Solar and lunar perturbation strengths
C1SS = 2.9864797e-6
C1L = 4.7968065e-7

# Solar orbit orientation
ZSINIS = 0.39785416
ZCOSIS = 0.91744867
ZCOSGS = 0.1945905
ZSINGS = -0.98088458

# Earth rotation rate, rad/min
RPTIM = 4.37526908801129966e-3

# Resonance strengths and phases
Q22 = 1.7891679e-6
Q31 = 2.1460748e-6
Q33 = 2.2123015e-7
ROOT22 = 1.7891679e-6
ROOT32 = 3.7393792e-7
ROOT44 = 7.3636953e-9
ROOT52 = 1.1428639e-7
ROOT54 = 2.1765803e-9
FASX2 = 0.13130908
FASX4 = 2.8843198
FASX6 = 0.37448087
G22 = 5.7686396
G32 = 0.95240898
G44 = 1.8014998
G52 = 1.0508330
G54 = 4.4108898

# Resonance integrator step, minutes
STEP = 720.0
STEP2 = 0.5 * STEP * STEP

# Mean motion windows (rad/min) selecting the resonance type
SYNCHRONOUS_BAND = (0.0034906585, 0.0052359877)
HALF_DAY_BAND = (8.26e-3, 9.24e-3)
HALF_DAY_MIN_ECCENTRICITY = 0.5

# Below ~3 deg (or above ~177 deg) the node rate terms are singular
_INCLINATION_SINGULAR = 5.2359877e-2
# Periodics switch to the Lyddane form below this inclination
LYDDANE_INCLINATION = 0.2


class _BodyCoefficients(NamedTuple):
    """Per-body (sun or moon) intermediate coefficients."""

    s1: float
    s2: float
    s3: float
    s4: float
    s5: float
    s6: float
    s7: float
    z1: float
    z2: float
    z3: float
    z11: float
    z12: float
    z13: float
    z21: float
    z22: float
    z23: float
    z31: float
    z32: float
    z33: float


def _body_coefficients(zcosg, zsing, zcosi, zsini, zcosh, zsinh, cc,
                       xnoi, em, emsq, cosim, sinim, cosomm, sinomm) -> _BodyCoefficients:
    betasq = 1.0 - emsq
    rtemsq = math.sqrt(betasq)

    a1 = zcosg * zcosh + zsing * zcosi * zsinh
    a3 = -zsing * zcosh + zcosg * zcosi * zsinh
    a7 = -zcosg * zsinh + zsing * zcosi * zcosh
    a8 = zsing * zsini
    a9 = zsing * zsinh + zcosg * zcosi * zcosh
    a10 = zcosg * zsini
    a2 = cosim * a7 + sinim * a8
    a4 = cosim * a9 + sinim * a10
    a5 = -sinim * a7 + cosim * a8
    a6 = -sinim * a9 + cosim * a10

    x1 = a1 * cosomm + a2 * sinomm
    x2 = a3 * cosomm + a4 * sinomm
    x3 = -a1 * sinomm + a2 * cosomm
    x4 = -a3 * sinomm + a4 * cosomm
    x5 = a5 * sinomm
    x6 = a6 * sinomm
    x7 = a5 * cosomm
    x8 = a6 * cosomm

    z31 = 12.0 * x1 * x1 - 3.0 * x3 * x3
    z32 = 24.0 * x1 * x2 - 6.0 * x3 * x4
    z33 = 12.0 * x2 * x2 - 3.0 * x4 * x4
    z1 = 3.0 * (a1 * a1 + a2 * a2) + z31 * emsq
    z2 = 6.0 * (a1 * a3 + a2 * a4) + z32 * emsq
    z3 = 3.0 * (a3 * a3 + a4 * a4) + z33 * emsq
    z11 = -6.0 * a1 * a5 + emsq * (-24.0 * x1 * x7 - 6.0 * x3 * x5)
    z12 = -6.0 * (a1 * a6 + a3 * a5) + emsq * (-24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5))
    z13 = -6.0 * a3 * a6 + emsq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
    z21 = 6.0 * a2 * a5 + emsq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
    z22 = 6.0 * (a4 * a5 + a2 * a6) + emsq * (24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8))
    z23 = 6.0 * a4 * a6 + emsq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
    z1 = z1 + z1 + betasq * z31
    z2 = z2 + z2 + betasq * z32
    z3 = z3 + z3 + betasq * z33

    s3 = cc * xnoi
    s2 = -0.5 * s3 / rtemsq
    s4 = s3 * rtemsq
    s1 = -15.0 * em * s4
    s5 = x1 * x3 + x2 * x4
    s6 = x2 * x3 + x1 * x4
    s7 = x2 * x4 - x1 * x3

    return _BodyCoefficients(s1, s2, s3, s4, s5, s6, s7,
                             z1, z2, z3, z11, z12, z13, z21, z22, z23, z31, z32, z33)


def _lunar_solar_coefficients(epoch_days, ecco, inclo, nodeo, argpo, no_unkozai):
    """Sun and moon coefficient sets plus the periodic-term coefficients."""
    snodm = math.sin(nodeo)
    cnodm = math.cos(nodeo)
    sinomm = math.sin(argpo)
    cosomm = math.cos(argpo)
    sinim = math.sin(inclo)
    cosim = math.cos(inclo)
    emsq = ecco * ecco

    # Lunar orbit orientation at epoch
    day = epoch_days + 18261.5
    xnodce = math.fmod(4.5236020 - 9.2422029e-4 * day, TWOPI)
    stem = math.sin(xnodce)
    ctem = math.cos(xnodce)
    zcosil = 0.91375164 - 0.03568096 * ctem
    zsinil = math.sqrt(1.0 - zcosil * zcosil)
    zsinhl = 0.089683511 * stem / zsinil
    zcoshl = math.sqrt(1.0 - zsinhl * zsinhl)
    gam = 5.8351514 + 0.0019443680 * day
    zx = 0.39785416 * stem / zsinil
    zy = zcoshl * ctem + 0.91744867 * zsinhl * stem
    zx = gam + math.atan2(zx, zy) - xnodce
    zcosgl = math.cos(zx)
    zsingl = math.sin(zx)

    xnoi = 1.0 / no_unkozai
    common = (xnoi, ecco, emsq, cosim, sinim, cosomm, sinomm)
    sun = _body_coefficients(ZCOSGS, ZSINGS, ZCOSIS, ZSINIS, cnodm, snodm, C1SS, *common)
    moon = _body_coefficients(zcosgl, zsingl, zcosil, zsinil,
                              zcoshl * cnodm + zsinhl * snodm,
                              snodm * zcoshl - cnodm * zsinhl,
                              C1L, *common)

    terms = LunarSolarTerms(
        se2=2.0 * sun.s1 * sun.s6,
        se3=2.0 * sun.s1 * sun.s7,
        si2=2.0 * sun.s2 * sun.z12,
        si3=2.0 * sun.s2 * (sun.z13 - sun.z11),
        sl2=-2.0 * sun.s3 * sun.z2,
        sl3=-2.0 * sun.s3 * (sun.z3 - sun.z1),
        sl4=-2.0 * sun.s3 * (-21.0 - 9.0 * emsq) * ZES,
        sgh2=2.0 * sun.s4 * sun.z32,
        sgh3=2.0 * sun.s4 * (sun.z33 - sun.z31),
        sgh4=-18.0 * sun.s4 * ZES,
        sh2=-2.0 * sun.s2 * sun.z22,
        sh3=-2.0 * sun.s2 * (sun.z23 - sun.z21),
        ee2=2.0 * moon.s1 * moon.s6,
        e3=2.0 * moon.s1 * moon.s7,
        xi2=2.0 * moon.s2 * moon.z12,
        xi3=2.0 * moon.s2 * (moon.z13 - moon.z11),
        xl2=-2.0 * moon.s3 * moon.z2,
        xl3=-2.0 * moon.s3 * (moon.z3 - moon.z1),
        xl4=-2.0 * moon.s3 * (-21.0 - 9.0 * emsq) * ZEL,
        xgh2=2.0 * moon.s4 * moon.z32,
        xgh3=2.0 * moon.s4 * (moon.z33 - moon.z31),
        xgh4=-18.0 * moon.s4 * ZEL,
        xh2=-2.0 * moon.s2 * moon.z22,
        xh3=-2.0 * moon.s2 * (moon.z23 - moon.z21),
        zmol=math.fmod(4.7199672 + 0.22997150 * day - gam, TWOPI),
        zmos=math.fmod(6.2565837 + 0.017201977 * day, TWOPI),
    )
    return terms, sun, moon


def _secular_rates(sun: _BodyCoefficients, moon: _BodyCoefficients,
                   inclo: float, emsq: float) -> SecularRates:
    sinim = math.sin(inclo)
    cosim = math.cos(inclo)
    singular = inclo < _INCLINATION_SINGULAR or inclo > math.pi - _INCLINATION_SINGULAR

    ses = sun.s1 * ZNS * sun.s5
    sis = sun.s2 * ZNS * (sun.z11 + sun.z13)
    sls = -ZNS * sun.s3 * (sun.z1 + sun.z3 - 14.0 - 6.0 * emsq)
    sghs = sun.s4 * ZNS * (sun.z31 + sun.z33 - 6.0)
    shs = 0.0 if singular else -ZNS * sun.s2 * (sun.z21 + sun.z23)
    if sinim != 0.0:
        shs = shs / sinim
    sgs = sghs - cosim * shs

    dedt = ses + moon.s1 * ZNL * moon.s5
    didt = sis + moon.s2 * ZNL * (moon.z11 + moon.z13)
    dmdt = sls - ZNL * moon.s3 * (moon.z1 + moon.z3 - 14.0 - 6.0 * emsq)
    sghl = moon.s4 * ZNL * (moon.z31 + moon.z33 - 6.0)
    shll = 0.0 if singular else -ZNL * moon.s2 * (moon.z21 + moon.z23)

    domdt = sgs + sghl
    dnodt = shs
    if sinim != 0.0:
        domdt = domdt - cosim / sinim * shll
        dnodt = dnodt + shll / sinim

    return SecularRates(dedt=dedt, didt=didt, dmdt=dmdt, domdt=domdt, dnodt=dnodt)


def classify_resonance(no_unkozai: float, ecco: float) -> Resonance:
    """Resonance type for an un-Kozai mean motion (rad/min) and eccentricity."""
    low, high = SYNCHRONOUS_BAND
    if low < no_unkozai < high:
        return Resonance.SYNCHRONOUS
    low, high = HALF_DAY_BAND
    if low <= no_unkozai <= high and ecco >= HALF_DAY_MIN_ECCENTRICITY:
        return Resonance.HALF_DAY
    return Resonance.NONE


def _half_day_coefficients(ecco: float, cosim: float, sinim: float,
                           no_unkozai: float, aonv: float) -> dict:
    """d-coefficients of the 12-hour resonance expansion."""
    em = ecco
    emsq = ecco * ecco
    eoc = em * emsq
    cosisq = cosim * cosim

    g201 = -0.306 - (em - 0.64) * 0.440
    if em <= 0.65:
        g211 = 3.616 - 13.2470 * em + 16.2900 * emsq
        g310 = -19.302 + 117.3900 * em - 228.4190 * emsq + 156.5910 * eoc
        g322 = -18.9068 + 109.7927 * em - 214.6334 * emsq + 146.5816 * eoc
        g410 = -41.122 + 242.6940 * em - 471.0940 * emsq + 313.9530 * eoc
        g422 = -146.407 + 841.8800 * em - 1629.014 * emsq + 1083.4350 * eoc
        g520 = -532.114 + 3017.977 * em - 5740.032 * emsq + 3708.2760 * eoc
    else:
        g211 = -72.099 + 331.819 * em - 508.738 * emsq + 266.724 * eoc
        g310 = -346.844 + 1582.851 * em - 2415.925 * emsq + 1246.113 * eoc
        g322 = -342.585 + 1554.908 * em - 2366.899 * emsq + 1215.972 * eoc
        g410 = -1052.797 + 4758.686 * em - 7193.992 * emsq + 3651.957 * eoc
        g422 = -3581.690 + 16178.110 * em - 24462.770 * emsq + 12422.520 * eoc
        if em > 0.715:
            g520 = -5149.66 + 29936.92 * em - 54087.36 * emsq + 31324.56 * eoc
        else:
            g520 = 1464.74 - 4664.75 * em + 3763.64 * emsq

    if em < 0.7:
        g533 = -919.22770 + 4988.6100 * em - 9064.7700 * emsq + 5542.21 * eoc
        g521 = -822.71072 + 4568.6173 * em - 8491.4146 * emsq + 5337.524 * eoc
        g532 = -853.66600 + 4690.2500 * em - 8624.7700 * emsq + 5341.4 * eoc
    else:
        g533 = -37995.780 + 161616.52 * em - 229838.20 * emsq + 109377.94 * eoc
        g521 = -51752.104 + 218913.95 * em - 309468.16 * emsq + 146349.42 * eoc
        g532 = -40023.880 + 170470.89 * em - 242699.48 * emsq + 115605.82 * eoc

    sini2 = sinim * sinim
    f220 = 0.75 * (1.0 + 2.0 * cosim + cosisq)
    f221 = 1.5 * sini2
    f321 = 1.875 * sinim * (1.0 - 2.0 * cosim - 3.0 * cosisq)
    f322 = -1.875 * sinim * (1.0 + 2.0 * cosim - 3.0 * cosisq)
    f441 = 35.0 * sini2 * f220
    f442 = 39.3750 * sini2 * sini2
    f522 = 9.84375 * sinim * (sini2 * (1.0 - 2.0 * cosim - 5.0 * cosisq)
                              + 0.33333333 * (-2.0 + 4.0 * cosim + 6.0 * cosisq))
    f523 = sinim * (4.92187512 * sini2 * (-2.0 - 4.0 * cosim + 10.0 * cosisq)
                    + 6.56250012 * (1.0 + 2.0 * cosim - 3.0 * cosisq))
    f542 = 29.53125 * sinim * (2.0 - 8.0 * cosim
                               + cosisq * (-12.0 + 8.0 * cosim + 10.0 * cosisq))
    f543 = 29.53125 * sinim * (-2.0 - 8.0 * cosim
                               + cosisq * (12.0 + 8.0 * cosim - 10.0 * cosisq))

    temp1 = 3.0 * no_unkozai * no_unkozai * aonv * aonv
    temp = temp1 * ROOT22
    d2201 = temp * f220 * g201
    d2211 = temp * f221 * g211
    temp1 = temp1 * aonv
    temp = temp1 * ROOT32
    d3210 = temp * f321 * g310
    d3222 = temp * f322 * g322
    temp1 = temp1 * aonv
    temp = 2.0 * temp1 * ROOT44
    d4410 = temp * f441 * g410
    d4422 = temp * f442 * g422
    temp1 = temp1 * aonv
    temp = temp1 * ROOT52
    d5220 = temp * f522 * g520
    d5232 = temp * f523 * g532
    temp = 2.0 * temp1 * ROOT54
    d5421 = temp * f542 * g521
    d5433 = temp * f543 * g533

    return dict(d2201=d2201, d2211=d2211, d3210=d3210, d3222=d3222, d4410=d4410,
                d4422=d4422, d5220=d5220, d5232=d5232, d5421=d5421, d5433=d5433)


def _synchronous_coefficients(ecco: float, cosim: float, sinim: float,
                              no_unkozai: float, aonv: float) -> dict:
    """del-coefficients of the geosynchronous resonance expansion."""
    emsq = ecco * ecco
    g200 = 1.0 + emsq * (-2.5 + 0.8125 * emsq)
    g310 = 1.0 + 2.0 * emsq
    g300 = 1.0 + emsq * (-6.0 + 6.60937 * emsq)
    f220 = 0.75 * (1.0 + cosim) * (1.0 + cosim)
    f311 = 0.9375 * sinim * sinim * (1.0 + 3.0 * cosim) - 0.75 * (1.0 + cosim)
    f330 = 1.0 + cosim
    f330 = 1.875 * f330 * f330 * f330

    del1 = 3.0 * no_unkozai * no_unkozai * aonv * aonv
    del2 = 2.0 * del1 * f220 * g200 * Q22
    del3 = 3.0 * del1 * f330 * g300 * Q33 * aonv
    del1 = del1 * f311 * g310 * Q31 * aonv
    return dict(del1=del1, del2=del2, del3=del3)


def initialize_deep_space(epoch_days: float, gsto: float, ecco: float, inclo: float,
                          nodeo: float, argpo: float, mo: float, no_unkozai: float,
                          mdot: float, argpdot: float, nodedot: float,
                          xke: float) -> DeepSpaceTerms:
    """
    Compute the deep-space payload of a propagation record.

    Args:
        epoch_days: Epoch as days since 1949 Dec 31 00:00 UT
        gsto: Greenwich sidereal time at epoch, rad
        ecco, inclo, nodeo, argpo, mo: Mean elements at epoch (rad)
        no_unkozai: Un-Kozai mean motion, rad/min
        mdot, argpdot, nodedot: Secular gravity rates, rad/min
        xke: Gravity model xke

    Returns:
        DeepSpaceTerms, with resonance terms when the orbit is resonant
    """
    lunar_solar, sun, moon = _lunar_solar_coefficients(epoch_days, ecco, inclo, nodeo,
                                                       argpo, no_unkozai)
    rates = _secular_rates(sun, moon, inclo, ecco * ecco)

    kind = classify_resonance(no_unkozai, ecco)
    resonance = None
    if kind is not Resonance.NONE:
        sinim = math.sin(inclo)
        cosim = math.cos(inclo)
        aonv = math.pow(no_unkozai / xke, X2O3)
        theta = math.fmod(gsto, TWOPI)

        if kind is Resonance.HALF_DAY:
            coefficients = _half_day_coefficients(ecco, cosim, sinim, no_unkozai, aonv)
            xlamo = math.fmod(mo + nodeo + nodeo - theta - theta, TWOPI)
            xfact = mdot + rates.dmdt + 2.0 * (nodedot + rates.dnodt - RPTIM) - no_unkozai
        else:
            coefficients = _synchronous_coefficients(ecco, cosim, sinim, no_unkozai, aonv)
            xlamo = math.fmod(mo + nodeo + argpo - theta, TWOPI)
            xpidot = argpdot + nodedot
            xfact = mdot + xpidot - RPTIM + rates.dmdt + rates.domdt + rates.dnodt - no_unkozai

        resonance = ResonanceTerms(kind=kind, no_unkozai=no_unkozai, xlamo=xlamo,
                                   xfact=xfact, argpo=argpo, argpdot=argpdot,
                                   **coefficients)

    return DeepSpaceTerms(gsto=gsto, lunar_solar=lunar_solar, rates=rates,
                          resonance=resonance)


def _resonance_derivatives(terms: ResonanceTerms, xli: float, xni: float,
                           atime: float) -> Tuple[float, float, float]:
    """Rates (xndt, xldot, xnddt) of mean motion and resonance angle."""
    xldot = xni + terms.xfact

    if terms.kind is Resonance.SYNCHRONOUS:
        xndt = (terms.del1 * math.sin(xli - FASX2)
                + terms.del2 * math.sin(2.0 * (xli - FASX4))
                + terms.del3 * math.sin(3.0 * (xli - FASX6)))
        xnddt = (terms.del1 * math.cos(xli - FASX2)
                 + 2.0 * terms.del2 * math.cos(2.0 * (xli - FASX4))
                 + 3.0 * terms.del3 * math.cos(3.0 * (xli - FASX6)))
        return xndt, xldot, xnddt * xldot

    xomi = terms.argpo + terms.argpdot * atime
    x2omi = xomi + xomi
    x2li = xli + xli
    xndt = (terms.d2201 * math.sin(x2omi + xli - G22)
            + terms.d2211 * math.sin(xli - G22)
            + terms.d3210 * math.sin(xomi + xli - G32)
            + terms.d3222 * math.sin(-xomi + xli - G32)
            + terms.d4410 * math.sin(x2omi + x2li - G44)
            + terms.d4422 * math.sin(x2li - G44)
            + terms.d5220 * math.sin(xomi + xli - G52)
            + terms.d5232 * math.sin(-xomi + xli - G52)
            + terms.d5421 * math.sin(xomi + x2li - G54)
            + terms.d5433 * math.sin(-xomi + x2li - G54))
    xnddt = (terms.d2201 * math.cos(x2omi + xli - G22)
             + terms.d2211 * math.cos(xli - G22)
             + terms.d3210 * math.cos(xomi + xli - G32)
             + terms.d3222 * math.cos(-xomi + xli - G32)
             + terms.d5220 * math.cos(xomi + xli - G52)
             + terms.d5232 * math.cos(-xomi + xli - G52)
             + 2.0 * (terms.d4410 * math.cos(x2omi + x2li - G44)
                      + terms.d4422 * math.cos(x2li - G44)
                      + terms.d5421 * math.cos(xomi + x2li - G54)
                      + terms.d5433 * math.cos(-xomi + x2li - G54)))
    return xndt, xldot, xnddt * xldot


def integrate_resonance(terms: ResonanceTerms, tsince: float) -> Tuple[float, float]:
    """
    Integrate the resonance equations from epoch to ``tsince``.

    Fixed 720-minute Euler-Maclaurin steps are taken toward ``tsince`` and
    the remainder is covered by a second-order Taylor expansion.

    Args:
        terms: Resonance terms of the record
        tsince: Minutes from epoch, either sign

    Returns:
        Tuple of (mean motion rad/min, resonance angle rad) at ``tsince``
    """
    delt = STEP if tsince > 0.0 else -STEP
    atime = 0.0
    xni = terms.no_unkozai
    xli = terms.xlamo

    while True:
        xndt, xldot, xnddt = _resonance_derivatives(terms, xli, xni, atime)
        if abs(tsince - atime) < STEP:
            break
        xli = xli + xldot * delt + xndt * STEP2
        xni = xni + xndt * delt + xnddt * STEP2
        atime = atime + delt

    ft = tsince - atime
    nm = xni + xndt * ft + xnddt * ft * ft * 0.5
    xl = xli + xldot * ft + xndt * ft * ft * 0.5
    return nm, xl


def apply_secular(terms: DeepSpaceTerms, tsince: float, em: float, argpm: float,
                  inclm: float, mm: float, nodem: float,
                  nm: float) -> Tuple[float, float, float, float, float, float]:
    """
    Add lunar-solar secular drift and resonance effects to mean elements.

    Returns:
        Tuple of (em, argpm, inclm, mm, nodem, nm)
    """
    rates = terms.rates
    em = em + rates.dedt * tsince
    inclm = inclm + rates.didt * tsince
    argpm = argpm + rates.domdt * tsince
    nodem = nodem + rates.dnodt * tsince
    mm = mm + rates.dmdt * tsince

    resonance: Optional[ResonanceTerms] = terms.resonance
    if resonance is not None:
        theta = math.fmod(terms.gsto + tsince * RPTIM, TWOPI)
        xn, xl = integrate_resonance(resonance, tsince)
        if resonance.kind is Resonance.SYNCHRONOUS:
            mm = xl - nodem - argpm + theta
        else:
            mm = xl - 2.0 * nodem + 2.0 * theta
        # Same rounding as forming the rate against the epoch mean motion
        dndt = xn - resonance.no_unkozai
        nm = resonance.no_unkozai + dndt

    return em, argpm, inclm, mm, nodem, nm


def apply_periodics(terms: LunarSolarTerms, tsince: float, ep: float, inclp: float,
                    nodep: float, argpp: float,
                    mp: float) -> Tuple[float, float, float, float, float]:
    """
    Add lunar-solar periodic perturbations to the osculating elements.

    Returns:
        Tuple of (ep, inclp, nodep, argpp, mp)
    """
    # Solar
    zm = terms.zmos + ZNS * tsince
    zf = zm + 2.0 * ZES * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    ses = terms.se2 * f2 + terms.se3 * f3
    sis = terms.si2 * f2 + terms.si3 * f3
    sls = terms.sl2 * f2 + terms.sl3 * f3 + terms.sl4 * sinzf
    sghs = terms.sgh2 * f2 + terms.sgh3 * f3 + terms.sgh4 * sinzf
    shs = terms.sh2 * f2 + terms.sh3 * f3

    # Lunar
    zm = terms.zmol + ZNL * tsince
    zf = zm + 2.0 * ZEL * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    sel = terms.ee2 * f2 + terms.e3 * f3
    sil = terms.xi2 * f2 + terms.xi3 * f3
    sll = terms.xl2 * f2 + terms.xl3 * f3 + terms.xl4 * sinzf
    sghl = terms.xgh2 * f2 + terms.xgh3 * f3 + terms.xgh4 * sinzf
    shll = terms.xh2 * f2 + terms.xh3 * f3

    pe = ses + sel
    pinc = sis + sil
    pl = sls + sll
    pgh = sghs + sghl
    ph = shs + shll

    inclp = inclp + pinc
    ep = ep + pe
    sinip = math.sin(inclp)
    cosip = math.cos(inclp)

    if inclp >= LYDDANE_INCLINATION:
        ph = ph / sinip
        pgh = pgh - cosip * ph
        argpp = argpp + pgh
        nodep = nodep + ph
        mp = mp + pl
        return ep, inclp, nodep, argpp, mp

    # Lyddane modification, avoids the 1/sin(i) singularity
    sinop = math.sin(nodep)
    cosop = math.cos(nodep)
    alfdp = sinip * sinop
    betdp = sinip * cosop
    dalf = ph * cosop + pinc * cosip * sinop
    dbet = -ph * sinop + pinc * cosip * cosop
    alfdp = alfdp + dalf
    betdp = betdp + dbet
    nodep = math.fmod(nodep, TWOPI)
    xls = mp + argpp + cosip * nodep
    dls = pl + pgh - pinc * nodep * sinip
    xls = xls + dls
    xnoh = nodep
    nodep = math.atan2(alfdp, betdp)
    if abs(xnoh - nodep) > math.pi:
        if nodep < xnoh:
            nodep = nodep + TWOPI
        else:
            nodep = nodep - TWOPI
    mp = mp + pl
    argpp = xls - mp - cosip * nodep
    return ep, inclp, nodep, argpp, mp
