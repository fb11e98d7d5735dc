"""
SGP4/SDP4 Propagation

Evaluates a PropagationRecord at a time offset from its epoch and returns
the TEME position and velocity.

The step is a pure function of (record, tsince). Deep-space resonance is
re-integrated from epoch on every call, so results do not depend on the
order in which times are requested and one record may be shared between
threads.

Error Codes:
    1: Mean eccentricity out of range
    2: Mean motion not positive
    3: Perturbed eccentricity out of range (deep space)
    4: Semi-latus rectum negative
    6: Satellite decayed (radius below one Earth radius)

All of these raise OrbitDecayedError. A Kepler solve that fails to converge
raises ConvergenceError.
"""

import math
from typing import Optional, Tuple

import numpy as np

from . import config
from .deep_space import apply_periodics, apply_secular
from .exceptions import ConvergenceError, OrbitDecayedError
from .records import DeepSpaceTerms, PropagationRecord, StateVector

X2O3 = 2.0 / 3.0
TWOPI = 2.0 * math.pi

# Mean eccentricity may dip this far below zero before it is an error
MIN_MEAN_ECCENTRICITY = -0.001
ECCENTRICITY_FLOOR = 1.0e-6

# Guards 1 / (1 + cos i) for retrograde equatorial orbits
_RETROGRADE_GUARD = 1.5e-12


def long_period_coefficient(j3oj2: float, sinio: float, cosio: float) -> float:
    """J3 long-period coefficient, guarded against inclination of 180 deg."""
    denominator = 1.0 + cosio
    if abs(denominator) <= _RETROGRADE_GUARD:
        denominator = _RETROGRADE_GUARD
    return -0.25 * j3oj2 * sinio * (3.0 + 5.0 * cosio) / denominator


def solve_kepler(u: float, axnl: float, aynl: float,
                 tolerance: Optional[float] = None,
                 max_iterations: Optional[int] = None,
                 tsince: Optional[float] = None) -> Tuple[float, float, float]:
    """
    Solve the modified Kepler equation for the eccentric longitude.

    Newton-Raphson iteration starting from ``u``; each correction is capped
    at 0.95 rad.

    Args:
        u: Mean longitude minus node, rad
        axnl, aynl: Components of the eccentricity vector in the orbit plane
        tolerance: Stop when the last correction is smaller than this
            (default config.KEPLER_TOLERANCE)
        max_iterations: Give up after this many corrections
            (default config.KEPLER_MAX_ITERATIONS)
        tsince: Time reported in the error, if any

    Returns:
        Tuple of (eo1, sin(eo1), cos(eo1))

    Raises:
        ConvergenceError: If the iteration limit is reached first
    """
    if tolerance is None:
        tolerance = config.KEPLER_TOLERANCE
    if max_iterations is None:
        max_iterations = config.KEPLER_MAX_ITERATIONS

    eo1 = u
    tem5 = 9999.9
    iterations = 0
    sineo1 = coseo1 = 0.0

    while abs(tem5) >= tolerance and iterations < max_iterations:
        sineo1 = math.sin(eo1)
        coseo1 = math.cos(eo1)
        tem5 = 1.0 - coseo1 * axnl - sineo1 * aynl
        tem5 = (u - aynl * coseo1 + axnl * sineo1 - eo1) / tem5
        if abs(tem5) >= config.KEPLER_MAX_STEP:
            tem5 = math.copysign(config.KEPLER_MAX_STEP, tem5)
        eo1 = eo1 + tem5
        iterations += 1

    if abs(tem5) >= tolerance:
        raise ConvergenceError(iterations, abs(tem5), tsince=tsince)

    return eo1, sineo1, coseo1


def step(record: PropagationRecord, tsince: float) -> StateVector:
    """
    Propagate a record to ``tsince`` minutes from its epoch.

    Args:
        record: Output of initialize()
        tsince: Minutes from epoch; negative values propagate backwards

    Returns:
        StateVector with position in km and velocity in km/s (TEME)

    Raises:
        OrbitDecayedError: If the elements become non-physical or the
            satellite is below the Earth's surface
        ConvergenceError: If Kepler's equation does not converge
    """
    t = float(tsince)
    gravity = record.gravity
    xke = gravity.xke
    payload = record.payload
    deep = isinstance(payload, DeepSpaceTerms)

    # Secular gravity and atmospheric drag
    xmdf = record.mo + record.mdot * t
    argpdf = record.argpo + record.argpdot * t
    nodedf = record.nodeo + record.nodedot * t
    argpm = argpdf
    mm = xmdf
    t2 = t * t
    nodem = nodedf + record.nodecf * t2
    tempa = 1.0 - record.cc1 * t
    tempe = record.bstar * record.cc4 * t
    templ = record.t2cof * t2

    if not deep and payload.drag is not None:
        drag = payload.drag
        delomg = drag.omgcof * t
        delmtemp = 1.0 + drag.eta * math.cos(xmdf)
        delm = drag.xmcof * (delmtemp * delmtemp * delmtemp - drag.delmo)
        temp = delomg + delm
        mm = xmdf + temp
        argpm = argpdf - temp
        t3 = t2 * t
        t4 = t3 * t
        tempa = tempa - drag.d2 * t2 - drag.d3 * t3 - drag.d4 * t4
        tempe = tempe + record.bstar * drag.cc5 * (math.sin(mm) - drag.sinmao)
        templ = templ + drag.t3cof * t3 + t4 * (drag.t4cof + t * drag.t5cof)

    nm = record.no_unkozai
    em = record.ecco
    inclm = record.inclo
    if deep:
        em, argpm, inclm, mm, nodem, nm = apply_secular(payload, t, em, argpm, inclm,
                                                        mm, nodem, nm)

    if nm <= 0.0:
        raise OrbitDecayedError(2, tsince=t)

    am = math.pow(xke / nm, X2O3) * tempa * tempa
    nm = xke / math.pow(am, 1.5)
    em = em - tempe

    if em >= 1.0 or em < MIN_MEAN_ECCENTRICITY:
        raise OrbitDecayedError(1, tsince=t, detail=f"e={em:.6f}")
    if em < ECCENTRICITY_FLOOR:
        em = ECCENTRICITY_FLOOR

    mm = mm + record.no_unkozai * templ
    xlm = mm + argpm + nodem
    nodem = math.fmod(nodem, TWOPI)
    argpm = math.fmod(argpm, TWOPI)
    xlm = math.fmod(xlm, TWOPI)
    mm = math.fmod(xlm - argpm - nodem, TWOPI)

    sinim = math.sin(inclm)
    cosim = math.cos(inclm)

    ep = em
    xincp = inclm
    argpp = argpm
    nodep = nodem
    mp = mm
    sinip = sinim
    cosip = cosim

    con41 = record.con41
    x1mth2 = record.x1mth2
    x7thm1 = record.x7thm1
    aycof = record.aycof
    xlcof = record.xlcof

    if deep:
        ep, xincp, nodep, argpp, mp = apply_periodics(payload.lunar_solar, t, ep, xincp,
                                                      nodep, argpp, mp)
        if xincp < 0.0:
            xincp = -xincp
            nodep = nodep + math.pi
            argpp = argpp - math.pi
        if ep < 0.0 or ep > 1.0:
            raise OrbitDecayedError(3, tsince=t, detail=f"e={ep:.6f}")

        sinip = math.sin(xincp)
        cosip = math.cos(xincp)
        aycof = -0.5 * gravity.j3oj2 * sinip
        xlcof = long_period_coefficient(gravity.j3oj2, sinip, cosip)

        cosisq = cosip * cosip
        con41 = 3.0 * cosisq - 1.0
        x1mth2 = 1.0 - cosisq
        x7thm1 = 7.0 * cosisq - 1.0

    # Long period periodics
    axnl = ep * math.cos(argpp)
    temp = 1.0 / (am * (1.0 - ep * ep))
    aynl = ep * math.sin(argpp) + temp * aycof
    xl = mp + argpp + nodep + temp * xlcof * axnl

    u = math.fmod(xl - nodep, TWOPI)
    eo1, sineo1, coseo1 = solve_kepler(u, axnl, aynl, tsince=t)

    # Short period preliminary quantities
    ecose = axnl * coseo1 + aynl * sineo1
    esine = axnl * sineo1 - aynl * coseo1
    el2 = axnl * axnl + aynl * aynl
    pl = am * (1.0 - el2)
    if pl < 0.0:
        raise OrbitDecayedError(4, tsince=t)

    rl = am * (1.0 - ecose)
    rdotl = math.sqrt(am) * esine / rl
    rvdotl = math.sqrt(pl) / rl
    betal = math.sqrt(1.0 - el2)
    temp = esine / (1.0 + betal)
    sinu = am / rl * (sineo1 - aynl - axnl * temp)
    cosu = am / rl * (coseo1 - axnl + aynl * temp)
    su = math.atan2(sinu, cosu)
    sin2u = (cosu + cosu) * sinu
    cos2u = 1.0 - 2.0 * sinu * sinu
    temp = 1.0 / pl
    temp1 = 0.5 * gravity.j2 * temp
    temp2 = temp1 * temp

    # Short period periodics
    mrt = rl * (1.0 - 1.5 * temp2 * betal * con41) + 0.5 * temp1 * x1mth2 * cos2u
    su = su - 0.25 * temp2 * x7thm1 * sin2u
    xnode = nodep + 1.5 * temp2 * cosip * sin2u
    xinc = xincp + 1.5 * temp2 * cosip * sinip * cos2u
    mvt = rdotl - nm * temp1 * x1mth2 * sin2u / xke
    rvdot = rvdotl + nm * temp1 * (x1mth2 * cos2u + 1.5 * con41) / xke

    # Orientation vectors
    sinsu = math.sin(su)
    cossu = math.cos(su)
    snod = math.sin(xnode)
    cnod = math.cos(xnode)
    sini = math.sin(xinc)
    cosi = math.cos(xinc)
    xmx = -snod * cosi
    xmy = cnod * cosi
    ux = xmx * sinsu + cnod * cossu
    uy = xmy * sinsu + snod * cossu
    uz = sini * sinsu
    vx = xmx * cossu - cnod * sinsu
    vy = xmy * cossu - snod * sinsu
    vz = sini * cossu

    if mrt < 1.0:
        raise OrbitDecayedError(6, tsince=t, detail=f"radius {mrt * gravity.radius_earth_km:.1f} km")

    mr = mrt * gravity.radius_earth_km
    vkmpersec = gravity.vkmpersec
    position = np.array([mr * ux, mr * uy, mr * uz])
    velocity = np.array([
        (mvt * ux + rvdot * vx) * vkmpersec,
        (mvt * uy + rvdot * vy) * vkmpersec,
        (mvt * uz + rvdot * vz) * vkmpersec,
    ])
    position.flags.writeable = False
    velocity.flags.writeable = False

    return StateVector(position=position, velocity=velocity, tsince=t)
