"""
SGP4 Initialization

Turns a parsed ElementSet into a PropagationRecord: recovers the un-Kozai
mean motion, computes secular rates and drag coefficients, and decides
which regime the orbit belongs to.

- Period below 225 minutes: near-earth (SGP4). Higher-order drag terms are
  kept unless perigee is below 220 km.
- Period of 225 minutes or more: deep-space (SDP4). Lunar-solar terms are
  added and, for resonant orbits, the resonance coefficients.

The record is validated by propagating it to its own epoch before it is
returned, so an element set that cannot be evaluated at t=0 fails here.

References:
    Hoots, F. R., & Roehrich, R. L. (1980). Spacetrack Report #3.
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import math
from typing import Optional, Union

from . import config
from .deep_space import initialize_deep_space
from .exceptions import OrbitDecayedError
from .gravity import GravityModel, lookup
from .logging_config import get_logger
from .propagation import long_period_coefficient, step
from .records import HigherOrderDrag, NearEarthTerms, PropagationRecord
from .timescale import JD_1950_EPOCH, days_since_1950, greenwich_sidereal_time
from .tle_parser import ElementSet, mean_motion_rad_per_min

logger = get_logger(__name__)

X2O3 = 2.0 / 3.0
TWOPI = 2.0 * math.pi
DEG2RAD = math.pi / 180.0

# Atmosphere density model parameters, km
S_ALTITUDE_KM = 78.0
Q0_ALTITUDE_KM = 120.0
LOW_PERIGEE_KM = 156.0
VERY_LOW_PERIGEE_KM = 98.0


def initialize(element_set: ElementSet,
               gravity: Optional[Union[GravityModel, str]] = None) -> PropagationRecord:
    """
    Build the propagation record for one element set.

    Args:
        element_set: Parsed TLE
        gravity: Gravity model or its name; None selects the configured default

    Returns:
        Immutable PropagationRecord

    Raises:
        OrbitDecayedError: If the elements describe no usable orbit (code 1, 2
            or 5) or the record cannot be evaluated at epoch
        UnknownModelError: If ``gravity`` names an unknown model
    """
    if not isinstance(gravity, GravityModel):
        gravity = lookup(gravity)

    xke = gravity.xke
    j2 = gravity.j2
    j4 = gravity.j4
    j3oj2 = gravity.j3oj2
    radius = gravity.radius_earth_km

    bstar = element_set.bstar
    ecco = element_set.eccentricity
    inclo = element_set.inclination * DEG2RAD
    nodeo = element_set.raan * DEG2RAD
    argpo = element_set.arg_perigee * DEG2RAD
    mo = element_set.mean_anomaly * DEG2RAD
    no_kozai = mean_motion_rad_per_min(element_set)

    if not 0.0 <= ecco < 1.0:
        raise OrbitDecayedError(1, tsince=0.0, detail=f"e={ecco}")
    if no_kozai <= 0.0:
        raise OrbitDecayedError(2, tsince=0.0, detail=f"n={element_set.mean_motion} rev/day")

    epoch_days = days_since_1950(element_set.epoch_year, element_set.epoch_day)

    # Recover the original (un-Kozai) mean motion
    eccsq = ecco * ecco
    omeosq = 1.0 - eccsq
    rteosq = math.sqrt(omeosq)
    cosio = math.cos(inclo)
    cosio2 = cosio * cosio

    ak = math.pow(xke / no_kozai, X2O3)
    d1 = 0.75 * j2 * (3.0 * cosio2 - 1.0) / (rteosq * omeosq)
    delta = d1 / (ak * ak)
    adel = ak * (1.0 - delta * delta - delta * (1.0 / 3.0 + 134.0 * delta * delta / 81.0))
    delta = d1 / (adel * adel)
    no_unkozai = no_kozai / (1.0 + delta)

    ao = math.pow(xke / no_unkozai, X2O3)
    sinio = math.sin(inclo)
    po = ao * omeosq
    con42 = 1.0 - 5.0 * cosio2
    con41 = -con42 - cosio2 - cosio2
    posq = po * po
    rp = ao * (1.0 - ecco)
    gsto = greenwich_sidereal_time(epoch_days + JD_1950_EPOCH)

    a = math.pow(no_unkozai * gravity.tumin, -X2O3)
    if no_unkozai <= 0.0 or a <= 0.0:
        raise OrbitDecayedError(2, tsince=0.0, detail="un-Kozai mean motion not positive")
    if rp < 1.0:
        raise OrbitDecayedError(5, tsince=0.0,
                                detail=f"perigee {(rp - 1.0) * radius:.1f} km")

    # Atmosphere model: s and q0^4 are lowered for perigees under 156 km
    perigee_km = (rp - 1.0) * radius
    sfour = S_ALTITUDE_KM / radius + 1.0
    qzms24 = math.pow((Q0_ALTITUDE_KM - S_ALTITUDE_KM) / radius, 4)
    if perigee_km < LOW_PERIGEE_KM:
        sfour_km = perigee_km - S_ALTITUDE_KM
        if perigee_km < VERY_LOW_PERIGEE_KM:
            sfour_km = 20.0
        qzms24 = math.pow((Q0_ALTITUDE_KM - sfour_km) / radius, 4)
        sfour = sfour_km / radius + 1.0

    pinvsq = 1.0 / posq
    tsi = 1.0 / (ao - sfour)
    eta = ao * ecco * tsi
    etasq = eta * eta
    eeta = ecco * eta
    psisq = abs(1.0 - etasq)
    coef = qzms24 * math.pow(tsi, 4)
    coef1 = coef / math.pow(psisq, 3.5)
    cc2 = coef1 * no_unkozai * (
        ao * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
        + 0.375 * j2 * tsi / psisq * con41 * (8.0 + 3.0 * etasq * (8.0 + etasq))
    )
    cc1 = bstar * cc2
    cc3 = 0.0
    if ecco > 1.0e-4:
        cc3 = -2.0 * coef * tsi * j3oj2 * no_unkozai * sinio / ecco
    x1mth2 = 1.0 - cosio2
    cc4 = 2.0 * no_unkozai * coef1 * ao * omeosq * (
        eta * (2.0 + 0.5 * etasq) + ecco * (0.5 + 2.0 * etasq)
        - j2 * tsi / (ao * psisq) * (
            -3.0 * con41 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
            + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * math.cos(2.0 * argpo)
        )
    )
    cc5 = 2.0 * coef1 * ao * omeosq * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)

    # Secular rates from J2 and J4
    cosio4 = cosio2 * cosio2
    temp1 = 1.5 * j2 * pinvsq * no_unkozai
    temp2 = 0.5 * temp1 * j2 * pinvsq
    temp3 = -0.46875 * j4 * pinvsq * pinvsq * no_unkozai
    mdot = (no_unkozai + 0.5 * temp1 * rteosq * con41
            + 0.0625 * temp2 * rteosq * (13.0 - 78.0 * cosio2 + 137.0 * cosio4))
    argpdot = (-0.5 * temp1 * con42
               + 0.0625 * temp2 * (7.0 - 114.0 * cosio2 + 395.0 * cosio4)
               + temp3 * (3.0 - 36.0 * cosio2 + 49.0 * cosio4))
    xhdot1 = -temp1 * cosio
    nodedot = xhdot1 + (0.5 * temp2 * (4.0 - 19.0 * cosio2)
                        + 2.0 * temp3 * (3.0 - 7.0 * cosio2)) * cosio

    omgcof = bstar * cc3 * math.cos(argpo)
    xmcof = 0.0
    if ecco > 1.0e-4:
        xmcof = -X2O3 * coef * bstar / eeta
    nodecf = 3.5 * omeosq * xhdot1 * cc1
    t2cof = 1.5 * cc1
    xlcof = long_period_coefficient(j3oj2, sinio, cosio)
    aycof = -0.5 * j3oj2 * sinio
    delmotemp = 1.0 + eta * math.cos(mo)
    delmo = delmotemp * delmotemp * delmotemp
    sinmao = math.sin(mo)
    x7thm1 = 7.0 * cosio2 - 1.0

    if TWOPI / no_unkozai >= config.DEEP_SPACE_PERIOD_MINUTES:
        payload = initialize_deep_space(epoch_days, gsto, ecco, inclo, nodeo, argpo, mo,
                                        no_unkozai, mdot, argpdot, nodedot, xke)
    elif rp < config.SIMPLIFIED_DRAG_PERIGEE_KM / radius + 1.0:
        payload = NearEarthTerms()
    else:
        cc1sq = cc1 * cc1
        d2 = 4.0 * ao * tsi * cc1sq
        temp = d2 * tsi * cc1 / 3.0
        d3 = (17.0 * ao + sfour) * temp
        d4 = 0.5 * temp * ao * tsi * (221.0 * ao + 31.0 * sfour) * cc1
        payload = NearEarthTerms(drag=HigherOrderDrag(
            cc5=cc5,
            d2=d2,
            d3=d3,
            d4=d4,
            delmo=delmo,
            eta=eta,
            omgcof=omgcof,
            sinmao=sinmao,
            xmcof=xmcof,
            t3cof=d2 + 2.0 * cc1sq,
            t4cof=0.25 * (3.0 * d3 + cc1 * (12.0 * d2 + 10.0 * cc1sq)),
            t5cof=0.2 * (3.0 * d4 + 12.0 * cc1 * d3 + 6.0 * d2 * d2
                         + 15.0 * cc1sq * (2.0 * d2 + cc1sq)),
        ))

    record = PropagationRecord(
        catalog_number=element_set.catalog_number,
        gravity=gravity,
        epoch_days=epoch_days,
        gsto=gsto,
        bstar=bstar,
        ecco=ecco,
        inclo=inclo,
        nodeo=nodeo,
        argpo=argpo,
        mo=mo,
        no_kozai=no_kozai,
        no_unkozai=no_unkozai,
        a=a,
        cosio=cosio,
        sinio=sinio,
        con41=con41,
        x1mth2=x1mth2,
        x7thm1=x7thm1,
        mdot=mdot,
        argpdot=argpdot,
        nodedot=nodedot,
        nodecf=nodecf,
        cc1=cc1,
        cc4=cc4,
        t2cof=t2cof,
        xlcof=xlcof,
        aycof=aycof,
        payload=payload,
    )

    step(record, 0.0)

    logger.debug(
        f"Initialized catalog {record.catalog_number} with {gravity.name}: "
        f"regime={record.regime.value} resonance={record.resonance.name} "
        f"simplified={record.is_simplified} perigee={record.perigee_altitude_km:.1f} km "
        f"period={record.period_minutes:.2f} min"
    )
    return record
