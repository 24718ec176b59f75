"""
Shared math for the USV model and its autopilot.

Angle wrapping, the rigid-body matrix helpers used to assemble the 6-DOF
equations of motion, strip-theory cross-flow drag, and clamping. The matrix
and drag routines follow Fossen's formulation.

Functions
---------
**Angles and Matrices**
    ssa(angle) : Wrap to (-pi, pi].
    Smtrx(a) : Cross-product operator S(a).
    Hmtrx(r) : Velocity transformation between two body points.
    m2c(M, nu) : Coriolis-centripetal matrix C(nu) from M.
**Drag**
    Hoerner(B, T) : Two-dimensional cross-flow drag coefficient.
    crossFlowDrag(L, B, T, nu_r) : Sway and yaw drag summed over strips.
**Limits**
    saturation(value, limit, maxLimit) : Clamp a scalar.

References
----------
[1] Fossen, T.I. (2021). Handbook of Marine Craft Hydrodynamics and Motion
Control. 2nd ed. Wiley.

[2] Fossen, T. I. and Perez, T. (2004). Marine Systems Simulator (MSS).
https://github.com/cybergalactic/MSS
"""

from typing import Optional, Union
from numpy.typing import NDArray
import numpy as np
import math

#-----------------------------------------------------------------------------#

# Type Aliases
NPFltArr = NDArray[np.float64]

# Sea water density used by the strip-theory drag integral (kg/m^3)
RHO = 1026

# Number of hull strips in the cross-flow drag integral
N_STRIPS = 20

# Hoerner's curve: B/2T against the 2-D drag coefficient
HOERNER_B2T = np.array([
    0.0109, 0.1766, 0.3530, 0.4519, 0.4728, 0.4929, 0.4933, 0.5585, 0.6464,
    0.8336, 0.9880, 1.3081, 1.6392, 1.8600, 2.3129, 2.6000, 3.0088, 3.4508,
    3.7379, 4.0031])
HOERNER_CD = np.array([
    1.9661, 1.9657, 1.8976, 1.7872, 1.5837, 1.2786, 1.2108, 1.0836, 0.9986,
    0.8796, 0.8284, 0.7599, 0.6914, 0.6571, 0.6307, 0.5962, 0.5868, 0.5859,
    0.5599, 0.5593])

###############################################################################

def ssa(angle:Union[float,NPFltArr])->Union[float,NPFltArr]:
    """
    Wrap an angle to the half-open interval (-pi, pi].

    Applied to the difference of two headings this gives the shorter turn
    between them, positive clockwise seen from above.


    Parameters
    ----------
    angle : float or ndarray
        Angle in radians, any magnitude. Arrays are wrapped elementwise.


    Returns
    -------
    float or ndarray
        Equivalent angle in (-pi, pi].


    Notes
    -----
    - Both ends of the circle map to +pi: ssa(-pi) == ssa(pi) == pi.
    - One modulo per call, so wrapping an already wrapped angle returns it
      unchanged.
    """

    return -((math.pi - angle) % (2 * math.pi) - math.pi)

###############################################################################

def Smtrx(a:NPFltArr)->NPFltArr:
    """
    Return the skew-symmetric matrix S(a) with S(a) @ b == cross(a, b).
    """

    return np.array([
        [ 0.0,  -a[2],  a[1]],
        [ a[2],  0.0,  -a[0]],
        [-a[1],  a[0],  0.0 ]], float)

###############################################################################

def Hmtrx(r:NPFltArr)->NPFltArr:
    """
    Return the 6x6 transformation H(r) = [[I, S(r)^T], [0, I]].

    Moves generalized velocities from the body origin to the point r, and
    moves model matrices between the two points as M_CO = H^T M_CG H with
    r the CG offset. H(r) is inverted by H(-r).
    """

    H = np.identity(6)
    H[0:3,3:6] = Smtrx(r).T
    return H

###############################################################################

def m2c(M:NPFltArr, nu:NPFltArr)->NPFltArr:
    """
    Build the Coriolis-centripetal matrix C(nu) of a 6x6 mass matrix.


    Parameters
    ----------
    M : ndarray, shape (6, 6)
        Rigid-body or added mass matrix. Only its symmetric part is used.
    nu : ndarray, shape (6,)
        Body velocity [u, v, w, p, q, r].


    Returns
    -------
    C : ndarray, shape (6, 6)
        Skew-symmetric, so nu^T C(nu) nu = 0.
    """

    Ms = 0.5 * (M + M.T)
    p1 = Ms[0:3,0:3] @ nu[0:3] + Ms[0:3,3:6] @ nu[3:6]     # linear momentum
    p2 = Ms[3:6,0:3] @ nu[0:3] + Ms[3:6,3:6] @ nu[3:6]     # angular momentum

    C = np.zeros((6,6))
    C[0:3,3:6] = -Smtrx(p1)
    C[3:6,0:3] = -Smtrx(p1)
    C[3:6,3:6] = -Smtrx(p2)
    return C

###############################################################################

def Hoerner(B:float, T:float)->float:
    """
    Interpolate Hoerner's 2-D cross-flow drag coefficient at B/(2T).

    B is the beam and T the draft of the hull section, both in meters.
    Ratios outside the tabulated range take the end values.
    """

    return float(np.interp(B / (2 * T), HOERNER_B2T, HOERNER_CD))

###############################################################################

def crossFlowDrag(L:float,
                  B:float,
                  T:float,
                  nu_r:NPFltArr,
                  )->NPFltArr:
    """
    Sway force and yaw moment from cross-flow drag by strip theory.


    Parameters
    ----------
    L : float
        Hull length (m).
    B : float
        Beam of a single pontoon (m).
    T : float
        Draft (m).
    nu_r : ndarray, shape (6,)
        Velocity relative to the water [u, v, w, p, q, r].


    Returns
    -------
    tau_crossflow : ndarray, shape (6,)
        [0, Y, 0, 0, 0, N].


    Notes
    -----
    The local cross-flow speed v + x r is evaluated at the N_STRIPS + 1
    stations from x = -L/2 to x = L/2, each weighted by the strip width L /
    N_STRIPS.
    """

    dx = L / N_STRIPS
    xL = np.linspace(-L/2, L/2, N_STRIPS + 1)
    v_cf = nu_r[1] + xL * nu_r[5]
    dF = -0.5 * RHO * T * Hoerner(B, T) * np.abs(v_cf) * v_cf * dx

    return np.array([0, dF.sum(), 0, 0, 0, (xL * dF).sum()], float)

###############################################################################

def saturation(value:float,
               limit:float,
               maxLimit:Optional[float]=None,
               )->float:
    """
    Clamp a scalar to [limit, maxLimit], or to [-|limit|, |limit|] when
    maxLimit is omitted.

    Examples
    --------
    >>> saturation(5.0, 2.0)
    2.0
    >>> saturation(-5.0, -3.0, 3.0)
    -3.0
    """

    if (maxLimit is None):
        return float(np.clip(value, -abs(limit), abs(limit)))
    return float(np.clip(value, limit, maxLimit))

###############################################################################
