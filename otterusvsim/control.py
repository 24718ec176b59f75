"""
Control algorithms for USV course regulation.

Implements the Control block of GNC design for generating propeller commands
that track the reference model course while holding a constant surge force.

Functions
---------
**Course Control**
    pidPolePlacement(T, m, wn, zeta) : Nomoto pole-placement PID gains.
    coursePID(vehicle) : PID course autopilot with reference feedforward.
    courseIntegral(vehicle) : Update the course error integral state.

**Surge Control**
    constSurge(vehicle) : Constant surge force command.
    courseAutopilot(vehicle) : Generalized force command [tau_X, tau_N].

**Control Allocation**
    allocationInverse(B) : Invert the thrust allocation input matrix.
    signedSqrt(u) : Square-root nonlinearity preserving sign.
    thrustAllocation(vehicle, tau) : Force/moment to propeller revolutions.

**Actuator Dynamics**
    propellerDynamics(vehicle, n_c) : First-order propeller revolution lag.

Notes
-----
**GNC Architecture Context:**

- **Inputs:**

  - Desired course, course rate, and course acceleration from the Guidance
    reference model
  - Course and course rate estimates from the Navigation EKF

- **Outputs:**

  - Propeller revolution commands n_c = [n_left, n_right] (rad/s)

**Typical Control Components:**

1. **Controller:** coursePID() computes the yaw moment tau_N. The surge force
   tau_X is a constant.

2. **Control Allocation:** thrustAllocation() solves B u = tau for the squared
   propeller revolutions u and takes the signed square root.

No actuator command saturation is applied here. Revolution limits are part of
the vehicle model.

References
----------
[1] Fossen, T.I. (2021). Handbook of Marine Craft Hydrodynamics and Motion
Control. 2nd Edition, Wiley. https://www.fossen.biz/wiley

[2] Fossen, T. I. and Perez, T. (2004). Marine Systems Simulator (MSS).
https://github.com/cybergalactic/MSS
"""

from __future__ import annotations
from typing import Tuple, TYPE_CHECKING
from numpy.typing import NDArray
if (TYPE_CHECKING):
    from otterusvsim.vehicles import Vehicle
import numpy as np
from otterusvsim import logger
from otterusvsim import gnc

#-----------------------------------------------------------------------------#

# Type Aliases
NPFltArr = NDArray[np.float64]

# Global variable
log = logger.addLog('ctrl')

###############################################################################

def pidPolePlacement(T:float,
                     m:float,
                     wn:float,
                     zeta:float,
                     )->Tuple[float,float,float,float]:
    """
    Compute PID course autopilot gains by pole placement on a Nomoto model.


    Parameters
    ----------
    T : float
        Nomoto time constant (s).
    m : float
        Nomoto inertia m = T/K.
    wn : float
        Desired closed-loop natural frequency (rad/s).
    zeta : float
        Desired closed-loop relative damping factor.


    Returns
    -------
    Kp : float
        Proportional gain.
    Kd : float
        Derivative gain.
    Td : float
        Derivative time Kd/Kp (s).
    Ti : float
        Integral time (s).


    Notes
    -----
    The first-order Nomoto model

        T d/dt r + r = K tau_N,   m = T/K

    under PD feedback has the closed-loop characteristic polynomial

        s^2 + (1/T + Kd/m) s + Kp/m

    and matching it to s^2 + 2 zeta wn s + wn^2 gives

        Kp = m wn^2
        Kd = m (2 zeta wn - 1/T)

    The integral time is placed a decade below the natural frequency,
    Ti = 10/wn.
    """

    if ((T <= 0) or (m <= 0) or (wn <= 0)):
        log.error('Nomoto parameters and wn must be positive: ' +
                  'T=%s, m=%s, wn=%s', T, m, wn)
        raise ValueError('Nomoto parameters and wn must be positive')

    Kp = m * wn**2
    Kd = m * (2*zeta*wn - 1/T)
    Td = Kd / Kp
    Ti = 10 / wn

    return Kp, Kd, Td, Ti

###############################################################################

def coursePID(vehicle:Vehicle)->float:
    """
    PID course autopilot with reference model feedforward.


    Parameters
    ----------
    vehicle : Vehicle
        Vehicle with control parameters and state:

        **Gains:**

        - T_chi, K_chi : Nomoto time constant and gain.
        - Kp_chi, Td_chi, Ti_chi : PID gains from pidPolePlacement().

        **State Variables:**

        - x_hat : EKF estimate [x_N, y_E, U, chi, omega_chi].
        - chi_d, omega_d, a_d : Reference model course, rate, acceleration.
        - chi_int : Course error integral state.


    Returns
    -------
    tau_N : float
        Yaw moment command (Nm).


    Notes
    -----
    **Control Law:**

        tau_N = (T/K) a_d + (1/K) omega_d
                - Kp ( ssa(chi_hat - chi_d)
                       + Td (omega_hat - omega_d)
                       + (1/Ti) z )

    The first two terms invert the Nomoto model along the reference
    trajectory. The integral state z is read, not updated. It is advanced by
    courseIntegral() after the estimator step, so the command of a sample
    always uses the integral from before that sample's update.
    """

    T = vehicle.T_chi
    K = vehicle.K_chi
    chi_hat = vehicle.x_hat[3]
    omega_hat = vehicle.x_hat[4]

    e_chi = gnc.ssa(chi_hat - vehicle.chi_d)
    e_omega = omega_hat - vehicle.omega_d

    tau_N = ((T/K) * vehicle.a_d + (1/K) * vehicle.omega_d
             - vehicle.Kp_chi * (e_chi + vehicle.Td_chi * e_omega
                                 + (1/vehicle.Ti_chi) * vehicle.chi_int))

    return tau_N

###############################################################################

def courseIntegral(vehicle:Vehicle)->None:
    """
    Advance the course error integral state one sample.

    Updates vehicle.chi_int with h * ssa(chi_hat - chi_d). Only the wrapped
    course error is accumulated.
    """

    e_chi = gnc.ssa(vehicle.x_hat[3] - vehicle.chi_d)
    vehicle.chi_int = vehicle.chi_int + vehicle.sampleTime * e_chi

###############################################################################

def constSurge(vehicle:Vehicle)->float:
    """Return the constant surge force command vehicle.tau_X (N)."""
    return vehicle.tau_X

###############################################################################

def courseAutopilot(vehicle:Vehicle)->NPFltArr:
    """
    Compute the generalized force command for course control.


    Parameters
    ----------
    vehicle : Vehicle
        Vehicle loaded with a course autopilot. See coursePID().


    Returns
    -------
    tau : ndarray, shape (2,)
        [tau_X, tau_N], surge force (N) and yaw moment (Nm).
    """

    return np.array([constSurge(vehicle), coursePID(vehicle)], float)

###############################################################################

def allocationInverse(B:NPFltArr)->NPFltArr:
    """
    Invert the thrust allocation input matrix.


    Parameters
    ----------
    B : array_like, shape (2, 2)
        Input matrix mapping squared propeller revolutions to [tau_X, tau_N].


    Returns
    -------
    Binv : ndarray, shape (2, 2)
        Inverse of B.


    Raises
    ------
    ValueError
        B is not 2x2, has non-finite entries, or is singular. This is a
        configuration error caught once at setup, never inside the time loop.
    """

    B = np.asarray(B, float)

    if (B.shape != (2,2)):
        log.error('Thrust allocation matrix must be 2x2, got shape %s',
                  B.shape)
        raise ValueError('Thrust allocation matrix must be 2x2')

    if (not np.all(np.isfinite(B))) or (np.linalg.matrix_rank(B) < 2):
        log.error('Thrust allocation matrix is singular:\n%s', B)
        raise ValueError('Thrust allocation matrix is singular')

    return np.linalg.inv(B)

###############################################################################

def signedSqrt(u:NPFltArr)->NPFltArr:
    """Return sign(u) * sqrt(|u|) elementwise."""
    u = np.asarray(u, float)
    return np.sign(u) * np.sqrt(np.abs(u))

###############################################################################

def thrustAllocation(vehicle:Vehicle, tau:NPFltArr)->NPFltArr:
    """
    Allocate surge force and yaw moment to propeller revolution commands.


    Parameters
    ----------
    vehicle : Vehicle
        Vehicle with precomputed inverse input matrix Binv.
    tau : array_like, shape (2,)
        [tau_X, tau_N] command.


    Returns
    -------
    n_c : ndarray, shape (2,)
        Commanded revolutions [n_left, n_right] (rad/s).


    Notes
    -----
    The thrust of each propeller is modelled as T_i = k n_i |n_i|, so

        tau = B u,   u_i = n_i |n_i|

    The linear problem is solved with the cached inverse and the revolutions
    follow from n_i = sign(u_i) sqrt(|u_i|).
    """

    u = vehicle.Binv @ np.asarray(tau, float)
    return signedSqrt(u)

###############################################################################

def propellerDynamics(vehicle:Vehicle, n_c:NPFltArr)->None:
    """
    Advance the actual propeller revolutions one sample.

    First-order lag toward the command, each propeller independent:

        n <- n + h/T_n (n_c - n)

    Updates vehicle.n.
    """

    h = vehicle.sampleTime
    vehicle.n = vehicle.n + h / vehicle.T_n * (np.asarray(n_c, float)
                                              - vehicle.n)

###############################################################################
