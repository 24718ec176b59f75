"""
Navigation functions, sensors, and state estimators for the USV.

Implements the Navigation block of GNC design: kinematic transformations that
map body-frame velocities to NED position and Euler angle rates, sensor
abstractions for reading the environment, and the extended Kalman filter that
estimates speed over ground (SOG), course over ground (COG), and course rate
from periodic GNSS position fixes.


Classes
-------
Sensor
    Sensor interface.
OceanCurrentSensor
    Ocean current speed and direction.
Estimator
    Abstract base class for caller-owned state estimators.
EKF5States
    5-state EKF for position, SOG, COG, and course rate.


Functions
---------
**Coordinate Transformations:**

    - Rzyx(phi, theta, psi) : BODY to NED rotation, zyx order.
    - Tzyx(phi, theta) : Body rates to Euler angle rates, zyx order.
    - eulerang(phi, theta, psi) : 6-DOF kinematic transformation J(eta).


Notes
-----
- Navigation block inputs: GNSS positions, environment
- Navigation block outputs: State estimates to the Control block


References
----------
[1] Fossen, T.I. (2021). Handbook of Marine Craft Hydrodynamics and Motion
Control. 2nd Edition, Wiley. https://www.fossen.biz/wiley

[2] Fossen, T. I. and Perez, T. (2004). Marine Systems Simulator (MSS).
https://github.com/cybergalactic/MSS
"""

from __future__ import annotations
from typing import Any, List, Optional, TYPE_CHECKING
from numpy.typing import NDArray
from abc import ABC, abstractmethod
if (TYPE_CHECKING):
    from otterusvsim.environment import Ocean
import numpy as np
import math
from otterusvsim import gnc
from otterusvsim import logger

#-----------------------------------------------------------------------------#

# Type Aliases
NPFltArr = NDArray[np.float64]

# Global Variables
log = logger.addLog('nav')

# WGS-84 ellipsoid
WGS84_A = 6378137                           # semi-major axis (m)
WGS84_F = 1/298.257223563                   # flattening
WGS84_E = math.sqrt(2*WGS84_F - WGS84_F**2) # eccentricity

###############################################################################

class Sensor(ABC):
    """
    Interface for vehicle sensors.

    A sensor reads some quantity from the simulated world when the vehicle
    asks for it. Subclasses implement collectData().
    """

    @abstractmethod
    def collectData(self)->Any:
        """Return one reading. The type depends on the sensor."""

###############################################################################

class OceanCurrentSensor(Sensor):
    """Reads the ocean current speed and direction for one sample index."""

    def collectData(self,
                    ocean:Ocean=None,
                    i:int=None,
                    **kwargs)->List[float]:
        """
        Read the current at sample i.


        Parameters
        ----------
        ocean : Ocean
            Environment holding current.speed and current.angle per sample.
        i : int
            Simulation iteration counter.
        **kwargs
            Unused. Keeps the sensor interface uniform.


        Returns
        -------
        speed : float
            Current speed in m/s.
        direction : float
            Current direction in radians.


        Notes
        -----
        Returns [-1.0, -1.0] with an error log when arguments are missing.
        """

        if (ocean is None) or (i is None):
            log.error("%s requires 'ocean' and 'i' arguments.",
                      self.__class__.__name__)
            return [-1.0, -1.0]

        return [ocean.current.speed[i], ocean.current.angle[i]]

###############################################################################

def Rzyx(phi:float,
         theta:float,
         psi:float,
         )->NPFltArr:
    """
    Rotation matrix from BODY to NED for zyx Euler angles.


    Parameters
    ----------
    phi : float
        Roll angle in radians.
    theta : float
        Pitch angle in radians.
    psi : float
        Yaw angle in radians.


    Returns
    -------
    R : ndarray, shape (3, 3)
        Rotation matrix from BODY to NED frame.
    """

    cphi = math.cos(phi)
    sphi = math.sin(phi)
    cth  = math.cos(theta)
    sth  = math.sin(theta)
    cpsi = math.cos(psi)
    spsi = math.sin(psi)

    R = np.array([
        [ cpsi*cth, -spsi*cphi+cpsi*sth*sphi,  spsi*sphi+cpsi*cphi*sth ],
        [ spsi*cth,  cpsi*cphi+sphi*sth*spsi, -cpsi*sphi+sth*spsi*cphi ],
        [ -sth,      cth*sphi,                 cth*cphi ] ])

    return R

###############################################################################

def Tzyx(phi:float,theta:float)->NPFltArr:
    """
    Matrix T with d/dt [phi, theta, psi] = T [p, q, r], zyx order.


    Parameters
    ----------
    phi : float
        Roll angle in radians.
    theta : float
        Pitch angle in radians.


    Returns
    -------
    T : ndarray, shape (3, 3)
        Angular velocity transformation.


    Notes
    -----
    Singular at theta = +/-90 degrees. The error is logged and re-raised.
    """

    cphi = math.cos(phi)
    sphi = math.sin(phi)
    cth  = math.cos(theta)
    sth  = math.sin(theta)

    try:
        T = np.array([
            [ 1,  sphi*sth/cth,  cphi*sth/cth ],
            [ 0,  cphi,          -sphi],
            [ 0,  sphi/cth,      cphi/cth] ])
    except (ZeroDivisionError):
        log.error("Tzyx is singular for theta = +-90 degrees." )
        raise

    return T

###############################################################################

def eulerang(phi:float,
             theta:float,
             psi:float,
             )->NPFltArr:
    """
    Compute the 6x6 kinematic transformation J(eta) using Euler angles.


    Parameters
    ----------
    phi, theta, psi : float
        Roll, pitch, and yaw angles in radians.


    Returns
    -------
    J : ndarray, shape (6, 6)
        Block diagonal [[Rzyx, 0], [0, Tzyx]] such that d/dt eta = J(eta) nu.
    """

    J = np.zeros((6,6))
    J[0:3,0:3] = Rzyx(phi,theta,psi)
    J[3:6,3:6] = Tzyx(phi,theta)

    return J

###############################################################################

class Estimator(ABC):
    """
    Abstract base class for state estimators owned by the caller.

    An estimator carries its own filter state between calls. It must be reset
    before each independent simulation run so that no state from a previous
    run leaks into the next one.
    """

    @abstractmethod
    def reset(self)->None:
        """Clear all internal filter state."""

    @abstractmethod
    def estimate(self, *args, **kwargs)->NPFltArr:
        """Advance the estimator one step and return the state estimate."""

###############################################################################

class EKF5States(Estimator):
    """
    Extended Kalman filter for SOG, COG, and course rate from GNSS positions.

    The filter state is x = [x_N, y_E, U, chi, omega_chi] in the NED frame or
    x = [mu, l, U, chi, omega_chi] (latitude, longitude in radians) in the LL
    frame. The filter runs at the sample rate 1/h and ingests a position fix
    every Z-th call, predicting in between.


    Parameters
    ----------
    alpha_1 : float, default=0.01
        Speed process pole. alpha_1 = 0 gives a Wiener process.
    alpha_2 : float, default=0.1
        Course rate process pole.
    x_prd_init : array_like, shape (5,), optional
        Initial predicted state. If None, the first call initializes the
        prediction from the first position fix with zero speed, course, and
        course rate.


    Attributes
    ----------
    x_prd : ndarray, shape (5,) or None
        Predicted state. None until the first call after a reset.
    P_prd : ndarray, shape (5, 5) or None
        Predicted error covariance.
    count : int
        Position in the measurement cycle, 1 to Z. A measurement update is
        performed when count == 1.


    Notes
    -----
    **Process Model (NED):**

        d/dt x_N = U cos(chi)
        d/dt y_E = U sin(chi)
        d/dt U = -alpha_1 U + w_1
        d/dt chi = omega_chi
        d/dt omega_chi = -alpha_2 omega_chi + w_2

    In the LL frame the position rates are divided by the meridian and prime
    vertical radii of curvature of the WGS-84 ellipsoid.

    **Discretization:**

    Forward Euler on the state and the Jacobian, Ad = I + h A(x), with the
    process noise entering through Ed = h [0 0 1 0 0; 0 0 0 0 1]^T.

    **Measurement Update:**

    Joseph form, P = (I-KC) P (I-KC)^T + K Rd K^T.


    References
    ----------
    [1] Fossen, S. and Fossen, T. I. (2018). eXogenous Kalman Filter (XKF) for
    Visualization and Motion Prediction of Ships using Estimated Course and
    Speed over Ground. IFAC-PapersOnLine 51(29), 243-248.
    """

    # Measurement matrix: position components only
    Cd = np.array([[1, 0, 0, 0, 0],
                   [0, 1, 0, 0, 0]], float)

    FRAMES = ('NED', 'LL')

    def __init__(self,
                 alpha_1:float = 0.01,
                 alpha_2:float = 0.1,
                 x_prd_init:Optional[NPFltArr] = None,
                 )->None:
        self.alpha_1 = alpha_1
        self.alpha_2 = alpha_2
        self.x_prd_init = (None if x_prd_init is None
                           else np.array(x_prd_init, float))
        self.reset()

    def __repr__(self)->str:
        """Return concise string representation of the filter."""
        return (f"{self.__class__.__name__}(alpha_1={self.alpha_1}, "
                f"alpha_2={self.alpha_2}, count={self.count})")

    def reset(self)->None:
        """Clear the predicted state, covariance, and measurement counter."""
        self.x_prd = None
        self.P_prd = None
        self.count = 1

    def estimate(self,
                 position1:float,
                 position2:float,
                 h:float,
                 Z:int,
                 frame:str,
                 Qd:NPFltArr,
                 Rd:NPFltArr,
                 )->NPFltArr:
        """
        Advance the filter one sample and return the corrected estimate.


        Parameters
        ----------
        position1, position2 : float
            Position fix: north and east in meters (NED), or latitude and
            longitude in radians (LL).
        h : float
            Sample time in seconds.
        Z : int
            Measurement decimation. A fix is ingested every Z-th call.
        frame : {'NED', 'LL'}
            Position coordinate frame.
        Qd : ndarray, shape (2, 2)
            Process noise covariance of [w_1, w_2].
        Rd : ndarray, shape (2, 2)
            Measurement noise covariance.


        Returns
        -------
        x_hat : ndarray, shape (5,)
            Corrected state estimate for this sample. On calls without a
            measurement this is the prediction carried from the last call.


        Raises
        ------
        ValueError
            Unknown frame.
        """

        if (frame not in self.FRAMES):
            log.error("Unknown EKF frame '%s'. Use one of %s.",
                      frame, self.FRAMES)
            raise ValueError(f"Unknown EKF frame '{frame}'")

        # First call after reset
        if (self.x_prd is None):
            if (self.x_prd_init is not None):
                self.x_prd = np.copy(self.x_prd_init)
            else:
                self.x_prd = np.array([position1, position2, 0, 0, 0], float)
            self.P_prd = np.eye(5)
            self.count = 1

        Cd = self.Cd
        Ed = h * np.array([[0, 0],
                           [0, 0],
                           [1, 0],
                           [0, 0],
                           [0, 1]], float)

        # Corrector
        if (self.count == 1):
            y = np.array([position1, position2], float)
            K = self.P_prd @ Cd.T @ np.linalg.inv(Cd @ self.P_prd @ Cd.T + Rd)
            IKC = np.eye(5) - K @ Cd
            eps = y - Cd @ self.x_prd
            if (frame == 'LL'):
                eps = gnc.ssa(eps)
            x_hat = self.x_prd + K @ eps
            P_hat = IKC @ self.P_prd @ IKC.T + K @ Rd @ K.T
        else:
            x_hat = self.x_prd
            P_hat = self.P_prd

        # Predictor
        f, A = self._model(x_hat, frame)
        Ad = np.eye(5) + h * A
        self.x_prd = x_hat + h * f
        self.P_prd = Ad @ P_hat @ Ad.T + Ed @ Qd @ Ed.T

        # Measurement cycle
        self.count += 1
        if (self.count > Z):
            self.count = 1

        return np.copy(x_hat)

    def _model(self, x:NPFltArr, frame:str):
        """Return the process model f(x) and its Jacobian A(x)."""

        U = x[2]
        chi = x[3]
        omega = x[4]
        a1 = self.alpha_1
        a2 = self.alpha_2

        if (frame == 'NED'):
            kN = 1.0
            kE = 1.0
        else:
            s = math.sin(x[0])
            Rn = WGS84_A / math.sqrt(1 - WGS84_E**2 * s**2)
            Rm = Rn * ((1 - WGS84_E**2) / (1 - WGS84_E**2 * s**2))
            kN = 1 / Rm
            kE = 1 / (Rn * math.cos(x[0]))

        f = np.array([
            kN * U * math.cos(chi),
            kE * U * math.sin(chi),
            -a1 * U,
            omega,
            -a2 * omega])

        A = np.array([
            [0, 0, kN * math.cos(chi), -kN * U * math.sin(chi), 0],
            [0, 0, kE * math.sin(chi),  kE * U * math.cos(chi), 0],
            [0, 0, -a1,                 0,                      0],
            [0, 0, 0,                   0,                      1],
            [0, 0, 0,                   0,                    -a2]])

        return f, A

###############################################################################
