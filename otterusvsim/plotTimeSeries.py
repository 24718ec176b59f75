"""
Visualization functions for USV simulation data.

Provides plotting functions for time-series analysis of the course autopilot
simulation: body velocities, positions and attitude, and the course tracking
signals with the EKF estimates and propeller revolutions.


Functions
---------
deriveStates(simData)
    Speed, crab angle, and course angle from the logged velocities.
plotVelocities(simData, figNo)
    Plot 6-DOF body-frame velocities vs time.
plotPositions(simData, figNo)
    Plot path, speed, heave, roll, pitch, and yaw vs time.
plotCourse(simData, figNo)
    Plot course angle, course rate estimate, and propeller revolutions.


Utility Functions
-----------------
R2D(value)
    Convert radians to degrees.
cm2inch(value)
    Convert centimeters to inches for figure sizing.


Notes
-----
simData rows are [t, nu(6), eta(6), x_hat(5), n(2)], as produced by
Simulator.simulate(). Default plot parameters (figure size, DPI, legend size)
are defined as module-level globals and can be modified before calling plot
functions.


References
----------
[1] Fossen, T.I. Python Vehicle Simulator. GitHub repository.
https://github.com/cybergalactic/PythonVehicleSimulator
"""

from typing import Dict
from numpy.typing import NDArray
import matplotlib.pyplot as plt
import numpy as np
import math
from otterusvsim.gnc import ssa
from otterusvsim import logger

#-----------------------------------------------------------------------------#

# Type Aliases
NPFltArr = NDArray[np.float64]

# Global Variables
log = logger.addLog('pltTS')

# Plot Parameters
legendSize = 10         # legend size
figSize1 = [25, 25]     # velocity and position figure size in cm
figSize2 = [25, 15]     # course figure size in cm
dpiValue = 150          # figure dpi value

###############################################################################

def R2D(value:float)->float:
    """
    Convert radians to degrees.


    Parameters
    ----------
    value : float or ndarray
        Angle in radians.


    Returns
    -------
    degrees : float or ndarray
        Angle in degrees.
    """

    return value * 180 / math.pi

###############################################################################

def cm2inch(value:float)->float:
    """Convert centimeters to inches for matplotlib figure sizing."""
    return value / 2.54

###############################################################################

def deriveStates(simData:NPFltArr)->Dict[str,NPFltArr]:
    """
    Compute speed, crab angle, and course angle from simulation data.


    Parameters
    ----------
    simData : ndarray, shape (N+1, 20)
        Simulation log [t, nu(6), eta(6), x_hat(5), n(2)].


    Returns
    -------
    states : dict of ndarray
        - 'U' : Horizontal speed sqrt(u^2 + v^2) (m/s).
        - 'beta_c' : Crab angle ssa(atan2(v, u)) (rad).
        - 'chi' : Course angle psi + beta_c (rad), not wrapped.
    """

    if ((simData.ndim != 2) or (simData.shape[1] < 13)):
        log.error('Simulation data must be (N+1, 20), got %s', simData.shape)
        raise ValueError('Simulation data has the wrong shape')

    u = simData[:, 1]
    v = simData[:, 2]
    psi = simData[:, 12]

    U = np.sqrt(u**2 + v**2)
    beta_c = ssa(np.arctan2(v, u))
    chi = psi + beta_c

    return {'U': U, 'beta_c': beta_c, 'chi': chi}

###############################################################################

def plotVelocities(simData:NPFltArr, figNo:int = 1)->None:
    """
    Plot body-frame linear and angular velocities versus time.


    Parameters
    ----------
    simData : ndarray, shape (N+1, 20)
        Simulation log.
    figNo : int, default=1
        Figure number for plot window.


    Notes
    -----
    Creates 6 stacked subplots: surge, sway, and heave velocity (m/s), and
    roll, pitch, and yaw rate (deg/s).
    """

    t = simData[:, 0]
    titles = ["Surge velocity (m/s)",
              "Sway velocity (m/s)",
              "Heave velocity (m/s)",
              "Roll rate (deg/s)",
              "Pitch rate (deg/s)",
              "Yaw rate (deg/s)"]

    plt.figure(figNo,
               figsize=(cm2inch(figSize1[0]), cm2inch(figSize1[1])),
               dpi=dpiValue)
    plt.clf()

    for k in range(6):
        signal = simData[:, 1+k]
        if (k >= 3):
            signal = R2D(signal)
        plt.subplot(6, 1, k+1)
        plt.plot(t, signal)
        plt.title(titles[k], fontsize=12)
        plt.legend(["True"], fontsize=legendSize)
        plt.grid()
    plt.xlabel("Time (s)", fontsize=12)
    plt.tight_layout()

###############################################################################

def plotPositions(simData:NPFltArr, figNo:int = 2)->None:
    """
    Plot positions, speed, and attitude versus time.


    Parameters
    ----------
    simData : ndarray, shape (N+1, 20)
        Simulation log.
    figNo : int, default=2
        Figure number for plot window.


    Notes
    -----
    Creates 6 stacked subplots:

      1. North-East path, true and estimated (East on the horizontal axis)
      2. Speed, true and estimated
      3. Heave position z
      4. Roll angle (deg)
      5. Pitch angle (deg)
      6. Yaw angle (deg)
    """

    t = simData[:, 0]
    states = deriveStates(simData)

    plt.figure(figNo,
               figsize=(cm2inch(figSize1[0]), cm2inch(figSize1[1])),
               dpi=dpiValue)
    plt.clf()

    plt.subplot(6, 1, 1)
    plt.plot(simData[:, 8], simData[:, 7], simData[:, 14], simData[:, 13])
    plt.title("xy plot (m)", fontsize=12)
    plt.legend(["True", "Estimate"], fontsize=legendSize)
    plt.grid()

    plt.subplot(6, 1, 2)
    plt.plot(t, states['U'], t, simData[:, 15])
    plt.title("Speed (m/s)", fontsize=12)
    plt.legend(["True", "Estimate"], fontsize=legendSize)
    plt.grid()

    plt.subplot(6, 1, 3)
    plt.plot(t, simData[:, 9])
    plt.title("Heave z position (m)", fontsize=12)
    plt.legend(["True"], fontsize=legendSize)
    plt.grid()

    plt.subplot(6, 1, 4)
    plt.plot(t, R2D(simData[:, 10]))
    plt.title("Roll angle (deg)", fontsize=12)
    plt.legend(["True"], fontsize=legendSize)
    plt.grid()

    plt.subplot(6, 1, 5)
    plt.plot(t, R2D(simData[:, 11]))
    plt.title("Pitch angle (deg)", fontsize=12)
    plt.legend(["True"], fontsize=legendSize)
    plt.grid()

    plt.subplot(6, 1, 6)
    plt.plot(t, R2D(simData[:, 12]))
    plt.xlabel("Time (s)", fontsize=12)
    plt.title("Yaw angle (deg)", fontsize=12)
    plt.legend(["True"], fontsize=legendSize)
    plt.grid()
    plt.tight_layout()

###############################################################################

def plotCourse(simData:NPFltArr, figNo:int = 3)->None:
    """
    Plot course tracking and propeller revolutions versus time.


    Parameters
    ----------
    simData : ndarray, shape (N+1, 20)
        Simulation log.
    figNo : int, default=3
        Figure number for plot window.


    Notes
    -----
    Creates 3 stacked subplots: true and estimated course angle, estimated
    course rate, and the left and right propeller revolutions.
    """

    t = simData[:, 0]
    chi = deriveStates(simData)['chi']

    plt.figure(figNo,
               figsize=(cm2inch(figSize2[0]), cm2inch(figSize2[1])),
               dpi=dpiValue)
    plt.clf()

    plt.subplot(3, 1, 1)
    plt.plot(t, R2D(chi), t, R2D(simData[:, 16]))
    plt.title("Course angle (deg)", fontsize=12)
    plt.legend(["True", "Estimate"], fontsize=legendSize)
    plt.grid()

    plt.subplot(3, 1, 2)
    plt.plot(t, R2D(simData[:, 17]), 'r')
    plt.title("Course rate (deg/s)", fontsize=12)
    plt.legend(["Estimate"], fontsize=legendSize)
    plt.grid()

    plt.subplot(3, 1, 3)
    plt.plot(t, simData[:, 18], 'g', t, simData[:, 19], 'k')
    plt.xlabel("Time (s)", fontsize=12)
    plt.title("Propeller revolutions (rad/s)", fontsize=12)
    plt.legend(["n_1 left propeller", "n_2 right propeller"],
               fontsize=legendSize)
    plt.grid()
    plt.tight_layout()

###############################################################################
