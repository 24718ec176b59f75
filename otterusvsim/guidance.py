"""
Guidance functions for USV course control.

Implements the Guidance block of GNC design for the course autopilot: the
operator course setpoint schedule and the reference model that turns a
piecewise-constant setpoint into a smooth desired course trajectory with
continuous rate and acceleration.


Classes
-------
CourseSchedule
    Piecewise-constant course setpoint as a function of time.


Functions
---------
**Reference Model:**

    - refModel3(vehicle, chi_ref) : Jerk of the third-order reference model.
    - refModelUpdate(vehicle, j_d) : Euler step of the reference model states.


Notes
-----
- Guidance block inputs: operator setpoints, time
- Guidance block outputs: desired course, course rate, and course acceleration
  to the Control block


References
----------
[1] Fossen, T.I. (2021). Handbook of Marine Craft Hydrodynamics and Motion
Control. 2nd Edition, Wiley. https://www.fossen.biz/wiley

[2] Fossen, T. I. and Perez, T. (2004). Marine Systems Simulator (MSS).
https://github.com/cybergalactic/MSS
"""

from __future__ import annotations
from typing import List, Sequence, Tuple, TYPE_CHECKING
from typing_extensions import Self
import bisect
import math
if (TYPE_CHECKING):
    from otterusvsim.vehicles import Vehicle
from otterusvsim import gnc
from otterusvsim import logger

#-----------------------------------------------------------------------------#

# Global Variables
log = logger.addLog('guid')

###############################################################################

class CourseSchedule:
    """
    Piecewise-constant course setpoint schedule.

    Holds a list of (start time, course) breakpoints. The setpoint at time t
    is the course of the last breakpoint whose start time is not after t.
    Before the first breakpoint the first course is used.


    Parameters
    ----------
    steps : sequence of (float, float), optional
        Breakpoints as (t_start in seconds, course in degrees). Default is
        20 deg from t = 0 and 0 deg from t = 20 s.


    Examples
    --------
    >>> sched = CourseSchedule()
    >>> math.degrees(sched(10.0))
    20.0
    >>> math.degrees(sched(20.0))
    0.0
    >>> sched = CourseSchedule.constant(0.0)
    >>> sched(100.0)
    0.0
    """

    def __init__(self,
                 steps:Sequence[Tuple[float,float]] = ((0.0, 20.0),
                                                       (20.0, 0.0)),
                 )->None:
        if (len(steps) == 0):
            log.error('Course schedule needs at least one breakpoint')
            raise ValueError('Course schedule needs at least one breakpoint')
        steps = sorted((float(t), float(deg)) for t,deg in steps)
        self.times:List[float] = [t for t,_ in steps]
        self.courses:List[float] = [deg * math.pi / 180 for _,deg in steps]

    @classmethod
    def constant(cls, deg:float)->Self:
        """Create a schedule holding one course setpoint for all time."""
        return cls(steps=((0.0, deg),))

    def __call__(self, t:float)->float:
        """Return the course setpoint chi_ref (rad) at time t (s)."""
        k = bisect.bisect_right(self.times, t) - 1
        return self.courses[max(k, 0)]

    def __repr__(self)->str:
        steps = ', '.join(f"({t:g} s, {math.degrees(c):g} deg)"
                          for t,c in zip(self.times, self.courses))
        return f"{self.__class__.__name__}({steps})"

###############################################################################

def refModel3(vehicle:Vehicle, chi_ref:float)->float:
    """
    Compute the jerk of the third-order course reference model.


    Parameters
    ----------
    vehicle : Vehicle
        Vehicle with reference model state and parameters:

        - chi_d : Desired course (rad).
        - omega_d : Desired course rate (rad/s).
        - a_d : Desired course acceleration (rad/s^2).
        - wn_d : Reference model natural frequency (rad/s).
        - zeta_d : Reference model relative damping factor.

    chi_ref : float
        Course setpoint (rad).


    Returns
    -------
    j_d : float
        Desired course jerk (rad/s^3).


    Notes
    -----
    The reference model is a low-pass filter cascade

        chi_d / chi_ref = wn_d^3 / ((s + wn_d) (s^2 + 2 zeta_d wn_d s + wn_d^2))

    which in state-space form gives

        j_d = wn_d^3 * ssa(chi_ref - chi_d)
              - (2 zeta_d + 1) * wn_d^2 * omega_d
              - (2 zeta_d + 1) * wn_d * a_d

    With zeta_d = 1 all three poles sit at -wn_d and the step response has
    no overshoot. The setpoint error is wrapped so a setpoint across +/-pi
    takes the short way round.

    Pure read, vehicle state is not modified.
    """

    wn_d = vehicle.wn_d
    zeta_d = vehicle.zeta_d

    return (wn_d**3 * gnc.ssa(chi_ref - vehicle.chi_d)
            - (2*zeta_d + 1) * wn_d**2 * vehicle.omega_d
            - (2*zeta_d + 1) * wn_d * vehicle.a_d)

###############################################################################

def refModelUpdate(vehicle:Vehicle, j_d:float)->None:
    """
    Advance the reference model states one sample by forward Euler.


    Parameters
    ----------
    vehicle : Vehicle
        Vehicle with sampleTime, chi_d, omega_d, and a_d attributes.
    j_d : float
        Desired course jerk from refModel3().


    Notes
    -----
    Each state is advanced with the pre-update value of the next one:

        chi_d   <- chi_d   + h * omega_d
        omega_d <- omega_d + h * a_d
        a_d     <- a_d     + h * j_d
    """

    h = vehicle.sampleTime

    chi_d = vehicle.chi_d + h * vehicle.omega_d
    omega_d = vehicle.omega_d + h * vehicle.a_d
    a_d = vehicle.a_d + h * j_d

    vehicle.chi_d = chi_d
    vehicle.omega_d = omega_d
    vehicle.a_d = a_d

###############################################################################
