"""
Otter-USVsim: Course Autopilot Simulation for the Otter Uncrewed Surface Vehicle

A closed-loop simulation of a twin-propeller catamaran USV holding a constant
surge force while a PID course autopilot tracks a smoothed course setpoint,
with a 5-state extended Kalman filter estimating speed and course over ground
from periodic position fixes.

Modules
-------
vehicles : Otter USV model and dynamics
environment : Ocean current
guidance : Course setpoint schedule and reference model
control : Course autopilot, thrust allocation, propeller dynamics
navigation : Sensors, kinematics, and the EKF
gnc : Guidance, navigation, and control math
simulator : Main simulation coordination
plotTimeSeries : Visualization and plotting utilities
logger : Logging configuration and utilities

Examples
--------
### Course step simulation:

>>> import otterusvsim as ot
>>>
>>> # Create vehicle and environment
>>> usv = ot.vehicles.Otter()
>>> ocean = ot.environment.Ocean.steady_ocean(spd=0.3)
>>>
>>> # Setup simulation
>>> sim = ot.Simulator(
...     name="CourseStep",
...     vehicle=usv,
...     ocean=ocean,
...     N=2000
... )
>>> sim.run()
"""

# Core modules - import for direct access
from . import control
from . import environment
from . import gnc
from . import guidance
from . import logger
from . import navigation
from . import plotTimeSeries
from . import simulator
from . import vehicles

# Classes and functions for convenience
from .simulator import Simulator

# Version info
__version__ = "0.1.0"

# Define what gets imported with "from otterusvsim import *"
__all__ = [
    # Modules
    'control',
    'environment',
    'gnc',
    'guidance',
    'logger',
    'navigation',
    'plotTimeSeries',
    'simulator',
    'vehicles',
    # Main classes
    'Simulator',
]
