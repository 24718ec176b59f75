"""
Ocean environment for USV simulation.

Provides the ocean current acting on the vehicle. The current is stored as
per-iteration speed and direction arrays so that sensors read it by iteration
index, the same way a time-varying current would be read.


Classes
-------
Ocean
    Container for environmental components.
Current
    Constant ocean current sampled over the simulation iterations.


Examples
--------
>>> import otterusvsim.environment as env
>>> ocean = env.Ocean(spd=0.5, ang=math.radians(30))
>>> print(ocean.current.speed[0])
0.5
"""

from typing_extensions import Self
from numpy.typing import NDArray
import numpy as np
import math
from otterusvsim import logger

#-----------------------------------------------------------------------------#

# Type Aliases
NPFltArr = NDArray[np.float64]

# Global Variables
log = logger.addLog('env')

###############################################################################

class Current:
    """
    Constant ocean current in the NED frame.


    Parameters
    ----------
    spd : float, default=0.0
        Current speed V_c in m/s. Must be non-negative.
    ang : float, default=0.0
        Current direction beta_c in radians, the direction the water flows
        towards, measured clock-wise from north.
    nIter : int, default=2001
        Number of samples in the speed and angle arrays.


    Attributes
    ----------
    speed : ndarray, shape (nIter,)
        Current speed per iteration (m/s).
    angle : ndarray, shape (nIter,)
        Current direction per iteration (rad).
    """

    def __init__(self,
                 spd:float = 0.0,
                 ang:float = 0.0,
                 nIter:int = 2001,
                 )->None:
        if (spd < 0):
            log.error('Current speed must be non-negative, got %s', spd)
            raise ValueError('Current speed must be non-negative')
        self.v_spd = spd
        self.b_ang = ang
        self.n = nIter

    ## Properties ============================================================#
    @property
    def n(self)->int:
        """Number of samples."""
        return self._n

    @n.setter
    def n(self, nIter:int)->None:
        """Set number of samples and rebuild the speed and angle arrays."""
        self._n = nIter
        self.speed = np.full(nIter, self.v_spd, float)
        self.angle = np.full(nIter, self.b_ang, float)

    ## Special Methods =======================================================#
    def __repr__(self)->str:
        return (f"{self.__class__.__name__}(spd={self.v_spd}, "
                f"ang={self.b_ang}, nIter={self.n})")

    def __str__(self)->str:
        return (f"Current: {self.v_spd:.2f} m/s towards "
                f"{math.degrees(self.b_ang):.1f} deg\n")

###############################################################################

class Ocean:
    """
    Container for the environmental components acting on the vehicle.


    Parameters
    ----------
    spd : float, default=0.0
        Current speed in m/s.
    ang : float, default=0.0
        Current direction in radians.
    N : int, default=2001
        Number of simulation samples. The Simulator sets this to N+1.
    name : str, default='Ocean'
        Descriptive identifier used in log output.


    Attributes
    ----------
    current : Current or None
        Ocean current. If None, the vehicle keeps its own current settings.
    """

    def __init__(self,
                 spd:float = 0.0,
                 ang:float = 0.0,
                 N:int = 2001,
                 name:str = 'Ocean',
                 )->None:
        self.name = name
        self.current = Current(spd=spd, ang=ang, nIter=N)
        self.N = N

    ## Properties ============================================================#
    @property
    def N(self)->int:
        """Number of simulation samples."""
        return self._N

    @N.setter
    def N(self, n:int)->None:
        """Set number of samples and resize current data."""
        if ((self.current is not None) and (self.current.n != n)):
            self.current.n = n
        self._N = n

    ## Alternative Constructors ==============================================#
    @classmethod
    def dead_ocean(cls, **kwargs)->Self:
        """Create ocean with zero current."""
        return cls(spd=0.0, ang=0.0, name='Dead Ocean', **kwargs)

    @classmethod
    def steady_ocean(cls,
                     spd:float = 0.3,
                     ang:float = 30 * math.pi / 180,
                     **kwargs)->Self:
        """Create ocean with a steady current, default 0.3 m/s towards 30 deg."""
        return cls(spd=spd, ang=ang, name='Steady Ocean', **kwargs)

    ## Special Methods =======================================================#
    def __repr__(self)->str:
        return (f"{self.__class__.__name__}(name='{self.name}', "
                f"current={self.current!r})")

    def __str__(self)->str:
        current = str(self.current) if self.current else "Current: None\n"
        return f"Ocean: {self.name}\n{current}"

###############################################################################
