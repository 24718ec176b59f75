"""
Core simulation driver for the USV course autopilot scenario.

Provides the Simulator class that advances one Otter USV under a course
autopilot through a fixed-step time loop, records the closed-loop signals,
and produces the time series figures.


Classes
-------
Simulator
    Main simulation orchestrator.


Module Constants
----------------
Column layout of the simulation data log, one row per sample:

    COL_TIME : int
        Time (s).
    COL_NU : slice
        Body-frame velocities [u, v, w, p, q, r].
    COL_ETA : slice
        NED position and Euler angles [x, y, z, phi, theta, psi].
    COL_XHAT : slice
        EKF estimate [x_N, y_E, U, chi, omega_chi].
    COL_N : slice
        Actual propeller revolutions [n_left, n_right].
    NUM_COLS : int
        Row width, 20.
"""

from typing import Optional
from numpy.typing import NDArray
import os
import importlib
import inspect
import time
import datetime
import matplotlib.pyplot as plt
import numpy as np
from otterusvsim import vehicles as veh
from otterusvsim import environment as env
from otterusvsim import guidance as guid
from otterusvsim import control as ctrl
from otterusvsim import plotTimeSeries as pltTS
from otterusvsim import logger

#-----------------------------------------------------------------------------#

# Type Aliases
NPFltArr = NDArray[np.float64]

# Simulation Data Columns
COL_TIME = 0
COL_NU = slice(1, 7)
COL_ETA = slice(7, 13)
COL_XHAT = slice(13, 18)
COL_N = slice(18, 20)
NUM_COLS = 20

###############################################################################

class Simulator:
    """
    Simulation coordinator for a USV under course autopilot.

    Owns the time parameters, the vehicle, the ocean environment, and the
    course setpoint schedule. Each iteration evaluates the GNC components of
    the vehicle in a fixed order and integrates the vehicle dynamics with a
    forward Euler step.


    Parameters
    ----------
    name : str, default='Simulation'
        Simulation title. Used for output directory and file naming.
    sampleTime : float, default=0.02
        Iteration time step in seconds (50 Hz default).
    N : int, default=2000
        Number of simulation iterations. With the default sampleTime this is
        40 seconds of simulated time.
    ocean : env.Ocean, optional
        Ocean environment. If None, the vehicle uses its own V_c and beta_V_c.
    vehicle : veh.Vehicle, optional
        Vehicle to simulate. Default is an Otter with default configuration.
    schedule : guid.CourseSchedule, optional
        Course setpoint schedule. Default is 20 deg until t = 20 s, then 0 deg.
    logging : str, default='all'
        Main logger configuration. Options: 'all', 'none', 'noout', 'nofile',
        'quiet', 'onlyfile', 'onlyconsole'.
    **kwargs : dict
        Extra attributes assigned to the instance after construction.


    Attributes
    ----------
    **Time Management:**

        sampleTime : float
            Simulation time step (seconds per iteration).
        N : int
            Number of simulation iterations.
        runTime : float
            Total simulation time in seconds. Equal to N * sampleTime.
            Setting any of these three updates the others.
        simTime : ndarray, shape (N+1, 1)
            Sample times i * sampleTime, i = 0..N.
        initTime : str
            Timestamp when simulator was created (YYMMDD-HHMMSS format).

    **Output and Logging:**

        name : str
            Simulation name. Can only be set at initialization.
        outDir : str (read-only)
            Output directory path: outputs/<script_name>/<name>_<timestamp>/.
            Created on first access, which only happens when a log file is
            written.
        logFile : str
            Path to main log file.
        log : logging.Logger
            Main simulation logger instance.

    **Data Collection:**

        simData : ndarray, shape (N+1, 20)
            Per-sample log [t, x(12), x_hat(5), n(2)]. See the COL_*
            constants of this module.


    Notes
    -----
    **Iteration Order:**

    For i = 0..N, t = i h:

    1. chi_ref = schedule(t)
    2. tau = CourseAP(vehicle), from the previous estimate and the
       reference model and integral state before this sample's update
    3. n_c = Allocation(vehicle, tau)
    4. j_d = RefModel(vehicle, chi_ref)
    5. Log [t, x, x_hat, n]
    6. x_hat = Estimator.estimate() from the true position, no noise added
    7. x = x + h * dynamics(x, n, mp, rp, V_c, beta_c)
    8. Integral state, propeller revolutions, and reference model updates

    The vehicle is reset before the loop, so each simulate() call is an
    independent run starting from vehicle.x0 with a fresh estimator.


    Examples
    --------
    >>> import otterusvsim.simulator as otSim
    >>> import otterusvsim.vehicles as veh
    >>> sim = otSim.Simulator(name="CourseStep", vehicle=veh.Otter())
    >>> sim.run()
    """

    ## Constructor ===========================================================#
    def __init__(self,
                 name:str = 'Simulation',
                 sampleTime:float = 0.02,
                 N:int = 2000,
                 ocean:Optional[env.Ocean] = None,
                 vehicle:Optional[veh.Vehicle] = None,
                 schedule:Optional[guid.CourseSchedule] = None,
                 logging:str = 'all',
                 **kwargs,
                 )->None:

        ## Time Stamp
        init_time = datetime.datetime.now()
        self.initTime = init_time.strftime("%y%m%d-%H%M%S")

        ## Data
        self.simData = None                         # data generated by the sim
        self.simTime = None                         # simulation times array

        ## Simulation
        self.name = name                            # simulation title
        self.sampleTime = sampleTime                # iteration time step (sec)
        self.N = N                                  # number of iterations

        ## Objects
        self.ocean = ocean                          # ocean object
        self.vehicle = vehicle                      # simulated vehicle
        self.schedule = schedule                    # course setpoints

        ## User Keyword Attributes
        for key,value in kwargs.items():
            if key not in {                         # computed attributes
                'simTime',
                'simData',
            }:
                setattr(self, key, value)

        ## Logging
        self.log = None                             # main logger
        self.logging = logging                      # logging setting

    ## Properties ============================================================#
    @property
    def name(self)->str:
        """Simulation title."""
        return self._name

    @name.setter
    def name(self, name:str)->None:
        """Fix the title and output base name. Later renames are ignored."""
        if ('_name' in self.__dict__):
            self.log.warning("Cannot rename simulation. Attribute must be " +
                             "set at initialization.")
            return
        self._baseName = f"{name}_{self.initTime}"
        self._name = name

    #--------------------------------------------------------------------------
    @property
    def sampleTime(self)->float:
        """Time step h in seconds."""
        return self._sampleTime

    @sampleTime.setter
    def sampleTime(self, h:float)->None:
        """
        Set simulation time step and update the vehicle.

        Updates runTime and simTime if N is already set. Must be positive.
        """
        if (h <= 0):
            logger.addLog('sim').error('Sample time must be positive, got %s',
                                       h)
            raise ValueError('Sample time must be positive')
        self._sampleTime = h
        if ('_N' in self.__dict__):
            self.N = self.N
        if (('_vehicle' in self.__dict__) and
            (self._vehicle is not None)):
            # Push simulation sampleTime to vehicle
            self._vehicle.sampleTime = h

    #--------------------------------------------------------------------------
    @property
    def N(self)->int:
        """Number of time steps; the log holds N+1 samples."""
        return self._N

    @N.setter
    def N(self, n:int)->None:
        """
        Store N and rebuild the sample times.

        Computes simTime with N+1 samples and runTime, and propagates N+1 to
        the ocean environment for array sizing. Must be positive.
        """
        if (n < 1):
            logger.addLog('sim').error('Number of iterations must be ' +
                                       'positive, got %s', n)
            raise ValueError('Number of iterations N must be positive')
        self._N = int(n)
        self.simTime = (np.arange(self._N + 1) * self.sampleTime)[:, None]
        self._runTime = self.simTime[-1][0]
        if (('_ocean' in self.__dict__) and
            (self._ocean is not None)):
            # Push number of simulation samples to ocean
            self._ocean.N = self._N + 1

    #--------------------------------------------------------------------------
    @property
    def runTime(self)->float:
        """Simulated duration N*h in seconds."""
        return self._runTime

    @runTime.setter
    def runTime(self, t:float)->None:
        """Set total simulation time. Sets N = int(t/sampleTime)."""
        self.N = int(round(t / self.sampleTime))

    #--------------------------------------------------------------------------
    @property
    def ocean(self)->Optional[env.Ocean]:
        """Ocean environment, or None."""
        return self._ocean

    @ocean.setter
    def ocean(self, ocean:Optional[env.Ocean])->None:
        """Set ocean environment and size its data to N+1 samples."""
        if (ocean is not None):
            ocean.N = self.N + 1
        self._ocean = ocean

    #--------------------------------------------------------------------------
    @property
    def vehicle(self)->veh.Vehicle:
        """Get simulated vehicle."""
        return self._vehicle

    @vehicle.setter
    def vehicle(self, vehicle:Optional[veh.Vehicle])->None:
        """Set vehicle and enforce sampleTime. None creates a default Otter."""
        if (vehicle is None):
            vehicle = veh.Otter()
        vehicle.sampleTime = self.sampleTime
        self._vehicle = vehicle

    #--------------------------------------------------------------------------
    @property
    def schedule(self)->guid.CourseSchedule:
        """Get course setpoint schedule."""
        return self._schedule

    @schedule.setter
    def schedule(self, schedule:Optional[guid.CourseSchedule])->None:
        """Set course schedule. None creates the default step schedule."""
        if (schedule is None):
            schedule = guid.CourseSchedule()
        self._schedule = schedule

    #--------------------------------------------------------------------------
    @property
    def outDir(self)->str:
        """Get output directory path, creating the directory on first use."""
        if ('_outDir' not in self.__dict__):
            self._outDir = self._makeSaveDir(self._baseName)
        return self._outDir

    @outDir.setter
    def outDir(self, outDir:str)->None:
        """Reject direct assignment; the directory follows the name."""
        self.log.warning("Cannot set output directory directly. Attribute is "+
                         "set at initialization by the 'name' attribute.")

    #--------------------------------------------------------------------------
    @property
    def logFile(self)->str:
        """Main log file path, placed in outDir unless set."""
        if ('_logFile' not in self.__dict__):
            self._logFile = os.path.join(self.outDir, f"{self._baseName}.log")
        return self._logFile

    @logFile.setter
    def logFile(self, logFile:str)->None:
        """Set main log file path. Can only be set at initialization."""
        if ('_logFile' in self.__dict__):
            self.log.warning("Cannot rename log file. Attribute must be set " +
                             "at initialization.")
            return
        self._logFile = self._validFileName(logFile, '.log')

    #--------------------------------------------------------------------------
    @property
    def logging(self)->str:
        """Current logging option."""
        return self._logging

    @logging.setter
    def logging(self, logging:str)->None:
        """
        Select where the main logger writes.

        Unknown options fall back to 'all'. Any previous main logger and its
        handlers are torn down first.


        Parameters
        ----------
        logging : str
            'all', 'none', 'noout', 'nofile', 'quiet', 'onlyfile',
            'onlyconsole'.
        """

        # (console, file) output per option
        outputs = {
            'NONE': (False, False),
            'OFF': (False, False),
            'NOOUT': (False, True),
            'QUIET': (False, True),
            'NOCONSOLE': (False, True),
            'ONLYFILE': (False, True),
            'NOFILE': (True, False),
            'ONLYOUT': (True, False),
            'ONLYCONSOLE': (True, False),
        }
        toConsole, toFile = outputs.get(logging.upper(), (True, True))

        if (logger.log is not None):
            for handler in (logger.consoleHandler, logger.fileHandler):
                if (handler is not None):
                    logger.deepRemoveHandler(handler)
            logger.removeLog(logger.MAIN_LOG)

        if not (toConsole or toFile):
            self.log = logger.noneLog(logger.MAIN_LOG)
        else:
            self.log = logger.setupMain(
                fileName=(self.logFile if toFile else None),
                fileFormat=(logger.FMT_FILE if toFile else None),
                outFormat=(logger.FMT_OUT if toConsole else None))
        self._logging = logging

    ## Special Methods =======================================================#
    def __str__(self)->str:
        """
        Multi-line configuration banner written to the log by run().
        """
        line = '*' * 64
        return "\n".join([
            line,
            f"{self.__class__.__name__}: {self.name}",
            line,
            f"Sampling frequency: {round(1 / self.sampleTime)} Hz",
            f"Simulation time: {round(self.runTime)} seconds",
            f"Course setpoints: {self.schedule!r}",
            f"{self.ocean if self.ocean else 'Ocean: None'}",
            f"{self.vehicle}",
            line,
        ])

    ## Methods ===============================================================#
    def run(self, plot:bool = True)->None:
        """
        Execute complete simulation workflow: run, log timing, plot.


        Parameters
        ----------
        plot : bool, default=True
            Draw the velocity, position, and course figures after the run.
        """

        self.log.info(f"{self}")
        tic = time.perf_counter()
        self.simData = self.simulate()
        loopTime = time.perf_counter() - tic

        line = '*' * 64
        self.log.info(line)
        self.log.info('Final course estimate: %.2f deg',
                      pltTS.R2D(self.simData[-1, COL_XHAT][3]))
        self.log.info('Loop time: %s wall clock for %s simulated',
                      datetime.timedelta(seconds=round(loopTime)),
                      datetime.timedelta(seconds=round(self.runTime)))

        if (plot):
            tic = time.perf_counter()
            self.plot()
            self.log.info('Plot time: %s', datetime.timedelta(
                seconds=round(time.perf_counter() - tic)))
        self.log.info(line)

    #--------------------------------------------------------------------------
    def simulate(self)->NPFltArr:
        """
        Run the closed loop for N+1 samples and return the data log.


        Returns
        -------
        simData : ndarray, shape (N+1, 20)
            Per-sample rows [t, x(12), x_hat(5), n(2)].


        Notes
        -----
        The vehicle, including its estimator, is reset first. The log row of
        sample i is recorded before the estimator and dynamics updates of that
        sample.
        """

        v = self.vehicle
        h = self.sampleTime
        v.sampleTime = h
        v.reset()

        # Data log, one row per sample
        simData = np.empty([self.N+1, NUM_COLS], float)

        for i in range(0, self.N+1):
            # Simulation time
            currentTime = self.simTime[i][0]
            logger.simTime = f'{currentTime:.2f}'

            # Collect Sensor Data
            v.collectSensorData(self.ocean, i)

            # Course Setpoint
            chi_ref = self.schedule(currentTime)

            # Autopilot, Allocation and Reference Model
            tau = v.CourseAP(v)
            n_c = v.Allocation(v, tau)
            j_d = v.RefModel(v, chi_ref)

            # Store Simulation Data
            simData[i, COL_TIME] = currentTime
            simData[i, COL_NU] = v.nu
            simData[i, COL_ETA] = v.eta
            simData[i, COL_XHAT] = v.x_hat
            simData[i, COL_N] = v.n

            # Estimate SOG, COG and Course Rate
            v.x_hat = v.Estimator.estimate(v.x[6], v.x[7], h, v.Z, v.frame,
                                           v.Qd, v.Rd)

            # Advance Vehicle Dynamics
            v.x = v.x + h * v.dynamics(v.x, v.n, v.mp, v.rp, v.V_c,
                                       v.beta_V_c)

            # Advance Integral, Propeller, and Reference Model States
            ctrl.courseIntegral(v)
            ctrl.propellerDynamics(v, n_c)
            guid.refModelUpdate(v, j_d)

        return simData

    #--------------------------------------------------------------------------
    def plot(self, show:bool = True)->None:
        """
        Draw the velocity, position, and course time series figures.


        Parameters
        ----------
        show : bool, default=True
            Call plt.show() and close the figures afterwards.
        """

        if (self.simData is None):
            self.log.warning('No simulation data to plot. Run simulate() ' +
                             'first.')
            return

        pltTS.plotVelocities(self.simData, figNo=1)
        pltTS.plotPositions(self.simData, figNo=2)
        pltTS.plotCourse(self.simData, figNo=3)
        if (show):
            plt.show()
            plt.close('all')

    ## Helper Methods ========================================================#
    def _makeSaveDir(self, dirName:str)->str:
        """
        Build outputs/<script>/<dirName>/ under the project root.


        Parameters
        ----------
        dirName : str
            Leaf directory name.


        Returns
        -------
        outDir : str
            Absolute path of the directory, which now exists.


        Notes
        -----
        Interactive sessions without a script file use "REPL".
        """

        # Project root is the parent of the package directory
        modulePath = inspect.getfile(importlib.import_module('otterusvsim'))
        projDir = os.path.dirname(os.path.dirname(modulePath))

        # Outermost frame names the running script
        frame = inspect.currentframe()
        while frame.f_back:
            frame = frame.f_back
        if ('__file__' in frame.f_globals):
            scriptPath = os.path.abspath(frame.f_globals['__file__'])
            scriptName = os.path.splitext(os.path.basename(scriptPath))[0]
        else:
            scriptName = 'REPL'

        # Create a unique output directory for this simulation
        outDir = os.path.join(projDir, 'outputs', scriptName, dirName)
        os.makedirs(outDir, exist_ok=True)

        return outDir

    #--------------------------------------------------------------------------
    def _validFileName(self, fileName:str, extension:str)->str:
        """
        Force the extension and place bare names in outDir.


        Parameters
        ----------
        fileName : str
            Filename to validate.
        extension : str
            Required file extension (e.g., '.log').


        Returns
        -------
        validName : str
            Path with the requested extension.
        """

        root, ext = os.path.splitext(fileName)
        if (ext != extension):
            fileName = f"{root}{extension}"
        if not (os.path.dirname(fileName)):
            fileName = os.path.join(self.outDir, fileName)
        return fileName

###############################################################################
