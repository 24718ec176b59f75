"""
Vehicle classes for USV course autopilot simulation.

Implements the abstract vehicle interface and the Otter uncrewed surface
vehicle, including its 6-DOF nonlinear dynamics, payload and ocean current
effects, sensor integration, and the modular GNC components that drive it.


Classes
-------
Vehicle
    Abstract base class. Defines the dynamics interface.
Otter
    Maritime Robotics Otter USV with two propellers.


Notes
-----
Based on Fossen's marine vehicle dynamics formulation and the Marine Systems
Simulator Otter model.


References
----------
[1] Fossen, T.I. (2021). Handbook of Marine Craft Hydrodynamics and Motion
Control. 2nd Edition, Wiley. https://www.fossen.biz/wiley

[2] Fossen, T. I. and Perez, T. (2004). Marine Systems Simulator (MSS).
https://github.com/cybergalactic/MSS
"""

from typing import Any, Optional
from numpy.typing import NDArray
from abc import ABC, abstractmethod
import numpy as np
import math
from otterusvsim import navigation as nav
from otterusvsim import environment as env
from otterusvsim import guidance as guid
from otterusvsim import control as ctrl
from otterusvsim import gnc
from otterusvsim import logger

###############################################################################

# Type Aliases
NPFltArr = NDArray[np.float64]

# Global Variables
log = logger.addLog('veh')

###############################################################################

class Vehicle(ABC):
    """
    Abstract base class for the vehicle hierarchy.

    A vehicle maps its 12-element state x = [nu, eta], actuator state, payload,
    and ocean current to the state derivative. Alternative vehicle models are
    substituted by subclassing and implementing dynamics().
    """

    @abstractmethod
    def __init__(self)->None:
        """Define and set vehicle attributes."""

    @abstractmethod
    def dynamics(self,
                 x:NPFltArr,
                 n:NPFltArr,
                 mp:float,
                 rp:NPFltArr,
                 V_c:float,
                 beta_c:float,
                 )->NPFltArr:
        """
        Compute the state derivative.


        Parameters
        ----------
        x : ndarray, shape (12,)
            State [u, v, w, p, q, r, x, y, z, phi, theta, psi].
        n : ndarray, shape (2,)
            Actual actuator state (propeller revolutions).
        mp : float
            Payload mass (kg).
        rp : ndarray, shape (3,)
            Payload location relative to the CO (m).
        V_c : float
            Current speed (m/s).
        beta_c : float
            Current direction (rad).


        Returns
        -------
        xdot : ndarray, shape (12,)
            Time derivative of x.
        """

###############################################################################

class Otter(Vehicle):
    """
    Otter uncrewed surface vehicle (USV) with course autopilot.

    The Otter is a 2.0 m catamaran with two pontoons, each fitted with a
    fixed propeller. Forward speed is set by the sum of the propeller thrusts
    and yaw by their difference. This class holds the 6-DOF model together
    with the state of the course autopilot, reference model, propellers, and
    EKF, so that a Simulator can step them in a fixed order.


    Parameters
    ----------
    **kwargs : dict, optional
        Any attribute can be overridden. Overrides are applied after all
        defaults are set, so derived quantities (PID gains, Binv) are not
        recomputed. Use the load* methods to change those.


    Attributes
    ----------
    **State Vectors:**

        x : ndarray, shape (12,)
            State [nu, eta] = [u, v, w, p, q, r, x, y, z, phi, theta, psi].
        nu : ndarray, shape (6,)
            Body-frame velocities, a view of x[0:6].
        eta : ndarray, shape (6,)
            NED position and Euler angles, a view of x[6:12].
        x0 : ndarray, shape (12,)
            Initial state restored by reset(). Default surge 1 m/s.
        x_hat : ndarray, shape (5,)
            Latest EKF estimate [x_N, y_E, U, chi, omega_chi].
        n : ndarray, shape (2,)
            Actual propeller revolutions [n_left, n_right] (rad/s).

    **Course Autopilot:**

        T_chi, m_chi, K_chi : float
            Nomoto time constant, inertia T/K, and gain.
        wn_chi, zeta_chi : float
            Closed-loop natural frequency and relative damping.
        Kp_chi, Kd_chi, Td_chi, Ti_chi : float
            PID gains.
        chi_int : float
            Course error integral state.
        tau_X : float
            Constant surge force command (N).

    **Reference Model:**

        chi_d, omega_d, a_d : float
            Desired course, course rate, course acceleration.
        wn_d, zeta_d : float
            Reference model natural frequency and relative damping.

    **Thrust Allocation and Propellers:**

        B_alloc, Binv : ndarray, shape (2, 2)
            Input matrix and its inverse.
        T_n : float
            Propeller time constant (s).

    **Estimator:**

        Estimator : nav.Estimator
            Caller-owned EKF instance.
        Qd, Rd : ndarray, shape (2, 2)
            EKF process and measurement noise covariances.
        Z : int
            GNSS measurement decimation.
        frame : str
            EKF position frame, 'NED'.

    **Load Condition and Environment:**

        mp : float
            Payload mass (kg), at most 45 kg.
        rp : ndarray, shape (3,)
            Payload location (m).
        V_c, beta_V_c : float
            Current speed (m/s) and direction (rad).


    Assigned Methods (Function Handles)
    ------------------------------------
        CourseAP : callable
            Autopilot returning [tau_X, tau_N]. Default ctrl.courseAutopilot.
        RefModel : callable
            Reference model jerk. Default guid.refModel3.
        Allocation : callable
            Force to revolution mapping. Default ctrl.thrustAllocation.


    Examples
    --------
    >>> usv = Otter()
    >>> xdot = usv.dynamics(usv.x, usv.n, usv.mp, usv.rp, 0.0, 0.0)
    >>> xdot.shape
    (12,)
    """

    ## Class Attributes
    __num = 0

    ## Constructor ===========================================================#
    def __init__(self, **kwargs:Any)->None:
        """
        Initialize the Otter with physical, control, and estimator defaults.

        The default configuration reproduces the course autopilot example of
        the Marine Systems Simulator: initial surge 1 m/s, 25 kg payload at
        [0, 0, -0.35] m, constant surge force 100 N, course autopilot with
        wn = 1.5 rad/s, reference model with wn_d = 0.5 rad/s, GNSS fixes at
        one tenth of the sample rate.
        """

        #---------------------------------------------------------------------#
        #   Identity                                                          #
        #---------------------------------------------------------------------#
        self.__class__.__num += 1
        self.id = self.__class__.__num
        self.callSign = f"OTTER{self.id:02}"
        self.modelName = "Otter USV (Maritime Robotics)"
        self.controls = ["Left propeller shaft speed (rad/s)",
                         "Right propeller shaft speed (rad/s)"]
        self.info = {}

        #---------------------------------------------------------------------#
        #   Assigned Methods                                                  #
        #---------------------------------------------------------------------#
        self.CourseAP = None                # Course Auto Pilot
        self.RefModel = None                # Reference Model
        self.Allocation = None              # Thrust Allocation
        self.Estimator = None               # State Estimator

        #---------------------------------------------------------------------#
        #   Navigation                                                        #
        #---------------------------------------------------------------------#
        ## State
        """
        x=[u,v,w,p,q,r,x,y,z,phi,theta,psi]: BODY velocities, NED pose
        """
        self.x0 = np.zeros(12)
        self.x0[0] = 1.0                    # initial surge velocity (m/s)
        self.x = np.copy(self.x0)           # state vector
        self.x_hat = np.zeros(5)            # EKF estimate
        self.sensors = {}                   # installed sensors
        self._sampleTime = 0.02             # iteration time step (s)

        ## Sensors
        self.addSensor('current', nav.OceanCurrentSensor())

        ## Environment
        self.V_c = 0.0                      # ocean current speed (m/s)
        self.beta_V_c = 30 * math.pi / 180  # ocean current direction (rad)

        #---------------------------------------------------------------------#
        #   Control                                                           #
        #---------------------------------------------------------------------#
        ## Propellers
        self.n = np.zeros(2)                # actual shaft speeds (rad/s)
        self.T_n = 1.0                      # propeller time constant (s)

        #---------------------------------------------------------------------#
        #   Physics                                                           #
        #---------------------------------------------------------------------#
        ## Constants
        self.rho = 1025                     # density of water (kg/m^3)
        self.g = 9.81                       # acceleration of gravity (m/s^2)

        ## Main Data
        self.L = 2.0                        # length (m)
        self.B = 1.08                       # beam (m)
        self.m = 55.0                       # hull mass (kg)
        self.rg = np.array([0.2, 0, -0.2])  # CG for hull only (m)
        self.R44 = 0.4 * self.B             # radii of gyration (m)
        self.R55 = 0.25 * self.L
        self.R66 = 0.25 * self.L
        self.T_yaw = 1.0                    # time constant in yaw (s)
        self.Umax = 6 * 0.5144              # max forward speed (m/s)

        ## Pontoon Data (one pontoon)
        self.B_pont = 0.25                  # beam (m)
        self.y_pont = 0.395                 # centerline to waterline area (m)
        self.Cw_pont = 0.75                 # waterline area coefficient
        self.Cb_pont = 0.4                  # block coefficient
        self.LCF = -0.2                     # longitudinal center of flotation

        ## Propellers
        self.l1 = -self.y_pont              # lever arm, left propeller (m)
        self.l2 = self.y_pont               # lever arm, right propeller (m)
        self.k_pos = 0.02216 / 2            # positive Bollard, one propeller
        self.k_neg = 0.01289 / 2            # negative Bollard, one propeller
        self.n_max = math.sqrt((0.5 * 24.4 * self.g) / self.k_pos)
        self.n_min = -math.sqrt((0.5 * 13.6 * self.g) / self.k_neg)

        #---------------------------------------------------------------------#
        #   GNC Defaults                                                      #
        #---------------------------------------------------------------------#
        self.loadPayload()
        self.loadCourseAutopilot()
        self.loadThrustAllocation()
        self.loadEKF()

        #---------------------------------------------------------------------#
        #   User Specified                                                    #
        #---------------------------------------------------------------------#
        for key,value in kwargs.items():
            setattr(self, key, value)

    ## Properties ============================================================#
    @property
    def nu(self)->NPFltArr:
        """Body-frame velocities [u, v, w, p, q, r], view of x[0:6]."""
        return self.x[0:6]

    @property
    def eta(self)->NPFltArr:
        """NED position and Euler angles, view of x[6:12]."""
        return self.x[6:12]

    @property
    def sampleTime(self)->float:
        """Iteration time step (s)."""
        return self._sampleTime

    @sampleTime.setter
    def sampleTime(self, h:float)->None:
        """Set iteration time step. Must be positive."""
        if (h <= 0):
            log.error('%s sample time must be positive, got %s',
                      self.callSign, h)
            raise ValueError('Sample time must be positive')
        self._sampleTime = h

    ## Special Methods =======================================================#
    def __repr__(self)->str:
        """Return concise string representation of the vehicle."""
        return f"<{self.__class__.__name__} {self.callSign} at {hex(id(self))}>"

    def __str__(self)->str:
        """Return user-friendly description of the vehicle configuration."""
        lines = [f"{self.callSign}: {self.modelName}"]
        lines.extend(f" {key}: {value}" for key,value in self.info.items())
        return "\n".join(lines)

    ## Methods ===============================================================#
    def addSensor(self, name:str, sensor:nav.Sensor)->None:
        """
        Install a sensor on the vehicle.


        Parameters
        ----------
        name : str
            Dictionary key for the sensor.
        sensor : nav.Sensor
            Sensor instance. Replaces any sensor already under that name.
        """

        if not (isinstance(sensor, nav.Sensor)):
            log.error('%s: %s is not a Sensor', self.callSign, sensor)
            raise TypeError(f"{sensor!r} is not a Sensor")
        if (name in self.sensors):
            log.warning('%s: replacing sensor %s', self.callSign, name)
        self.sensors[name] = sensor

    #--------------------------------------------------------------------------
    def readSensor(self, name:str, *args, **kwargs)->Optional[Any]:
        """Read an installed sensor. Returns None if it is not installed."""

        sensor = self.sensors.get(name)
        if (sensor is None):
            log.warning('%s: no sensor named %s', self.callSign, name)
            return None
        return sensor.collectData(*args, **kwargs)

    #--------------------------------------------------------------------------
    def collectSensorData(self, ocean:Optional[env.Ocean], i:int)->None:
        """
        Update the ocean current seen by the vehicle.

        Reads the 'current' sensor when an ocean with a current is present.
        Otherwise V_c and beta_V_c keep their configured values.
        """

        if ((ocean is not None) and (ocean.current is not None) and
            ('current' in self.sensors)):
            self.V_c, self.beta_V_c = self.readSensor('current', ocean, i)

    #--------------------------------------------------------------------------
    def reset(self)->None:
        """
        Restore the initial state of the vehicle and its GNC components.

        Resets x to x0 and clears the estimate, propeller revolutions,
        integral state, and reference model. The estimator is reset so that no
        filter state carries over between independent runs.
        """

        self.x = np.copy(self.x0)
        self.x_hat = np.zeros(5)
        self.n = np.zeros(2)
        self.chi_int = 0.0
        self.chi_d = 0.0
        self.omega_d = 0.0
        self.a_d = 0.0
        if (self.Estimator is not None):
            self.Estimator.reset()

    #--------------------------------------------------------------------------
    def loadPayload(self,
                    mp:float = 25.0,
                    rp:Optional[NPFltArr] = None,
                    )->None:
        """
        Set the load condition.


        Parameters
        ----------
        mp : float, default=25.0
            Payload mass (kg). The Otter carries at most 45 kg.
        rp : array_like, shape (3,), optional
            Payload location relative to the CO (m). Default [0, 0, -0.35].
        """

        if (mp < 0):
            log.error('%s: payload mass must be non-negative, got %s',
                      self.callSign, mp)
            raise ValueError('Payload mass must be non-negative')
        if (mp > 45):
            log.warning('%s: payload %.1f kg exceeds the 45 kg maximum',
                        self.callSign, mp)

        self.mp = mp
        self.rp = (np.array([0, 0, -0.35], float) if rp is None
                   else np.array(rp, float))
        self.info.update([('Payload', f"{mp:g} kg at {self.rp.tolist()} m")])

    #--------------------------------------------------------------------------
    def loadCourseAutopilot(self,
                            T:float = 1.0,
                            m:float = 41.4,
                            wn:float = 1.5,
                            zeta:float = 1.0,
                            wn_d:float = 0.5,
                            zeta_d:float = 1.0,
                            tau_X:float = 100.0,
                            )->None:
        """
        Configure the PID pole-placement course autopilot.


        Parameters
        ----------
        T : float, default=1.0
            Nomoto time constant (s).
        m : float, default=41.4
            Nomoto inertia m = T/K.
        wn : float, default=1.5
            Closed-loop natural frequency (rad/s).
        zeta : float, default=1.0
            Closed-loop relative damping.
        wn_d : float, default=0.5
            Reference model natural frequency (rad/s).
        zeta_d : float, default=1.0
            Reference model relative damping.
        tau_X : float, default=100.0
            Constant surge force (N).


        Notes
        -----
        Gains are computed once here. The integral state and the reference
        model states are cleared.
        """

        # Assign Functions as Vehicle Methods
        self.CourseAP = ctrl.courseAutopilot
        self.RefModel = guid.refModel3

        # Nomoto Model and Gains
        self.T_chi = T
        self.m_chi = m
        self.K_chi = T / m
        self.wn_chi = wn
        self.zeta_chi = zeta
        self.Kp_chi, self.Kd_chi, self.Td_chi, self.Ti_chi = (
            ctrl.pidPolePlacement(T, m, wn, zeta))
        self.chi_int = 0.0
        self.tau_X = tau_X

        # Reference Model
        self.wn_d = wn_d
        self.zeta_d = zeta_d
        self.chi_d = 0.0
        self.omega_d = 0.0
        self.a_d = 0.0

        self.info.update([
            ("Course Autopilot",
             f"PID pole placement, wn={wn:g}, zeta={zeta:g}"),
            ("Reference Model", f"3rd order, wn_d={wn_d:g}, zeta_d={zeta_d:g}"),
            ("Surge Force", f"Constant, {tau_X:g} N"),
        ])
        log.debug('%s gains: Kp=%.3f, Kd=%.3f, Td=%.3f, Ti=%.3f',
                  self.callSign, self.Kp_chi, self.Kd_chi, self.Td_chi,
                  self.Ti_chi)

    #--------------------------------------------------------------------------
    def loadThrustAllocation(self, B:Optional[NPFltArr] = None)->None:
        """
        Configure thrust allocation.


        Parameters
        ----------
        B : array_like, shape (2, 2), optional
            Input matrix. Default 0.0111 * [[1, 1], [0.395, -0.395]], from the
            positive Bollard coefficient and the pontoon lever arm.


        Raises
        ------
        ValueError
            B is singular.
        """

        if (B is None):
            B = 0.0111 * np.array([[1, 1],
                                   [0.395, -0.395]])

        self.Allocation = ctrl.thrustAllocation
        self.B_alloc = np.array(B, float)
        self.Binv = ctrl.allocationInverse(self.B_alloc)
        self.info.update([("Thrust Allocation", "B^-1 with signed sqrt")])

    #--------------------------------------------------------------------------
    def loadEKF(self,
                Qd:Optional[NPFltArr] = None,
                Rd:Optional[NPFltArr] = None,
                Z:int = 10,
                frame:str = 'NED',
                )->None:
        """
        Configure the 5-state EKF for SOG, COG, and course rate.


        Parameters
        ----------
        Qd : array_like, shape (2, 2), optional
            Process noise covariance. Default 500 * diag([1000, 1000]).
        Rd : array_like, shape (2, 2), optional
            Measurement noise covariance. Default 1e-8 * diag([1, 1]).
        Z : int, default=10
            GNSS fixes arrive every Z samples.
        frame : {'NED', 'LL'}, default='NED'
            Position frame of the fixes.


        Notes
        -----
        A new estimator instance is created, so no filter state from a
        previous configuration survives.
        """

        if (Z < 1):
            log.error('%s: measurement decimation must be >= 1, got %s',
                      self.callSign, Z)
            raise ValueError('Measurement decimation Z must be >= 1')
        if (frame not in nav.EKF5States.FRAMES):
            log.error('%s: unknown EKF frame %s', self.callSign, frame)
            raise ValueError(f"Unknown EKF frame '{frame}'")

        self.Qd = (500 * np.diag([1000.0, 1000.0]) if Qd is None
                   else np.array(Qd, float))
        self.Rd = (0.00000001 * np.diag([1.0, 1.0]) if Rd is None
                   else np.array(Rd, float))
        self.Z = int(Z)
        self.frame = frame
        self.Estimator = nav.EKF5States()
        self.x_hat = np.zeros(5)

        self.info.update([("Estimator", f"5-state EKF, GNSS every {Z} samples")])

    #--------------------------------------------------------------------------
    def dynamics(self,
                 x:NPFltArr,
                 n:NPFltArr,
                 mp:float,
                 rp:NPFltArr,
                 V_c:float,
                 beta_c:float,
                 )->NPFltArr:
        """
        Compute the time derivative of the Otter 6-DOF state.


        Parameters
        ----------
        x : ndarray, shape (12,)
            State [u, v, w, p, q, r, x, y, z, phi, theta, psi].
        n : ndarray, shape (2,)
            Actual propeller revolutions [n_left, n_right] (rad/s).
        mp : float
            Payload mass (kg).
        rp : ndarray, shape (3,)
            Payload location relative to the CO (m).
        V_c : float
            Current speed (m/s).
        beta_c : float
            Current direction (rad).


        Returns
        -------
        xdot : ndarray, shape (12,)
            [d/dt nu, d/dt eta].


        Raises
        ------
        ValueError
            x does not have 12 elements or n does not have 2.


        Notes
        -----
        **Equations of Motion:**

            M d/dt nu_r + C(nu_r) nu_r + D(nu_r) nu_r + G eta = tau

        where:

            - M = MRB + MA, rigid body with payload plus added mass
            - C = CRB(nu) + CA(nu_r), Munk yaw moment terms set to zero
            - D: linear damping, quadratic in yaw, plus cross-flow drag
            - G: hydrostatic stiffness from the pontoon waterline areas,
              transformed from the center of flotation to the CO
            - nu_r = nu - nu_c, relative velocity to the ocean current

        **Payload:**

        The CG is moved to (m rg + mp rp)/(m + mp) and the inertia dyadic
        about the CO includes the parallel axis terms of hull and payload.
        The draft follows from the displaced volume.

        **Propellers:**

        Revolutions are saturated to [n_min, n_max] and the thrust of each
        propeller is k n |n| with separate forward and reverse Bollard
        coefficients.

        **Ocean Current:**

        A constant NED current rotates in the body frame as the vehicle turns,
        adding d/dt nu_c = [r v_c, -r u_c, 0, 0, 0, 0].
        """

        x = np.asarray(x, float)
        n = np.array(n, float)
        if (x.shape != (12,)):
            log.error('%s: state vector must have 12 elements, got %s',
                      self.callSign, x.shape)
            raise ValueError('State vector x must have dimension 12')
        if (n.shape != (2,)):
            log.error('%s: propeller vector must have 2 elements, got %s',
                      self.callSign, n.shape)
            raise ValueError('Propeller vector n must have dimension 2')

        rho = self.rho
        g = self.g
        L = self.L
        B_pont = self.B_pont
        m = self.m
        rp = np.asarray(rp, float)

        # State and Current Variables
        nu = x[0:6]
        nu2 = x[3:6]
        eta = x[6:12]
        u_c = V_c * math.cos(beta_c - eta[5])              # current surge
        v_c = V_c * math.sin(beta_c - eta[5])              # current sway
        nu_c = np.array([u_c, v_c, 0, 0, 0, 0], float)
        Dnu_c = np.array([nu[5]*v_c, -nu[5]*u_c, 0, 0, 0, 0], float)
        nu_r = nu - nu_c

        # Inertia Dyadic, Volume Displacement and Draft
        m_total = m + mp
        rg = (m * self.rg + mp * rp) / m_total     # CG corrected for payload
        S_rg = gnc.Smtrx(rg)
        S_rp = gnc.Smtrx(rp)
        Ig_CG = m * np.diag([self.R44**2, self.R55**2, self.R66**2])
        Ig = Ig_CG - m * S_rg @ S_rg - mp * S_rp @ S_rp
        nabla = m_total / rho                      # volume
        T = nabla / (2 * self.Cb_pont * B_pont * L)     # draft

        # Rigid-Body Mass and Coriolis Matrices: Expressed in CO
        MRB_CG = np.zeros((6,6))
        MRB_CG[0:3,0:3] = m_total * np.identity(3)
        MRB_CG[3:6,3:6] = Ig
        CRB_CG = np.zeros((6,6))
        CRB_CG[0:3,0:3] = m_total * gnc.Smtrx(nu2)
        CRB_CG[3:6,3:6] = -gnc.Smtrx(Ig @ nu2)
        H_rg = gnc.Hmtrx(rg)
        MRB = H_rg.T @ MRB_CG @ H_rg
        CRB = H_rg.T @ CRB_CG @ H_rg

        # Hydrodynamic Added Mass
        Xudot = -0.1 * m
        Yvdot = -1.5 * m
        Zwdot = -1.0 * m
        Kpdot = -0.2 * Ig[0,0]
        Mqdot = -0.8 * Ig[1,1]
        Nrdot = -1.7 * Ig[2,2]
        MA = -np.diag([Xudot, Yvdot, Zwdot, Kpdot, Mqdot, Nrdot])
        CA = gnc.m2c(MA, nu_r)
        """Munk moment in yaw is neglected, otherwise nonlinear damping is
           needed to balance it"""
        CA[5,0] = 0
        CA[5,1] = 0

        # System Mass and Coriolis-Centripetal Matrices
        M = MRB + MA
        C = CRB + CA

        # Hydrostatic Quantities
        Aw_pont = self.Cw_pont * L * B_pont          # waterline area, pontoon
        I_T = (2 * (1/12) * L * B_pont**3
               * (6 * self.Cw_pont**3
                  / ((1 + self.Cw_pont) * (1 + 2 * self.Cw_pont)))
               + 2 * Aw_pont * self.y_pont**2)
        I_L = 0.8 * 2 * (1/12) * B_pont * L**3
        KB = (1/3) * (5 * T / 2 - 0.5 * nabla / (L * B_pont))
        BM_T = I_T / nabla
        BM_L = I_L / nabla
        KM_T = KB + BM_T
        KM_L = KB + BM_L
        KG = T - rg[2]
        GM_T = KM_T - KG
        GM_L = KM_L - KG

        G33 = rho * g * (2 * Aw_pont)               # spring stiffness
        G44 = rho * g * nabla * GM_T
        G55 = rho * g * nabla * GM_L
        G_CF = np.diag([0, 0, G33, G44, G55, 0])    # stiffness in the CF
        H_lcf = gnc.Hmtrx(np.array([self.LCF, 0, 0], float))
        G = H_lcf.T @ G_CF @ H_lcf

        # Natural Frequencies
        w3 = math.sqrt(G33 / M[2,2])
        w4 = math.sqrt(G44 / M[3,3])
        w5 = math.sqrt(G55 / M[4,4])

        # Linear Damping Terms (Hydrodynamic Derivatives)
        Xu = -24.4 * g / self.Umax                   # from maximum speed
        Yv = 0
        Zw = -2 * 0.3 * w3 * M[2,2]                  # from relative damping
        Kp = -2 * 0.2 * w4 * M[3,3]
        Mq = -2 * 0.4 * w5 * M[4,4]
        Nr = -M[5,5] / self.T_yaw                    # from yaw time constant

        # Propeller Thrust, Revolutions Saturated
        thrust = np.zeros(2)
        for i in range(2):
            n[i] = gnc.saturation(n[i], self.n_min, self.n_max)
            if (n[i] > 0):
                thrust[i] = self.k_pos * n[i] * abs(n[i])
            else:
                thrust[i] = self.k_neg * n[i] * abs(n[i])

        # Control Forces and Moments
        tau = np.array([
            thrust[0] + thrust[1],
            0,
            0,
            0,
            0,
            -self.l1 * thrust[0] - self.l2 * thrust[1]], float)

        # Damping, Linear Plus Nonlinear Yaw
        tau_damp = np.array([
            Xu * nu_r[0],
            Yv * nu_r[1],
            Zw * nu_r[2],
            Kp * nu_r[3],
            Mq * nu_r[4],
            Nr * (1 + 10 * abs(nu_r[5])) * nu_r[5]], float)

        # Strip Theory: Cross-Flow Drag Integrals
        tau_crossflow = gnc.crossFlowDrag(L, B_pont, T, nu_r)

        # Kinematics
        J = nav.eulerang(eta[3], eta[4], eta[5])

        # State Derivative
        tau_sum = tau + tau_damp + tau_crossflow - C @ nu_r - G @ eta
        nu_dot = Dnu_c + np.linalg.solve(M, tau_sum)
        eta_dot = J @ nu

        return np.concatenate([nu_dot, eta_dot])

###############################################################################
