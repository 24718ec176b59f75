import math
import numpy as np
import pytest
from otterusvsim import vehicles as veh
from otterusvsim import navigation as nav
from otterusvsim import environment as env


def zeroState():
    return np.zeros(12)


class TestOtterDefaults:
    def test_initial_state(self, otter):
        assert otter.x.shape == (12,)
        assert otter.x[0] == 1.0
        assert np.all(otter.x[1:] == 0)
        assert otter.n.tolist() == [0.0, 0.0]
        assert otter.x_hat.shape == (5,)

    def test_views(self, otter):
        otter.eta[5] = 0.3
        otter.nu[1] = 0.1
        assert otter.x[11] == 0.3
        assert otter.x[1] == 0.1

    def test_one_control_per_propeller(self, otter):
        assert len(otter.controls) == otter.n.size == 2
        assert otter.B_alloc.shape == (2, 2)

    def test_load_condition(self, otter):
        assert otter.mp == 25.0
        assert otter.rp.tolist() == [0.0, 0.0, -0.35]
        assert otter.V_c == 0.0
        assert otter.beta_V_c == pytest.approx(math.radians(30))
        assert otter.T_n == 1.0

    def test_autopilot_defaults(self, otter):
        assert otter.Kp_chi == pytest.approx(41.4 * 2.25)
        assert otter.Ti_chi == pytest.approx(10 / 1.5)
        assert otter.tau_X == 100.0
        assert otter.wn_d == 0.5
        assert otter.Binv @ otter.B_alloc == pytest.approx(np.eye(2))

    def test_estimator_defaults(self, otter):
        assert isinstance(otter.Estimator, nav.EKF5States)
        assert otter.Z == 10
        assert otter.frame == 'NED'
        assert otter.Qd == pytest.approx(5e5 * np.eye(2))

    def test_kwargs_override(self):
        usv = veh.Otter(T_n=0.5, V_c=0.2)
        assert usv.T_n == 0.5
        assert usv.V_c == 0.2

    def test_call_signs_unique(self):
        assert veh.Otter().callSign != veh.Otter().callSign

    def test_str(self, otter):
        text = str(otter)
        assert otter.callSign in text
        assert 'Estimator' in text


class TestOtterConfiguration:
    def test_singular_allocation(self, otter):
        with pytest.raises(ValueError):
            otter.loadThrustAllocation([[1, 1], [1, 1]])

    def test_custom_allocation(self, otter):
        B = np.array([[2.0, 0.0], [0.0, 4.0]])
        otter.loadThrustAllocation(B)
        assert otter.Binv == pytest.approx(np.diag([0.5, 0.25]))

    def test_bad_ekf_frame(self, otter):
        with pytest.raises(ValueError):
            otter.loadEKF(frame='ECEF')

    def test_bad_decimation(self, otter):
        with pytest.raises(ValueError):
            otter.loadEKF(Z=0)

    def test_loadEKF_creates_new_estimator(self, otter):
        old = otter.Estimator
        otter.loadEKF(Z=5)
        assert otter.Estimator is not old
        assert otter.Z == 5

    def test_negative_payload(self, otter):
        with pytest.raises(ValueError):
            otter.loadPayload(mp=-1)

    def test_nonpositive_sample_time(self, otter):
        with pytest.raises(ValueError):
            otter.sampleTime = 0

    def test_reset(self, otter):
        otter.x[6] = 12.0
        otter.n[:] = [30.0, 40.0]
        otter.chi_int = 0.3
        otter.chi_d = 0.2
        otter.omega_d = 0.1
        otter.a_d = 0.05
        otter.x_hat[:] = 1.0
        otter.Estimator.estimate(1.0, 2.0, 0.02, 10, 'NED',
                                 otter.Qd, otter.Rd)
        otter.reset()
        assert np.array_equal(otter.x, otter.x0)
        assert otter.x is not otter.x0
        assert otter.n.tolist() == [0.0, 0.0]
        assert (otter.chi_int, otter.chi_d, otter.omega_d, otter.a_d) == (
            0.0, 0.0, 0.0, 0.0)
        assert np.all(otter.x_hat == 0)
        assert otter.Estimator.x_prd is None

    def test_add_sensor_rejects_non_sensor(self, otter):
        with pytest.raises(TypeError):
            otter.addSensor('gps', object())

    def test_collect_sensor_data(self, otter):
        ocean = env.Ocean(spd=0.3, ang=0.5, N=5)
        otter.collectSensorData(ocean, 2)
        assert otter.V_c == pytest.approx(0.3)
        assert otter.beta_V_c == pytest.approx(0.5)

    def test_collect_sensor_data_without_ocean(self, otter):
        otter.V_c = 0.1
        otter.collectSensorData(None, 0)
        assert otter.V_c == 0.1


class TestOtterDynamics:
    def test_zero_input_zero_state(self, otter):
        xdot = otter.dynamics(zeroState(), np.zeros(2), otter.mp, otter.rp,
                              0.0, 0.0)
        assert xdot.shape == (12,)
        assert np.allclose(xdot, 0.0, atol=1e-12)

    @pytest.mark.parametrize('x, n', [(np.zeros(11), np.zeros(2)),
                                      (np.zeros(12), np.zeros(3)),
                                      (np.zeros((12, 1)), np.zeros(2))])
    def test_wrong_dimensions(self, otter, x, n):
        with pytest.raises(ValueError):
            otter.dynamics(x, n, otter.mp, otter.rp, 0.0, 0.0)

    def test_equal_thrust_accelerates_forward(self, otter):
        xdot = otter.dynamics(zeroState(), np.array([50.0, 50.0]),
                              otter.mp, otter.rp, 0.0, 0.0)
        assert xdot[0] > 0
        assert xdot[1] == pytest.approx(0.0, abs=1e-9)
        assert xdot[5] == pytest.approx(0.0, abs=1e-9)

    def test_left_propeller_turns_starboard(self, otter):
        xdot = otter.dynamics(zeroState(), np.array([50.0, -50.0]),
                              otter.mp, otter.rp, 0.0, 0.0)
        assert xdot[5] > 0

    def test_reverse_thrust_weaker(self, otter):
        fwd = otter.dynamics(zeroState(), np.array([50.0, 50.0]),
                             otter.mp, otter.rp, 0.0, 0.0)
        rev = otter.dynamics(zeroState(), np.array([-50.0, -50.0]),
                             otter.mp, otter.rp, 0.0, 0.0)
        assert rev[0] < 0
        assert abs(rev[0]) < fwd[0]

    def test_revolutions_saturate(self, otter):
        big = otter.dynamics(zeroState(), np.array([1e4, 1e4]),
                             otter.mp, otter.rp, 0.0, 0.0)
        atMax = otter.dynamics(zeroState(),
                               np.array([otter.n_max, otter.n_max]),
                               otter.mp, otter.rp, 0.0, 0.0)
        assert np.allclose(big, atMax)

    def test_does_not_modify_inputs(self, otter):
        n = np.array([1e4, -1e4])
        x = zeroState()
        otter.dynamics(x, n, otter.mp, otter.rp, 0.0, 0.0)
        assert n.tolist() == [1e4, -1e4]
        assert np.all(x == 0)

    def test_kinematics(self, otter):
        x = zeroState()
        x[0] = 1.0
        x[11] = math.pi / 2
        xdot = otter.dynamics(x, np.zeros(2), otter.mp, otter.rp, 0.0, 0.0)
        assert xdot[6] == pytest.approx(0.0, abs=1e-12)
        assert xdot[7] == pytest.approx(1.0)

    def test_surge_damping(self, otter):
        x = zeroState()
        x[0] = 1.0
        xdot = otter.dynamics(x, np.zeros(2), otter.mp, otter.rp, 0.0, 0.0)
        assert xdot[0] < 0

    def test_current_drags_vehicle(self, otter):
        xdot = otter.dynamics(zeroState(), np.zeros(2), otter.mp, otter.rp,
                              0.5, 0.0)
        assert xdot[0] > 0

    def test_heave_restoring(self, otter):
        x = zeroState()
        x[8] = 0.05
        xdot = otter.dynamics(x, np.zeros(2), otter.mp, otter.rp, 0.0, 0.0)
        assert xdot[2] < 0

    def test_heavier_payload_slows_acceleration(self, otter):
        n = np.array([50.0, 50.0])
        light = otter.dynamics(zeroState(), n, 0.0, otter.rp, 0.0, 0.0)
        heavy = otter.dynamics(zeroState(), n, 45.0, otter.rp, 0.0, 0.0)
        assert heavy[0] < light[0]


def test_vehicle_is_abstract():
    with pytest.raises(TypeError):
        veh.Vehicle()
