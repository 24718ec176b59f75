import math
import numpy as np
import pytest
from otterusvsim import navigation as nav
from otterusvsim import environment as env

QD = 500 * np.diag([1000.0, 1000.0])
RD = 1e-8 * np.eye(2)


class TestKinematics:
    def test_rzyx_is_rotation(self):
        R = nav.Rzyx(0.1, -0.2, 2.0)
        assert np.allclose(R @ R.T, np.eye(3))
        assert np.linalg.det(R) == pytest.approx(1.0)

    def test_rzyx_yaw(self):
        R = nav.Rzyx(0, 0, math.pi / 2)
        assert np.allclose(R @ [1, 0, 0], [0, 1, 0])

    def test_tzyx_level(self):
        assert np.allclose(nav.Tzyx(0, 0), np.eye(3))

    def test_eulerang_identity(self):
        assert np.allclose(nav.eulerang(0, 0, 0), np.eye(6))


class TestOceanCurrentSensor:
    def test_reads_current(self):
        ocean = env.Ocean(spd=0.4, ang=1.0, N=11)
        assert nav.OceanCurrentSensor().collectData(ocean, 5) == [0.4, 1.0]

    def test_missing_arguments(self):
        assert nav.OceanCurrentSensor().collectData() == [-1.0, -1.0]


class TestEKF5States:
    def test_first_call_initializes_from_fix(self):
        ekf = nav.EKF5States()
        x_hat = ekf.estimate(3.0, -2.0, 0.02, 10, 'NED', QD, RD)
        assert x_hat.shape == (5,)
        assert x_hat[0:2] == pytest.approx([3.0, -2.0])
        assert x_hat[2:].tolist() == [0.0, 0.0, 0.0]

    def test_decimation_cycle(self):
        ekf = nav.EKF5States()
        counts = []
        for _ in range(7):
            counts.append(ekf.count)
            ekf.estimate(0.0, 0.0, 0.02, 3, 'NED', QD, RD)
        assert counts == [1, 2, 3, 1, 2, 3, 1]

    def test_no_correction_between_fixes(self):
        ekf = nav.EKF5States()
        ekf.estimate(0.0, 0.0, 0.02, 10, 'NED', QD, RD)
        predicted = np.copy(ekf.x_prd)
        # off-cycle fix is ignored, prediction is returned
        x_hat = ekf.estimate(100.0, 100.0, 0.02, 10, 'NED', QD, RD)
        assert np.allclose(x_hat, predicted)

    def test_reset_clears_state(self):
        ekf = nav.EKF5States()
        for k in range(4):
            ekf.estimate(float(k), 0.0, 0.02, 10, 'NED', QD, RD)
        ekf.reset()
        assert ekf.x_prd is None
        assert ekf.P_prd is None
        assert ekf.count == 1
        x_hat = ekf.estimate(7.0, 8.0, 0.02, 10, 'NED', QD, RD)
        assert x_hat[0:2] == pytest.approx([7.0, 8.0])

    def test_independent_instances(self):
        a = nav.EKF5States()
        b = nav.EKF5States()
        a.estimate(1.0, 1.0, 0.02, 10, 'NED', QD, RD)
        assert b.x_prd is None

    def test_initial_prediction(self):
        ekf = nav.EKF5States(x_prd_init=[1.0, 2.0, 3.0, 0.0, 0.0])
        x_hat = ekf.estimate(1.0, 2.0, 0.02, 10, 'NED', QD, RD)
        assert x_hat[2] == pytest.approx(3.0)

    def test_unknown_frame(self):
        ekf = nav.EKF5States()
        with pytest.raises(ValueError):
            ekf.estimate(0.0, 0.0, 0.02, 10, 'ECEF', QD, RD)

    def test_latitude_longitude_frame(self):
        ekf = nav.EKF5States()
        mu = math.radians(63.4)
        l = math.radians(10.4)
        for _ in range(20):
            x_hat = ekf.estimate(mu, l, 0.02, 10, 'LL', QD, RD)
        assert np.all(np.isfinite(x_hat))
        assert x_hat[0] == pytest.approx(mu, abs=1e-6)

    @staticmethod
    def straightLine(ekf, U, chi, nSamples=3001, h=0.02):
        for k in range(nSamples):
            t = k * h
            x_hat = ekf.estimate(U * math.cos(chi) * t, U * math.sin(chi) * t,
                                 h, 10, 'NED', QD, RD)
        return x_hat

    def test_tracks_straight_line(self):
        U = 2.0
        chi = math.radians(30)
        ekf = nav.EKF5States(x_prd_init=[0.0, 0.0, 0.0, chi, 0.0])
        x_hat = self.straightLine(ekf, U, chi)
        assert x_hat[2] == pytest.approx(U, abs=0.05)
        assert x_hat[3] == pytest.approx(chi, abs=math.radians(2))
        assert x_hat[4] == pytest.approx(0.0, abs=math.radians(1))

    def test_converges_from_small_course_error(self):
        # default start assumes course 0, 20 deg off
        U = 2.0
        chi = math.radians(20)
        x_hat = self.straightLine(nav.EKF5States(), U, chi)
        assert x_hat[2] == pytest.approx(U, abs=0.05)
        assert x_hat[3] == pytest.approx(chi, abs=math.radians(2))

    def test_large_initial_course_error_not_recovered(self):
        # 45 deg off at start, the filter ends up spinning
        U = 2.0
        chi = math.radians(45)
        x_hat = self.straightLine(nav.EKF5States(), U, chi)
        assert abs(x_hat[2] - U) > 1.0


def test_estimator_is_abstract():
    with pytest.raises(TypeError):
        nav.Estimator()
