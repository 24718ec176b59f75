import math
from types import SimpleNamespace
import numpy as np
import pytest
from otterusvsim import guidance as guid


def refVehicle(**overrides):
    attrs = dict(sampleTime=0.02, wn_d=0.5, zeta_d=1.0,
                 chi_d=0.0, omega_d=0.0, a_d=0.0)
    attrs.update(overrides)
    return SimpleNamespace(**attrs)


class TestCourseSchedule:
    def test_default_step(self):
        sched = guid.CourseSchedule()
        assert sched(0.0) == pytest.approx(math.radians(20))
        assert sched(19.98) == pytest.approx(math.radians(20))
        assert sched(20.0) == 0.0
        assert sched(40.0) == 0.0

    def test_before_first_breakpoint(self):
        sched = guid.CourseSchedule([(5.0, 10.0), (10.0, -10.0)])
        assert sched(0.0) == pytest.approx(math.radians(10))

    def test_unsorted_steps(self):
        sched = guid.CourseSchedule([(10.0, -10.0), (0.0, 45.0)])
        assert sched(3.0) == pytest.approx(math.radians(45))
        assert sched(12.0) == pytest.approx(math.radians(-10))

    def test_constant(self):
        sched = guid.CourseSchedule.constant(0.0)
        assert sched(0.0) == 0.0
        assert sched(1e6) == 0.0

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            guid.CourseSchedule([])

    def test_repr(self):
        assert 'CourseSchedule' in repr(guid.CourseSchedule())


class TestRefModel:
    def test_rest_at_setpoint(self):
        v = refVehicle(chi_d=0.4)
        assert guid.refModel3(v, 0.4) == 0

    def test_jerk_from_error(self):
        v = refVehicle()
        assert guid.refModel3(v, 1.0) == pytest.approx(0.5**3)

    def test_jerk_damping_terms(self):
        v = refVehicle(chi_d=1.0, omega_d=0.2, a_d=-0.1)
        expected = -3 * 0.25 * 0.2 - 3 * 0.5 * (-0.1)
        assert guid.refModel3(v, 1.0) == pytest.approx(expected)

    def test_error_is_wrapped(self):
        v = refVehicle(chi_d=math.radians(179))
        j_d = guid.refModel3(v, math.radians(-179))
        assert j_d == pytest.approx(0.5**3 * math.radians(2))

    def test_refmodel3_is_pure(self):
        v = refVehicle(omega_d=0.1, a_d=0.2)
        guid.refModel3(v, 1.0)
        assert (v.chi_d, v.omega_d, v.a_d) == (0.0, 0.1, 0.2)

    def test_update_uses_pre_update_values(self):
        v = refVehicle(sampleTime=0.1, chi_d=0.0, omega_d=1.0, a_d=2.0)
        guid.refModelUpdate(v, 3.0)
        assert v.chi_d == pytest.approx(0.1)
        assert v.omega_d == pytest.approx(1.2)
        assert v.a_d == pytest.approx(2.3)


class TestStepResponse:
    @pytest.fixture(scope='class')
    def response(self):
        v = refVehicle()
        sched = guid.CourseSchedule()
        h = v.sampleTime
        chi_d = np.empty(2001)
        for i in range(2001):
            chi_d[i] = v.chi_d
            j_d = guid.refModel3(v, sched(i * h))
            guid.refModelUpdate(v, j_d)
        return chi_d

    def test_starts_at_zero(self, response):
        assert response[0] == 0.0

    def test_monotone_rise_before_step_down(self, response):
        assert np.all(np.diff(response[:1001]) >= -1e-12)
        assert response[1000] > response[100] > 0

    def test_no_overshoot(self, response):
        assert response.max() <= math.radians(20) + 1e-12

    def test_no_undershoot_after_step_down(self, response):
        assert response.min() >= -1e-12

    def test_settles_near_setpoint(self, response):
        assert response[1000] == pytest.approx(math.radians(20), rel=0.02)

    def test_decays_after_step_down(self, response):
        assert response[2000] < response[1500] < response[1000]
        assert response[2000] == pytest.approx(0.0, abs=math.radians(0.5))
