import math
import numpy as np
import pytest
from otterusvsim import simulator as otSim
from otterusvsim import vehicles as veh
from otterusvsim import guidance as guid
from otterusvsim import environment as env
from otterusvsim import plotTimeSeries as pltTS


@pytest.fixture(scope='module')
def defaultRun():
    sim = otSim.Simulator(name='DefaultRun', logging='none')
    return sim, sim.simulate()


class TestTimeParameters:
    def test_defaults(self, quietSim):
        sim = quietSim()
        assert sim.sampleTime == 0.02
        assert sim.N == 2000
        assert sim.runTime == pytest.approx(40.0)
        assert sim.simTime.shape == (2001, 1)

    def test_linked(self, quietSim):
        sim = quietSim(N=100)
        assert sim.runTime == pytest.approx(2.0)
        sim.runTime = 10.0
        assert sim.N == 500
        sim.sampleTime = 0.01
        assert sim.N == 500
        assert sim.runTime == pytest.approx(5.0)
        assert sim.simTime[-1][0] == pytest.approx(5.0)

    def test_sample_times_exact(self, quietSim):
        sim = quietSim(N=2000)
        assert sim.simTime[1000][0] == 1000 * 0.02

    def test_vehicle_gets_sample_time(self, quietSim):
        usv = veh.Otter()
        sim = quietSim(sampleTime=0.05, vehicle=usv)
        assert usv.sampleTime == 0.05
        sim.sampleTime = 0.01
        assert usv.sampleTime == 0.01

    def test_ocean_sized_to_samples(self, quietSim):
        ocean = env.Ocean(spd=0.1)
        sim = quietSim(N=50, ocean=ocean)
        assert ocean.N == 51
        sim.N = 80
        assert ocean.current.speed.shape == (81,)

    @pytest.mark.parametrize('kwargs', [{'sampleTime': 0.0},
                                        {'sampleTime': -0.02},
                                        {'N': 0}])
    def test_rejects_bad_values(self, quietSim, kwargs):
        with pytest.raises(ValueError):
            quietSim(**kwargs)

    def test_no_output_directory_without_file_logging(self, quietSim):
        sim = quietSim()
        assert '_outDir' not in sim.__dict__

    def test_defaults_created(self, quietSim):
        sim = quietSim()
        assert isinstance(sim.vehicle, veh.Otter)
        assert isinstance(sim.schedule, guid.CourseSchedule)
        assert sim.ocean is None


class TestSimulate:
    def test_log_shape(self, quietSim):
        sim = quietSim(N=50)
        simData = sim.simulate()
        assert simData.shape == (51, otSim.NUM_COLS)
        assert otSim.NUM_COLS == 20
        assert simData[:, otSim.COL_TIME] == pytest.approx(
            0.02 * np.arange(51))

    def test_first_row_is_initial_state(self, quietSim):
        sim = quietSim(N=5)
        simData = sim.simulate()
        assert np.array_equal(simData[0, otSim.COL_NU],
                              sim.vehicle.x0[0:6])
        assert np.array_equal(simData[0, otSim.COL_ETA],
                              sim.vehicle.x0[6:12])
        assert np.all(simData[0, otSim.COL_XHAT] == 0)
        assert np.all(simData[0, otSim.COL_N] == 0)

    def test_propeller_lag_in_loop(self, quietSim):
        sim = quietSim(N=5)
        simData = sim.simulate()
        # first command: zero course error, pure surge force
        n_c = math.sqrt(100 / (2 * 0.0111))
        assert simData[1, otSim.COL_N] == pytest.approx(
            [0.02 * n_c, 0.02 * n_c])

    def test_estimate_logged_one_sample_late(self, quietSim):
        sim = quietSim(N=5)
        simData = sim.simulate()
        # the estimate from sample 0 is a correction at the initial position
        assert simData[1, otSim.COL_XHAT][0:2] == pytest.approx([0.0, 0.0])

    def test_zero_input_steady_state(self, quietSim):
        usv = veh.Otter()
        usv.x0 = np.zeros(12)
        usv.loadCourseAutopilot(tau_X=0.0)
        sim = quietSim(N=200, vehicle=usv,
                       schedule=guid.CourseSchedule.constant(0.0))
        simData = sim.simulate()
        assert np.all(simData[:, 1:] == 0)

    def test_repeatable_runs(self, quietSim):
        sim = quietSim(N=100)
        first = sim.simulate()
        second = sim.simulate()
        assert np.array_equal(first, second)

    def test_estimator_reset_between_runs(self, quietSim):
        sim = quietSim(N=30)
        sim.simulate()
        sim.vehicle.x0 = np.zeros(12)
        sim.vehicle.x0[6:8] = [100.0, -50.0]
        simData = sim.simulate()
        assert simData[1, otSim.COL_XHAT][0:2] == pytest.approx(
            [100.0, -50.0])
        # a fresh filter starts from zero speed
        assert simData[1, otSim.COL_XHAT][2] == 0.0

    def test_ocean_current_is_read(self, quietSim):
        usv = veh.Otter()
        sim = quietSim(N=20, vehicle=usv, ocean=env.Ocean(spd=0.4, ang=1.0))
        sim.simulate()
        assert usv.V_c == pytest.approx(0.4)
        assert usv.beta_V_c == pytest.approx(1.0)

    def test_run_without_plots(self, quietSim):
        sim = quietSim(N=20)
        sim.run(plot=False)
        assert sim.simData.shape == (21, 20)


class TestCourseStep:
    def test_tracks_first_setpoint(self, defaultRun):
        _, simData = defaultRun
        chi = pltTS.deriveStates(simData)['chi']
        assert chi[1000] == pytest.approx(math.radians(20),
                                          abs=math.radians(3))

    def test_returns_to_zero(self, defaultRun):
        _, simData = defaultRun
        chi = pltTS.deriveStates(simData)['chi']
        assert chi[2000] == pytest.approx(0.0, abs=math.radians(3))

    def test_estimate_follows_course(self, defaultRun):
        _, simData = defaultRun
        chi = pltTS.deriveStates(simData)['chi']
        chi_hat = simData[:, otSim.COL_XHAT][:, 3]
        assert chi_hat[1000] == pytest.approx(chi[1000], abs=math.radians(3))

    def test_propellers_bounded(self, defaultRun):
        sim, simData = defaultRun
        n = simData[:, otSim.COL_N]
        assert np.all(np.isfinite(simData))
        assert np.all(np.abs(n) < 2 * sim.vehicle.n_max)

    def test_moves_forward(self, defaultRun):
        _, simData = defaultRun
        assert simData[-1, otSim.COL_ETA][0] > 20.0
