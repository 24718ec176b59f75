import math
import numpy as np
import pytest
import matplotlib.pyplot as plt
from otterusvsim import plotTimeSeries as pltTS


@pytest.fixture
def simData():
    t = 0.02 * np.arange(101)
    data = np.zeros((101, 20))
    data[:, 0] = t
    data[:, 1] = 1.0                # u
    data[:, 2] = 1.0                # v
    data[:, 7] = t                  # x
    data[:, 12] = 0.5               # psi
    data[:, 18] = 40.0
    data[:, 19] = 35.0
    return data


def test_unit_helpers():
    assert pltTS.R2D(math.pi) == pytest.approx(180.0)
    assert pltTS.cm2inch(2.54) == pytest.approx(1.0)


def test_derive_states(simData):
    states = pltTS.deriveStates(simData)
    assert states['U'] == pytest.approx(np.full(101, math.sqrt(2)))
    assert states['beta_c'] == pytest.approx(np.full(101, math.pi / 4))
    assert states['chi'] == pytest.approx(np.full(101, 0.5 + math.pi / 4))


def test_derive_states_crab_angle_wrapped():
    data = np.zeros((3, 20))
    data[:, 1] = -1.0
    data[:, 2] = -1e-3
    beta_c = pltTS.deriveStates(data)['beta_c']
    assert np.all(beta_c > -math.pi)
    assert np.all(beta_c <= math.pi)


def test_derive_states_bad_shape():
    with pytest.raises(ValueError):
        pltTS.deriveStates(np.zeros((10, 5)))


@pytest.mark.parametrize('plotter, figNo, nAxes', [
    (pltTS.plotVelocities, 1, 6),
    (pltTS.plotPositions, 2, 6),
    (pltTS.plotCourse, 3, 3),
])
def test_figures(simData, plotter, figNo, nAxes):
    plotter(simData, figNo=figNo)
    assert plt.fignum_exists(figNo)
    assert len(plt.figure(figNo).axes) == nAxes


def test_simulator_plot(quietSim):
    sim = quietSim(N=10)
    sim.run(plot=False)
    sim.plot(show=False)
    assert all(plt.fignum_exists(k) for k in (1, 2, 3))
