import matplotlib
matplotlib.use('Agg')

import pytest
import matplotlib.pyplot as plt
from otterusvsim import simulator as otSim
from otterusvsim import vehicles as veh


@pytest.fixture(autouse=True)
def closeFigures():
    yield
    plt.close('all')


@pytest.fixture
def otter():
    return veh.Otter()


@pytest.fixture
def quietSim():
    """Factory for simulators without console or file logging."""
    def make(**kwargs):
        kwargs.setdefault('logging', 'none')
        return otSim.Simulator(**kwargs)
    return make
