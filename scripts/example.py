"""
example.py - Course Autopilot Example for Otter-USVsim

Otter USV with a constant surge force and a PID course autopilot. The course
setpoint steps to 20 degrees at start and back to 0 degrees after 20 seconds.
A 5-state EKF estimates speed, course, and course rate from position fixes
arriving every 10 samples. Uses the default vehicle configuration: 25 kg
payload, initial surge velocity 1 m/s.
"""

import otterusvsim as ot

#------------------------------------------------------------------------------#
#    Set Up Simulation                                                         #
#------------------------------------------------------------------------------#

sim = ot.simulator.Simulator(name='Example')   # create a simulation object
sim.sampleTime = 0.02                          # 50 Hz
sim.N = 2000                                   # 40 seconds

#------------------------------------------------------------------------------#
#    Course Setpoints                                                          #
#------------------------------------------------------------------------------#

sim.schedule = ot.guidance.CourseSchedule(     # piecewise-constant setpoint
    steps=[(0, 20),                            # 20 deg from t = 0 s
           (20, 0)],                           # 0 deg from t = 20 s
)

#------------------------------------------------------------------------------#
#    Vehicle                                                                   #
#------------------------------------------------------------------------------#

usv = ot.vehicles.Otter()                      # Otter USV
usv.loadPayload(mp=25, rp=[0, 0, -0.35])       # payload mass and location
usv.loadCourseAutopilot(                       # PID pole placement
    T=1, m=41.4,                               # Nomoto model
    wn=1.5, zeta=1,                            # closed-loop poles
    wn_d=0.5, zeta_d=1,                        # reference model
    tau_X=100,                                 # constant surge force (N)
)
usv.loadEKF(Z=10)                              # position fix every 10 samples
sim.vehicle = usv                              # load vehicle in simulator

#------------------------------------------------------------------------------#
#    Run Simulation                                                            #
#------------------------------------------------------------------------------#

sim.run()                                      # start the simulation
