"""
sim: Simulation core
====================

Modules
-------
grid
    :class:`Grid` street topology, one-way lane graph and occupancy.
params
    Frozen :class:`GridConfig`, :class:`RsuConfig`, :class:`ObuConfig` records.
nodes
    :class:`OnBoardUnit` and :class:`RoadSideUnit` state records.
obu_manager
    :class:`ObuManager` population, fault placement and beaconing.
rsu_manager
    :class:`RsuManager` lattice placement and observation history.
detector
    Median/MAD thresholds, reputation classes and faulty-OBU flagging.
ledger
    CSV reputation ledger writer.
simulator
    :class:`Simulator` round loop and ground-truth scoring.
errors
    Exception hierarchy.
"""
