"""
Foodweb Simulation

A discrete-time, grid-based agent simulation of a trophic food web.
Plants fix free carbon, herbivores eat plants, carnivores eat other animals,
and every organism reproduces by budding once it is large enough.

Architecture: the simulation owns the cells; cells own their organisms.
Carbon is conserved across free pools and living biomass.
"""

__version__ = "0.1.0"
