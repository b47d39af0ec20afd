"""System representation: boundary, particle state and the simulation bundle."""

from .box import Box
from .state import ParticleState, maxwell_boltzmann_velocities
from .system import System

__all__ = ["Box", "ParticleState", "System", "maxwell_boltzmann_velocities"]
