"""
Setups and the propagation engine.

A Setup is an ordered, fixed sequence of components. `propagation` applies
them one after the other to a single wave and renormalises the result so
that its energy equals `wave.norm`.

The renormalisation hides bookkeeping mistakes of the individual components,
so check the energy after each component when testing one.

If a component fails, the wave keeps the state produced by the components
that ran before it.
"""

import logging

from .components import COMPONENTS
from .exceptions import ConfigurationError
from .waves import Wave

__all__ = ["Setup", "propagation"]

logger = logging.getLogger(__name__)


class Setup:
    """Ordered sequence of components, executed in the given order."""

    def __init__(self, *components):
        for i, component in enumerate(components):
            if not isinstance(component, COMPONENTS):
                raise ConfigurationError(
                    f"Setup entry {i} is not a component: {component!r}"
                )
        self._components = tuple(components)

    @property
    def components(self):
        return self._components

    def __iter__(self):
        return iter(self._components)

    def __len__(self):
        return len(self._components)

    def __getitem__(self, index):
        return self._components[index]

    def __repr__(self):
        return f"Setup({', '.join(repr(c) for c in self._components)})"


def propagation(wave, setup):
    """
    Propagate `wave` through `setup` in place and renormalise it.

    Returns the wave for convenience.
    """
    if not isinstance(wave, Wave):
        raise ConfigurationError(f"Expected a Wave, got {type(wave).__name__}")
    if not isinstance(setup, Setup):
        raise ConfigurationError(f"Expected a Setup, got {type(setup).__name__}")

    for i, component in enumerate(setup):
        logger.info("Calculate %s (%d/%d)", type(component).__name__, i + 1, len(setup))
        component.apply(wave)
        logger.debug("Energy %.6e, norm %.6f", wave.energy, wave.norm)

    wave.normalize()
    return wave
