"""
Catan dice engine.
Streak-taming samplers for two-dice sums (2..12), no web framework or database.
"""

DIE_FACES = 6

# Adaptive defaults: EMA rate, multiplicative-weights strength, floor mix.
DEFAULT_BETA = 0.4
DEFAULT_ETA = 20.0
DEFAULT_EPSILON = 0.01

# Total of the two-dice multiplicities; bag sizes must be a multiple of it.
BAG_UNIT = 36
