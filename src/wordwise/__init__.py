"""wordwise: spaced-repetition review core for vocabulary study."""

from wordwise.consts import VERSION

__version__ = VERSION
