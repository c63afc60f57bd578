"""anamnesis: SM-2 family spaced-repetition scheduling for single cards."""

from anamnesis.consts import VERSION

__version__ = VERSION
