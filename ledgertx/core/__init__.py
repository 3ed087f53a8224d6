"""
Building blocks shared by every transaction object: wire primitives,
identifier length configuration, errors and randomness.
"""

from .config import IdLengthConfig, DEFAULT_ID_LENGTH, DOMAIN_ID_LENGTH, fit_id, id_length_config_from_env
from .errors import *  # noqa: F401,F403
from .errors import __all__ as _error_names

__all__ = [
    "IdLengthConfig",
    "DEFAULT_ID_LENGTH",
    "DOMAIN_ID_LENGTH",
    "fit_id",
    "id_length_config_from_env",
] + list(_error_names)
