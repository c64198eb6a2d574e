"""Load build configuration from HOCON with dataconf.

Validation happens in the dataclasses' ``__post_init__``, so a file that
parses but describes an impossible build fails here rather than at run
time.
"""

from typing import TypeVar, cast

import dataconf

T = TypeVar("T")


def load_from_file(path: str, config_class: type[T]) -> T:
    """Parse the HOCON file at *path* into *config_class*.

    Example:
        >>> build = load_from_file("examples/build.conf", BuildConfig)
    """
    return cast(T, dataconf.file(path, config_class))


def load_from_string(hocon_str: str, config_class: type[T]) -> T:
    """Parse inline HOCON text into *config_class*."""
    return cast(T, dataconf.string(hocon_str, config_class))


def load_from_env(prefix: str, config_class: type[T]) -> T:
    """Build *config_class* from environment variables starting with *prefix*.

    Nested fields are joined with underscores, e.g. ``FFU_LOGGING_LEVEL=DEBUG``
    for ``prefix="FFU_"``.
    """
    return cast(T, dataconf.env(prefix, config_class))
