"""Build step abstraction for config-driven stages."""

from abc import ABC, abstractmethod


class BuildStep(ABC):
    """Base class for custom build steps referenced by ``class_path``.

    Every step must:
    1. Have a name (for logging/debugging)
    2. Implement run() to execute its logic

    Steps may override check() to contribute to the stage precondition.
    A step is instantiated through ``from_config(dict)`` when the class
    provides it, otherwise with ``cls(**config)``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable step name for logging."""
        ...

    @abstractmethod
    def run(self) -> None:
        """Execute the step's main logic.

        Raises:
            Exception: Any exception is classified by the executor and
                handled according to the stage's retry policy.
        """
        ...

    def check(self) -> bool:
        """Return ``False`` when the step cannot run yet."""
        return True
