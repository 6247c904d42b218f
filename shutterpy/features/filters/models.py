from dataclasses import dataclass

IDENTITY = 100.0


@dataclass(frozen=True)
class FilterConfig:
    min_brightness: float = 50.0
    max_brightness: float = 150.0
    min_contrast: float = 50.0
    max_contrast: float = 150.0
    min_saturation: float = 0.0
    max_saturation: float = 200.0


@dataclass(frozen=True)
class FilterParameters:
    """
    Pending filter scalars, each a percentage multiplier (100 = unchanged).
    """

    brightness: float = IDENTITY
    contrast: float = IDENTITY
    saturation: float = IDENTITY

    @property
    def is_identity(self) -> bool:
        return (
            self.brightness == IDENTITY
            and self.contrast == IDENTITY
            and self.saturation == IDENTITY
        )
