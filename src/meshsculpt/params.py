"""Sculpting parameters and their sanitization.

A :class:`NoiseParameters` value is supplied on every recompute. It is an immutable
record: the pipeline never mutates it, and :meth:`NoiseParameters.sanitized` returns
a new record with every divisor floored and every magnitude made non-negative, so
that extreme slider values degrade gracefully instead of raising.
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]

### Sanitization limits
MIN_FREQUENCY = 1e-4
MIN_AXIS_SCALE = 0.1
MAX_SUBDIVISION_LEVEL = 3
RD_ITERATION_RANGE = (1, 250)
RD_RATE_RANGE = (0.0, 0.1)
RD_DIFFUSION_RANGE = (0.0, 0.25)
SEED_MODULUS = 2**63


class NoiseKind(str, Enum):
    """Closed set of noise kernels the displacement engine can sample."""

    NONE = "none"
    SIMPLEX = "simplex"
    RIDGE = "ridge"
    WARPED = "warped"
    WORLEY = "worley"
    CURL = "curl"
    ALLIGATOR = "alligator"
    REACTION_DIFFUSION = "reaction_diffusion"

    @classmethod
    def parse(cls, value: "str | NoiseKind") -> "NoiseKind":
        """Parse a kind name, accepting ``-`` and ``_`` interchangeably.

        Example:
            >>> NoiseKind.parse("reaction-diffusion")
            <NoiseKind.REACTION_DIFFUSION: 'reaction_diffusion'>
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(
                f"Unknown noise kind {value!r}. Must be one of: "
                f"{[k.value for k in cls]}"
            ) from None


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))


def _vec3(value: Any, name: str) -> Vec3:
    values = tuple(float(v) for v in value)
    if len(values) != 3:
        raise ValueError(f"`{name}` must have exactly 3 components, got {values=}")
    return values  # type: ignore[return-value]


@dataclass(frozen=True)
class NoiseParameters:
    """Every tunable input of one displacement recompute.

    Defaults reproduce the sculpting tool's startup state.
    """

    seed: int = 4683
    amplitude: float = 3.3
    frequency: float = 0.35
    roughness: float = 0.15
    warp: float = 0.25
    ridge: float = 0.3
    worley_jitter: float = 0.75
    worley_blend: float = 0.4
    curl_scale: float = 1.0
    curl_strength: float = 1.2
    alligator_bite: float = 0.8
    alligator_plateau: float = 0.4
    rd_feed: float = 0.037
    rd_kill: float = 0.06
    rd_diffusion_u: float = 0.16
    rd_diffusion_v: float = 0.08
    rd_iterations: int = 80
    offset: Vec3 = (0.0, 0.0, 0.0)
    scale: Vec3 = (1.0, 1.0, 1.0)
    rotation: Vec3 = (0.0, 0.0, 0.0)  # degrees, applied about X then Y then Z
    falloff: float = 1.75
    falloff_center: Vec3 = (0.0, 0.0, -16.0)
    clamp_outside: float = 0.6
    clamp_inside: float = 0.0
    smoothing: float = 0.0
    subdivision_level: int = 1
    noise_kind: NoiseKind = field(default=NoiseKind.SIMPLEX)

    def __post_init__(self):
        ### Coerce loosely-typed inputs (JSON lists, kind strings)
        object.__setattr__(self, "noise_kind", NoiseKind.parse(self.noise_kind))
        for name in ("offset", "scale", "rotation", "falloff_center"):
            object.__setattr__(self, name, _vec3(getattr(self, name), name))

    def replace(self, **changes) -> "NoiseParameters":
        """Returns a copy with ``changes`` applied."""
        return replace(self, **changes)

    def sanitized(self) -> "NoiseParameters":
        """Returns a copy that is safe to feed to the pipeline.

        Divisor-type fields are floored to a small positive minimum, integer
        fields are rounded and clamped, and magnitudes are floored at zero.
        The seed is wrapped into the non-negative range a ``torch.Generator``
        accepts.
        Never raises.
        """
        return replace(
            self,
            seed=int(round(self.seed)) % SEED_MODULUS,
            amplitude=max(0.0, self.amplitude),
            frequency=max(MIN_FREQUENCY, self.frequency),
            roughness=max(0.0, self.roughness),
            warp=max(0.0, self.warp),
            ridge=max(0.0, self.ridge),
            worley_jitter=_clamp(self.worley_jitter, 0.0, 1.0),
            worley_blend=_clamp(self.worley_blend, 0.0, 1.0),
            curl_scale=max(MIN_FREQUENCY, self.curl_scale),
            curl_strength=max(0.0, self.curl_strength),
            alligator_bite=max(0.0, self.alligator_bite),
            alligator_plateau=_clamp(self.alligator_plateau, 0.0, 1.0),
            rd_feed=_clamp(self.rd_feed, *RD_RATE_RANGE),
            rd_kill=_clamp(self.rd_kill, *RD_RATE_RANGE),
            rd_diffusion_u=_clamp(self.rd_diffusion_u, *RD_DIFFUSION_RANGE),
            rd_diffusion_v=_clamp(self.rd_diffusion_v, *RD_DIFFUSION_RANGE),
            rd_iterations=int(_clamp(round(self.rd_iterations), *RD_ITERATION_RANGE)),
            scale=tuple(max(MIN_AXIS_SCALE, s) for s in self.scale),
            falloff=max(0.0, self.falloff),
            clamp_outside=max(0.0, self.clamp_outside),
            clamp_inside=max(0.0, self.clamp_inside),
            smoothing=_clamp(self.smoothing, 0.0, 1.0),
            subdivision_level=int(
                _clamp(round(self.subdivision_level), 0, MAX_SUBDIVISION_LEVEL)
            ),
        )

    @property
    def reaction_diffusion_key(self) -> tuple:
        """The parameter subset a reaction-diffusion field depends on."""
        return (
            self.seed,
            self.rd_feed,
            self.rd_kill,
            self.rd_diffusion_u,
            self.rd_diffusion_v,
            self.rd_iterations,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["noise_kind"] = self.noise_kind.value
        for name in ("offset", "scale", "rotation", "falloff_center"):
            data[name] = list(data[name])
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NoiseParameters":
        """Build parameters from a plain mapping.

        Missing keys take their defaults. The sculpting tool's camelCase preset keys
        (``noiseType``, ``falloffCenterX``, ``clamp``...) are accepted as aliases.
        Unknown keys raise ``ValueError``.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        center = list(cls.falloff_center)
        center_given = False

        for key, value in data.items():
            if key in known:
                kwargs[key] = value
            elif key in _CAMEL_ALIASES:
                kwargs[_CAMEL_ALIASES[key]] = value
            elif key in _CENTER_AXES:
                center[_CENTER_AXES[key]] = float(value)
                center_given = True
            elif key == "resolution":
                kwargs["subdivision_level"] = value
            else:
                raise ValueError(f"Unknown parameter {key!r}")

        if center_given and "falloff_center" not in kwargs:
            kwargs["falloff_center"] = tuple(center)
        return cls(**kwargs)


_CAMEL_ALIASES = {
    "noiseType": "noise_kind",
    "clamp": "clamp_outside",
    "clampInside": "clamp_inside",
    "worleyJitter": "worley_jitter",
    "worleyBlend": "worley_blend",
    "curlScale": "curl_scale",
    "curlStrength": "curl_strength",
    "alligatorBite": "alligator_bite",
    "alligatorPlateau": "alligator_plateau",
}

_CENTER_AXES = {"falloffCenterX": 0, "falloffCenterY": 1, "falloffCenterZ": 2}


def load_parameters(path: str | Path) -> NoiseParameters:
    """Read parameters from a JSON file."""
    path = Path(path)
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    logger.info("Loaded sculpting parameters from %s", path)
    return NoiseParameters.from_dict(data)


def save_parameters(params: NoiseParameters, path: str | Path) -> None:
    """Write parameters to a JSON file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(params.to_dict(), f, indent=2)
    logger.info("Saved sculpting parameters to %s", path)

