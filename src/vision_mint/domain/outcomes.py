"""Outcome value objects and the tables they are drawn from."""

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Spot:
    """Photo location; weight drives the rarity axis."""

    id: str
    name: str
    rarity: str
    weight: int = 1


@dataclass(frozen=True)
class Preset:
    """World atmosphere parameters."""

    id: str
    name: str
    fog: str
    light_color: str
    light_intensity: float
    sky_tint: str


@dataclass(frozen=True)
class Pose:
    """Character pose, mapped to an animation clip."""

    id: str
    name: str
    anim_clip: str


@dataclass(frozen=True)
class Aura:
    """Re-rollable rarity trait."""

    id: str
    name: str
    tier: int
    weight: int
    color: str
    overlay: str
    description: str
    has_distortion: bool = False


@dataclass(frozen=True)
class Outcome:
    """One generated vision. Every field is a member of its table."""

    spot: Spot
    preset: Preset
    pose: Pose
    aura: Aura

    def with_aura(self, aura: Aura) -> "Outcome":
        """Return a copy with only the aura replaced."""
        return Outcome(spot=self.spot, preset=self.preset, pose=self.pose, aura=aura)

    def to_dict(self) -> dict[str, object]:
        return {
            "spot": _camel(asdict(self.spot)),
            "preset": _camel(asdict(self.preset)),
            "pose": _camel(asdict(self.pose)),
            "aura": aura_to_dict(self.aura),
        }


@dataclass(frozen=True)
class OutcomeTables:
    """The configured tables an outcome is selected from.

    Table order is part of the selection contract: reordering entries changes
    which outcome a stored seed maps to.
    """

    spots: tuple[Spot, ...]
    presets: tuple[Preset, ...]
    poses: tuple[Pose, ...]
    auras: tuple[Aura, ...]

    def contains(self, outcome: Outcome) -> bool:
        """Return true when every field of the outcome belongs to these tables."""
        return (
            outcome.spot in self.spots
            and outcome.preset in self.presets
            and outcome.pose in self.poses
            and outcome.aura in self.auras
        )

    def find_spot(self, spot_id: str) -> Spot | None:
        return next((spot for spot in self.spots if spot.id == spot_id), None)

    def find_preset(self, preset_id: str) -> Preset | None:
        return next((preset for preset in self.presets if preset.id == preset_id), None)

    def find_pose(self, pose_id: str) -> Pose | None:
        return next((pose for pose in self.poses if pose.id == pose_id), None)

    def find_aura(self, aura_id: str) -> Aura | None:
        return next((aura for aura in self.auras if aura.id == aura_id), None)


def aura_to_dict(aura: Aura) -> dict[str, object]:
    return _camel(asdict(aura))


def _camel(data: dict[str, object]) -> dict[str, object]:
    """Convert snake_case keys to the camelCase used on the wire."""
    converted: dict[str, object] = {}
    for key, value in data.items():
        head, *rest = key.split("_")
        converted[head + "".join(part.title() for part in rest)] = value
    return converted
