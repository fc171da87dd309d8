"""Default outcome tables."""

from vision_mint.domain.outcomes import Aura, OutcomeTables, Pose, Preset, Spot

# Equal spot weights make the weighted walk identical to byte % len(SPOTS).
SPOTS: tuple[Spot, ...] = (
    Spot(id="grave_gate", name="Grave Gate", rarity="Common"),
    Spot(id="cathedral_ruins", name="Cathedral Ruins", rarity="Uncommon"),
    Spot(id="blood_orchard", name="Blood Orchard", rarity="Rare"),
    Spot(id="black_sun", name="Black Sun Altar", rarity="Legendary"),
)

PRESETS: tuple[Preset, ...] = (
    Preset(
        id="ashen_dusk",
        name="Ashen Dusk",
        fog="#2a1a2e",
        light_color="#f9c7fb",
        light_intensity=1.0,
        sky_tint="#1a0a1e",
    ),
    Preset(
        id="blood_dawn",
        name="Blood Dawn",
        fog="#3a0a0a",
        light_color="#ff6644",
        light_intensity=1.2,
        sky_tint="#2a0505",
    ),
    Preset(
        id="ghost_fog",
        name="Ghost Fog",
        fog="#1a2a1a",
        light_color="#aaffcc",
        light_intensity=0.8,
        sky_tint="#0a1a0a",
    ),
    Preset(
        id="void_night",
        name="Void Night",
        fog="#0a0a1a",
        light_color="#6644ff",
        light_intensity=0.6,
        sky_tint="#050510",
    ),
)

POSES: tuple[Pose, ...] = (
    Pose(id="prophet_point", name="Prophet Point", anim_clip="pose_01"),
    Pose(id="grave_salute", name="Grave Salute", anim_clip="pose_02"),
    Pose(id="skull_hold", name="Skull Hold", anim_clip="pose_03"),
    Pose(id="peace_sign", name="Peace Sign", anim_clip="pose_04"),
    Pose(id="arms_crossed", name="Arms Crossed", anim_clip="pose_05"),
)

# Weights sum to 100. Order decides which tier absorbs the 256 % 100 remainder.
AURA_TIERS: tuple[Aura, ...] = (
    Aura(
        id="faded",
        name="Faded",
        tier=1,
        weight=65,
        color="#888888",
        overlay="aura_faded.png",
        description="A dim, barely-there presence",
    ),
    Aura(
        id="marked",
        name="Marked",
        tier=2,
        weight=20,
        color="#6644cc",
        overlay="aura_marked.png",
        description="Something stirs beneath the surface",
    ),
    Aura(
        id="chosen",
        name="Chosen",
        tier=3,
        weight=10,
        color="#00ccff",
        overlay="aura_chosen.png",
        description="The graveyard recognizes you",
    ),
    Aura(
        id="blessed",
        name="Blessed",
        tier=4,
        weight=4,
        color="#ffaa00",
        overlay="aura_blessed.png",
        description="Touched by forces beyond the veil",
    ),
    Aura(
        id="black_sun",
        name="Black Sun",
        tier=5,
        weight=1,
        color="#ff0033",
        overlay="aura_black_sun.png",
        description="THE BLACK SUN RISES",
        has_distortion=True,
    ),
)

DEFAULT_TABLES = OutcomeTables(
    spots=SPOTS,
    presets=PRESETS,
    poses=POSES,
    auras=AURA_TIERS,
)
