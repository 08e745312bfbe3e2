"""Material factors written alongside the mesh (no shading logic)."""

from dataclasses import dataclass
from typing import Tuple

import pygltflib


def hex_to_rgba(value: str, alpha: float = 1.0) -> Tuple[float, float, float, float]:
    value = value.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected #rrggbb colour, got {value!r}")
    r, g, b = (int(value[i:i + 2], 16) / 255.0 for i in (0, 2, 4))
    return (r, g, b, alpha)


@dataclass(frozen=True, slots=True)
class AvatarMaterial:
    name: str = "CyberStreetwear"
    base_color: str = "#2a2a3e"
    emissive: str = "#00ffff"
    emissive_intensity: float = 0.2
    metallic: float = 0.3
    roughness: float = 0.7
    double_sided: bool = True

    def to_gltf(self) -> pygltflib.Material:
        emissive = [round(c * self.emissive_intensity, 6) for c in hex_to_rgba(self.emissive)[:3]]
        return pygltflib.Material(
            name=self.name,
            pbrMetallicRoughness=pygltflib.PbrMetallicRoughness(
                baseColorFactor=[round(c, 6) for c in hex_to_rgba(self.base_color)],
                metallicFactor=self.metallic,
                roughnessFactor=self.roughness,
            ),
            emissiveFactor=emissive,
            doubleSided=self.double_sided,
        )


CYBER_MATERIAL = AvatarMaterial()
