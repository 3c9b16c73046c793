"""Build a density from mass and volume, then round-trip it through both wire shapes."""

from unitwire.api import convert_density, density_from_mass_and_volume
from unitwire.codecs import SerializationSchema
from unitwire.config import ServiceConfig
from unitwire.service import build_service
from unitwire.units import OpenQuantity


def main() -> None:
    density = density_from_mass_and_volume("Kilogram", 1, "Liter", 1)
    print(convert_density(density, "g/ml"))

    for variant in SerializationSchema:
        service = build_service(ServiceConfig(serialization=variant))
        wire = service.encode(density)
        decoded = service.decode(wire, OpenQuantity)
        assert decoded.quantity == density
        print(variant.value, wire)


if __name__ == "__main__":
    main()
