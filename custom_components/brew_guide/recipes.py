"""Built-in equipment and recipe catalog, merged with user-defined methods."""

import logging

from .exceptions import EquipmentNotFoundError, MethodNotFoundError
from .types import Equipment, Method, MethodParams, Stage

_LOGGER = logging.getLogger(__name__)

EQUIPMENT: tuple[Equipment, ...] = (
    Equipment(
        id="V60",
        name="V60",
        description=[
            "Classic 60 degree cone: fast flow and clearly layered flavor",
            "Spiral ribs extract evenly, showing bright acidity",
        ],
    ),
    Equipment(
        id="CleverDripper",
        name="Clever Dripper",
        description=[
            "Immersion brewer with a paper filter and a shut-off valve",
            "Steep time is controllable, forgiving for any roast level",
        ],
    ),
    Equipment(
        id="Espresso",
        name="Espresso Machine",
        description=["Pressure extraction timed from the first drop"],
    ),
)


def _circle(
    time: float, pour_time: float, label: str, water: str, detail: str, **extra
) -> Stage:
    return Stage(
        time=time,
        pour_time=pour_time,
        label=label,
        water=water,
        detail=detail,
        pour_type="circle",
        **extra,
    )


BUILTIN_METHODS: dict[str, list[Method]] = {
    "V60": [
        Method(
            name="Single pour (stable extraction)",
            params=MethodParams(
                coffee="15g",
                water="225g",
                ratio="1:15",
                grind_size="Medium-fine",
                temp="92°C",
                roast_level="Medium-light",
                stages=[
                    _circle(
                        25,
                        10,
                        "Bloom",
                        "30g",
                        "Circle outwards from the center to wet evenly",
                    ),
                    _circle(
                        120,
                        65,
                        "Circle pour",
                        "225g",
                        "Slow spiral from the center outwards",
                    ),
                ],
            ),
        ),
        Method(
            name="Three pours (versatile)",
            params=MethodParams(
                coffee="15g",
                water="225g",
                ratio="1:15",
                grind_size="Medium-fine",
                temp="92°C",
                roast_level="Medium-light",
                stages=[
                    _circle(
                        25,
                        10,
                        "Bloom",
                        "30g",
                        "Circle outwards from the center to wet evenly",
                    ),
                    _circle(
                        50,
                        25,
                        "Circle pour",
                        "140g",
                        "Slow spiral from the center outwards",
                    ),
                    Stage(
                        time=120,
                        pour_time=40,
                        label="Center pour",
                        water="225g",
                        detail="Pour at the center to lower extraction",
                        pour_type="center",
                    ),
                ],
            ),
        ),
        Method(
            name="Kasuya 4:6 (sweet and balanced)",
            params=MethodParams(
                coffee="20g",
                water="300g",
                ratio="1:15",
                grind_size="Medium-coarse",
                temp="96°C",
                video_url="https://youtu.be/OFLaCs99lWY",
                roast_level="Medium-light",
                stages=[
                    _circle(
                        45,
                        10,
                        "Circle pour (1/2)",
                        "50g",
                        "Sweetness control, small circles at the center",
                    ),
                    _circle(
                        90,
                        7,
                        "Circle pour (2/2)",
                        "120g",
                        "Sweetness control, small circles at the center",
                    ),
                    _circle(
                        130,
                        4,
                        "Circle pour (1/3)",
                        "180g",
                        "Strength control, spiral outwards",
                    ),
                    _circle(
                        165,
                        4,
                        "Circle pour (2/3)",
                        "240g",
                        "Strength control, spiral outwards",
                    ),
                    _circle(
                        210,
                        4,
                        "Circle pour (3/3)",
                        "300g",
                        "Strength control, spiral outwards",
                    ),
                ],
            ),
        ),
        Method(
            name="Iced pour-over (crisp and bright)",
            params=MethodParams(
                coffee="20g",
                water="200g",
                ratio="1:10",
                grind_size="Fine",
                temp="96°C",
                roast_level="Medium-light",
                stages=[
                    _circle(
                        40,
                        10,
                        "Circle pour",
                        "40g",
                        "Put 50g of ice in the server first, then pour in circles",
                    ),
                    _circle(70, 10, "Circle pour", "120g", "Keep pouring in circles"),
                    _circle(
                        120,
                        10,
                        "Circle pour",
                        "200g",
                        "Pour to the rim, then fill the cup with fresh ice",
                    ),
                ],
            ),
        ),
    ],
    "CleverDripper": [
        Method(
            name="All-round method",
            params=MethodParams(
                coffee="20g",
                water="300g",
                ratio="1:15",
                grind_size="Medium-coarse",
                temp="90 - 75°C",
                roast_level="Medium-light",
                stages=[
                    _circle(
                        40,
                        20,
                        "Circle pour [valve closed]",
                        "50g",
                        "Close the valve and pour in circles",
                        valve_status="closed",
                    ),
                    _circle(
                        90,
                        15,
                        "Circle pour [valve open]",
                        "120g",
                        "Open the valve and pour in circles",
                        valve_status="open",
                    ),
                    _circle(
                        130,
                        15,
                        "Circle pour [valve open]",
                        "200g",
                        "Keep the valve open and pour in circles",
                        valve_status="open",
                    ),
                    _circle(
                        165,
                        15,
                        "Cool circle pour [valve closed]",
                        "300g",
                        "Close the valve, add cold water and pour at 70-80°C",
                        valve_status="closed",
                    ),
                    Stage(
                        time=210,
                        pour_time=0,
                        label="Drain [valve open]",
                        water="300g",
                        detail="Open the valve and wait for the drawdown",
                        pour_type="center",
                        valve_status="open",
                    ),
                ],
            ),
        ),
    ],
    "Espresso": [
        Method(
            name="Classic double shot",
            params=MethodParams(
                coffee="18g",
                water="36g",
                ratio="1:2",
                grind_size="Espresso",
                temp="93°C",
                stages=[
                    Stage(
                        time=28,
                        label="Extraction",
                        water="36g",
                        detail="Stop when the cup reaches the target yield",
                        pour_type="extraction",
                        timing_role="extraction",
                    ),
                    Stage(
                        time=0,
                        label="Milk",
                        water="120g",
                        detail="Steamed milk for a flat white",
                        pour_type="beverage",
                        timing_role="beverage",
                    ),
                ],
            ),
        ),
    ],
}


class RecipeSource:
    """Lists methods for an equipment: custom methods first, then built-ins."""

    def __init__(
        self,
        custom_methods: dict[str, list[Method]] | None = None,
        equipment: tuple[Equipment, ...] = EQUIPMENT,
        builtin_methods: dict[str, list[Method]] | None = None,
    ) -> None:
        """Initialize the recipe source."""
        self.equipment = equipment
        self.custom_methods = custom_methods or {}
        self.builtin_methods = (
            BUILTIN_METHODS if builtin_methods is None else builtin_methods
        )

    @property
    def equipment_names(self) -> dict[str, str]:
        return {item.id: item.name for item in self.equipment}

    def get_equipment(self, equipment_id_or_name: str) -> Equipment:
        """Find equipment by id, falling back to its display name.

        Raises:
            EquipmentNotFoundError: If nothing matches.
        """
        for item in self.equipment:
            if equipment_id_or_name in (item.id, item.name):
                return item
        raise EquipmentNotFoundError(f"Unknown equipment: {equipment_id_or_name}")

    def methods_for(self, equipment_id: str) -> list[Method]:
        return [
            *self.custom_methods.get(equipment_id, []),
            *self.builtin_methods.get(equipment_id, []),
        ]

    def find_method(self, equipment_id: str, name_or_id: str) -> Method:
        """Find a method for ``equipment_id`` by id or exact name.

        Raises:
            MethodNotFoundError: If no method matches.
        """
        for method in self.methods_for(equipment_id):
            if name_or_id in (method.id, method.name):
                return method
        raise MethodNotFoundError(
            f"No method {name_or_id!r} for equipment {equipment_id}"
        )
