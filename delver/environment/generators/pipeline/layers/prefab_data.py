"""Hand-drawn level pieces.

Glyphs:
    ' ' floor          '#' wall           '≈' deep water
    '@' player start   '>' down stairs    '^' bear trap
    'g' goblin         'o' orc            'O' orc leader
    'e' dark elf       '%' rations        '!' health potion
    '☼' watch fire

Templates open and close with a newline that is not part of the drawing.
Short rows are padded (with wall for levels, floor for everything else) and
long rows are cut off.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class HorizontalPlacement(Enum):
    LEFT = auto()
    CENTER = auto()
    RIGHT = auto()


class VerticalPlacement(Enum):
    TOP = auto()
    CENTER = auto()
    BOTTOM = auto()


def _rows(template: str, width: int, height: int, fill: str = " ") -> list[str]:
    lines = template.split("\n")[1:-1]
    rows = [line[:width].ljust(width, fill) for line in lines[:height]]
    rows.extend(fill * width for _ in range(height - len(rows)))
    return rows


@dataclass(frozen=True)
class PrefabLevel:
    """A complete level, centred on the map when stamped."""

    template: str
    width: int
    height: int

    def rows(self) -> list[str]:
        return _rows(self.template, self.width, self.height, fill="#")


@dataclass(frozen=True)
class PrefabSection:
    """A patch stamped at a fixed anchor on an existing map."""

    template: str
    width: int
    height: int
    placement: tuple[HorizontalPlacement, VerticalPlacement]

    def rows(self) -> list[str]:
        return _rows(self.template, self.width, self.height)


@dataclass(frozen=True)
class PrefabRoom:
    """A small vault, eligible between ``first_depth`` and ``last_depth``.

    The outer ring of every vault is open floor, so stamping one never cuts
    the floor around it in two.
    """

    template: str
    width: int
    height: int
    first_depth: int
    last_depth: int

    def rows(self) -> list[str]:
        return _rows(self.template, self.width, self.height)


# =============================================================================
# LEVELS
# =============================================================================

ORC_WARREN = PrefabLevel(
    template="""
########################################
#       #        ≈≈≈       #          ##
#  g    #   %    ≈≈≈   o   #    !      #
#       ###  #####≈##########   ####   #
#            #         #        #  #   #
####   ##### #   ^^^   #  e     #  #   #
#  #   #   # #         #        #      #
#  #   # ! #     ☼     ####  ####  #####
#      #   # #         #           #   #
#  ##### ### #   ^^^   #   ###    ##   #
#            #####  ####   #O#     #   #
#   o                      # #         #
#######  ########  ######  # #  ####  ##
#     #  #      #  #    #       #      #
#  @  #  #  g   #  # %  #  ##   #  >   #
#     #  #         #    #  ##   #      #
#               #       #       ####  ##
#     #  #####  ####  ###  o           #
#     #                                #
########################################
""",
    width=40,
    height=20,
)

# =============================================================================
# SECTIONS
# =============================================================================

UNDERGROUND_FORT = PrefabSection(
    template="""
     ##########
     #        #
  ####  g  #  #
  ^     #  #  #
  ####  #  #  #
     #  #### e#
     #     #  #
  ####  g  ####
  ^        ☼  #
  ####  #  #  #
     #  #  O  #
     #  #  #  #
  ####  #### g#
  ^           #
  ####  #  ####
     #  %  #
     ##########
""",
    width=15,
    height=17,
    placement=(HorizontalPlacement.RIGHT, VerticalPlacement.TOP),
)

ORC_CAMP = PrefabSection(
    template="""

 ≈≈≈≈o≈≈≈≈≈
 ≈☼      ☼≈
 ≈ g      ≈
 ≈        ≈
 ≈    g   ≈
 o   O    o
 ≈        ≈
 ≈ g      ≈
 ≈    g   ≈
 ≈☼      ☼≈
 ≈≈≈≈o≈≈≈≈≈

""",
    width=12,
    height=13,
    placement=(HorizontalPlacement.CENTER, VerticalPlacement.CENTER),
)

# =============================================================================
# VAULTS
# =============================================================================

TOTALLY_NOT_A_TRAP = PrefabRoom(
    template="""

 ^^^
 ^!^
 ^^^

""",
    width=5,
    height=5,
    first_depth=0,
    last_depth=100,
)

CHECKERBOARD = PrefabRoom(
    template="""

 g#%#
 #!#
 ^# ^

""",
    width=6,
    height=5,
    first_depth=0,
    last_depth=100,
)

SILLY_SMILE = PrefabRoom(
    template="""

 ^  ^
  #

 ###

""",
    width=6,
    height=6,
    first_depth=0,
    last_depth=100,
)

DARK_ELF_SHRINE = PrefabRoom(
    template="""

 #   #
   e
  ☼!☼
   e
 #   #

""",
    width=7,
    height=7,
    first_depth=8,
    last_depth=100,
)

VAULTS: tuple[PrefabRoom, ...] = (
    TOTALLY_NOT_A_TRAP,
    CHECKERBOARD,
    SILLY_SMILE,
    DARK_ELF_SHRINE,
)
