"""
C64 Register Defines
====================

Named addresses of the C64 I/O chips, ready to be added to an application
with ApplicationBuilder.include_vic2_defines() / include_sid_defines().

VIC-II (video) registers live at $D000-$D02E, SID (sound) registers at
$D400-$D41C. Several names share an address where the hardware register
has more than one common name (VIC2_BASE and VIC2_SPRITE_0_X).
"""

from typing import NamedTuple

from c64_assembler.memory import Address


class RegisterDefine(NamedTuple):
    """A hardware register: name, address and what it controls."""
    name: str
    address: Address
    description: str


# =============================================================================
# VIC-II
# =============================================================================

VIC2_DEFINES: tuple[RegisterDefine, ...] = (
    RegisterDefine("VIC2_BASE", 0xD000, "Base address for VIC registers"),
    *(
        define
        for sprite in range(8)
        for define in (
            RegisterDefine(
                f"VIC2_SPRITE_{sprite}_X", 0xD000 + sprite * 2,
                f"X coordinate of sprite {sprite}",
            ),
            RegisterDefine(
                f"VIC2_SPRITE_{sprite}_Y", 0xD001 + sprite * 2,
                f"Y coordinate of sprite {sprite}",
            ),
        )
    ),
    RegisterDefine("VIC2_SPRITE_X_MSB", 0xD010, "Most significant bit for sprite X coordinates"),
    RegisterDefine("VIC2_CONTROL_1", 0xD011, "Screen control register 1"),
    RegisterDefine("VIC2_RASTER", 0xD012, "Raster line position"),
    RegisterDefine("VIC2_LIGHT_PEN_X", 0xD013, "Light pen X position"),
    RegisterDefine("VIC2_LIGHT_PEN_Y", 0xD014, "Light pen Y position"),
    RegisterDefine("VIC2_SPRITE_ENABLE", 0xD015, "Enables sprites"),
    RegisterDefine("VIC2_CONTROL_2", 0xD016, "Screen control register 2"),
    RegisterDefine("VIC2_SPRITE_EXPAND_X", 0xD017, "Expands sprites horizontally"),
    RegisterDefine("VIC2_MEMORY_SETUP", 0xD018, "VIC memory setup"),
    RegisterDefine("VIC2_IRQ_STATUS", 0xD019, "Interrupt request status"),
    RegisterDefine("VIC2_IRQ_ENABLE", 0xD01A, "Interrupt request enable"),
    RegisterDefine("VIC2_SPRITE_PRIORITY", 0xD01B, "Sprite priority over background"),
    RegisterDefine("VIC2_SPRITE_MULTICOLOR", 0xD01C, "Enables multicolor mode for sprites"),
    RegisterDefine("VIC2_SPRITE_EXPAND_Y", 0xD01D, "Expands sprites vertically"),
    RegisterDefine("VIC2_SPRITE_COLLISION", 0xD01E, "Sprite-to-sprite collision detection"),
    RegisterDefine("VIC2_SPRITE_BG_COLLISION", 0xD01F, "Sprite-to-background collision detection"),
    RegisterDefine("VIC2_BORDER_COLOR", 0xD020, "Border color"),
    RegisterDefine("VIC2_BACKGROUND_COLOR", 0xD021, "Background color"),
    *(
        RegisterDefine(
            f"VIC2_BACKGROUND_COLOR_{index}", 0xD021 + index, f"Background color {index}"
        )
        for index in range(4)
    ),
    RegisterDefine("VIC2_SPRITE_MULTICOLOR_0", 0xD025, "Multicolor mode color 0 for sprites"),
    RegisterDefine("VIC2_SPRITE_MULTICOLOR_1", 0xD026, "Multicolor mode color 1 for sprites"),
    *(
        RegisterDefine(f"VIC2_SPRITE_{sprite}_COLOR", 0xD027 + sprite, f"Color of sprite {sprite}")
        for sprite in range(8)
    ),
)


# =============================================================================
# SID
# =============================================================================

def _voice_defines(voice: int) -> tuple[RegisterDefine, ...]:
    base = 0xD400 + (voice - 1) * 7
    prefix = f"SID_VOICE_{voice}"
    return (
        RegisterDefine(f"{prefix}_FREQ_LO", base, f"Voice {voice} frequency (low byte)"),
        RegisterDefine(f"{prefix}_FREQ_HI", base + 1, f"Voice {voice} frequency (high byte)"),
        RegisterDefine(f"{prefix}_PW_LO", base + 2, f"Voice {voice} pulse width (low byte)"),
        RegisterDefine(f"{prefix}_PW_HI", base + 3, f"Voice {voice} pulse width (high byte)"),
        RegisterDefine(f"{prefix}_CTRL", base + 4, f"Voice {voice} control register"),
        RegisterDefine(f"{prefix}_AD", base + 5, f"Voice {voice} attack/decay settings"),
        RegisterDefine(f"{prefix}_SR", base + 6, f"Voice {voice} sustain/release settings"),
    )


SID_DEFINES: tuple[RegisterDefine, ...] = (
    RegisterDefine("SID_BASE", 0xD400, "Base address for SID registers"),
    *_voice_defines(1),
    *_voice_defines(2),
    *_voice_defines(3),
    RegisterDefine("SID_FILTER_CUTOFF_LO", 0xD415, "Filter cutoff frequency (low byte)"),
    RegisterDefine("SID_FILTER_CUTOFF_HI", 0xD416, "Filter cutoff frequency (high byte)"),
    RegisterDefine("SID_FILTER_CTRL", 0xD417, "Filter control register"),
    RegisterDefine("SID_VOLUME_FC", 0xD418, "Volume and filter control"),
    RegisterDefine("SID_POT_X", 0xD419, "Paddle X position (read)"),
    RegisterDefine("SID_POT_Y", 0xD41A, "Paddle Y position (read)"),
    RegisterDefine("SID_OSC3_RANDOM", 0xD41B, "Oscillator 3 output/random number generator"),
    RegisterDefine("SID_ENV3", 0xD41C, "Envelope generator for voice 3 (read)"),
)
