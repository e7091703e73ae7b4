"""
Addresses and the Address Book
==============================

The 6502 has a 16-bit address space. Addresses below $0100 form the zero
page, which most instructions can reach with a one byte operand.

Instructions never carry numeric addresses. They refer to memory by name
through an AddressReference, which is resolved against the AddressBook:

    address = address_book[reference.name] + reference.offset

The offset is applied after lookup and is never stored in the book.

Lifecycle of the book:
    1. created from the application's defines
    2. extended with label addresses by the layout resolver
    3. frozen; validator and generators only read it
"""

from dataclasses import dataclass
from typing import Iterator, Optional

from c64_assembler.errors import InternalCompilerError, UnknownAddressNameError

# 16-bit unsigned value
Address = int

ZEROPAGE_LIMIT: Address = 0x0100


def is_zeropage(address: Address) -> bool:
    """Is the address reachable with a one byte operand ($0000-$00FF)."""
    return address < ZEROPAGE_LIMIT


def low(address: Address) -> int:
    """Low byte of the address."""
    return address & 0xFF


def high(address: Address) -> int:
    """High byte of the address."""
    return (address >> 8) & 0xFF


@dataclass(frozen=True)
class AddressReference:
    """
    Symbolic operand: address name plus a constant offset.

    Attributes:
        name: Name of a define or label
        offset: Added to the looked-up address (e.g. VIC2_SPRITE_0_X + 1)
    """
    name: str
    offset: int = 0

    def __str__(self) -> str:
        if self.offset:
            return f"{self.name}+{self.offset}"
        return self.name


class AddressBook:
    """
    Mapping from address name to numeric address.

    Writable until freeze() is called. The layout resolver owns the only
    writable instance; everything downstream receives the frozen book.
    """

    def __init__(self, entries: Optional[dict[str, Address]] = None):
        self._entries: dict[str, Address] = dict(entries or {})
        self._frozen = False

    # =========================================================================
    # Mutation (layout only)
    # =========================================================================

    def define(self, name: str, address: Address) -> None:
        """Record `name -> address`. A later definition replaces an earlier one."""
        if self._frozen:
            raise InternalCompilerError(
                f"address book is frozen; cannot define '{name}'"
            )
        self._entries[name] = address & 0xFFFF

    def freeze(self) -> "AddressBook":
        """Make the book read-only and return it."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> "AddressBook":
        """Writable copy of the book."""
        return AddressBook(self._entries)

    # =========================================================================
    # Lookup
    # =========================================================================

    def lookup(self, name: str) -> Address:
        """
        Return the address stored for a name.

        Raises:
            UnknownAddressNameError: If the name is not in the book
        """
        try:
            return self._entries[name]
        except KeyError:
            raise UnknownAddressNameError(name) from None

    def resolve(self, reference: AddressReference) -> Address:
        """Resolve a reference: lookup then add the offset."""
        return (self.lookup(reference.name) + reference.offset) & 0xFFFF

    def get(self, name: str) -> Optional[Address]:
        return self._entries.get(name)

    def names(self) -> list[str]:
        return list(self._entries)

    def items(self):
        return self._entries.items()

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __getitem__(self, name: str) -> Address:
        return self.lookup(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "writable"
        return f"AddressBook({len(self._entries)} names, {state})"
