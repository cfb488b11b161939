"""In-memory model of debugging information entries: types, members, functions."""

from __future__ import annotations

import copy
import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Optional

from .dwarf import DwTag, base_type_table_size, float_type_str

_VIRTUALITY_VIRTUAL = 1

_STRUCT_TAGS = frozenset({DwTag.STRUCTURE_TYPE, DwTag.INTERFACE_TYPE, DwTag.CLASS_TYPE})
_MODIFIER_TAGS = frozenset(
    {DwTag.CONST_TYPE, DwTag.VOLATILE_TYPE, DwTag.RESTRICT_TYPE, DwTag.ATOMIC_TYPE}
)
_TYPE_TAGS = _STRUCT_TAGS | {
    DwTag.UNION_TYPE,
    DwTag.TYPEDEF,
    DwTag.RVALUE_REFERENCE_TYPE,
    DwTag.ENUMERATION_TYPE,
}
_TAG_TYPE_TAGS = _TYPE_TAGS | {
    DwTag.ARRAY_TYPE,
    DwTag.STRING_TYPE,
    DwTag.BASE_TYPE,
    DwTag.CONST_TYPE,
    DwTag.POINTER_TYPE,
    DwTag.PTR_TO_MEMBER_TYPE,
    DwTag.REFERENCE_TYPE,
    DwTag.RESTRICT_TYPE,
    DwTag.SUBROUTINE_TYPE,
    DwTag.UNSPECIFIED_TYPE,
    DwTag.VOLATILE_TYPE,
    DwTag.ATOMIC_TYPE,
    DwTag.LLVM_ANNOTATION,
}
_NAMESPACE_TAGS = _STRUCT_TAGS | {
    DwTag.UNION_TYPE,
    DwTag.NAMESPACE,
    DwTag.ENUMERATION_TYPE,
}


@dataclass(eq=False, kw_only=True)
class Tag:
    """A debugging information entry; ``type`` is the id of the type it refers to."""

    tag: int
    type: int = 0
    visited: bool = False
    top_level: bool = False
    has_btf_type_tag: bool = False
    recursivity_level: int = 0
    priv: Any = None

    def is_struct(self) -> bool:
        return self.tag in _STRUCT_TAGS

    def is_union(self) -> bool:
        return self.tag == DwTag.UNION_TYPE

    def is_typedef(self) -> bool:
        return self.tag == DwTag.TYPEDEF

    def is_enumeration(self) -> bool:
        return self.tag == DwTag.ENUMERATION_TYPE

    def is_pointer(self) -> bool:
        return self.tag == DwTag.POINTER_TYPE

    def is_modifier(self) -> bool:
        return self.tag in _MODIFIER_TAGS

    def is_function(self) -> bool:
        return self.tag == DwTag.SUBPROGRAM

    def is_type(self) -> bool:
        """True for tags derived from the 'type' class (structs, unions, typedefs, enums)."""
        return self.tag in _TYPE_TAGS

    def is_tag_type(self) -> bool:
        """True for any tag that can be the type of another tag."""
        return self.tag in _TAG_TYPE_TAGS

    def has_namespace(self) -> bool:
        return self.tag in _NAMESPACE_TAGS


@dataclass(eq=False, kw_only=True)
class BaseType(Tag):
    """A scalar type such as ``int`` or ``double``."""

    tag: int = DwTag.BASE_TYPE
    name: Optional[str] = None
    bit_size: int = 0
    name_has_encoding: bool = True
    is_signed: bool = False
    is_bool: bool = False
    is_varargs: bool = False
    float_type: int = 0
    definition_emitted: bool = False

    def display_name(self) -> Optional[str]:
        """The name as printed, with float kind or bool/varargs prefixes when needed."""
        if self.name_has_encoding:
            return self.name
        if self.float_type:
            return f"{float_type_str(self.float_type)} {self.name}"
        prefix = ("bool " if self.is_bool else "") + ("... " if self.is_varargs else "")
        return f"{prefix}{self.name}"

    def size(self) -> int:
        """Size in bytes."""
        return self.bit_size // 8

    def name_to_size(self, addr_size: int) -> int:
        """Size in bits derived from the type's name.

        Raises ValueError when the name is not a known base type.
        """
        name = self.name if self.name_has_encoding else self.display_name()
        if name is None:
            raise ValueError("base type without a name")
        original = name
        while True:
            try:
                size = base_type_table_size(name)
            except KeyError:
                pass
            else:
                return size or addr_size * 8
            # With encoded names the lookup always uses the original name.
            if self.name_has_encoding or not name.startswith("signed "):
                break
            name = name[len("signed ") :]
        raise ValueError(f"unknown base type {DwTag(self.tag).name} {original!r}")


@dataclass(eq=False, kw_only=True)
class ArrayType(Tag):
    """An array with one entry count per dimension."""

    tag: int = DwTag.ARRAY_TYPE
    nr_entries: list[int] = field(default_factory=list)
    is_vector: bool = False

    @property
    def dimensions(self) -> int:
        return len(self.nr_entries)

    def total_entries(self) -> int:
        """Number of elements across all dimensions."""
        return math.prod(self.nr_entries)


@dataclass(eq=False, kw_only=True)
class StringType(Tag):
    tag: int = DwTag.STRING_TYPE
    nr_entries: int = 0


@dataclass(eq=False, kw_only=True)
class Namespace(Tag):
    """A named container of tags: the base of enums, structs and unions."""

    tag: int = DwTag.NAMESPACE
    name: Optional[str] = None
    tags: list[Tag] = field(default_factory=list)
    shared_tags: bool = False
    annots: list[Any] = field(default_factory=list)

    @property
    def nr_tags(self) -> int:
        return len(self.tags)

    def add_tag(self, tag: Tag) -> None:
        self.tags.append(tag)


@dataclass(eq=False, kw_only=True)
class ClassMember(Tag):
    """A member (or inheritance entry) of a struct, union or class."""

    tag: int = DwTag.MEMBER
    name: Optional[str] = None
    bit_offset: int = 0
    bit_size: int = 0
    byte_offset: int = 0
    byte_size: int = 0
    bitfield_offset: int = 0
    bitfield_size: int = 0
    bit_hole: int = 0
    bitfield_end: bool = False
    const_value: int = 0
    alignment: int = 0
    is_static: bool = False
    has_bit_offset: bool = False
    accessibility: int = 0
    virtuality: int = 0
    hole: int = 0


@dataclass(eq=False, kw_only=True)
class Enumerator(Tag):
    tag: int = DwTag.ENUMERATOR
    name: Optional[str] = None
    value: int = 0


def _common_prefix_len(a: str, b: str) -> int:
    length = 0
    for x, y in zip(a, b):
        if x != y:
            break
        length += 1
    return length


@dataclass(eq=False, kw_only=True)
class Type(Namespace):
    """Base type for enumerations, structs, unions and typedefs."""

    tag: int = DwTag.STRUCTURE_TYPE
    size: int = 0
    size_diff: int = 0
    nr_static_members: int = 0
    nr_members: int = 0
    alignment: int = 0
    sizeof_member: Optional[ClassMember] = None
    type_member: Optional[ClassMember] = None
    type_enum: list[Any] = field(default_factory=list)
    member_prefix: Optional[str] = None
    member_prefix_len: int = 0
    max_tag_name_len: int = 0
    natural_alignment: int = 0
    suffix_disambiguation: int = 0
    packed_attributes_inferred: bool = False
    declaration: bool = False
    definition_emitted: bool = False
    fwd_decl_emitted: bool = False
    resized: bool = False
    is_signed_enum: bool = False

    def add_member(self, member: ClassMember) -> None:
        if member.is_static:
            self.nr_static_members += 1
        else:
            self.nr_members += 1
        self.add_tag(member)

    def add_enumerator(self, enumerator: Enumerator) -> None:
        self.nr_members += 1
        self.add_tag(enumerator)

    def members(self) -> Iterator[ClassMember]:
        """Entries that use space: data members and inheritance entries."""
        for tag in self.tags:
            if tag.tag in (DwTag.MEMBER, DwTag.INHERITANCE):
                yield tag  # type: ignore[misc]

    def data_members(self) -> Iterator[ClassMember]:
        for tag in self.tags:
            if tag.tag == DwTag.MEMBER:
                yield tag  # type: ignore[misc]

    def enumerators(self) -> Iterator[Enumerator]:
        for tag in self.tags:
            if isinstance(tag, Enumerator):
                yield tag

    def last_member(self) -> Optional[ClassMember]:
        for tag in reversed(self.tags):
            if tag.tag == DwTag.MEMBER:
                return tag  # type: ignore[return-value]
        return None

    def find_member_by_name(self, name: Optional[str]) -> Optional[ClassMember]:
        if name is None:
            return None
        return next((m for m in self.data_members() if m.name == name), None)

    def nr_members_of_type(self, type_id: int) -> int:
        return sum(1 for m in self.members() if m.type == type_id)

    def calc_member_prefix(self) -> Optional[str]:
        """Compute (once) the prefix shared by all enumerator names."""
        if self.member_prefix:
            return self.member_prefix
        names = [e.name or "" for e in self.enumerators()]
        self.member_prefix = None
        self.member_prefix_len = 0
        if len(names) > 1:
            common = min(_common_prefix_len(a, b) for a, b in zip(names[1:], names))
            self.member_prefix = names[-1][:common]
            self.member_prefix_len = common
        return self.member_prefix


@dataclass(eq=False, kw_only=True)
class Class(Type):
    """A struct, class or union with layout information."""

    vtable: list[Any] = field(default_factory=list)
    nr_holes: int = 0
    nr_bit_holes: int = 0
    pre_hole: int = 0
    padding: int = 0
    pre_bit_hole: int = 0
    bit_padding: int = 0
    holes_searched: bool = False
    is_packed: bool = False

    @property
    def nr_vtable_entries(self) -> int:
        return len(self.vtable)

    def add_vtable_entry(self, function: "Function") -> None:
        self.vtable.append(function)

    def clone(self, new_name: Optional[str] = None) -> "Class":
        """Copy the class and its members, optionally under a new name."""
        other = copy.copy(self)
        if new_name is not None:
            other.name = new_name
        other.vtable = list(self.vtable)
        other.type_enum = list(self.type_enum)
        other.annots = list(self.annots)
        other.tags = []
        other.nr_members = other.nr_static_members = 0
        for member in self.members():
            other.add_member(copy.copy(member))
        return other

    def find_holes(self) -> None:
        """Compute byte and bit holes between members and the trailing padding."""
        if not self.is_struct() or self.holes_searched:
            return

        self.nr_holes = 0
        self.nr_bit_holes = 0
        cur_bitfield_end = self.size * 8
        cur_bitfield_size = 0
        last_seen_bit = 0
        in_bitfield = False
        last: Optional[ClassMember] = None

        for pos in self.members():
            if pos.tag == DwTag.INHERITANCE and pos.virtuality == _VIRTUALITY_VIRTUAL:
                continue
            if pos.is_static:
                continue

            pos.bit_hole = 0
            pos.hole = 0

            bit_start = pos.bit_offset
            if pos.bitfield_size:
                bit_end = bit_start + pos.bitfield_size
            else:
                bit_end = bit_start + pos.byte_size * 8

            bit_holes = 0
            byte_holes = 0
            if in_bitfield:
                bitfield_end = min(bit_start, cur_bitfield_end)
                bit_holes = bitfield_end - last_seen_bit
                last_seen_bit = bitfield_end
            if pos.bitfield_size:
                aligned_start = pos.byte_offset * 8
                if last_seen_bit < aligned_start <= bit_start:
                    byte_holes = pos.byte_offset - last_seen_bit // 8
                    last_seen_bit = aligned_start
                bit_holes += bit_start - last_seen_bit
            else:
                byte_holes = bit_start // 8 - last_seen_bit // 8
            last_seen_bit = bit_end

            if pos.bitfield_size:
                in_bitfield = True
                if bit_end > cur_bitfield_end or pos.bit_size > cur_bitfield_size:
                    cur_bitfield_size = pos.bit_size
                    cur_bitfield_end = pos.byte_offset * 8 + cur_bitfield_size
                    # A bitfield that borrowed bits from the previous one ends
                    # in the next storage unit.
                    if bit_end > cur_bitfield_end:
                        cur_bitfield_end += cur_bitfield_size
            else:
                in_bitfield = False
                cur_bitfield_size = 0
                cur_bitfield_end = bit_end

            if last is not None:
                last.hole = byte_holes
                last.bit_hole = bit_holes
            else:
                self.pre_hole = byte_holes
                self.pre_bit_hole = bit_holes
            if bit_holes:
                self.nr_bit_holes += 1
            if byte_holes:
                self.nr_holes += 1
            last = pos

        if in_bitfield:
            bitfield_end = min(self.size * 8, cur_bitfield_end)
            self.bit_padding = bitfield_end - last_seen_bit
            last_seen_bit = bitfield_end
        else:
            self.bit_padding = 0
        self.padding = self.size - last_seen_bit // 8
        self.holes_searched = True

    def find_bit_hole(
        self, trailer: Optional[ClassMember], bit_hole_size: int
    ) -> Optional[ClassMember]:
        """First data member before ``trailer`` followed by a hole of at least the given bits."""
        byte_hole_size = bit_hole_size // 8
        for pos in self.data_members():
            if pos is trailer:
                break
            if pos.hole >= byte_hole_size or pos.bit_hole >= bit_hole_size:
                return pos
        return None

    def has_hole_ge(self, size: int) -> bool:
        """Whether some data member is followed by a hole of at least ``size`` bytes."""
        if self.nr_holes == 0:
            return False
        return any(pos.hole >= size for pos in self.data_members())


@dataclass(eq=False, kw_only=True)
class Parameter(Tag):
    tag: int = DwTag.FORMAL_PARAMETER
    name: Optional[str] = None


@dataclass(eq=False, kw_only=True)
class FType(Tag):
    """A function prototype: return type in ``type`` plus parameters."""

    tag: int = DwTag.SUBROUTINE_TYPE
    parms: list[Parameter] = field(default_factory=list)
    unspec_parms: bool = False

    @property
    def nr_parms(self) -> int:
        return len(self.parms)

    def add_parameter(self, parameter: Parameter) -> None:
        self.parms.append(parameter)


@dataclass(eq=False, kw_only=True)
class InlineExpansion(Tag):
    tag: int = DwTag.INLINED_SUBROUTINE
    addr: int = 0
    size: int = 0
    high_pc: int = 0


@dataclass(eq=False, kw_only=True)
class Label(Tag):
    tag: int = DwTag.LABEL
    addr: int = 0
    name: Optional[str] = None


@dataclass(eq=False, kw_only=True)
class Variable(Tag):
    tag: int = DwTag.VARIABLE
    addr: int = 0
    name: Optional[str] = None
    external: bool = False
    declaration: bool = False
    has_specification: bool = False
    scope: int = 0
    spec: Optional["Variable"] = None
    annots: list[Any] = field(default_factory=list)


@dataclass(eq=False, kw_only=True)
class LexBlock(Tag):
    """A lexical block with its nested tags and per-kind counters."""

    tag: int = DwTag.LEXICAL_BLOCK
    addr: int = 0
    tags: list[Tag] = field(default_factory=list)
    size: int = 0
    nr_inline_expansions: int = 0
    nr_labels: int = 0
    nr_variables: int = 0
    nr_lexblocks: int = 0
    size_inline_expansions: int = 0

    def add_tag(self, tag: Tag) -> None:
        self.tags.append(tag)

    def add_lexblock(self, child: "LexBlock") -> None:
        self.nr_lexblocks += 1
        self.tags.append(child)

    def add_variable(self, variable: Variable) -> None:
        self.nr_variables += 1
        self.add_tag(variable)

    def add_label(self, label: Label) -> None:
        self.nr_labels += 1
        self.add_tag(label)

    def add_inline_expansion(self, expansion: InlineExpansion) -> None:
        self.nr_inline_expansions += 1
        self.size_inline_expansions += expansion.size
        self.add_tag(expansion)


@dataclass(eq=False, kw_only=True)
class Function(FType):
    """A subprogram: a prototype plus its body's lexical block."""

    tag: int = DwTag.SUBPROGRAM
    lexblock: LexBlock = field(default_factory=LexBlock)
    name: Optional[str] = None
    linkage_name: Optional[str] = None
    cu_total_size_inline_expansions: int = 0
    cu_total_nr_inline_expansions: int = 0
    inlined: int = 0
    abstract_origin: bool = False
    external: bool = False
    accessibility: int = 0
    virtuality: int = 0
    declaration: bool = False
    btf: bool = False
    vtable_entry: int = -1
    annots: list[Any] = field(default_factory=list)