"""Compile units, their type/tag/function tables, and collections of them."""

from __future__ import annotations

import threading
from bisect import bisect_right
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Optional

from .dwarf import DwTag
from .model import Class, Function, LexBlock, Tag

_TABLE_CHUNK = 2048


class _PtrTable:
    """A growable id -> tag table; ids are dense list indexes."""

    def __init__(self) -> None:
        self.entries: list[Optional[Tag]] = []
        self.allocated_entries = 0

    @property
    def nr_entries(self) -> int:
        return len(self.entries)

    def add(self, tag: Optional[Tag]) -> int:
        idx = len(self.entries)
        if idx + 1 > self.allocated_entries:
            self.allocated_entries += _TABLE_CHUNK
        self.entries.append(tag)
        return idx

    def add_with_id(self, tag: Optional[Tag], id: int) -> None:
        if id < 0:
            raise ValueError(f"invalid table id: {id}")
        if id >= self.allocated_entries:
            self.allocated_entries = -(-(id + 1) // _TABLE_CHUNK) * _TABLE_CHUNK
        if id >= len(self.entries):
            self.entries.extend([None] * (id + 1 - len(self.entries)))
        self.entries[id] = tag

    def entry(self, id: int) -> Optional[Tag]:
        if 0 <= id < len(self.entries):
            return self.entries[id]
        return None


def ptr_table_stats_csv_header() -> str:
    """Header line for the per-CU table statistics CSV."""
    return "# cu,tags,allocated_tags,types,allocated_types,functions,allocated_functions\n"


@dataclass(eq=False)
class CompileUnit:
    """A compilation unit: tags indexed by id in type, tag and function tables."""

    name: str
    addr_size: int = 8
    build_id: bytes = b""
    filename: str = ""
    language: int = 0
    extra_dbg_info: bool = False
    has_addr_info: bool = False
    little_endian: bool = True
    priv: Any = None
    nr_inline_expansions: int = 0
    size_inline_expansions: int = 0
    nr_functions_changed: int = 0
    nr_structures_changed: int = 0
    max_len_changed_item: int = 0
    function_bytes_added: int = 0
    function_bytes_removed: int = 0
    tags: list[Tag] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self._tags_table = _PtrTable()
        self._types_table = _PtrTable()
        self._functions_table = _PtrTable()
        # Type id 0 stands for void and is never handed out.
        self._types_table.add(None)
        self._func_addrs: list[int] = []
        self._funcs_by_addr: list[Function] = []

    # -- table management -------------------------------------------------

    def _table_for(self, tag: Tag) -> _PtrTable:
        if tag.is_tag_type():
            return self._types_table
        if tag.is_function():
            self._insert_function(tag)  # type: ignore[arg-type]
            return self._functions_table
        return self._tags_table

    def _insert_function(self, function: Function) -> None:
        addr = function.lexblock.addr
        idx = bisect_right(self._func_addrs, addr)
        self._func_addrs.insert(idx, addr)
        self._funcs_by_addr.insert(idx, function)

    def table_add_tag(self, tag: Tag) -> int:
        """Register a tag in the table for its kind and return its id."""
        return self._table_for(tag).add(tag)

    def table_add_tag_with_id(self, tag: Tag, id: int) -> None:
        """Register a tag under a given id in the table for its kind."""
        if id < 0:
            raise ValueError(f"invalid table id: {id}")
        self._table_for(tag).add_with_id(tag, id)

    def add_tag(self, tag: Tag) -> int:
        """Register a tag and append it to the unit's top level tags."""
        id = self.table_add_tag(tag)
        self.tags.append(tag)
        return id

    def add_tag_with_id(self, tag: Tag, id: int) -> None:
        self.table_add_tag_with_id(tag, id)
        self.tags.append(tag)

    def nullify_type_entry(self, id: int) -> None:
        """Reserve a type id with no type behind it."""
        self._types_table.add_with_id(None, id)

    # -- lookups by id -----------------------------------------------------

    def type(self, id: int) -> Optional[Tag]:
        return self._types_table.entry(id)

    def tag(self, id: int) -> Optional[Tag]:
        return self._tags_table.entry(id)

    def function(self, id: int) -> Optional[Function]:
        return self._functions_table.entry(id)  # type: ignore[return-value]

    # -- iteration ---------------------------------------------------------

    def types(self) -> Iterator[tuple[int, Tag]]:
        """(id, tag) for every non-empty type entry, skipping void."""
        for id, tag in enumerate(self._types_table.entries):
            if id and tag is not None:
                yield id, tag

    def structs(self) -> Iterator[tuple[int, Class]]:
        for id, tag in self.types():
            if tag.is_struct():
                yield id, tag  # type: ignore[misc]

    def functions(self) -> Iterator[tuple[int, Function]]:
        for id, tag in enumerate(self._functions_table.entries):
            if tag is not None:
                yield id, tag  # type: ignore[misc]

    # -- searches ----------------------------------------------------------

    def _find_named(
        self, name: Optional[str], include_decls: bool, accept
    ) -> Optional[tuple[int, Tag]]:
        if name is None:
            return None
        for id, pos in self.types():
            if not accept(pos):
                continue
            if getattr(pos, "name", None) == name:
                if not getattr(pos, "declaration", False) or include_decls:
                    return id, pos
        return None

    def find_type_by_name(
        self, name: Optional[str], include_decls: bool = False
    ) -> Optional[tuple[int, Tag]]:
        return self._find_named(name, include_decls, Tag.is_type)

    def find_struct_by_name(
        self, name: Optional[str], include_decls: bool = False
    ) -> Optional[tuple[int, Tag]]:
        return self._find_named(name, include_decls, Tag.is_struct)

    def find_struct_or_union_by_name(
        self, name: Optional[str], include_decls: bool = False
    ) -> Optional[tuple[int, Tag]]:
        return self._find_named(
            name, include_decls, lambda t: t.is_struct() or t.is_union()
        )

    def find_base_type_by_name(self, name: Optional[str]) -> Optional[tuple[int, Tag]]:
        if name is None:
            return None
        for id, pos in self.types():
            if pos.tag == DwTag.BASE_TYPE and pos.display_name() == name:  # type: ignore[attr-defined]
                return id, pos
        return None

    def find_base_type_by_name_and_size(
        self, name: Optional[str], bit_size: int
    ) -> Optional[tuple[int, Tag]]:
        if name is None:
            return None
        for id, pos in self.types():
            if (
                pos.tag == DwTag.BASE_TYPE
                and pos.bit_size == bit_size  # type: ignore[attr-defined]
                and pos.display_name() == name  # type: ignore[attr-defined]
            ):
                return id, pos
        return None

    def find_enumeration_by_name(self, name: Optional[str]) -> Optional[tuple[int, Tag]]:
        if name is None:
            return None
        for id, pos in self.types():
            if pos.is_enumeration() and getattr(pos, "name", None) == name:
                return id, pos
        return None

    def find_enumeration_by_name_and_size(
        self, name: Optional[str], bit_size: int
    ) -> Optional[tuple[int, Tag]]:
        if name is None:
            return None
        for id, pos in self.types():
            if (
                pos.is_enumeration()
                and pos.size == bit_size  # type: ignore[attr-defined]
                and getattr(pos, "name", None) == name
            ):
                return id, pos
        return None

    def find_first_typedef_of_type(self, type_id: int) -> Optional[Tag]:
        if type_id == 0:
            return None
        return next(
            (pos for _, pos in self.types() if pos.is_typedef() and pos.type == type_id),
            None,
        )

    def find_function_by_name(self, name: Optional[str]) -> Optional[Function]:
        if name is None:
            return None
        return next((f for _, f in self.functions() if f.name == name), None)

    def find_function_at_addr(self, addr: int) -> Optional[Function]:
        """The function whose [addr, addr + size) range holds ``addr``."""
        idx = bisect_right(self._func_addrs, addr) - 1
        if idx < 0:
            return None
        func = self._funcs_by_addr[idx]
        if addr < func.lexblock.addr + func.lexblock.size:
            return func
        return None

    def same_build_id(self, other: "CompileUnit") -> bool:
        return bool(self.build_id) and self.build_id == other.build_id

    # -- aggregate passes --------------------------------------------------

    def _account_lexblock(self, block: LexBlock) -> None:
        if block.nr_inline_expansions == 0:
            return
        for pos in block.tags:
            if pos.tag == DwTag.LEXICAL_BLOCK:
                self._account_lexblock(pos)  # type: ignore[arg-type]
                continue
            if pos.tag != DwTag.INLINED_SUBROUTINE:
                continue
            func = self.function(pos.type)
            if func is not None:
                func.cu_total_nr_inline_expansions += 1
                func.cu_total_size_inline_expansions += pos.size  # type: ignore[attr-defined]

    def account_inline_expansions(self) -> None:
        """Total inline expansion counts per inlined function and for the unit."""
        for pos in self.tags:
            if not pos.is_function():
                continue
            block = pos.lexblock  # type: ignore[attr-defined]
            self._account_lexblock(block)
            self.nr_inline_expansions += block.nr_inline_expansions
            self.size_inline_expansions += block.size_inline_expansions

    def walk_tags(self) -> Iterator[Tag]:
        """Every tag, nested ones first, each level in reverse order."""
        return _walk(self.tags)

    def ptr_table_stats_csv(self) -> str:
        t, ty, f = self._tags_table, self._types_table, self._functions_table
        return (
            f"{self.name},{t.nr_entries},{t.allocated_entries},"
            f"{ty.nr_entries},{ty.allocated_entries},"
            f"{f.nr_entries},{f.allocated_entries}\n"
        )


def _walk(tags: list) -> Iterator[Tag]:
    for pos in reversed(tags):
        if pos.has_namespace():
            # Shared enumerator lists belong to another enumeration.
            if not pos.shared_tags:
                yield from _walk(pos.tags)
        elif pos.is_function():
            yield from _walk(pos.parms)
            yield from _walk(pos.lexblock.tags)
        elif pos.tag == DwTag.SUBROUTINE_TYPE:
            yield from _walk(pos.parms)
        elif pos.tag == DwTag.LEXICAL_BLOCK:
            yield from _walk(pos.tags)
        yield pos


class Cus:
    """A thread-safe, ordered collection of compile units."""

    def __init__(self) -> None:
        self._cus: list[CompileUnit] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._cus)

    def __iter__(self) -> Iterator[CompileUnit]:
        with self._lock:
            snapshot = list(self._cus)
        return iter(snapshot)

    def add(self, cu: CompileUnit) -> None:
        """Append a unit and compute the holes of its structs."""
        with self._lock:
            self._cus.append(cu)
        for _, cls in cu.structs():
            if isinstance(cls, Class):
                cls.find_holes()

    def _find_by_name(self, name: str) -> Optional[CompileUnit]:
        return next((cu for cu in self._cus if cu.name and cu.name == name), None)

    def find_cu_by_name(self, name: str) -> Optional[CompileUnit]:
        with self._lock:
            return self._find_by_name(name)

    def find_pair(self, name: str) -> Optional[CompileUnit]:
        """The only unit if there is just one, else the unit with this name."""
        with self._lock:
            if len(self._cus) == 1:
                return self._cus[0]
            return self._find_by_name(name)

    def _search(self, method: str, name, include_decls):
        with self._lock:
            for cu in self._cus:
                found = getattr(cu, method)(name, include_decls)
                if found is not None:
                    return cu, found[0], found[1]
        return None

    def find_type_by_name(
        self, name: Optional[str], include_decls: bool = False
    ) -> Optional[tuple[CompileUnit, int, Tag]]:
        return self._search("find_type_by_name", name, include_decls)

    def find_struct_by_name(
        self, name: Optional[str], include_decls: bool = False
    ) -> Optional[tuple[CompileUnit, int, Tag]]:
        return self._search("find_struct_by_name", name, include_decls)

    def find_struct_or_union_by_name(
        self, name: Optional[str], include_decls: bool = False
    ) -> Optional[tuple[CompileUnit, int, Tag]]:
        return self._search("find_struct_or_union_by_name", name, include_decls)

    def find_function_at_addr(self, addr: int) -> Optional[tuple[CompileUnit, Function]]:
        with self._lock:
            for cu in self._cus:
                func = cu.find_function_at_addr(addr)
                if func is not None:
                    return cu, func
        return None